"""
Provides AWS2Auth class for handling Amazon Web Services signature version 2
authentication of Query API requests (EC2, RDS, ELB) with the Requests
module.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import base64
import hashlib
import hmac
import logging
from urllib.parse import parse_qsl, urlsplit

from requests.auth import AuthBase

from .aws4signingkey import utc_now
from .canonical import aws_quote
from .exceptions import MissingCredentialsError


logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = 'application/x-www-form-urlencoded; charset=utf-8'


def query_timestamp(when=None):
    """Return when (default now) as a Query API Timestamp."""
    return (when or utc_now()).strftime('%Y-%m-%dT%H:%M:%SZ')


class AWS2Auth(AuthBase):
    """
    Requests authentication class for AWS signature version 2.

    The request must carry its Query API parameters as a form encoded body,
    as produced by passing a dict to the data argument of a Requests POST.
    The signer merges the authentication parameters into that body, computes
    the HmacSHA256 signature over the sorted parameters and rewrites the body
    with the Signature parameter appended.

    >>> import requests
    >>> from requests_awsquery import AWS2Auth
    >>> auth = AWS2Auth('<ACCESS KEY ID>', '<SECRET KEY>')
    >>> params = {'Action': 'DescribeRegions', 'Version': '2011-05-15'}
    >>> response = requests.post('https://ec2.amazonaws.com/', data=params,
    ...                          auth=auth)

    A Timestamp already present in the parameters is kept, which makes the
    signature reproducible.

    """

    def __init__(self, access_key, secret_key, session_token=None):
        """
        access_key    -- AWS access key ID
        secret_key    -- AWS secret access key
        session_token -- STS session token, sent as SecurityToken

        Raise MissingCredentialsError if either key is empty.

        """
        if not access_key:
            raise MissingCredentialsError('AWS2Auth requires an access key')
        if not secret_key:
            raise MissingCredentialsError('AWS2Auth requires a secret key')
        self.access_key = access_key
        self.secret_key = secret_key
        self.session_token = session_token
        AuthBase.__init__(self)

    @classmethod
    def from_credentials(cls, credentials):
        return cls(credentials.access_key, credentials.secret_key,
                   credentials.session_token)

    def __call__(self, req):
        """
        Sign req, a Requests PreparedRequest, in place.

        """
        params = self.request_params(req)
        params = self.add_auth_params(params)
        url = urlsplit(req.url)
        params['Signature'] = self.get_signature(
            params, self.secret_key, req.method, url.hostname or '',
            url.path or '/')
        req.body = self.encode_params(params).encode('ascii')
        req.headers['Content-Type'] = FORM_CONTENT_TYPE
        req.prepare_content_length(req.body)
        return req

    def add_auth_params(self, params):
        """
        Return a copy of params with the authentication parameters merged in.

        """
        params = dict(params)
        params['AWSAccessKeyId'] = self.access_key
        params.setdefault('Timestamp', query_timestamp())
        params['SignatureVersion'] = '2'
        params['SignatureMethod'] = 'HmacSHA256'
        if self.session_token:
            params['SecurityToken'] = self.session_token
        params.pop('Signature', None)
        return params

    @staticmethod
    def request_params(req):
        """
        Return the parameters of a form encoded request body as a dict.

        """
        body = req.body or ''
        if isinstance(body, bytes):
            body = body.decode('utf-8')
        return dict(parse_qsl(body, keep_blank_values=True))

    @staticmethod
    def encode_params(params):
        """
        Percent encode params, sorted by name, as a querystring.

        Names are sorted by their UTF-8 bytes, as AWS compares them.

        """
        items = []
        for name in sorted(params, key=lambda n: str(n).encode('utf-8')):
            items.append('{}={}'.format(aws_quote(name),
                                        aws_quote(params[name])))
        return '&'.join(items)

    @classmethod
    def get_sig_string(cls, params, method, host, path):
        """
        Generate the version 2 string to sign.

        """
        sig_string = '\n'.join([method.upper(), host.lower(), path or '/',
                                cls.encode_params(params)])
        logger.debug('String to sign:\n%s', sig_string)
        return sig_string

    @classmethod
    def get_signature(cls, params, secret_key, method, host, path):
        """
        Return the base64 encoded HmacSHA256 signature of params.

        params     -- every request parameter, authentication parameters
                      included and Signature excluded
        secret_key -- AWS secret access key
        method     -- HTTP method
        host       -- endpoint host name
        path       -- endpoint path

        """
        sig_string = cls.get_sig_string(params, method, host, path)
        digest = hmac.new(secret_key.encode('utf-8'),
                          sig_string.encode('utf-8'),
                          hashlib.sha256).digest()
        return base64.b64encode(digest).decode('ascii')
