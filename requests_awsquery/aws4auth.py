"""
Provides AWS4Auth class for handling Amazon Web Services version 4
authentication with the Requests module.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import logging
from urllib.parse import urlsplit, urlunsplit

from requests.auth import AuthBase

from .aws4signingkey import AWS4SigningKey, Scope, amz_datetime
from .canonical import (UNSIGNED_PAYLOAD, aws_quote, build_canonical_request,
                        hash_payload, query_pairs)
from .exceptions import MissingCredentialsError


logger = logging.getLogger(__name__)

ALGORITHM = 'AWS4-HMAC-SHA256'
DEFAULT_PORTS = {'http': 80, 'https': 443}


class AWS4Auth(AuthBase):
    """
    Requests authentication class for providing AWS version 4 authentication
    for HTTP requests.

    The signing scope is derived from each request's host unless region
    and service are given: the service is the first label of the host name
    and the region the second one for service.region.amazonaws.com hosts,
    us-east-1 otherwise.

    You can reuse AWS4Auth instances to sign as many requests as you need.

    Basic usage
    -----------

    >>> import requests
    >>> from requests_awsquery import AWS4Auth
    >>> auth = AWS4Auth('<ACCESS KEY ID>', '<SECRET KEY>')
    >>> response = requests.get('https://s3.eu-west-1.amazonaws.com',
    ...                         auth=auth)

    Presigned URLs
    --------------

    >>> req = requests.Request('GET', 'https://s3.amazonaws.com/b/k').prepare()
    >>> url = auth.signed_url(req, expires=600)

    Class attributes
    ----------------

    AWS4Auth.access_key    -- the access key ID supplied to the instance
    AWS4Auth.session_token -- optional STS session token
    AWS4Auth.region        -- fixed region, or None to derive it per request
    AWS4Auth.service       -- fixed service, or None to derive it per request
    AWS4Auth.include_hdrs  -- names of the headers to sign

   """

    default_include_headers = frozenset(['host', 'content-type', 'date',
                                         'x-amz-*'])

    def __init__(self, access_key, secret_key, session_token=None,
                 region=None, service=None, include_hdrs=None):
        """
        access_key    -- AWS access key ID
        secret_key    -- AWS secret access key
        session_token -- STS session token, sent as x-amz-security-token
        region        -- region to scope signatures to, e.g. eu-west-1
        service       -- service to scope signatures to, e.g. ec2
        include_hdrs  -- iterable of header names to sign. 'x-amz-*' matches
                         every x-amz- header and '*' every header. Anything
                         that is not iterable selects the defaults.

        Raise MissingCredentialsError if either key is empty.

        """
        if not access_key:
            raise MissingCredentialsError('AWS4Auth requires an access key')
        if not secret_key:
            raise MissingCredentialsError('AWS4Auth requires a secret key')
        self.access_key = access_key
        self.secret_key = secret_key
        self.session_token = session_token
        self.region = region
        self.service = service
        try:
            self.include_hdrs = set(x.lower() for x in include_hdrs)
        except TypeError:
            self.include_hdrs = set(self.default_include_headers)
        AuthBase.__init__(self)

    @classmethod
    def from_credentials(cls, credentials, **kwargs):
        return cls(credentials.access_key, credentials.secret_key,
                   credentials.session_token, **kwargs)

    def __call__(self, req):
        """
        Interface used by Requests module to apply authentication to HTTP
        requests.

        Add Host, Authorization and, if not already present, X-Amz-Date
        headers. Add X-Amz-Security-Token when a session token is set and
        X-Amz-Content-SHA256 for S3.

        req -- Requests PreparedRequest object

        """
        self.encode_body(req)
        host = self.request_host(req.url)
        req.headers['Host'] = host
        amz_date = req.headers.get('x-amz-date')
        if not amz_date:
            amz_date = amz_datetime()
            req.headers['X-Amz-Date'] = amz_date
        scope = self.get_scope(host, amz_date)
        if self.session_token:
            req.headers['X-Amz-Security-Token'] = self.session_token
        payload_hash = hash_payload(req.body)
        if scope.service == 's3':
            req.headers['X-Amz-Content-SHA256'] = payload_hash
        headers = self.get_signed_headers(req.headers, self.include_hdrs)
        url = urlsplit(req.url)
        cano_req, signed_headers = build_canonical_request(
            req.method, url.path, url.query, headers, payload_hash,
            normalize_path=scope.service != 's3')
        sig_string = self.get_sig_string(amz_date, scope, cano_req)
        sig = self.signing_key(scope).sign(sig_string)
        req.headers['Authorization'] = self.get_auth_header(
            scope, signed_headers, sig)
        return req

    def signed_url(self, req, expires=3600):
        """
        Return a presigned URL for req, normally a GET request.

        The X-Amz-* authentication parameters are appended to the
        querystring, only the host header is signed and the resulting
        signature is appended as X-Amz-Signature.

        req     -- Requests PreparedRequest object
        expires -- validity of the URL in seconds

        """
        self.encode_body(req)
        host = self.request_host(req.url)
        amz_date = req.headers.get('x-amz-date') or amz_datetime()
        scope = self.get_scope(host, amz_date)
        if scope.service == 's3':
            payload_hash = UNSIGNED_PAYLOAD
        else:
            payload_hash = hash_payload(req.body)
        url = urlsplit(req.url)
        query = query_pairs(url.query)
        query.append(('X-Amz-Algorithm', ALGORITHM))
        query.append(('X-Amz-Credential',
                      '{}/{}'.format(self.access_key, scope)))
        query.append(('X-Amz-Date', amz_date))
        query.append(('X-Amz-Expires', str(int(expires))))
        query.append(('X-Amz-SignedHeaders', 'host'))
        if self.session_token:
            query.append(('X-Amz-Security-Token', self.session_token))
        cano_req, _ = build_canonical_request(
            req.method, url.path, query, [('host', host)], payload_hash,
            normalize_path=scope.service != 's3')
        sig_string = self.get_sig_string(amz_date, scope, cano_req)
        query.append(('X-Amz-Signature',
                      self.signing_key(scope).sign(sig_string)))
        qs = '&'.join('{}={}'.format(aws_quote(name), aws_quote(val))
                      for name, val in query)
        return urlunsplit((url.scheme, url.netloc, url.path or '/', qs, ''))

    def get_scope(self, host, amz_date):
        return Scope.from_request(host, amz_date, self.region, self.service)

    def signing_key(self, scope):
        return AWS4SigningKey.for_scope(self.secret_key, scope)

    def get_auth_header(self, scope, signed_headers, signature):
        return '{} Credential={}/{}, SignedHeaders={}, Signature={}'.format(
            ALGORITHM, self.access_key, scope, ';'.join(signed_headers),
            signature)

    @staticmethod
    def request_host(url):
        """
        Return the Host header value for url, omitting default ports.

        """
        parts = urlsplit(url)
        host = parts.hostname or ''
        if parts.port and parts.port != DEFAULT_PORTS.get(parts.scheme):
            host = '{}:{}'.format(host, parts.port)
        return host

    @staticmethod
    def encode_body(req):
        """
        Encode body of request to bytes and update content-type if required.

        If the body of req is str then encode to the charset found in
        content-type header if present, otherwise UTF-8, or ASCII if
        content-type is application/x-www-form-urlencoded. If encoding to UTF-8
        then add charset to content-type. Modifies req directly, does not
        return a modified copy.

        req -- Requests PreparedRequest object

        """
        if isinstance(req.body, str):
            split = req.headers.get('content-type', 'text/plain').split(';')
            if len(split) == 2:
                ct, cs = split
                cs = cs.split('=')[1]
                req.body = req.body.encode(cs)
            else:
                ct = split[0]
                if (ct == 'application/x-www-form-urlencoded' or
                        'x-amz-' in ct):
                    req.body = req.body.encode()
                else:
                    req.body = req.body.encode('utf-8')
                    req.headers['content-type'] = ct + '; charset=utf-8'

    @staticmethod
    def get_signed_headers(headers, include):
        """
        Select the headers to sign, as a list of (name, value) pairs.

        headers -- request headers, any mapping
        include -- set of lower case header names. 'x-amz-*' selects any
                   header starting x-amz- except x-amz-client-context,
                   which breaks mobile analytics auth if included, and '*'
                   selects every header.

        """
        selected = []
        for hdr, val in headers.items():
            name = hdr.strip().lower()
            if (name in include or '*' in include or
                    ('x-amz-*' in include and name.startswith('x-amz-') and
                     not name == 'x-amz-client-context')):
                selected.append((hdr, val))
        return selected

    @staticmethod
    def get_sig_string(amz_date, scope, cano_req):
        """
        Generate the AWS4 auth string to sign for the request.

        amz_date -- the request's x-amz-date value
        scope    -- Scope of the request
        cano_req -- the Canonical Request, as returned by
                    build_canonical_request()

        """
        sig_items = [ALGORITHM, amz_date, str(scope),
                     hash_payload(cano_req.encode('utf-8'))]
        sig_string = '\n'.join(sig_items)
        logger.debug('String to sign:\n%s', sig_string)
        return sig_string
