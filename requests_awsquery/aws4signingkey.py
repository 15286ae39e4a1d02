"""
Provides the Scope and AWS4SigningKey classes used by Amazon Web Services
signature version 4.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import hmac
import hashlib
import re
from collections import namedtuple
from datetime import datetime, timezone


DEFAULT_REGION = 'us-east-1'
AMZ_HOST_RE = re.compile(r'^\w+\.([^.]+)\.amazonaws\.com')
SERVICE_RE = re.compile(r'^(\w+)')


def utc_now():
    return datetime.now(timezone.utc)


def amz_datetime(when=None):
    """
    Return when (default now) as an x-amz-date timestamp, YYYYMMDDTHHMMSSZ.

    """
    return (when or utc_now()).strftime('%Y%m%dT%H%M%SZ')


class Scope(namedtuple('Scope', 'date region service')):
    """
    The date/region/service triple a signing key is valid for.

    str(scope) gives the credential scope string used in the string to
    sign and in the Authorization header:

    >>> str(Scope('20110909', 'us-east-1', 'iam'))
    '20110909/us-east-1/iam/aws4_request'

    """

    __slots__ = ()

    def __str__(self):
        return '{}/{}/{}/aws4_request'.format(self.date, self.region,
                                              self.service)

    @classmethod
    def from_request(cls, host, amz_date, region=None, service=None):
        """
        Derive the scope for a request to host signed at amz_date.

        The service is the first label of the host name and the region is
        the second one for hosts of the form service.region.amazonaws.com;
        any other host is scoped to us-east-1. region and service, when
        given, are used as is.

        """
        host = host.split(':')[0].lower()
        if service is None:
            match = SERVICE_RE.match(host)
            service = match.group(1) if match else host
        if region is None:
            match = AMZ_HOST_RE.match(host)
            region = match.group(1) if match else DEFAULT_REGION
        return cls(amz_date[:8], region, service)


class AWS4SigningKey:
    """
    AWS signing key. Used to sign AWS authentication strings.

    The secret key is not stored in the object after instantiation.

    Methods:
    generate_key() -- Generate AWS4 Signing Key string.
    sign_sha256()  -- Generate SHA256 HMAC signature, encoding message to bytes
                      if required.

    Attributes:
    region   -- AWS region the key is scoped for
    service  -- AWS service the key is scoped for
    amz_date -- Initial date key is scoped for
    scope    -- The Scope for this key, calculated from the above
                attributes.
    key      -- The signing key string itself

    """

    def __init__(self, secret_key, region, service, date=None):
        """
        >>> AWS4SigningKey(secret_key, region, service[, date])

        secret_key -- This is your AWS secret access key
        region     -- The region you're connecting to, e.g. us-east-1. For
                      services which don't require a region (e.g. IAM), use
                      us-east-1.
        service    -- The name of the service you're connecting to, e.g. ec2
        date       -- 8-digit date of the form YYYYMMDD. Signing keys are
                      valid for 7 days from this date. If date is not
                      supplied the current date is used.

        """
        self.region = region
        self.service = service
        self.amz_date = date or utc_now().strftime('%Y%m%d')
        self.scope = Scope(self.amz_date, self.region, self.service)
        self.key = self.generate_key(secret_key, self.region,
                                     self.service, self.amz_date)

    @classmethod
    def for_scope(cls, secret_key, scope):
        return cls(secret_key, scope.region, scope.service, scope.date)

    @classmethod
    def generate_key(cls, secret_key, region, service, amz_date,
                     intermediate=False):
        """
        Generate the signing key string as bytes.

        If intermediate is set to True, returns a 4-tuple containing the key
        and the intermediate keys:

        ( signing_key, date_key, region_key, service_key )

        The intermediate keys can be used for testing against example from
        Amazon.

        """
        init_key = ('AWS4' + secret_key).encode('utf-8')
        date_key = cls.sign_sha256(init_key, amz_date)
        region_key = cls.sign_sha256(date_key, region)
        service_key = cls.sign_sha256(region_key, service)
        key = cls.sign_sha256(service_key, 'aws4_request')
        if intermediate:
            return (key, date_key, region_key, service_key)
        return key

    @staticmethod
    def sign_sha256(key, msg):
        """
        Generate an SHA256 HMAC, encoding msg to UTF-8 if not
        already encoded.

        key -- signing key. bytes.
        msg -- message to sign. str or bytes.

        """
        if isinstance(msg, str):
            msg = msg.encode('utf-8')
        return hmac.new(key, msg, hashlib.sha256).digest()

    def sign(self, string_to_sign):
        """Return the hex signature of string_to_sign."""
        if isinstance(string_to_sign, str):
            string_to_sign = string_to_sign.encode('utf-8')
        return hmac.new(self.key, string_to_sign, hashlib.sha256).hexdigest()
