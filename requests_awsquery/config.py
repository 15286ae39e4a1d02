"""
Credential and endpoint configuration.

Explicit arguments always win. Otherwise values are read from the
environment: EC2_ACCESS_KEY / EC2_SECRET_KEY / EC2_URL first, then the
AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY / AWS_SESSION_TOKEN variables used
by the AWS command line tools.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import os
from collections import namedtuple

from .exceptions import MissingCredentialsError


ACCESS_KEY_VARS = ('EC2_ACCESS_KEY', 'AWS_ACCESS_KEY_ID')
SECRET_KEY_VARS = ('EC2_SECRET_KEY', 'AWS_SECRET_ACCESS_KEY')
SESSION_TOKEN_VARS = ('AWS_SESSION_TOKEN', 'AWS_SECURITY_TOKEN')
ENDPOINT_VAR = 'EC2_URL'


class Credentials(namedtuple('Credentials',
                             'access_key secret_key session_token')):
    """
    Immutable AWS credentials.

    access_key    -- AWS access key ID
    secret_key    -- AWS secret access key
    session_token -- optional STS session token

    """

    __slots__ = ()

    def __new__(cls, access_key, secret_key, session_token=None):
        return super(Credentials, cls).__new__(cls, access_key, secret_key,
                                               session_token)

    def __repr__(self):
        return 'Credentials(access_key={!r}, secret_key=***)'.format(
            self.access_key)


def _first_set(environ, names):
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None


def credentials_from_env(access_key=None, secret_key=None,
                         session_token=None, environ=None):
    """
    Return a Credentials instance from arguments or environment variables.

    Raise MissingCredentialsError if the access key or the secret key cannot
    be found.

    """
    if environ is None:
        environ = os.environ
    access_key = access_key or _first_set(environ, ACCESS_KEY_VARS)
    if not access_key:
        raise MissingCredentialsError(
            'Please provide access_key or define environment variable '
            '{}'.format(' or '.join(ACCESS_KEY_VARS)))
    secret_key = secret_key or _first_set(environ, SECRET_KEY_VARS)
    if not secret_key:
        raise MissingCredentialsError(
            'Please provide secret_key or define environment variable '
            '{}'.format(' or '.join(SECRET_KEY_VARS)))
    session_token = session_token or _first_set(environ, SESSION_TOKEN_VARS)
    return Credentials(access_key, secret_key, session_token)


def endpoint_from_env(default, endpoint=None, environ=None, var=ENDPOINT_VAR):
    """
    Return the endpoint URL, always ending in a slash.

    The endpoint argument wins, then the environment variable named by var
    (EC2_URL unless given), then default.

    """
    if environ is None:
        environ = os.environ
    url = endpoint or (var and environ.get(var)) or default
    if not url.endswith('/'):
        url += '/'
    return url
