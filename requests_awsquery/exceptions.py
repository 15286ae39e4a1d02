"""
Exceptions raised by requests-awsquery.

API-level failures reported by AWS are not exceptions by default: they are
materialized as Error objects and recorded on the client. AWSQueryError is
only raised when a client is created with raise_error=True.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


class AWSQueryException(Exception):
    """Top-level exception for errors raised by this package."""


class ConfigurationError(AWSQueryException, ValueError):
    """A signer or client was given unusable configuration."""


class MissingCredentialsError(ConfigurationError):
    """No access key or secret key could be found."""


class RegistryFrozenError(AWSQueryException):
    """An action was registered after the registry was frozen."""


class ResponseParseError(AWSQueryException):
    """A response body could not be parsed as XML."""


class AWSQueryError(AWSQueryException):
    """
    An AWS API call failed.

    error -- the Error object describing the failure

    """

    def __init__(self, error):
        self.error = error
        AWSQueryException.__init__(self, str(error))
