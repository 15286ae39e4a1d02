"""
Amazon Web Services Query API client core for the Python Requests_ library.

.. _Requests: https://github.com/psf/requests

Features
--------
* Requests authentication for AWS signature version 4 and version 2
* Presigned URLs (signature version 4 query authentication)
* A registry mapping API actions to the classes their responses become
* Conversion of Query API XML responses into Python objects
* EC2, ELB and RDS clients covering the most used calls

Installation
------------
Install via pip:

.. code-block:: bash

    $ pip install requests-awsquery

requests-awsquery requires the Requests_ library.

Basic usage
-----------
.. code-block:: python

    >>> from requests_awsquery import EC2
    >>> ec2 = EC2('<ACCESS KEY ID>', '<SECRET KEY>',
    ...           endpoint='https://ec2.eu-west-1.amazonaws.com')
    >>> for zone in ec2.describe_availability_zones():
    ...     print(zone, zone.zoneState)

Credentials and endpoint default to the ``EC2_ACCESS_KEY``,
``EC2_SECRET_KEY`` and ``EC2_URL`` environment variables, then to the
``AWS_ACCESS_KEY_ID`` and ``AWS_SECRET_ACCESS_KEY`` ones.

Signing requests
----------------
The signers are plain Requests auth classes and work without the clients:

.. code-block:: python

    >>> import requests
    >>> from requests_awsquery import AWS4Auth
    >>> auth = AWS4Auth('<ACCESS KEY ID>', '<SECRET KEY>', region='us-east-1',
    ...                 service='iam')
    >>> response = requests.get('https://iam.amazonaws.com/',
    ...                         params={'Action': 'ListUsers',
    ...                                 'Version': '2010-05-08'},
    ...                         auth=auth)

``AWS2Auth`` signs form encoded Query API POSTs with signature version 2.

Errors
------
Failed calls return ``None``; the ``Error`` object describing the failure is
kept in ``client.error`` and ``client.error_str`` gives ``[Code] Message``.
Pass ``raise_error=True`` to get an ``AWSQueryError`` instead.

Logging
-------
Every module logs to a logger named after it. Canonical requests and
strings to sign are logged at DEBUG level, failed calls at ERROR level when
the client is created with ``print_error=True``.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


from .aws2auth import AWS2Auth
from .aws4auth import AWS4Auth
from .aws4signingkey import AWS4SigningKey, Scope
from .client import EC2, ELB, RDS, QueryClient
from .config import Credentials, credentials_from_env
from .dispatch import Dispatcher, ResultSet
from .exceptions import (AWSQueryError, AWSQueryException, ConfigurationError,
                         MissingCredentialsError, RegistryFrozenError,
                         ResponseParseError)
from .objects import Error, Generic
from .registry import (ActionRegistry, Boolean, FetchItems, FetchOne,
                       WholeObject, default_registry)
from .xmlparse import parse_xml


__version__ = '0.1.0'
