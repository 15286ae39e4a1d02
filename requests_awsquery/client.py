"""
Query API clients for EC2, ELB and RDS.

A client signs each call with AWS2Auth or AWS4Auth, posts it through a
Requests session and hands the response to a Dispatcher:

>>> from requests_awsquery import EC2
>>> ec2 = EC2(endpoint='https://ec2.eu-west-1.amazonaws.com')
>>> for volume in ec2.describe_volumes(filters={'status': 'available'}):
...     print(volume, volume.size)

Failed calls return None and record an Error object on the client:

>>> if ec2.delete_volume('vol-12345678') is None:
...     print(ec2.error_str)

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import logging

import requests

from .aws2auth import AWS2Auth
from .aws4auth import AWS4Auth
from .config import credentials_from_env, endpoint_from_env
from .dispatch import Dispatcher
from .exceptions import AWSQueryError, ConfigurationError
from .params import (boolean_param, filter_params, list_params, member_params,
                     merge, single_param, tag_params)
from .registry import default_registry


logger = logging.getLogger(__name__)

SIGNERS = {2: AWS2Auth, 4: AWS4Auth}


class QueryClient:
    """
    Base class of the Query API clients.

    Subclasses set the class attributes:

    api_version       -- value of the Version parameter
    default_endpoint  -- endpoint used when none is configured
    endpoint_var      -- environment variable overriding the endpoint
    service           -- name of the built-in action table to load
    signature_version -- 2 or 4

    """

    api_version = None
    default_endpoint = None
    endpoint_var = None
    service = None
    signature_version = 2

    def __init__(self, access_key=None, secret_key=None, endpoint=None,
                 session_token=None, raise_error=False, print_error=False,
                 signature_version=None, session=None, timeout=None,
                 registry=None, environ=None):
        """
        access_key, secret_key, session_token
                          -- credentials, read from the environment when
                             not given
        endpoint          -- endpoint URL
        raise_error       -- raise AWSQueryError when a call fails
        print_error       -- log failed calls at ERROR level
        signature_version -- 2 or 4, overriding the class default
        session           -- Requests session to send calls with
        timeout           -- timeout passed on to Requests
        registry          -- ActionRegistry, default_registry(service) if
                             not given

        Raise ConfigurationError for an unknown signature version and
        MissingCredentialsError when no credentials can be found.

        """
        credentials = credentials_from_env(access_key, secret_key,
                                           session_token, environ)
        self.endpoint = endpoint_from_env(self.default_endpoint, endpoint,
                                          environ, self.endpoint_var)
        if signature_version is not None:
            self.signature_version = signature_version
        try:
            signer = SIGNERS[int(self.signature_version)]
        except (KeyError, TypeError, ValueError):
            raise ConfigurationError('Unsupported signature version: '
                                     '{!r}'.format(self.signature_version))
        self.auth = signer.from_credentials(credentials)
        self.access_key = credentials.access_key
        self.raise_error = raise_error
        self.print_error = print_error
        self.session = requests.Session() if session is None else session
        self.timeout = timeout
        if registry is None:
            registry = default_registry(self.service)
        self.dispatcher = Dispatcher(registry)
        self.error = None

    @property
    def registry(self):
        return self.dispatcher.registry

    def add_override(self, action, target):
        """
        Register target (a directive, class or handler) for action.

        Only possible before the first call.

        """
        self.registry.register(action, target)

    @property
    def is_error(self):
        return self.error is not None

    @property
    def error_str(self):
        return None if self.error is None else str(self.error)

    def call(self, action, params=None):
        """
        Call the API action with params and return the resulting objects.

        Return None if the call fails, after recording the Error on the
        client (and raising AWSQueryError if raise_error is set).

        """
        self.registry.freeze()
        data = {'Action': action, 'Version': self.api_version}
        data.update(params or {})
        logger.debug('Calling %s on %s', action, self.endpoint)
        response = self.session.post(self.endpoint, data=data,
                                     auth=self.auth, timeout=self.timeout)
        if not response.ok:
            return self._fail(
                self.dispatcher.error_from_response(response, self))
        self.error = None
        return self.dispatcher.response_to_objects(response, self)

    def _fail(self, error):
        self.error = error
        if self.print_error:
            logger.error('%s', error)
        if self.raise_error:
            raise AWSQueryError(error)
        return None


class EC2(QueryClient):
    """Client for the Elastic Compute Cloud API."""

    api_version = '2011-05-15'
    default_endpoint = 'http://ec2.amazonaws.com/'
    endpoint_var = 'EC2_URL'
    service = 'ec2'

    def describe_regions(self, region_names=None):
        return self.call('DescribeRegions',
                         list_params('RegionName', region_names))

    def describe_availability_zones(self, zone_names=None, filters=None):
        return self.call('DescribeAvailabilityZones',
                         merge(list_params('ZoneName', zone_names),
                               filter_params(filters)))

    def describe_instances(self, instance_ids=None, filters=None):
        """Return the matching instances, flattened out of reservations."""
        return self.call('DescribeInstances',
                         merge(list_params('InstanceId', instance_ids),
                               filter_params(filters)))

    def start_instances(self, instance_ids):
        return self.call('StartInstances',
                         list_params('InstanceId', instance_ids))

    def stop_instances(self, instance_ids, force=None):
        return self.call('StopInstances',
                         merge(list_params('InstanceId', instance_ids),
                               boolean_param('Force', force)))

    def terminate_instances(self, instance_ids):
        return self.call('TerminateInstances',
                         list_params('InstanceId', instance_ids))

    def describe_volumes(self, volume_ids=None, filters=None):
        return self.call('DescribeVolumes',
                         merge(list_params('VolumeId', volume_ids),
                               filter_params(filters)))

    def create_volume(self, availability_zone, size=None, snapshot_id=None,
                      volume_type=None, iops=None):
        """
        Create an EBS volume from a size in GiB, a snapshot, or both.

        """
        if size is None and snapshot_id is None:
            raise ValueError('create_volume() needs a size or a snapshot_id')
        return self.call('CreateVolume',
                         merge(single_param('AvailabilityZone',
                                            availability_zone),
                               single_param('Size', size),
                               single_param('SnapshotId', snapshot_id),
                               single_param('VolumeType', volume_type),
                               single_param('Iops', iops)))

    def delete_volume(self, volume_id):
        return self.call('DeleteVolume', single_param('VolumeId', volume_id))

    def attach_volume(self, volume_id, instance_id, device):
        return self.call('AttachVolume',
                         merge(single_param('VolumeId', volume_id),
                               single_param('InstanceId', instance_id),
                               single_param('Device', device)))

    def detach_volume(self, volume_id, instance_id=None, device=None,
                      force=None):
        return self.call('DetachVolume',
                         merge(single_param('VolumeId', volume_id),
                               single_param('InstanceId', instance_id),
                               single_param('Device', device),
                               boolean_param('Force', force)))

    def describe_snapshots(self, snapshot_ids=None, owners=None,
                           filters=None):
        return self.call('DescribeSnapshots',
                         merge(list_params('SnapshotId', snapshot_ids),
                               list_params('Owner', owners),
                               filter_params(filters)))

    def create_snapshot(self, volume_id, description=None):
        return self.call('CreateSnapshot',
                         merge(single_param('VolumeId', volume_id),
                               single_param('Description', description)))

    def describe_tags(self, filters=None):
        return self.call('DescribeTags', filter_params(filters))

    def create_tags(self, resource_ids, tags):
        """
        Tag resources; tags is a mapping of key to value.

        """
        return self.call('CreateTags',
                         merge(list_params('ResourceId', resource_ids),
                               tag_params(tags)))

    def delete_tags(self, resource_ids, tags):
        """
        Remove tags from resources.

        tags is a mapping, where a None value deletes the key whatever its
        value, or a list of keys.

        """
        return self.call('DeleteTags',
                         merge(list_params('ResourceId', resource_ids),
                               tag_params(tags, skip_none=True)))

    def describe_key_pairs(self, key_names=None, filters=None):
        return self.call('DescribeKeyPairs',
                         merge(list_params('KeyName', key_names),
                               filter_params(filters)))

    def describe_addresses(self, public_ips=None, allocation_ids=None,
                           filters=None):
        return self.call('DescribeAddresses',
                         merge(list_params('PublicIp', public_ips),
                               list_params('AllocationId', allocation_ids),
                               filter_params(filters)))


class ELB(QueryClient):
    """Client for the Elastic Load Balancing API."""

    api_version = '2012-06-01'
    default_endpoint = 'https://elasticloadbalancing.us-east-1.amazonaws.com/'
    endpoint_var = 'ELB_URL'
    service = 'elb'

    def describe_load_balancers(self, names=None, marker=None):
        return self.call('DescribeLoadBalancers',
                         merge(member_params('LoadBalancerNames', names),
                               single_param('Marker', marker)))

    def describe_tags(self, names):
        return self.call('DescribeTags',
                         member_params('LoadBalancerNames', names))


class RDS(QueryClient):
    """Client for the Relational Database Service API."""

    api_version = '2014-10-31'
    default_endpoint = 'https://rds.us-east-1.amazonaws.com/'
    endpoint_var = 'RDS_URL'
    service = 'rds'

    def describe_db_instances(self, db_instance_identifier=None, marker=None,
                              max_records=None):
        return self.call('DescribeDBInstances',
                         merge(single_param('DBInstanceIdentifier',
                                            db_instance_identifier),
                               single_param('Marker', marker),
                               single_param('MaxRecords', max_records)))
