"""
Objects built from AWS Query API responses.

Every object wraps the parsed payload of a response fragment and keeps a
weak reference to the client that fetched it, used by the convenience
methods that issue follow-up calls (an Attachment fetching its Volume, for
example). Payload fields are readable as attributes, either with their AWS
name or its snake_case form:

>>> volume.volumeId == volume.volume_id
True

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import pprint
import weakref
from collections.abc import Mapping

from .exceptions import AWSQueryException
from .params import uncanonicalize
from .xmlparse import items_of


COMMON_FIELDS = ('xmlns', 'requestId', 'tagSet')


def lookup_one(results, what):
    """
    Return the single object in results, None if there is none.

    Raise AWSQueryException if a lookup by ID matched more than one object.

    """
    if not results:
        return None
    if len(results) > 1:
        raise AWSQueryException(
            '{} returned {} objects'.format(what, len(results)))
    return results[0]


class Generic:
    """
    Base class of every response object.

    payload    -- the parsed response fragment, usually a dict
    client     -- the client that fetched the object
    xmlns      -- namespace of the response document
    request_id -- AWS request ID of the response

    Subclasses list their fields in valid_fields. Generic itself, used for
    actions without a registered class, exposes every key of its payload.

    """

    valid_fields = None

    def __init__(self, payload, client=None, xmlns=None, request_id=None):
        self.payload = {} if payload is None else payload
        self._client_ref = None if client is None else weakref.ref(client)
        self.xmlns = xmlns
        self.request_id = request_id
        self._wrapped = {}

    @property
    def client(self):
        """
        The client this object was fetched by, None if there was none.

        Raise ReferenceError if that client no longer exists.

        """
        if self._client_ref is None:
            return None
        client = self._client_ref()
        if client is None:
            raise ReferenceError('the client that created this {} no longer '
                                 'exists'.format(type(self).__name__))
        return client

    def field_names(self):
        if self.valid_fields is None:
            if isinstance(self.payload, Mapping):
                return set(self.payload) | set(COMMON_FIELDS)
            return set(COMMON_FIELDS)
        return set(self.valid_fields) | set(COMMON_FIELDS)

    def __getattr__(self, name):
        if name.startswith('_') or name == 'payload':
            raise AttributeError(name)
        fields = self.field_names()
        camel = uncanonicalize(name)
        for field in (name, camel, camel[:1].upper() + camel[1:]):
            if field in fields:
                if isinstance(self.payload, Mapping):
                    return self.payload.get(field)
                return None
        raise AttributeError('{!r} object has no attribute {!r}'.format(
            type(self).__name__, name))

    def __dir__(self):
        return sorted(set(object.__dir__(self)) | self.field_names())

    @property
    def primary_id(self):
        return None

    def __str__(self):
        primary_id = self.primary_id
        if primary_id is None:
            return object.__repr__(self)
        return str(primary_id)

    def __repr__(self):
        return '<{} {}>'.format(type(self).__name__, self)

    def as_string(self):
        """Return a readable dump of the payload."""
        return pprint.pformat(self.payload)

    @property
    def tags(self):
        """
        The tagSet of the object as a dict of key: value.

        """
        tag_set = self.payload.get('tagSet') if isinstance(
            self.payload, Mapping) else None
        if not isinstance(tag_set, Mapping):
            return {}
        items = tag_set.get('item')
        if isinstance(items, Mapping):
            return {key: (val or {}).get('value')
                    for key, val in items.items()}
        return {i.get('key'): i.get('value') for i in items or ()
                if isinstance(i, Mapping)}

    def wrap(self, field, cls):
        """
        Return the payload field as a cls object, built on first access.

        """
        if field not in self._wrapped:
            data = self.payload.get(field)
            self._wrapped[field] = None if data is None else cls(
                data, self._client(), self.xmlns, self.request_id)
        return self._wrapped[field]

    def wrap_items(self, field, cls, item_tag='item'):
        """
        Return the items of the payload field as a list of cls objects,
        built on first access.

        """
        if field not in self._wrapped:
            client = self._client()
            self._wrapped[field] = [
                cls(item, client, self.xmlns, self.request_id)
                for item in items_of(self.payload.get(field), item_tag)]
        return self._wrapped[field]

    def _client(self):
        return None if self._client_ref is None else self._client_ref()


class Error(Generic):
    """
    An error reported by the AWS API.

    str(error) gives "[Code] Message".

    """

    valid_fields = ('Code', 'Message')

    @property
    def code(self):
        return self.payload.get('Code')

    @property
    def message(self):
        return self.payload.get('Message')

    def __str__(self):
        message = (self.message or '').rstrip('.')
        return '[{}] {}'.format(self.code, message)


class Region(Generic):
    valid_fields = ('regionName', 'regionEndpoint')

    @property
    def primary_id(self):
        return self.regionName


class AvailabilityZone(Generic):
    valid_fields = ('zoneName', 'zoneState', 'regionName', 'messageSet')

    @property
    def primary_id(self):
        return self.zoneName

    @property
    def messages(self):
        return [m.get('message') for m in items_of(self.messageSet)]


class Tag(Generic):
    """A tag on an EC2 resource, as returned by describe_tags()."""

    valid_fields = ('resourceId', 'resourceType', 'key', 'value')

    @property
    def primary_id(self):
        return self.resourceId


class Attachment(Generic):
    """
    The attachment of an EBS volume to an instance.

    volume() and instance() fetch the objects on either side of the
    attachment through the client, once.

    """

    valid_fields = ('volumeId', 'instanceId', 'device', 'status',
                    'attachTime', 'deleteOnTermination')

    @property
    def primary_id(self):
        return '{}=>{}'.format(self.volumeId, self.instanceId)

    @property
    def delete_on_termination(self):
        return self.deleteOnTermination == 'true'

    def volume(self):
        if 'volume' not in self._wrapped:
            self._wrapped['volume'] = lookup_one(
                self.client.describe_volumes(self.volumeId),
                'describe_volumes({})'.format(self.volumeId))
        return self._wrapped['volume']

    def instance(self):
        if 'instance' not in self._wrapped:
            self._wrapped['instance'] = lookup_one(
                self.client.describe_instances(self.instanceId),
                'describe_instances({})'.format(self.instanceId))
        return self._wrapped['instance']


class Volume(Generic):
    valid_fields = ('volumeId', 'size', 'snapshotId', 'availabilityZone',
                    'status', 'createTime', 'attachmentSet', 'volumeType',
                    'iops', 'encrypted')

    @property
    def primary_id(self):
        return self.volumeId

    @property
    def attachments(self):
        return self.wrap_items('attachmentSet', Attachment)

    @property
    def attachment(self):
        attachments = self.attachments
        return attachments[0] if attachments else None

    def from_snapshot(self):
        """Return the Snapshot this volume was created from, if any."""
        if not self.snapshotId:
            return None
        return lookup_one(self.client.describe_snapshots(self.snapshotId),
                          'describe_snapshots({})'.format(self.snapshotId))


class Snapshot(Generic):
    valid_fields = ('snapshotId', 'volumeId', 'status', 'startTime',
                    'progress', 'ownerId', 'volumeSize', 'description',
                    'ownerAlias', 'encrypted')

    @property
    def primary_id(self):
        return self.snapshotId

    def from_volume(self):
        """Return the Volume this snapshot was taken of, if it exists."""
        if not self.volumeId:
            return None
        return lookup_one(self.client.describe_volumes(self.volumeId),
                          'describe_volumes({})'.format(self.volumeId))


class Instance(Generic):
    valid_fields = ('instanceId', 'imageId', 'instanceState',
                    'privateDnsName', 'dnsName', 'reason', 'keyName',
                    'amiLaunchIndex', 'productCodes', 'instanceType',
                    'launchTime', 'placement', 'kernelId', 'ramdiskId',
                    'platform', 'monitoring', 'subnetId', 'vpcId',
                    'privateIpAddress', 'ipAddress', 'architecture',
                    'rootDeviceType', 'rootDeviceName',
                    'blockDeviceMapping', 'groupSet')

    def __init__(self, payload, client=None, xmlns=None, request_id=None,
                 reservation=None):
        Generic.__init__(self, payload, client, xmlns, request_id)
        self.reservation = reservation

    @property
    def primary_id(self):
        return self.instanceId

    @property
    def state(self):
        state = self.instanceState
        return state.get('name') if isinstance(state, Mapping) else state

    @property
    def availability_zone(self):
        placement = self.placement
        if isinstance(placement, Mapping):
            return placement.get('availabilityZone')
        return None

    @property
    def groups(self):
        groups = items_of(self.groupSet)
        if not groups and self.reservation is not None:
            groups = items_of(self.reservation.groupSet)
        return [g.get('groupId') or g.get('groupName') for g in groups]

    @property
    def volume_ids(self):
        return [(m.get('ebs') or {}).get('volumeId')
                for m in items_of(self.blockDeviceMapping)
                if isinstance(m.get('ebs'), Mapping)]


class Reservation(Generic):
    """
    A reservation from describe_instances() or run_instances(); instances
    holds its Instance objects.

    """

    valid_fields = ('reservationId', 'ownerId', 'requesterId', 'groupSet',
                    'instancesSet')

    @property
    def primary_id(self):
        return self.reservationId

    @property
    def instances(self):
        if 'instancesSet' not in self._wrapped:
            client = self._client()
            self._wrapped['instancesSet'] = [
                Instance(item, client, self.xmlns, self.request_id, self)
                for item in items_of(self.instancesSet)]
        return self._wrapped['instancesSet']


class InstanceStateChange(Generic):
    valid_fields = ('instanceId', 'currentState', 'previousState')

    @property
    def primary_id(self):
        return self.instanceId

    @property
    def current_state(self):
        return (self.currentState or {}).get('name')

    @property
    def previous_state(self):
        return (self.previousState or {}).get('name')

    def instance(self):
        return lookup_one(self.client.describe_instances(self.instanceId),
                          'describe_instances({})'.format(self.instanceId))


class KeyPair(Generic):
    valid_fields = ('keyName', 'keyFingerprint', 'keyMaterial')

    @property
    def primary_id(self):
        return self.keyName


class ElasticAddress(Generic):
    valid_fields = ('publicIp', 'instanceId', 'allocationId',
                    'associationId', 'domain')

    @property
    def primary_id(self):
        return self.publicIp


class LoadBalancer(Generic):
    valid_fields = ('LoadBalancerName', 'DNSName', 'CanonicalHostedZoneName',
                    'CanonicalHostedZoneNameID', 'ListenerDescriptions',
                    'Policies', 'BackendServerDescriptions',
                    'AvailabilityZones', 'Subnets', 'VPCId', 'Instances',
                    'HealthCheck', 'SourceSecurityGroup', 'SecurityGroups',
                    'CreatedTime', 'Scheme')

    @property
    def primary_id(self):
        return self.LoadBalancerName

    @property
    def instance_ids(self):
        return [m.get('InstanceId')
                for m in items_of(self.Instances, 'member')]

    @property
    def availability_zones(self):
        return items_of(self.AvailabilityZones, 'member')


class ELBTagDescription(Generic):
    """
    The tags of one load balancer. Tags are Key/Value members, parsed with
    key folding disabled.

    """

    valid_fields = ('LoadBalancerName', 'Tags')

    @property
    def primary_id(self):
        return self.LoadBalancerName

    @property
    def tags(self):
        return {m.get('Key'): m.get('Value')
                for m in items_of(self.Tags, 'member')}


class DBEndpoint(Generic):
    valid_fields = ('Address', 'Port', 'HostedZoneId')

    @property
    def primary_id(self):
        return '{}:{}'.format(self.Address, self.Port)


class DBInstance(Generic):
    valid_fields = ('DBInstanceIdentifier', 'DBInstanceClass', 'Engine',
                    'EngineVersion', 'DBInstanceStatus', 'MasterUsername',
                    'DBName', 'Endpoint', 'AllocatedStorage',
                    'InstanceCreateTime', 'AvailabilityZone', 'MultiAZ',
                    'StorageType', 'PubliclyAccessible')

    @property
    def primary_id(self):
        return self.DBInstanceIdentifier

    @property
    def endpoint(self):
        return self.wrap('Endpoint', DBEndpoint)
