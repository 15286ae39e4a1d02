"""
The action registry: which object class, and which unwrapping strategy,
turns the response of each API action into Python objects.

A registry entry is one of the directives below, or a callable invoked as
handler(parsed, client, xmlns, request_id):

WholeObject(cls)
    the whole parsed document becomes one cls object.
FetchOne(cls, tag=None, no_key_attr=False)
    the subtree at tag (a '/' separated path), or the whole document when
    tag is None, becomes one cls object.
FetchItems(cls, container_tag, no_key_attr=False, item_tag='item')
    each item_tag child of container_tag becomes a cls object; the result
    is always a list, empty when the container or its items are missing.
Boolean(tag='return')
    True when the text at tag is 'true'.

no_key_attr disables folding of key/value lists while parsing, for
responses whose Key/Value pairs must stay distinct items.

Registries are built once per client and frozen before the first call;
looking up an action that was never registered gives WholeObject of the
registry's default class.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


from collections import namedtuple

from . import objects
from .exceptions import RegistryFrozenError
from .xmlparse import items_of


WholeObject = namedtuple('WholeObject', 'cls')
FetchOne = namedtuple('FetchOne', 'cls tag no_key_attr',
                      defaults=(None, False))
FetchItems = namedtuple('FetchItems', 'cls container_tag no_key_attr item_tag',
                        defaults=(False, 'item'))
Boolean = namedtuple('Boolean', 'tag', defaults=('return',))

DIRECTIVES = (WholeObject, FetchOne, FetchItems, Boolean)


class ActionRegistry:
    """
    Map API action names to directives.

    entries     -- optional mapping of action name to directive or class
    default     -- class used for actions that are not registered
    error_class -- class that error responses are materialized as

    """

    def __init__(self, entries=None, default=objects.Generic,
                 error_class=objects.Error):
        self._entries = {}
        self.default = default
        self.error_class = error_class
        self.frozen = False
        if entries:
            self.register_many(entries)

    @staticmethod
    def directive(target):
        """
        Return the directive for target: directives and callables are kept,
        a class becomes WholeObject(class).

        """
        if isinstance(target, DIRECTIVES):
            return target
        if isinstance(target, type):
            return WholeObject(target)
        if callable(target):
            return target
        raise TypeError('Cannot register {!r}: expected a directive, a '
                        'class or a callable'.format(target))

    def register(self, action, target):
        if self.frozen:
            raise RegistryFrozenError(
                'Cannot register {}: registry is frozen'.format(action))
        self._entries[action] = self.directive(target)

    def register_many(self, entries):
        for action, target in entries.items():
            self.register(action, target)

    def lookup(self, action):
        """Return the directive for action, never failing."""
        directive = self._entries.get(action)
        if directive is None:
            return WholeObject(self.default)
        return directive

    def freeze(self):
        self.frozen = True
        return self

    def copy(self):
        """Return an unfrozen copy of this registry."""
        return ActionRegistry(self._entries, self.default, self.error_class)

    def actions(self):
        return sorted(self._entries)

    def __contains__(self, action):
        return action in self._entries

    def __len__(self):
        return len(self._entries)


def reservation_instances(parsed, client, xmlns, request_id):
    """
    Flatten the reservations of a DescribeInstances response into their
    instances.

    """
    instances = []
    for item in items_of(parsed.get('reservationSet')):
        reservation = objects.Reservation(item, client, xmlns, request_id)
        instances.extend(reservation.instances)
    return instances


def run_instances(parsed, client, xmlns, request_id):
    """The instances of the single reservation RunInstances returns."""
    return objects.Reservation(parsed, client, xmlns, request_id).instances


def associate_address(parsed, client, xmlns, request_id):
    """The association ID for VPC addresses, a boolean otherwise."""
    return parsed.get('associationId') or parsed.get('return') == 'true'


EC2_ACTIONS = {
    'DescribeRegions': FetchItems(objects.Region, 'regionInfo'),
    'DescribeAvailabilityZones': FetchItems(objects.AvailabilityZone,
                                            'availabilityZoneInfo'),
    'DescribeInstances': reservation_instances,
    'RunInstances': run_instances,
    'StartInstances': FetchItems(objects.InstanceStateChange, 'instancesSet'),
    'StopInstances': FetchItems(objects.InstanceStateChange, 'instancesSet'),
    'TerminateInstances': FetchItems(objects.InstanceStateChange,
                                     'instancesSet'),
    'RebootInstances': Boolean(),
    'DescribeVolumes': FetchItems(objects.Volume, 'volumeSet'),
    'CreateVolume': objects.Volume,
    'DeleteVolume': Boolean(),
    'AttachVolume': objects.Attachment,
    'DetachVolume': objects.Attachment,
    'DescribeSnapshots': FetchItems(objects.Snapshot, 'snapshotSet'),
    'CreateSnapshot': objects.Snapshot,
    'DeleteSnapshot': Boolean(),
    'DescribeTags': FetchItems(objects.Tag, 'tagSet', no_key_attr=True),
    'CreateTags': Boolean(),
    'DeleteTags': Boolean(),
    'DescribeKeyPairs': FetchItems(objects.KeyPair, 'keySet'),
    'CreateKeyPair': objects.KeyPair,
    'DeleteKeyPair': Boolean(),
    'DescribeAddresses': FetchItems(objects.ElasticAddress, 'addressesSet'),
    'AllocateAddress': objects.ElasticAddress,
    'ReleaseAddress': Boolean(),
    'AssociateAddress': associate_address,
    'DisassociateAddress': Boolean(),
}

ELB_ACTIONS = {
    'DescribeLoadBalancers': FetchItems(
        objects.LoadBalancer,
        'DescribeLoadBalancersResult/LoadBalancerDescriptions',
        item_tag='member'),
    'DescribeTags': FetchItems(
        objects.ELBTagDescription,
        'DescribeTagsResult/TagDescriptions',
        no_key_attr=True, item_tag='member'),
}

RDS_ACTIONS = {
    'DescribeDBInstances': FetchItems(
        objects.DBInstance, 'DescribeDBInstancesResult/DBInstances',
        item_tag='DBInstance'),
    'CreateDBInstance': FetchOne(objects.DBInstance,
                                 'CreateDBInstanceResult/DBInstance'),
    'DeleteDBInstance': FetchOne(objects.DBInstance,
                                 'DeleteDBInstanceResult/DBInstance'),
}

ACTION_TABLES = {
    'ec2': EC2_ACTIONS,
    'elb': ELB_ACTIONS,
    'rds': RDS_ACTIONS,
}


def default_registry(service='ec2'):
    """
    Build a new registry holding the built-in actions of service, one of
    'ec2', 'elb' or 'rds'.

    """
    registry = ActionRegistry(ACTION_TABLES[service])
    registry.register('Error', objects.Error)
    return registry
