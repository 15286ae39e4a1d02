"""
Flatten Python arguments into AWS Query API parameters.

The Query API encodes lists and structures in parameter names:

>>> list_params('InstanceId', ['i-1', 'i-2'])
{'InstanceId.1': 'i-1', 'InstanceId.2': 'i-2'}
>>> filter_params({'tag:Name': ['web', 'db']})
{'Filter.1.Name': 'tag:Name', 'Filter.1.Value.1': 'web', 'Filter.1.Value.2': 'db'}

Objects returned by the API stringify to their ID and can be passed
wherever an ID is expected. Every function returns a dict so results
can be merged with update().

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import re
from collections.abc import Mapping


def canonicalize(name):
    """
    Convert an AWS MixedCase name to snake_case.

    >>> canonicalize('DescribeInstances')
    'describe_instances'

    """
    name = re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', name)
    name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    return name.lower()


def uncanonicalize(name):
    """
    Convert a snake_case name to AWS mixedCase.

    >>> uncanonicalize('volume_id')
    'volumeId'

    """
    return re.sub(r'_([a-z])', lambda m: m.group(1).upper(), name)


def listify(values):
    """Return values as a list of strings; None gives an empty list."""
    if values is None:
        return []
    if isinstance(values, (str, bytes)) or not hasattr(values, '__iter__'):
        values = [values]
    return [str(v) for v in values if v is not None]


def single_param(name, value):
    """{name: value}, using the first entry of a list; empty for None."""
    values = listify(value)
    return {name: values[0]} if values else {}


def value_param(name, value):
    """{name.Value: value}, as used by Modify*Attribute calls."""
    if value is None:
        return {}
    return {'{}.Value'.format(name): str(value)}


def boolean_param(name, value):
    """{name: 'true' or 'false'}; empty for None."""
    if value is None:
        return {}
    return {name: 'true' if value else 'false'}


def list_params(name, values):
    """Name.1, Name.2, ... for each of values."""
    return {'{}.{}'.format(name, i): v
            for i, v in enumerate(listify(values), start=1)}


def member_params(name, values):
    """Name.member.1, Name.member.2, ... as used by ELB and RDS."""
    return list_params('{}.member'.format(name), values)


def key_value_params(prefix, key_name, value_name, pairs,
                     skip_none=False, value_lists=False):
    """
    Encode pairs as prefix.N.key_name / prefix.N.value_name parameters.

    pairs       -- a mapping, or a list of 'key=value' strings (a bare
                   'key' has no value)
    skip_none   -- omit the value parameter of keys whose value is None
    value_lists -- number values as prefix.N.value_name.M, for filters

    Mappings are encoded in sorted key order.

    """
    if not pairs:
        return {}
    if isinstance(pairs, Mapping):
        items = sorted(pairs.items(), key=lambda kv: str(kv[0]))
    else:
        items = []
        for text in listify(pairs):
            key, sep, value = text.partition('=')
            items.append((key.strip(), value.strip() if sep else None))
    params = {}
    for i, (key, value) in enumerate(items, start=1):
        params['{}.{}.{}'.format(prefix, i, key_name)] = str(key)
        if value is None and skip_none:
            continue
        if value_lists:
            for m, v in enumerate(listify(value), start=1):
                params['{}.{}.{}.{}'.format(prefix, i, value_name, m)] = v
        else:
            params['{}.{}.{}'.format(prefix, i, value_name)] = (
                '' if value is None else str(value))
    return params


def filter_params(filters):
    """Filter.N.Name / Filter.N.Value.M parameters."""
    return key_value_params('Filter', 'Name', 'Value', filters,
                            value_lists=True)


def tag_params(tags, skip_none=False):
    """
    Tag.N.Key / Tag.N.Value parameters.

    tags may also be a list of keys; with skip_none, as delete_tags() uses
    it, those only get a Key parameter.

    """
    return key_value_params('Tag', 'Key', 'Value', tags, skip_none=skip_none)


def merge(*param_dicts):
    """Merge parameter dicts, dropping None values."""
    params = {}
    for d in param_dicts:
        for key, value in d.items():
            if value is not None:
                params[key] = value
    return params
