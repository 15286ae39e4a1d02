"""
Turn AWS Query API XML responses into nested dicts.

The conversion follows the conventions the AWS object classes rely on:

* the root element is dropped and its namespace is kept under 'xmlns';
* attributes become keys, text-only elements become (trimmed) strings and
  the text of elements that also carry attributes goes under 'content';
* repeated sibling elements become lists, and any element named 'item' is
  always a list, at every depth, even when only one is present;
* empty elements parse to None, so the key is present;
* unless no_key_attr is set, a list of dicts that all carry a scalar 'key'
  (or 'Key') field is folded into a dict keyed by that field, the field
  itself being removed from each entry. Tag sets come out as
  {'Name': {'value': 'web'}}.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


from collections.abc import Mapping
from xml.etree import ElementTree as ET

from .exceptions import ResponseParseError


FORCE_LIST = frozenset(['item'])
KEY_ATTRS = ('key', 'Key')
CONTENT_KEY = 'content'


def local_name(tag):
    """Strip any {namespace} prefix from an ElementTree tag."""
    if tag.startswith('{'):
        return tag.split('}', 1)[1]
    return tag


def namespace(tag):
    if tag.startswith('{'):
        return tag[1:].split('}', 1)[0]
    return None


def parse_xml(text, no_key_attr=False, force_list=FORCE_LIST,
              key_attrs=KEY_ATTRS):
    """
    Parse XML text (str or bytes) into a dict.

    text        -- the XML document
    no_key_attr -- True disables folding of key/value lists
    force_list  -- names of elements that are always lists
    key_attrs   -- names of the fields lists are folded on

    Raise ResponseParseError if text is not well formed XML.

    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ResponseParseError('Unable to parse response: {}'.format(e))
    key_attrs = () if no_key_attr else tuple(key_attrs)
    value = _element_value(root, force_list, key_attrs)
    if value is None:
        value = {}
    elif not isinstance(value, dict):
        value = {CONTENT_KEY: value}
    xmlns = namespace(root.tag)
    if xmlns is not None:
        value.setdefault('xmlns', xmlns)
    return value


def _element_value(elem, force_list, key_attrs):
    children = list(elem)
    text = (elem.text or '').strip()
    if not children and not elem.attrib:
        return text or None
    node = {}
    for name, val in elem.attrib.items():
        node[local_name(name)] = val
    lists = set()
    for child in children:
        name = local_name(child.tag)
        value = _element_value(child, force_list, key_attrs)
        if name in lists:
            node[name].append(value)
        elif name in force_list:
            node[name] = [value]
            lists.add(name)
        elif name in node:
            node[name] = [node[name], value]
            lists.add(name)
        else:
            node[name] = value
    if text:
        node[CONTENT_KEY] = text
    if key_attrs:
        for name in lists:
            node[name] = fold_list(node[name], key_attrs)
    return node


def fold_list(items, key_attrs=KEY_ATTRS):
    """
    Fold a list of dicts into a dict keyed by their key field.

    The list is returned unchanged unless every entry is a dict holding the
    same key field with a string value.

    """
    if not items or not all(isinstance(i, dict) for i in items):
        return items
    for attr in key_attrs:
        if all(isinstance(i.get(attr), str) for i in items):
            folded = {}
            for i in items:
                rest = dict(i)
                folded[rest.pop(attr)] = rest
            return folded
    return items


def descend(parsed, path):
    """
    Follow a '/' separated path of keys down a parsed document.

    Return None as soon as a step is missing or not a dict.

    """
    node = parsed
    for step in path.split('/'):
        if not isinstance(node, Mapping):
            return None
        node = node.get(step)
        if node is None:
            return None
    return node


def as_list(value):
    """Return value as a list: None is empty, a lone value a 1-list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def items_of(container, item_tag='item'):
    """
    Return the item_tag children of container as a list.

    A missing container or missing items give an empty list and a single
    item that is not a list is wrapped in one.

    """
    if not isinstance(container, Mapping):
        return []
    return as_list(container.get(item_tag))
