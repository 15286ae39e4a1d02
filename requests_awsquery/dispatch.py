"""
Turn completed Query API responses into objects.

The dispatcher reads the action name back from the request that produced a
response, looks its directive up in an ActionRegistry and materializes the
body accordingly. HTTP 400 responses bypass the registry and become Error
objects.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import logging
import re
from collections.abc import Mapping
from urllib.parse import unquote_plus, urlsplit

from .exceptions import ResponseParseError
from .registry import Boolean, FetchItems, FetchOne, WholeObject, \
    default_registry
from .xmlparse import as_list, descend, items_of, parse_xml


logger = logging.getLogger(__name__)

ACTION_RE = re.compile(r'(?:^|&)Action=([^&]+)')
NEXT_TOKEN_TAGS = ('nextToken', 'NextMarker', 'Marker', 'NextToken')


class ResultSet(list):
    """
    The list of objects built from a FetchItems response.

    request_id -- AWS request ID of the response
    xmlns      -- namespace of the response document
    next_token -- pagination token for the next page, None on the last one

    """

    def __init__(self, items=(), request_id=None, xmlns=None,
                 next_token=None):
        list.__init__(self, items)
        self.request_id = request_id
        self.xmlns = xmlns
        self.next_token = next_token


def request_id_of(parsed):
    """Return the request ID of a parsed EC2, ELB or RDS response."""
    if not isinstance(parsed, Mapping):
        return None
    return (parsed.get('requestId') or parsed.get('RequestId') or
            parsed.get('RequestID') or
            descend(parsed, 'ResponseMetadata/RequestId'))


def _parent_path(path):
    return path.rsplit('/', 1)[0] if '/' in path else None


class Dispatcher:
    """
    Build objects from responses using an ActionRegistry.

    >>> dispatcher = Dispatcher(default_registry())
    >>> volumes = dispatcher.response_to_objects(response, client)

    """

    def __init__(self, registry=None):
        self.registry = default_registry() if registry is None else registry

    @staticmethod
    def action_for(response):
        """
        Return the API action of the request behind response, None if it
        has none.

        The Action parameter is read from the form encoded body, or from
        the querystring of a GET request. response may also be the
        PreparedRequest itself.

        """
        request = getattr(response, 'request', response)
        body = getattr(request, 'body', None) or ''
        if isinstance(body, bytes):
            body = body.decode('utf-8', 'replace')
        match = ACTION_RE.search(body)
        if match is None and getattr(request, 'url', None):
            match = ACTION_RE.search(urlsplit(request.url).query)
        if match is None:
            return None
        return unquote_plus(match.group(1))

    def response_to_objects(self, response, client=None):
        """
        Return the object(s) built from a completed response.

        HTTP 400 responses give an Error object whatever the action.

        """
        if response.status_code == 400:
            return self.error_from_response(response, client)
        action = self.action_for(response)
        directive = self.registry.lookup(action)
        logger.debug('Dispatching %s with %r', action, directive)
        return self.materialize(directive, response.content, client)

    def materialize(self, directive, content, client=None):
        """
        Build the result of directive from the XML content of a response.

        """
        if isinstance(directive, WholeObject):
            return self.create_object(directive.cls, parse_xml(content),
                                      client)
        if isinstance(directive, FetchOne):
            return self.fetch_one(content, client, directive.tag,
                                  directive.cls, directive.no_key_attr)
        if isinstance(directive, FetchItems):
            return self.fetch_items(content, client, directive.container_tag,
                                    directive.cls, directive.no_key_attr,
                                    directive.item_tag)
        if isinstance(directive, Boolean):
            return self.boolean(content, directive.tag)
        parsed = parse_xml(content)
        return directive(parsed, client, parsed.get('xmlns'),
                         request_id_of(parsed))

    @staticmethod
    def create_object(cls, parsed, client=None):
        return cls(parsed, client, parsed.get('xmlns'), request_id_of(parsed))

    @staticmethod
    def boolean(content, tag='return'):
        return descend(parse_xml(content), tag) == 'true'

    @staticmethod
    def fetch_one(content, client, tag, cls, no_key_attr=False):
        """
        Return one cls object built from the subtree at tag (the whole
        document if tag is None), None if the response has no such subtree.

        """
        parsed = parse_xml(content, no_key_attr)
        obj = parsed if tag is None else descend(parsed, tag)
        if obj is None:
            return None
        return cls(obj, client, parsed.get('xmlns'), request_id_of(parsed))

    @staticmethod
    def fetch_items(content, client, container_tag, cls, no_key_attr=False,
                    item_tag='item'):
        """
        Return a ResultSet with one cls object per item_tag element under
        container_tag.

        A single item gives a one element ResultSet; a missing container
        or missing items give an empty one.

        """
        parsed = parse_xml(content, no_key_attr)
        xmlns = parsed.get('xmlns')
        request_id = request_id_of(parsed)
        items = items_of(descend(parsed, container_tag), item_tag)
        parent = parsed
        parent_path = _parent_path(container_tag)
        if parent_path:
            parent = descend(parsed, parent_path)
        next_token = None
        if isinstance(parent, Mapping):
            for tag in NEXT_TOKEN_TAGS:
                if parent.get(tag):
                    next_token = parent[tag]
                    break
        return ResultSet([cls(item, client, xmlns, request_id)
                          for item in items],
                         request_id, xmlns, next_token)

    def error_from_response(self, response, client=None):
        """
        Return the Error object describing a failed response.

        The Errors/Error envelope of the body is used when there is one,
        otherwise the status line and body are reported. An envelope with
        an empty Code or Message has it filled from the status line, so
        neither is ever empty.

        """
        reason = getattr(response, 'reason', '') or ''
        status_line = '{} {}'.format(response.status_code, reason).strip()
        error = self.create_error_object(response.content, client)
        if error is None:
            return self.registry.error_class(
                {'Code': status_line,
                 'Message': response.text or reason or 'Unknown error'},
                client)
        if not error.payload.get('Code'):
            error.payload['Code'] = status_line
        if not error.payload.get('Message'):
            error.payload['Message'] = reason or 'Unknown error'
        return error

    def create_error_object(self, content, client=None):
        """
        Return an Error built from the Errors/Error (EC2) or Error (ELB,
        RDS) element of content, None when content holds neither.

        """
        try:
            parsed = parse_xml(content)
        except ResponseParseError:
            return None
        error = descend(parsed, 'Errors/Error') or parsed.get('Error')
        error = as_list(error)
        if not error or not isinstance(error[0], Mapping):
            return None
        return self.registry.error_class(
            error[0], client, parsed.get('xmlns'), request_id_of(parsed))
