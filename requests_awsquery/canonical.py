"""
Canonical request construction shared by the AWS signature engines.

The output of every function here is a pure function of its input:
parameter and header ordering never depends on dict iteration order.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import hashlib
import logging
import posixpath
import re
import shlex
from collections.abc import Mapping
from urllib.parse import parse_qsl, quote


logger = logging.getLogger(__name__)

# SHA-256 of the empty string
EMPTY_PAYLOAD_HASH = ('e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca4959'
                      '91b7852b855')
UNSIGNED_PAYLOAD = 'UNSIGNED-PAYLOAD'

# characters left unescaped besides A-Za-z0-9
UNRESERVED = '-_.~'


def aws_quote(text):
    """
    Percent-encode text leaving only A-Za-z0-9-_.~ unescaped.

    Non-string values are converted with str() first.

    """
    if not isinstance(text, (str, bytes)):
        text = str(text)
    return quote(text, safe=UNRESERVED)


def hash_payload(body):
    """
    Return the SHA-256 hex digest of body. None hashes as the empty string.

    """
    if body is None or body == b'' or body == '':
        return EMPTY_PAYLOAD_HASH
    if isinstance(body, str):
        body = body.encode('utf-8')
    return hashlib.sha256(body).hexdigest()


def query_pairs(query):
    """
    Return query as a list of (name, value) pairs.

    query may be a raw querystring, a mapping whose values are strings or
    lists of strings, or an iterable of pairs.

    """
    if not query:
        return []
    if isinstance(query, bytes):
        query = query.decode('utf-8')
    if isinstance(query, str):
        return parse_qsl(query, keep_blank_values=True)
    if isinstance(query, Mapping):
        query = query.items()
    pairs = []
    for name, val in query:
        if isinstance(val, (list, tuple)):
            pairs.extend((name, v) for v in val)
        else:
            pairs.append((name, '' if val is None else val))
    return pairs


def amz_cano_querystring(query):
    """
    Format query as the canonical querystring.

    Names and values are percent encoded, values are grouped by name and
    sorted, and names are sorted.

    """
    grouped = {}
    for name, val in query_pairs(query):
        grouped.setdefault(aws_quote(name), []).append(aws_quote(val))
    items = []
    for name in sorted(grouped):
        for val in sorted(grouped[name]):
            items.append('{}={}'.format(name, val))
    return '&'.join(items)


def amz_cano_path(path, normalize=True):
    """
    Generate the canonical path.

    A missing or empty path is '/'. Unless normalize is False (S3 signs the
    path exactly as sent), dot segments are resolved and runs of slashes
    collapsed, keeping any trailing slash.

    """
    if not path:
        return '/'
    if not normalize:
        return path
    fixed_path = posixpath.normpath(path)
    fixed_path = re.sub('/+', '/', fixed_path)
    if fixed_path == '.':
        fixed_path = '/'
    if path.endswith('/') and not fixed_path.endswith('/'):
        fixed_path += '/'
    return fixed_path


def amz_norm_whitespace(text):
    """
    Replace runs of whitespace with a single space and trim.

    Ignore text enclosed in quotes.

    """
    try:
        return ' '.join(shlex.split(text, posix=False))
    except ValueError:
        # unbalanced quotes: nothing is protected
        return ' '.join(text.split())


def header_pairs(headers):
    if isinstance(headers, Mapping):
        return list(headers.items())
    return list(headers)


def get_canonical_headers(headers):
    """
    Generate the Canonical Headers section of the Canonical Request.

    headers -- mapping or iterable of (name, value) pairs. Repeated names,
               in any letter case, are merged into one comma separated
               line.

    Return the tuple (canonical_headers, signed_header_names), with
    signed_header_names a sorted list of lower case names.

    """
    cano_headers_dict = {}
    for hdr, val in header_pairs(headers):
        hdr = hdr.strip().lower()
        if isinstance(val, bytes):
            val = val.decode('utf-8')
        val = amz_norm_whitespace(str(val)).strip()
        cano_headers_dict.setdefault(hdr, []).append(val)
    cano_headers = ''
    signed_headers = []
    for hdr in sorted(cano_headers_dict):
        val = ','.join(sorted(cano_headers_dict[hdr]))
        cano_headers += '{}:{}\n'.format(hdr, val)
        signed_headers.append(hdr)
    return cano_headers, signed_headers


def build_canonical_request(method, path, query, headers, payload_hash,
                            normalize_path=True):
    """
    Create the AWS Canonical Request string.

    method         -- HTTP method
    path           -- URI path, '/' when empty
    query          -- querystring, mapping or iterable of pairs
    headers        -- headers to sign, mapping or iterable of pairs
    payload_hash   -- hex SHA-256 of the body, see hash_payload()
    normalize_path -- pass False for S3

    Return the tuple (canonical_request, signed_header_names).

    """
    cano_headers, signed_headers = get_canonical_headers(headers)
    req_parts = [method.upper(),
                 amz_cano_path(path, normalize_path),
                 amz_cano_querystring(query),
                 cano_headers,
                 ';'.join(signed_headers),
                 payload_hash]
    cano_req = '\n'.join(req_parts)
    logger.debug('Canonical request:\n%s', cano_req)
    return cano_req, signed_headers
