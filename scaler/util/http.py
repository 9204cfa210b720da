"""
HTTP utils, such as formulation of URLs
"""
from itertools import chain
from urllib.parse import quote, urlsplit


def append_segments(uri, *segments):
    """
    Append segments to URI in a reasonable way.

    :param str uri: base URI with or without a trailing /.
    :param str segments: One or more segments to append to the base URI.
        Each segment is quoted, so a segment may not contain a ``/``.

    :return: complete URI as str.
    """
    segments = (quote(str(s), safe='') for s in segments)
    return '/'.join(chain([uri.rstrip('/')], segments))


def normalize_host(host):
    """
    Strip the scheme, path and trailing slashes of a URL given on the command
    line so that only the host is left.

    >>> normalize_host('https://my-app-123.now.sh/')
    'my-app-123.now.sh'
    """
    if '://' not in host:
        host = '//' + host
    return urlsplit(host).netloc


class APIError(Exception):
    """
    An error raised when a non-success response is returned by the API.

    :param int code: HTTP Response code for this error.
    :param str body: HTTP Response body for this error or None.
    :param Headers headers: HTTP Response headers for this error, or None
    """
    def __init__(self, code, body, headers=None):
        Exception.__init__(
            self,
            'API Error code={0!r}, body={1!r}, headers={2!r}'.format(
                code, body, headers))

        self.code = code
        self.body = body
        self.headers = headers


def headers(auth_token=None):
    """
    Generate an appropriate set of headers given an auth_token.

    :param str auth_token: The auth_token or None.
    :return: A dict of common headers.
    """
    h = {'content-type': ['application/json'],
         'accept': ['application/json'],
         'User-Agent': ['Scaler/0.1']}

    if auth_token is not None:
        h['authorization'] = ['Bearer {0}'.format(auth_token)]

    return h
