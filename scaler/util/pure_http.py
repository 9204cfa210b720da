"""
HTTP requests as effects.

A request function takes ``(method, url, **kwargs)`` and returns an
:obj:`Effect` of :obj:`Request`. The ``add_*`` functions below each take a
request function as their last argument and return a new one, so that
:func:`scaler.cloud_client.concretize_api_request` can stack the API root,
authentication, JSON coding and error checking onto :func:`request`.
"""
import json
from functools import wraps

import attr

from effect import Effect

from toolz.dicttoolz import assoc, merge

from txeffect import deferred_performer

from scaler.util import logging_treq
from scaler.util.http import APIError


@attr.s
class Request(object):
    """
    Intent to make an HTTP request. Results in a two-tuple of the treq
    response and its content as bytes.

    :ivar log: logger of the request, see :mod:`scaler.util.logging_treq`.
    :ivar timeout: seconds before the request is abandoned.
    """
    method = attr.ib()
    url = attr.ib()
    headers = attr.ib(default=None)
    data = attr.ib(default=None)
    params = attr.ib(default=None)
    log = attr.ib(default=None)
    timeout = attr.ib(default=None)

    treq = logging_treq

    def intent_result_pred(self, result):
        """Check that the result looks like (response, content)."""
        return (isinstance(result, tuple) and
                len(result) == 2 and
                isinstance(result[1], bytes))


@deferred_performer
def perform_request(dispatcher, intent):
    """
    Perform a :obj:`Request` with treq, reading the whole body.
    """
    def read(response):
        return intent.treq.content(response).addCallback(
            lambda content: (response, content))

    d = intent.treq.request(intent.method.upper(), intent.url,
                            headers=intent.headers,
                            data=intent.data,
                            params=intent.params,
                            log=intent.log,
                            timeout=intent.timeout)
    return d.addCallback(read)


def request(method, url, **kwargs):
    """Return an Effect of :obj:`Request`."""
    return Effect(Request(method=method, url=url, **kwargs))


@attr.s(frozen=True)
class _HasCode(object):
    codes = attr.ib()

    def __call__(self, response, _content):
        return response.code in self.codes


def has_code(*codes):
    """
    :return: a response predicate, for :func:`check_response`, that accepts
        the given status codes. Predicates of the same codes compare equal,
        and keep the codes in their ``codes`` attribute.
    """
    return _HasCode(codes)


def check_response(pred, result):
    """
    :param pred: takes a response and its content and tells whether the
        response is a success.
    :param result: (response, content), as a :obj:`Request` results in.
    :raise: :class:`APIError` if ``pred`` rejects the response.
    :return: ``result``
    """
    response, content = result
    if not pred(response, content):
        raise APIError(response.code, content, response.headers)
    return result


def _update_kwargs(update, request_func):
    """
    Decorate a request function so that its keyword arguments go through
    ``update`` first.
    """
    @wraps(request_func)
    def request(method, url, **kwargs):
        return request_func(method, url, **update(kwargs))
    return request


def _on_result(callback, request_func):
    """
    Decorate a request function so that ``callback`` is added to its effect.
    """
    @wraps(request_func)
    def request(method, url, **kwargs):
        return request_func(method, url, **kwargs).on(callback)
    return request


def add_headers(fixed_headers, request_func):
    """
    Add ``fixed_headers`` to every request. Headers given to the request
    take precedence.
    """
    return _update_kwargs(
        lambda kw: assoc(kw, 'headers',
                         merge(fixed_headers, kw.get('headers') or {})),
        request_func)


def add_params(fixed_params, request_func):
    """
    Add ``fixed_params`` to the query of every request. Parameters given to
    the request take precedence.
    """
    return _update_kwargs(
        lambda kw: assoc(kw, 'params',
                         merge(fixed_params, kw.get('params') or {}) or None),
        request_func)


def add_bind_root(root, request_func):
    """
    Append the URL of every request to ``root``. The URL is not quoted.
    """
    @wraps(request_func)
    def request(method, url, **kwargs):
        return request_func(
            method, '{0}/{1}'.format(root.rstrip('/'), url.lstrip('/')),
            **kwargs)
    return request


def add_json_request_data(request_func):
    """
    Serialize the ``data`` of every request to JSON.
    """
    def dump(kw):
        data = kw.get('data')
        if data is None:
            return kw
        return assoc(kw, 'data', json.dumps(data).encode('utf-8'))

    return _update_kwargs(dump, request_func)


def _parse_json(result):
    response, content = result
    # 204 and friends have no body
    return response, json.loads(content.decode('utf-8')) if content else None


def add_json_response(request_func):
    """
    Parse the content of every response as JSON.
    """
    return _on_result(_parse_json, request_func)


def add_error_handling(pred, request_func):
    """
    Check every response with ``pred``, as per :func:`check_response`.
    """
    return _on_result(lambda result: check_response(pred, result),
                      request_func)
