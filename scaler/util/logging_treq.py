"""
treq, with every request tagged with an id, logged along with its outcome and
the time it took, and abandoned after a timeout.

This module stands in for :mod:`treq` as :attr:`Request.treq
<scaler.util.pure_http.Request>`.
"""
from uuid import uuid4

import treq

from toolz.dicttoolz import merge

from twisted.internet import reactor

from scaler.log import log as default_log
from scaler.log.formatters import LogLevel


DEFAULT_TIMEOUT = 45

REQUEST_ID_HEADER = 'x-scaler-request-id'


class RequestTimedOut(Exception):
    """
    A request got no response within its timeout.
    """
    def __init__(self, method, url, timeout):
        super(RequestTimedOut, self).__init__(
            "{0} {1} timed out after {2} seconds.".format(
                method, url, timeout))
        self.timeout = timeout


def request(method, url, headers=None, log=None, clock=None, timeout=None,
            **kwargs):
    """
    Make a request with :func:`treq.request`.

    :param str method: HTTP method.
    :param str url: full URL.
    :param dict headers: request headers, to which the request id is added.
    :param log: a BoundLog, defaults to :obj:`scaler.log.log`.
    :param IReactorTime clock: times the request, defaults to the reactor.
    :param float timeout: seconds after which the request is cancelled,
        failing with :class:`RequestTimedOut`. Defaults to
        :data:`DEFAULT_TIMEOUT`.
    :param kwargs: passed on to treq.

    :return: Deferred of the treq response.
    """
    clock = clock or reactor
    log = log or default_log
    timeout = timeout or DEFAULT_TIMEOUT

    request_id = str(uuid4())
    headers = merge(headers or {}, {REQUEST_ID_HEADER: [request_id]})
    log = log.bind(level=LogLevel.DEBUG, url=url, method=method,
                   url_params=kwargs.get('params'),
                   treq_request_id=request_id)
    started = clock.seconds()

    def timed_out(_result, timeout):
        raise RequestTimedOut(method, url, timeout)

    def log_response(response):
        log.msg("Request to {method} {url} resulted in a {status_code} "
                "response after {request_time} seconds.",
                request_time=clock.seconds() - started,
                status_code=response.code)
        return response

    def log_failure(failure):
        log.msg("Request to {method} {url} failed after {request_time} "
                "seconds.",
                reason=failure, request_time=clock.seconds() - started)
        return failure

    log.msg("Request to {method} {url} starting.")
    d = treq.request(method, url, headers=headers, **kwargs)
    d.addTimeout(timeout, clock, onTimeoutCancel=timed_out)
    return d.addCallbacks(log_response, log_failure)


content = treq.content
