"""
Utilities shared by the tests.
"""
import json

import attr

from effect.testing import resolve_effect as eff_resolve_effect

import mock

from twisted.python.failure import Failure
from twisted.web.http_headers import Headers

from scaler.log import BoundLog
from scaler.model import Deployment
from scaler.util.logging_treq import REQUEST_ID_HEADER


@attr.s(eq=False)
class CheckFailure(object):
    """
    Compares equal to any :class:`Failure` wrapping an exception of
    ``exception_type``, for use in ``assertEqual`` or ``assert_called_with``.
    """
    exception_type = attr.ib()

    def __eq__(self, other):
        return (isinstance(other, Failure) and
                other.check(self.exception_type) is not None)

    def __ne__(self, other):
        return not self == other


@attr.s(eq=False)
class matches(object):
    """
    Compares equal to whatever the testtools ``matcher`` matches, so that
    matchers can be used in ``mock.Mock.assert_*`` methods::

        observer.assert_called_once_with(
            matches(ContainsDict({'level': Equals(LogLevel.ERROR)})))
    """
    matcher = attr.ib()

    def __eq__(self, other):
        return self.matcher.match(other) is None

    def __ne__(self, other):
        return not self == other


class DummyException(Exception):
    """
    Fake exception
    """


def patch(testcase, *args, **kwargs):
    """
    Start a :func:`mock.patch` that is stopped when ``testcase`` is cleaned
    up, and return the mock.
    """
    patcher = mock.patch(*args, **kwargs)
    testcase.addCleanup(patcher.stop)
    return patcher.start()


def mock_log():
    """
    Returns a BoundLog whose msg and err methods are mocks, so that::

        log.msg.assert_called_with(mock.ANY, bound_value1="val", ...)

    checks both the message and the fields bound along the way.
    """
    return BoundLog(mock.Mock(spec=[], return_value=None),
                    mock.Mock(spec=[], return_value=None))


class _StubRequest(object):
    # the request a treq response remembers
    method = "method"
    absoluteURI = "original/request/URL"
    headers = Headers({REQUEST_ID_HEADER: ['original-request-id']})


@attr.s
class StubResponse(object):
    """
    A treq response with a status code and headers. ``data`` stands for its
    body, which a real response does not carry.
    """
    code = attr.ib()
    headers = attr.ib()
    data = attr.ib(default=None)
    request = attr.ib(default=attr.Factory(_StubRequest), eq=False,
                      repr=False)


def stub_pure_response(body, code=200, response_headers=None):
    """
    Return the ``(response, content)`` a :obj:`scaler.util.pure_http.Request`
    results in. Dicts are encoded as JSON, and text as UTF-8.
    """
    if isinstance(body, dict):
        body = json.dumps(body)
    if isinstance(body, str):
        body = body.encode('utf-8')
    return (StubResponse(code, response_headers or {}), body)


def stub_json_response(body, code=200, response_headers=None):
    """
    Return the ``(response, parsed body)`` of a request whose JSON response
    has been parsed.
    """
    return (StubResponse(code, response_headers or {}), body)


def resolve_effect(effect, result, is_error=False):
    """
    Just like :func:`effect.testing.resolve_effect`, except it performs a
    type-check on ``result`` based on the intent's ``intent_result_pred``.
    """
    pred = getattr(effect.intent, 'intent_result_pred', None)
    if not is_error and pred is not None:
        assert pred(result), \
            "%r does not conform to the intent_result_pred of %r" % (
                result, effect.intent)
    return eff_resolve_effect(effect, result, is_error=is_error)


def noop(_):
    """Ignore input and return None."""


def deployment_json(uid='dpl_1', type='NPM', state='READY', scale=None,
                    url='my-app-1.now.sh'):
    """
    Return the JSON of a deployment as the control plane sends it.
    """
    return {'uid': uid, 'url': url, 'type': type, 'state': state,
            'scale': scale if scale is not None else {}}


def deployment(**kwargs):
    """
    Return a :class:`Deployment` built from :func:`deployment_json`.
    """
    return Deployment.from_json(deployment_json(**kwargs))
