"""A client for the deployments API of the control plane, using Effect."""
import json
from functools import partial, wraps

import attr

from effect import Effect, TypeDispatcher, catch, sync_performer

from toolz.functoolz import identity

from scaler.errors import (
    DeploymentNotFound,
    DeploymentPermissionDenied,
    ForbiddenScaleMaxInstances,
    ForbiddenScaleMinInstances,
    InvalidScaleMinMaxRelation,
    NotSupportedMinScaleSlots,
)
from scaler.log.formatters import LogLevel
from scaler.log.intents import msg as msg_effect
from scaler.model import Deployment, scale_spec_to_json
from scaler.util.http import APIError, append_segments, normalize_host
from scaler.util.http import headers as scaler_headers
from scaler.util.logging_treq import REQUEST_ID_HEADER
from scaler.util.pure_http import (
    add_bind_root,
    add_error_handling,
    add_headers,
    add_json_request_data,
    add_json_response,
    add_params,
    has_code,
    request,
)


def api_request(method, url, data=None, params=None, log=None,
                success_pred=has_code(200), json_response=True):
    """
    Make an HTTP request to the control plane API, authenticated and scoped
    as configured.

    :param str method: HTTP method
    :param url: partial URL (appended to the API root)
    :param data: JSON-able object or None.
    :param params: dict of query parameters.
    :param log: log to send request info to.
    :param success_pred: A predicate of responses which determines if
        a response indicates success or failure.
    :param bool json_response: Specifies whether the response should be
        parsed as JSON.

    :raise APIError: Raised asynchronously when the response does not satisfy
        ``success_pred``.
    :return: Effect of :obj:`ApiRequest`, resulting in a tuple of
        (:obj:`twisted.web.client.Response`, JSON-parsed HTTP response body).
    """
    return Effect(ApiRequest(
        method=method,
        url=url,
        data=data,
        params=params,
        log=log,
        success_pred=success_pred,
        json_response=json_response))


@attr.s
class ApiRequest(object):
    """
    A request to the control plane API. Performed by
    :func:`perform_api_request`, which knows where the API is and how to
    authenticate.

    The result will be a two-tuple of a treq response object and the body
    of the response (either a json-compatible object or bytes, depending
    on ``json_response``).
    """
    method = attr.ib()
    url = attr.ib()
    data = attr.ib(default=None)
    params = attr.ib(default=None)
    log = attr.ib(default=None)
    success_pred = attr.ib(default=has_code(200))
    json_response = attr.ib(default=True)

    def intent_result_pred(self, result):
        """Check if the result looks like (treq response, body)."""
        return (isinstance(result, tuple) and
                isinstance(result[1],
                           (dict, list) if self.json_response else bytes))


def concretize_api_request(config, log, api_request):
    """
    Translate a high-level :obj:`ApiRequest` into a low-level :obj:`Effect`
    of :obj:`pure_http.Request`.

    :param ScaleConfig config: where the API is and how to authenticate.
    :param BoundLog log: info about requests will be logged to this.
    """
    if api_request.log is not None:
        log = api_request.log

    request_ = add_headers(scaler_headers(config.token), request)
    if config.team_id is not None:
        request_ = add_params({'teamId': config.team_id}, request_)
    request_ = add_json_request_data(request_)
    request_ = add_bind_root(config.api_url, request_)
    request_ = add_error_handling(api_request.success_pred, request_)
    if api_request.json_response:
        request_ = add_json_response(request_)

    return request_(
        api_request.method,
        api_request.url,
        data=api_request.data,
        params=api_request.params,
        log=log,
        timeout=config.request_timeout)


@sync_performer
def perform_api_request(config, log, dispatcher, api_request):
    """
    Perform an :obj:`ApiRequest` by performing the concrete HTTP request it
    stands for.
    """
    return concretize_api_request(config, log, api_request)


def get_cloud_client_dispatcher(config, log):
    """
    Get a dispatcher suitable for running :obj:`ApiRequest` intents.
    """
    return TypeDispatcher({
        ApiRequest: partial(perform_api_request, config, log),
    })


# ----- Logging responses -----


def log_success_response(msg_type, response_body_filter, log_as_json=True,
                         request_body=None):
    """
    :param str msg_type: A string representing the message type of the log
        message
    :param callable response_body_filter: A callable that takes a the response
        body and returns a version of the body that should be logged - this
        should not mutate the original response body.
    :param bool log_as_json: Should the body be logged as JSON string or
        as dict?
    :param request_body: Optional JSON-able body of the request sent
    :return: a function that accepts success result from an `ApiRequest` and
        logs the response body.
    """
    def _log_it(result):
        resp, json_body = result
        request_id = resp.request.headers.getRawHeaders(
            REQUEST_ID_HEADER, [None])[0]
        resp_body = (
            json.dumps(response_body_filter(json_body), sort_keys=True)
            if log_as_json else json_body)
        eff = msg_effect(
            msg_type,
            method=resp.request.method,
            url=resp.request.absoluteURI,
            request_body=request_body,
            response_body=resp_body,
            request_id=request_id,
            level=LogLevel.DEBUG)
        return eff.on(lambda _: result)

    return _log_it


# ----- Error parsing -----


def match_errors(code_exc_mapping, error_json):
    """
    Take a list of tuples of (error code, exception callable) and attempt to
    match them against the ``code`` of the given error object. If a match is
    found, raise the exception made by calling the exception callable with
    the error object.
    """
    for code, make_exc in code_exc_mapping:
        if error_json.get('code') == code:
            raise make_exc(error_json)


def only_json_api_errors(f):
    """
    Helper function so that we only catch APIErrors with bodies that can be
    parsed into JSON.

    Should decorate a function that expects two parameters: http status code
    and JSON body.

    If the decorated function cannot parse the error (either because it's not
    JSON or not recognized), reraise the error.
    """
    @wraps(f)
    def try_parsing(api_error):
        try:
            body = json.loads(api_error.body)
        except (ValueError, TypeError):
            pass
        else:
            if isinstance(body, dict):
                f(api_error.code, body)

        raise api_error

    return catch(APIError, try_parsing)


def _error_json(body):
    error = body.get('error')
    return error if isinstance(error, dict) else {}


# ----- Deployments -----


def _raise_lookup_error(identifier, context, api_error):
    """
    Convert the 404 and 403 responses of a lookup to typed errors, reraise
    anything else.
    """
    if api_error.code == 404:
        raise DeploymentNotFound(identifier, context)
    if api_error.code == 403:
        raise DeploymentPermissionDenied(identifier, context)
    raise api_error


def get_deployment(deployment_id, context=None):
    """
    Get the details of a deployment.

    :param str deployment_id: The deployment id.
    :param str context: Name of the scope, for error messages.

    Succeed on 200.

    :return: :obj:`Deployment`
    :raise: :class:`DeploymentNotFound`, :class:`DeploymentPermissionDenied`,
        :class:`APIError`
    """
    eff = api_request(
        'GET', append_segments('v3/now/deployments', deployment_id))

    lookup_error = partial(_raise_lookup_error, deployment_id, context)
    return (eff.on(error=catch(APIError, lookup_error))
               .on(log_success_response('request-get-deployment', identity))
               .on(lambda result: Deployment.from_json(result[1])))


def get_deployment_id_by_host(host, context=None):
    """
    Resolve the deployment an alias or deployment URL points to.

    :param str host: host, optionally with scheme and path.
    :param str context: Name of the scope, for error messages.

    Succeed on 200.

    :return: `str` deployment id
    :raise: :class:`DeploymentNotFound`, :class:`DeploymentPermissionDenied`,
        :class:`APIError`
    """
    host = normalize_host(host)
    eff = api_request(
        'GET', append_segments('v4/now/hosts', host),
        params={'resolve': '1'})

    def _deployment_id(result):
        _response, body = result
        deployment = body.get('deployment') or {}
        if 'id' not in deployment:
            raise DeploymentNotFound(host, context)
        return deployment['id']

    return (eff.on(error=catch(
                APIError, partial(_raise_lookup_error, host, context)))
               .on(log_success_response('request-get-host', identity))
               .on(_deployment_id))


def get_deployment_by_id_or_host(id_or_host, context=None):
    """
    Get the details of a deployment given either its id or a host it is
    served from. Anything with a ``.`` in it is taken for a host.

    :return: :obj:`Deployment`
    """
    if '.' in id_or_host:
        return get_deployment_id_by_host(id_or_host, context).on(
            lambda deployment_id: get_deployment(deployment_id, context))
    return get_deployment(id_or_host, context)


_scale_errors = [
    ('forbidden_min_instances',
     lambda url, e: ForbiddenScaleMinInstances(url, e.get('max'))),
    ('forbidden_max_instances',
     lambda url, e: ForbiddenScaleMaxInstances(url, e.get('max'))),
    ('wrong_min_max_relation',
     lambda url, e: InvalidScaleMinMaxRelation(url)),
    ('not_supported_min_scale_slots',
     lambda url, e: NotSupportedMinScaleSlots(url)),
]


def patch_deployment_scale(deployment_id, scale_spec, url=None):
    """
    Set the scale of a deployment.

    :param str deployment_id: The deployment id.
    :param PMap scale_spec: target to :class:`ScaleRange`.
    :param str url: The deployment URL, carried by the errors.

    Succeed on 200.

    :return: ``scale_spec``, as accepted.
    :raise: :class:`ForbiddenScaleMinInstances`,
        :class:`ForbiddenScaleMaxInstances`,
        :class:`InvalidScaleMinMaxRelation`,
        :class:`NotSupportedMinScaleSlots`, :class:`APIError`
    """
    data = scale_spec_to_json(scale_spec)
    eff = api_request(
        'PATCH',
        append_segments('v3/now/deployments', deployment_id, 'instances'),
        data=data)

    @only_json_api_errors
    def _parse_known_errors(code, json_body):
        match_errors(
            [(error_code, partial(make_exc, url))
             for error_code, make_exc in _scale_errors],
            _error_json(json_body))

    return (eff.on(error=_parse_known_errors)
               .on(log_success_response('request-patch-deployment-scale',
                                        identity, request_body=data))
               .on(lambda _: scale_spec))
