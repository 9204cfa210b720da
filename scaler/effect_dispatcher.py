"""Effect dispatchers for scaler."""

from effect import ComposedDispatcher, TypeDispatcher, base_dispatcher

from txeffect import make_twisted_dispatcher

from scaler.cloud_client import get_cloud_client_dispatcher
from scaler.log.intents import get_log_dispatcher
from scaler.util.pure_http import Request, perform_request


def get_simple_dispatcher(reactor):
    """
    Get an Effect dispatcher that can perform raw HTTP requests, delays and
    the base intents, suitable for passing to :func:`effect.perform`. Note
    that this does NOT handle :obj:`ApiRequest`.
    """
    return ComposedDispatcher([
        base_dispatcher,
        TypeDispatcher({
            Request: perform_request,
        }),
        make_twisted_dispatcher(reactor),
    ])


def get_full_dispatcher(reactor, config, log):
    """
    Return a dispatcher that can perform all of scaler's effects.

    :param ScaleConfig config: where the API is and how to authenticate.
    :param log: the logger that logging intents are performed with.
    """
    return ComposedDispatcher([
        get_cloud_client_dispatcher(config, log),
        get_simple_dispatcher(reactor),
        get_log_dispatcher(log, {}),
    ])
