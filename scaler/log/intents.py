"""
Logging as effects, so that the pure request builders of
:mod:`scaler.cloud_client` can log without being handed a logger.

A :class:`Log` is performed with the logger given to
:func:`get_log_dispatcher`. Fields bound with :func:`with_log` are added to
every :class:`Log` performed while the wrapped effect runs, which is how the
controller tags the HTTP logs of a lookup with the deployment they are for.
"""
import attr

from effect import (
    ComposedDispatcher, Effect, TypeDispatcher, perform, sync_performer)

from toolz.dicttoolz import merge


@attr.s
class Log(object):
    """
    Intent to log ``msg`` with ``fields``.
    """
    msg = attr.ib()
    fields = attr.ib()


@attr.s
class BoundFields(object):
    """
    Intent to perform ``effect`` with ``fields`` added to the logs it emits.
    """
    effect = attr.ib()
    fields = attr.ib()


def msg(msg, **fields):
    """Return Effect of :class:`Log`."""
    return Effect(Log(msg, fields))


def with_log(effect, **fields):
    """Return Effect of :class:`BoundFields` wrapping ``effect``."""
    return Effect(BoundFields(effect, fields))


def get_log_dispatcher(log, fields):
    """
    :param log: the logger :class:`Log` intents are performed with.
    :param dict fields: fields bound to every message.
    :return: dispatcher of the logging intents.
    """
    @sync_performer
    def perform_log(dispatcher, intent):
        log.msg(intent.msg, **merge(fields, intent.fields))

    def perform_bound_fields(dispatcher, intent, box):
        # nested logs see the outer fields; the inner ones win on conflicts
        bound = ComposedDispatcher([
            get_log_dispatcher(log, merge(fields, intent.fields)),
            dispatcher])
        perform(bound, intent.effect.on(box.succeed, box.fail))

    return TypeDispatcher({
        Log: perform_log,
        BoundFields: perform_bound_fields,
    })
