"""
Observer factories which will be used to configure command line logging.
"""
import socket
import sys

from toolz.dicttoolz import assoc

from scaler.log.formatters import (
    LevelFilterWrapper,
    LogLevel,
    NormalizingWrapper,
    StreamObserver,
    render_human,
    render_json,
)


def _own_events_only(observer):
    # reactor and treq internals log without our system
    def emit(event):
        if event.get('system') == 'scaler':
            observer(event)
    return emit


def observer_factory(stream=None):
    """
    Log one readable line per message of scaler itself to ``stream``
    (stderr by default), skipping debug messages.
    """
    stream = stream if stream is not None else sys.stderr
    return _own_events_only(
        NormalizingWrapper(
            LevelFilterWrapper(StreamObserver(stream, render_human),
                               LogLevel.INFO)))


def observer_factory_debug(stream=None):
    """
    Log pretty JSON formatted structures of every event to ``stream``
    (stderr by default).
    """
    stream = stream if stream is not None else sys.stderr
    hostname = socket.gethostname()

    def render(event):
        return render_json(assoc(event, 'host', hostname),
                           sort_keys=True, indent=2)

    return NormalizingWrapper(StreamObserver(stream, render))
