"""
Turning events of Twisted's log module into the lines scaler writes.

:func:`normalize` reduces an event to the fields scaler logs, a ``render_*``
function turns the result into text, and the observer wrappers below glue
them onto Twisted's log.
"""
import json
from datetime import datetime

from toolz.dicttoolz import assoc

from twisted.python.failure import Failure


class LogLevel(object):
    """ Log levels, as in syslog: a lower number is more severe. """
    DEBUG = 7
    INFO = 6
    ERROR = 3


def _format(template, event):
    """
    Format ``template`` with the fields of ``event``.

    :return: the formatted text, or ``template`` itself and a description of
        what went wrong when it could not be formatted.
    """
    try:
        return template.format(**event), None
    except Exception:
        return template, str(Failure())


def _system(event):
    system = event.get('system', '-')
    if system == '-':
        return 'scaler', None
    if ',' in system:
        # tcp.Server/Client contexts are not systems of their own
        return 'scaler', system
    return system, None


def normalize(event):
    """
    Return a copy of a Twisted log event as scaler logs it.

    - ``message`` becomes a single string, in a one-tuple, formatted with
      :meth:`str.format` from the other fields of the event. A message that
      cannot be formatted is kept as is, and the reason recorded in
      ``message_formatting_error``.
    - ``system`` is ``scaler`` unless another system logged the event. A
      connection context in place of a system is kept in ``log_context``.
    - Errors logged with ``err`` lose their ``isError``, ``failure`` and
      ``why`` fields. An error without a message gets one from the exception
      and ``why``, and the exception type and traceback become fields.
    - ``level`` defaults to ``ERROR`` for errors and ``INFO`` otherwise.
    """
    event = dict(event)
    is_error = event.pop('isError', False)
    failure = event.pop('failure', None)
    why = event.pop('why', None)

    system, context = _system(event)
    event['system'] = system
    if context is not None:
        event['log_context'] = context

    message = ' '.join(event.get('message', ()))
    if message:
        message, error = _format(message, event)
        if error is not None:
            event['message_formatting_error'] = error

    if is_error:
        described = ''
        if failure is not None:
            exc = failure.value
            described = str(exc) or repr(exc)
            event['traceback'] = failure.getTraceback()
            event['exception_type'] = type(exc).__name__
        if why:
            described = '{0}: {1}'.format(_format(why, event)[0], described)
        message = message or described

    event['message'] = (message,)
    event.setdefault('level', LogLevel.ERROR if is_error else LogLevel.INFO)
    return event


def _json_default(obj):
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, bytes):
        return obj.decode('utf-8', 'replace')
    if isinstance(obj, Failure):
        return str(obj)
    # never drop an event over a field that cannot be serialized
    return repr(obj)


def render_json(event, **kwargs):
    """
    Render a normalized event as a JSON object. Fields JSON cannot represent
    are rendered with ``repr``, apart from datetimes, bytes and failures.

    :param kwargs: passed on to :func:`json.dumps`.
    """
    event = assoc(event, 'message', ''.join(event.get('message', ())))
    return json.dumps(event, default=_json_default, **kwargs)


def render_human(event):
    """
    Render a normalized event as one readable line: errors are prefixed with
    ``Error!`` and everything else with ``>``.
    """
    prefix = 'Error!' if event.get('level') == LogLevel.ERROR else '>'
    return '{0} {1}'.format(prefix, ''.join(event.get('message', ())))


def NormalizingWrapper(observer):
    """
    :return: an observer passing events through :func:`normalize` to
        ``observer``.
    """
    return lambda event: observer(normalize(event))


def LevelFilterWrapper(observer, min_level):
    """
    Drop events less severe than ``min_level``.
    """
    def level_filter(event):
        if event.get('level', LogLevel.INFO) <= min_level:
            observer(event)

    return level_filter


def StreamObserver(stream, render, delimiter='\n', buffered=False):
    """
    Create a log observer that writes every event to ``stream``.

    :param render: turns an event into the text to write.
    :param str or None delimiter: written after every event.
    :param bool buffered: if False, ``stream`` is flushed after every event.
    """
    def write(event):
        stream.write(render(event))
        if delimiter is not None:
            stream.write(delimiter)
        if not buffered:
            stream.flush()

    return write
