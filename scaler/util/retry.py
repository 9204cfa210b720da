"""
Repeating an operation at intervals until it succeeds, fails for good or runs
out of time.
"""
import time

from twisted.internet import defer
from twisted.python.failure import Failure


class _Retrying(object):
    """
    State of a :func:`retry` in progress.

    At most one of ``work``, the attempt running, and ``scheduled``, the
    delayed call of the next attempt, is set at any time. Both are stopped
    when ``result`` is cancelled.
    """
    def __init__(self, do_work, can_retry, next_interval, clock):
        self.do_work = do_work
        self.can_retry = can_retry
        self.next_interval = next_interval
        self.clock = clock

        self.work = None
        self.scheduled = None
        self.cancelled = False
        self.result = defer.Deferred(self._cancel)

    def _cancel(self, _result):
        self.cancelled = True
        if self.scheduled is not None:
            self.scheduled.cancel()
            self.scheduled = None
        if self.work is not None:
            self.work.cancel()

    def attempt(self):
        """
        Start one attempt of ``do_work``.
        """
        self.scheduled = None
        self.work = defer.maybeDeferred(self.do_work)
        self.work.addBoth(self._attempted)

    def _attempted(self, outcome):
        self.work = None
        if self.cancelled:
            # the attempt may outlive the cancellation of ``result``
            if not self.result.called:
                self.result.errback(defer.CancelledError())
            return None

        if not isinstance(outcome, Failure):
            self.result.callback(outcome)
            return None

        interval = None
        if self.can_retry(outcome):
            interval = self.next_interval(outcome)
        if interval is None:
            self.result.errback(outcome)
        else:
            self.scheduled = self.clock.callLater(interval, self.attempt)
        return None


def terminal_errors_except(*args):
    """
    Returns a ``can_retry`` function for :func:`retry` that only retries
    failures wrapping one of the given exception types.

    If no type is given, nothing is retried.
    """
    def can_retry(f):
        return f.check(*args) is not None

    return can_retry


def repeating_interval(interval):
    """
    Returns a ``next_interval`` function for :func:`retry` that always waits
    ``interval`` seconds.
    """
    return lambda f: interval


def until_deadline(next_interval, timeout, monotonic=time.monotonic):
    """
    Bound a ``next_interval`` function by a deadline ``timeout`` seconds from
    now, so that no attempt starts after it.

    :param callable monotonic: returns the current time of a clock that only
        moves forward.
    :return: a ``next_interval`` function that returns ``None``, ending the
        retries, once the next attempt would start after the deadline.
    """
    deadline = monotonic() + timeout

    def bounded(f):
        interval = next_interval(f)
        if interval is None or monotonic() + interval > deadline:
            return None
        return interval

    return bounded


def retry(do_work, can_retry=None, next_interval=None, clock=None):
    """
    Call ``do_work`` until it succeeds, or fails in a way that is not
    retried.

    :param callable do_work: takes no arguments, and returns a result or a
        Deferred.
    :param callable can_retry: takes the failure of an attempt and tells
        whether to make another one. Defaults to retrying
        :class:`TransientRetryError` only.
    :param callable next_interval: takes the failure of an attempt and
        returns the seconds to wait before the next one, or ``None`` to stop
        retrying. Defaults to 5 seconds.
    :param IReactorTime clock: schedules the attempts.

    :return: a Deferred which fires with the result of the first successful
        attempt, or with the failure of the last one. Cancelling it cancels
        the attempt running and the one scheduled.
    """
    if can_retry is None:
        can_retry = terminal_errors_except(TransientRetryError)

    if next_interval is None:
        next_interval = repeating_interval(5)

    if clock is None:  # pragma: no cover
        from twisted.internet import reactor
        clock = reactor

    retrying = _Retrying(do_work, can_retry, next_interval, clock)
    retrying.attempt()
    return retrying.result


class TransientRetryError(Exception):
    """
    Raised by an attempt of :func:`retry` that should be made again.
    """
