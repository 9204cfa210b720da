"""
Verification that the instances of a deployment converged to a requested
scale.
"""
import re
import time

from twisted.internet import defer

from scaler.constants import ALL_TARGETS, AUTO
from scaler.errors import VerifyScaleTimeout
from scaler.log import log as default_log
from scaler.model import Converged
from scaler.util.retry import (
    TransientRetryError,
    repeating_interval,
    retry,
    terminal_errors_except,
    until_deadline,
)


def reported_scales(target, reported):
    """
    :param str target: ``all``, a region or a datacenter.
    :param PMap reported: datacenter to :class:`TargetScale`.
    :return: `list` of the :class:`TargetScale` entries that ``target``
        covers.
    """
    if target == ALL_TARGETS:
        return list(reported.values())
    if target in reported:
        return [reported[target]]
    dc_of_region = re.compile(r'{0}[0-9]+'.format(re.escape(target)))
    return [scale for dc, scale in reported.items()
            if dc_of_region.fullmatch(dc)]


def _bound_satisfied(requested, reported):
    if requested == AUTO:
        return reported == AUTO or (isinstance(reported, int) and
                                    reported >= 0)
    return reported == requested


def _concrete(bound, default):
    return default if bound == AUTO else bound


def target_converged(scale_range, target_scale):
    """
    :return: whether one reported datacenter satisfies the requested range:
        its bounds match the requested ones and the instances it runs, when
        reported, lie within them.
    """
    if not (_bound_satisfied(scale_range.min, target_scale.min) and
            _bound_satisfied(scale_range.max, target_scale.max)):
        return False
    current = target_scale.current
    if current is None:
        return True
    low = _concrete(target_scale.min, 0)
    high = _concrete(target_scale.max, float('inf'))
    return low <= current <= high


def scale_converged(scale_spec, reported):
    """
    :param PMap scale_spec: target to requested :class:`ScaleRange`.
    :param PMap reported: datacenter to :class:`TargetScale`.
    :return: whether every requested target is reported and satisfied.
    """
    for target, scale_range in scale_spec.items():
        scales = reported_scales(target, reported)
        if not scales:
            return False
        if not all(target_converged(scale_range, s) for s in scales):
            return False
    return True


def wait_verify_deployment_scale(fetch, deployment_id, scale_spec, timeout,
                                 interval, clock=None,
                                 monotonic=time.monotonic, log=default_log):
    """
    Poll a deployment until its reported scale satisfies ``scale_spec``.

    One fetch is made per check and checks are ``interval`` seconds apart.
    The first check is made right away, and no check starts later than
    ``timeout`` seconds after it.

    :param callable fetch: takes a deployment id and returns a Deferred that
        fires with a :class:`Deployment`.
    :param str deployment_id: The deployment id.
    :param PMap scale_spec: target to requested :class:`ScaleRange`.
    :param float timeout: Seconds to wait for convergence.
    :param float interval: Seconds between two checks.
    :param IReactorTime clock: schedules the checks.
    :param callable monotonic: returns the current time of a clock that only
        moves forward.
    :param log: A bound logger

    :return: Deferred that fires with :class:`Converged`, or with
        :class:`VerifyScaleTimeout` once the next check would start after
        the deadline. Fetch failures are propagated. Cancelling it stops
        polling and fires it with ``CancelledError``.
    """
    log = log.bind(deployment_id=deployment_id)
    started = monotonic()
    checks = [0]

    def check(deployment):
        if not scale_converged(scale_spec, deployment.scale):
            raise TransientRetryError()
        log.msg("Scale converged after {checks} checks in {elapsed} "
                "seconds", checks=checks[0], elapsed=monotonic() - started)
        return Converged(deployment.scale)

    def poll():
        checks[0] += 1
        return defer.maybeDeferred(fetch, deployment_id).addCallback(check)

    def timed_out(failure):
        failure.trap(TransientRetryError)
        log.msg("Scale did not converge within {timeout} seconds",
                timeout=timeout, checks=checks[0])
        return VerifyScaleTimeout(timeout)

    log.msg("Checking scale every {interval} seconds", interval=interval)
    d = retry(poll,
              can_retry=terminal_errors_except(TransientRetryError),
              next_interval=until_deadline(repeating_interval(interval),
                                           timeout, monotonic),
              clock=clock)
    return d.addErrback(timed_out)
