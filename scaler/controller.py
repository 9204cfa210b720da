"""
The scale controller: validates a scale request, applies it to a deployment
and waits for the deployment to converge to it.

Every expected failure is one of :mod:`scaler.errors`; :func:`scale_deployment`
returns it rather than failing, so that callers tell outcomes apart by type
and decide how to report them. Only unexpected failures (transport errors,
unknown API errors) are propagated.
"""
import time

from twisted.internet.defer import inlineCallbacks, returnValue

from txeffect import perform

from scaler.bounds import get_bounds_from_args
from scaler.cloud_client import (
    get_deployment,
    get_deployment_by_id_or_host,
    patch_deployment_scale,
)
from scaler.constants import DeploymentState, DeploymentType, VERIFIABLE_TYPES
from scaler.errors import (
    DeploymentInErrorState,
    DeprecatedScaleCommand,
    InvalidArgsForScale,
    ScaleError,
    StaticDeploymentNotScalable,
    VerifyScaleTimeout,
)
from scaler.log import log as default_log
from scaler.log.intents import with_log
from scaler.model import ScaleResult, build_scale_spec
from scaler.targets import get_targets_from_args
from scaler.verify import wait_verify_deployment_scale


DEPLOYMENT_INDEX = 1

MIN_ARGS = 3
MAX_ARGS = 5

DEPRECATED_COMMANDS = ('ls',)


def check_args(args):
    """
    Reject deprecated sub-commands and argument lists that are too short or
    too long to be ``[command, deployment, targets, min, max]``.

    :raise: :class:`DeprecatedScaleCommand`, :class:`InvalidArgsForScale`
    """
    command = args[DEPLOYMENT_INDEX] if len(args) > DEPLOYMENT_INDEX else None
    if command in DEPRECATED_COMMANDS:
        raise DeprecatedScaleCommand(command)
    if not MIN_ARGS <= len(args) <= MAX_ARGS:
        raise InvalidArgsForScale(len(args) - 1)


def check_scalable(deployment):
    """
    :raise: :class:`StaticDeploymentNotScalable`,
        :class:`DeploymentInErrorState`
    """
    if deployment.type == DeploymentType.STATIC:
        raise StaticDeploymentNotScalable(deployment.url)
    if deployment.state == DeploymentState.ERROR:
        raise DeploymentInErrorState(deployment.url)


def _returned(failure):
    failure.trap(ScaleError)
    return failure.value


def scale_deployment(dispatcher, config, args, clock=None,
                     monotonic=time.monotonic, log=default_log):
    """
    Scale a deployment as requested on the command line.

    :param dispatcher: Effect dispatcher able to perform
        :obj:`scaler.cloud_client.ApiRequest` and logging intents.
    :param ScaleConfig config: the configuration of this invocation.
    :param list args: positional arguments,
        ``[command, deployment, targets, min, max]``.
    :param IReactorTime clock: schedules the convergence checks.
    :param callable monotonic: monotonic time, for the verification timeout.
    :param log: A bound logger

    :return: Deferred that fires with a :class:`ScaleResult` on success, or
        with the :class:`ScaleError` explaining why the scale was not done or
        not verified.
    """
    d = _scale_deployment(dispatcher, config, args, clock, monotonic, log)
    return d.addErrback(_returned)


@inlineCallbacks
def _scale_deployment(dispatcher, config, args, clock, monotonic, log):
    check_args(args)
    targets = get_targets_from_args(args)
    scale_range = get_bounds_from_args(args)

    id_or_host = args[DEPLOYMENT_INDEX]
    context = config.scope_name()
    log = log.bind(deployment=id_or_host)

    def fetch(deployment_id):
        return perform(dispatcher, with_log(
            get_deployment(deployment_id, context),
            deployment_id=deployment_id))

    deployment = yield perform(dispatcher, with_log(
        get_deployment_by_id_or_host(id_or_host, context),
        deployment=id_or_host))
    log = log.bind(deployment_id=deployment.uid)
    log.msg('Fetched deployment "{url}"', url=deployment.url)

    check_scalable(deployment)

    scale_spec = build_scale_spec(targets, scale_range)
    log.msg("Setting scale of {targets} to min {min}, max {max}",
            targets=', '.join(targets), min=scale_range.min,
            max=scale_range.max)
    yield perform(dispatcher, with_log(
        patch_deployment_scale(deployment.uid, scale_spec, deployment.url),
        deployment_id=deployment.uid))

    if not config.verify:
        returnValue(ScaleResult(scale_spec, deployment))

    updated = yield fetch(deployment.uid)
    if updated.type not in VERIFIABLE_TYPES:
        returnValue(ScaleResult(scale_spec, deployment))

    outcome = yield wait_verify_deployment_scale(
        fetch, deployment.uid, scale_spec,
        timeout=config.verify_timeout,
        interval=config.verify_interval,
        clock=clock,
        monotonic=monotonic,
        log=log)
    if isinstance(outcome, VerifyScaleTimeout):
        returnValue(outcome)
    returnValue(ScaleResult(scale_spec, deployment, outcome))
