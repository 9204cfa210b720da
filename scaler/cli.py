"""
The ``scaler`` command: scale a deployment from the command line.

    scaler <deployment> <targets> [min] [max]
"""
import os
import sys
from functools import singledispatch

from twisted.internet import defer, task
from twisted.internet.defer import CancelledError
from twisted.python import log as twisted_log
from twisted.python import usage

from jsonschema import ValidationError

import yaml

from scaler.controller import scale_deployment
from scaler.effect_dispatcher import get_full_dispatcher
from scaler.errors import (
    DeploymentInErrorState,
    DeploymentNotFound,
    DeploymentPermissionDenied,
    DeprecatedScaleCommand,
    ForbiddenScaleMaxInstances,
    ForbiddenScaleMinInstances,
    InvalidAllForScale,
    InvalidArgsForMinMaxScale,
    InvalidArgsForScale,
    InvalidMaxForScale,
    InvalidMinForScale,
    InvalidRegionOrDCForScale,
    InvalidScaleMinMaxRelation,
    NotSupportedMinScaleSlots,
    ScaleError,
    StaticDeploymentNotScalable,
    VerifyScaleTimeout,
)
from scaler.log import log as default_log
from scaler.log.formatters import LogLevel
from scaler.log.setup import observer_factory, observer_factory_debug
from scaler.util.config import load_config
from scaler.util.duration import format_duration, parse_duration


COMMAND = 'scale'

TOKEN_ENV = 'SCALER_TOKEN'

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_HELP = 2

EXAMPLES = """
Examples:

  Enable your deployment in all datacenters (min: 0, max: 1)
    $ scaler my-deployment-123.now.sh all

  Enable your deployment in the SFO datacenter (min: 0, max: 1)
    $ scaler my-deployment-123.now.sh sfo

  Scale a deployment in all datacenters to 3 instances at all times
    $ scaler my-deployment-123.now.sh all 3 3

  Enable your deployment in all datacenters, with auto-scaling
    $ scaler my-deployment-123.now.sh all auto auto
"""


class Options(usage.Options):
    """
    Options of the ``scaler`` command.
    """
    synopsis = "Usage: scaler [options] <deployment> <targets> [min] [max]"

    optFlags = [
        ["no-verify", "n",
         "Skip step of waiting until instance count meets given constraints"],
        ["debug", "d", "Debug mode, logs every event as JSON"],
    ]

    optParameters = [
        ["verify-timeout", None, None,
         "How long to wait for verification to complete [5m]",
         parse_duration],
        ["token", "t", None, "Login token [$SCALER_TOKEN]"],
        ["team", "T", None, "Set a custom team scope"],
        ["api-url", None, None, "Root URL of the API"],
        ["config", "c", None, "Path to a JSON configuration file"],
    ]

    def opt_help(self):
        """
        Display this help and exit.
        """
        self['help'] = True

    opt_h = opt_help

    def parseArgs(self, *args):
        """
        Keep the positional arguments, in the shape the controller expects.
        """
        self['args'] = [COMMAND] + list(args)

    def postOptions(self):
        """
        Turn the options into a :class:`ScaleConfig`.
        """
        self.setdefault('help', False)
        try:
            self['scale_config'] = load_config(
                self['config'],
                api_url=self['api-url'],
                token=self['token'] or os.environ.get(TOKEN_ENV),
                team_id=self['team'],
                verify=False if self['no-verify'] else None,
                verify_timeout=self['verify-timeout'])
        except (IOError, ValueError, ValidationError, yaml.YAMLError) as e:
            raise usage.UsageError(
                'Invalid configuration file {0}: {1}'.format(
                    self['config'], getattr(e, 'message', e)))

    def getUsage(self, width=None):
        """
        Append examples to the usage text.
        """
        return usage.Options.getUsage(self, width) + EXAMPLES


@singledispatch
def error_message(error, config):
    """
    :return: the message explaining a :class:`ScaleError` to the user.
    """
    return 'Scaling failed: {0!r}'.format(error)


@error_message.register(InvalidArgsForScale)
def _(error, config):
    return ('`scaler <deployment> <targets> [min] [max]` expects at least '
            'two arguments')


@error_message.register(DeprecatedScaleCommand)
def _(error, config):
    return ('`scale {0}` has been deprecated. List deployments and inspect '
            'them instead').format(error.command)


@error_message.register(InvalidAllForScale)
def _(error, config):
    return ('The region value "all" was used, but it cannot be used '
            'alongside other region or dc identifiers')


@error_message.register(InvalidRegionOrDCForScale)
def _(error, config):
    return 'The value "{0}" is not a valid region or DC identifier'.format(
        error.region_or_dc)


@error_message.register(InvalidMinForScale)
def _(error, config):
    return ('Invalid <min> parameter "{0}". A number or "auto" were '
            'expected').format(error.value)


@error_message.register(InvalidMaxForScale)
def _(error, config):
    return ('Invalid <max> parameter "{0}". A number or "auto" were '
            'expected').format(error.value)


@error_message.register(InvalidArgsForMinMaxScale)
def _(error, config):
    return ('Invalid number of arguments: expected <min> ("{0}") and '
            '[max]').format(error.min)


@error_message.register(DeploymentNotFound)
def _(error, config):
    return 'Failed to find deployment "{0}" in {1}'.format(
        error.id, error.context)


@error_message.register(DeploymentPermissionDenied)
def _(error, config):
    return 'No permission to access deployment {0} under {1}'.format(
        error.id, error.context)


@error_message.register(StaticDeploymentNotScalable)
def _(error, config):
    return 'Scaling rules cannot be set on static deployments'


@error_message.register(DeploymentInErrorState)
def _(error, config):
    return 'Cannot scale a deployment in the ERROR state'


@error_message.register(ForbiddenScaleMinInstances)
def _(error, config):
    return ("You can't scale to more than {0} min instances with your "
            "current plan.").format(error.max)


@error_message.register(ForbiddenScaleMaxInstances)
def _(error, config):
    return ("You can't scale to more than {0} max instances with your "
            "current plan.").format(error.max)


@error_message.register(InvalidScaleMinMaxRelation)
def _(error, config):
    return "Min number of instances can't be higher than max."


@error_message.register(NotSupportedMinScaleSlots)
def _(error, config):
    return ('This platform does not yet support setting a non-zero min '
            'number of instances.')


@error_message.register(VerifyScaleTimeout)
def _(error, config):
    return 'Instance verification timed out ({0})'.format(
        format_duration(error.timeout))


def report(result, config, log):
    """
    Tell the user how a scale went.

    :param result: what :func:`scale_deployment` fired with.
    :return: the exit status.
    """
    if isinstance(result, ScaleError):
        log.msg('{reason}', reason=error_message(result, config),
                level=LogLevel.ERROR, error=result)
        return EXIT_FAILURE

    spec = result.spec
    scale_range = next(iter(spec.values()))
    log.msg("Scale rules for {targets} (min: {min}, max: {max}) saved",
            targets=', '.join(sorted(spec.keys())),
            min=scale_range.min, max=scale_range.max)
    if result.verification is not None:
        log.msg("Scale state verified")
    return EXIT_SUCCESS


def run(reactor, argv, log=default_log, stdout=None):
    """
    Parse ``argv``, scale the deployment and report on it.

    :return: Deferred that fires with the exit status.
    """
    stdout = stdout if stdout is not None else sys.stdout
    options = Options()
    try:
        options.parseOptions(argv)
    except (usage.UsageError, ValueError) as e:
        stdout.write('{0}\n\n{1}'.format(e, options))
        return defer.succeed(EXIT_FAILURE)

    if options['help']:
        stdout.write(str(options))
        return defer.succeed(EXIT_HELP)

    observer = (observer_factory_debug() if options['debug']
                else observer_factory())
    twisted_log.startLoggingWithObserver(observer, setStdout=False)

    config = options['scale_config']
    dispatcher = get_full_dispatcher(reactor, config, log)
    d = scale_deployment(dispatcher, config, options['args'],
                         clock=reactor, log=log)
    reactor.addSystemEventTrigger('before', 'shutdown', d.cancel)

    def cancelled(failure):
        failure.trap(CancelledError)
        log.msg("Scaling was interrupted", level=LogLevel.ERROR)
        return EXIT_FAILURE

    def unexpected(failure):
        log.err(failure, "Unexpected error while scaling")
        return EXIT_FAILURE

    d.addCallback(report, config, log)
    return d.addErrback(cancelled).addErrback(unexpected)


def _exit(status):
    if status != EXIT_SUCCESS:
        raise SystemExit(status)


def main(reactor, *argv):
    """
    Entry point for :func:`twisted.internet.task.react`.
    """
    return run(reactor, list(argv)).addCallback(_exit)


def console_main():
    """
    The ``scaler`` console script.
    """
    task.react(main, sys.argv[1:])
