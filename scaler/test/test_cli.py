"""Tests for :mod:`scaler.cli`."""

import json
from io import StringIO

import mock

from pyrsistent import pmap

from twisted.internet.defer import Deferred, fail, succeed
from twisted.internet.task import Clock
from twisted.python import usage
from twisted.trial.unittest import SynchronousTestCase

from scaler.cli import (
    EXIT_FAILURE,
    EXIT_HELP,
    EXIT_SUCCESS,
    Options,
    error_message,
    main,
    report,
    run,
)
from scaler.constants import AUTO
from scaler.errors import (
    DeploymentNotFound,
    ForbiddenScaleMinInstances,
    InvalidAllForScale,
    InvalidArgsForMinMaxScale,
    InvalidMinForScale,
    InvalidRegionOrDCForScale,
    InvalidScaleMinMaxRelation,
    NotSupportedMinScaleSlots,
    StaticDeploymentNotScalable,
    VerifyScaleTimeout,
)
from scaler.log.formatters import LogLevel
from scaler.model import Converged, ScaleRange, ScaleResult, build_scale_spec
from scaler.test.utils import DummyException, deployment, mock_log, patch
from scaler.util.config import ScaleConfig


class FakeReactor(Clock):
    """
    A :class:`Clock` that records system event triggers.
    """
    def __init__(self):
        Clock.__init__(self)
        self.triggers = []

    def addSystemEventTrigger(self, phase, event, f, *args, **kwargs):
        self.triggers.append((phase, event, f))


class OptionsTests(SynchronousTestCase):
    """Tests for :class:`Options`."""

    def parse(self, *argv):
        options = Options()
        options.parseOptions(list(argv))
        return options

    def test_args(self):
        """Positional arguments are kept after the command name."""
        options = self.parse('dpl_1', 'sfo', '0', '1')
        self.assertEqual(options['args'], ['scale', 'dpl_1', 'sfo', '0', '1'])
        self.assertFalse(options['help'])

    def test_defaults(self):
        """Without options the default configuration is used."""
        options = self.parse('--token', 'tok', 'dpl_1', 'sfo')
        self.assertEqual(options['scale_config'], ScaleConfig(token='tok'))

    def test_options(self):
        """Options override the configuration."""
        options = self.parse('-n', '--verify-timeout', '90s', '-T', 'team_1',
                             '--api-url', 'http://api.local', '-t', 'tok',
                             'dpl_1', 'sfo')
        self.assertEqual(
            options['scale_config'],
            ScaleConfig(api_url='http://api.local', token='tok',
                        team_id='team_1', verify=False, verify_timeout=90))

    def test_verify_timeout_units(self):
        """The verification timeout takes a unit."""
        options = self.parse('--verify-timeout', '5m', 'dpl_1', 'sfo')
        self.assertEqual(options['scale_config'].verify_timeout, 300)

    def test_invalid_verify_timeout(self):
        """An invalid duration is a usage error."""
        self.assertRaises(usage.UsageError, self.parse,
                          '--verify-timeout', 'soon', 'dpl_1', 'sfo')

    def test_config_file(self):
        """A configuration file is read, and options take precedence."""
        path = self.mktemp()
        with open(path, 'w') as f:
            json.dump({'token': 'file-tok', 'team_id': 'team_1',
                       'verify_interval': 2}, f)
        options = self.parse('-c', path, '-t', 'tok', 'dpl_1', 'sfo')
        self.assertEqual(
            options['scale_config'],
            ScaleConfig(token='tok', team_id='team_1', verify_interval=2))

    def test_invalid_config_file(self):
        """An invalid configuration file is a usage error."""
        path = self.mktemp()
        with open(path, 'w') as f:
            json.dump({'verify_interval': -2}, f)
        self.assertRaises(usage.UsageError, self.parse, '-c', path,
                          'dpl_1', 'sfo')

    def test_missing_config_file(self):
        """A missing configuration file is a usage error."""
        self.assertRaises(usage.UsageError, self.parse, '-c', self.mktemp(),
                          'dpl_1', 'sfo')

    def test_unparseable_config_file(self):
        """A configuration file that cannot be parsed is a usage error."""
        path = self.mktemp()
        with open(path, 'w') as f:
            f.write('{"token": [')
        self.assertRaises(usage.UsageError, self.parse, '-c', path,
                          'dpl_1', 'sfo')

    def test_token_from_environment(self):
        """
        The token is read from ``$SCALER_TOKEN`` when options are parsed,
        unless given as an option.
        """
        with mock.patch.dict('os.environ', {'SCALER_TOKEN': 'env-tok'}):
            self.assertEqual(
                self.parse('dpl_1', 'sfo')['scale_config'].token, 'env-tok')
            self.assertEqual(
                self.parse('-t', 'tok', 'dpl_1', 'sfo')['scale_config'].token,
                'tok')
        with mock.patch.dict('os.environ', {}, clear=True):
            self.assertIs(
                self.parse('dpl_1', 'sfo')['scale_config'].token, None)

    def test_help(self):
        """Help is recorded rather than exiting."""
        self.assertTrue(self.parse('--help')['help'])
        self.assertTrue(self.parse('-h')['help'])

    def test_usage_examples(self):
        """The usage text carries examples."""
        self.assertIn('scaler my-deployment-123.now.sh all auto auto',
                      str(Options()))


class ErrorMessageTests(SynchronousTestCase):
    """Tests for :func:`error_message`."""

    def setUp(self):
        self.config = ScaleConfig()

    def assert_message(self, error, message):
        self.assertEqual(error_message(error, self.config), message)

    def test_input_errors(self):
        """Input errors name the offending value."""
        self.assert_message(
            InvalidAllForScale(),
            'The region value "all" was used, but it cannot be used '
            'alongside other region or dc identifiers')
        self.assert_message(
            InvalidRegionOrDCForScale('mars'),
            'The value "mars" is not a valid region or DC identifier')
        self.assert_message(
            InvalidMinForScale('x'),
            'Invalid <min> parameter "x". A number or "auto" were expected')
        self.assert_message(
            InvalidArgsForMinMaxScale(AUTO),
            'Invalid number of arguments: expected <min> ("auto") and '
            '[max]')

    def test_remote_errors(self):
        """Rejections of the control plane are explained."""
        self.assert_message(
            ForbiddenScaleMinInstances('my-app.now.sh', 2),
            "You can't scale to more than 2 min instances with your "
            "current plan.")
        self.assert_message(
            InvalidScaleMinMaxRelation('my-app.now.sh'),
            "Min number of instances can't be higher than max.")
        self.assert_message(
            NotSupportedMinScaleSlots('my-app.now.sh'),
            'This platform does not yet support setting a non-zero min '
            'number of instances.')

    def test_deployment_errors(self):
        """Lookup and precondition errors are explained."""
        self.assert_message(
            DeploymentNotFound('dpl_1', 'team_1'),
            'Failed to find deployment "dpl_1" in team_1')
        self.assert_message(
            StaticDeploymentNotScalable('my-app.now.sh'),
            'Scaling rules cannot be set on static deployments')

    def test_timeout(self):
        """The verification timeout is shown in a readable unit."""
        self.assert_message(VerifyScaleTimeout(300),
                            'Instance verification timed out (5m)')


class ReportTests(SynchronousTestCase):
    """Tests for :func:`report`."""

    def setUp(self):
        self.log = mock_log()
        self.spec = build_scale_spec(('sfo', 'bru'), ScaleRange(0, 1))

    def test_error(self):
        """Errors are logged as such and exit with failure."""
        error = StaticDeploymentNotScalable('my-app.now.sh')
        self.assertEqual(report(error, ScaleConfig(), self.log),
                         EXIT_FAILURE)
        self.log.msg.assert_called_once_with(
            '{reason}',
            reason='Scaling rules cannot be set on static deployments',
            level=LogLevel.ERROR, error=error)

    def test_saved(self):
        """A saved scale is reported."""
        result = ScaleResult(self.spec, deployment())
        self.assertEqual(report(result, ScaleConfig(), self.log),
                         EXIT_SUCCESS)
        self.log.msg.assert_called_once_with(
            "Scale rules for {targets} (min: {min}, max: {max}) saved",
            targets='bru, sfo', min=0, max=1)

    def test_verified(self):
        """A verified scale is reported as such."""
        result = ScaleResult(self.spec, deployment(), Converged(pmap()))
        self.assertEqual(report(result, ScaleConfig(), self.log),
                         EXIT_SUCCESS)
        self.log.msg.assert_called_with("Scale state verified")


class RunTests(SynchronousTestCase):
    """Tests for :func:`run` and :func:`main`."""

    def setUp(self):
        self.reactor = FakeReactor()
        self.log = mock_log()
        self.stdout = StringIO()
        self.start_logging = patch(
            self, 'scaler.cli.twisted_log.startLoggingWithObserver')
        self.get_full_dispatcher = patch(
            self, 'scaler.cli.get_full_dispatcher',
            return_value='dispatcher')
        self.scale_deployment = patch(self, 'scaler.cli.scale_deployment')
        self.result = ScaleResult(
            build_scale_spec(('sfo',), ScaleRange(0, 1)), deployment())

    def _run_cli(self, *argv):
        return run(self.reactor, list(argv), log=self.log, stdout=self.stdout)

    def test_success(self):
        """
        The deployment is scaled with the parsed arguments and success
        exits with 0.
        """
        self.scale_deployment.return_value = succeed(self.result)
        d = self._run_cli('-t', 'tok', 'dpl_1', 'sfo')
        self.assertEqual(self.successResultOf(d), EXIT_SUCCESS)
        config = ScaleConfig(token='tok')
        self.get_full_dispatcher.assert_called_once_with(
            self.reactor, config, self.log)
        self.scale_deployment.assert_called_once_with(
            'dispatcher', config, ['scale', 'dpl_1', 'sfo'],
            clock=self.reactor, log=self.log)
        self.assertEqual(self.start_logging.call_count, 1)

    def test_cancel_on_shutdown(self):
        """Scaling is cancelled when the reactor shuts down."""
        scaling = Deferred()
        self.scale_deployment.return_value = scaling
        d = self._run_cli('dpl_1', 'sfo')
        [(phase, event, cancel)] = self.reactor.triggers
        self.assertEqual((phase, event), ('before', 'shutdown'))
        cancel()
        self.assertEqual(self.successResultOf(d), EXIT_FAILURE)
        self.log.msg.assert_called_once_with(
            "Scaling was interrupted", level=LogLevel.ERROR)

    def test_scale_error(self):
        """Scale errors exit with 1."""
        self.scale_deployment.return_value = succeed(
            VerifyScaleTimeout(300))
        d = self._run_cli('dpl_1', 'sfo')
        self.assertEqual(self.successResultOf(d), EXIT_FAILURE)

    def test_unexpected_error(self):
        """Unexpected failures are logged and exit with 1."""
        self.scale_deployment.return_value = fail(DummyException())
        d = self._run_cli('dpl_1', 'sfo')
        self.assertEqual(self.successResultOf(d), EXIT_FAILURE)
        self.log.err.assert_called_once_with(
            mock.ANY, "Unexpected error while scaling")

    def test_help(self):
        """Help is written out and exits with 2."""
        d = self._run_cli('--help')
        self.assertEqual(self.successResultOf(d), EXIT_HELP)
        self.assertIn('Usage: scaler', self.stdout.getvalue())
        self.assertFalse(self.scale_deployment.called)

    def test_usage_error(self):
        """Invalid options are written out and exit with 1."""
        d = self._run_cli('--nope')
        self.assertEqual(self.successResultOf(d), EXIT_FAILURE)
        self.assertIn('nope', self.stdout.getvalue())
        self.assertFalse(self.scale_deployment.called)

    def test_debug(self):
        """The debug flag logs JSON events."""
        self.scale_deployment.return_value = succeed(self.result)
        debug_factory = patch(self, 'scaler.cli.observer_factory_debug')
        self.successResultOf(self._run_cli('-d', 'dpl_1', 'sfo'))
        self.start_logging.assert_called_once_with(
            debug_factory.return_value, setStdout=False)

    def test_main_exit_status(self):
        """
        :func:`main` fails with ``SystemExit`` carrying a non-zero status.
        """
        self.scale_deployment.return_value = succeed(
            StaticDeploymentNotScalable('my-app.now.sh'))
        f = self.failureResultOf(main(self.reactor, 'dpl_1', 'sfo'),
                                 SystemExit)
        self.assertEqual(f.value.code, EXIT_FAILURE)

    def test_main_success(self):
        """:func:`main` succeeds on success."""
        self.scale_deployment.return_value = succeed(self.result)
        self.assertIs(
            self.successResultOf(main(self.reactor, 'dpl_1', 'sfo')), None)
