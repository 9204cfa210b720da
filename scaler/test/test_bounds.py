"""Tests for :mod:`scaler.bounds`."""

from twisted.trial.unittest import SynchronousTestCase

from scaler.bounds import (
    get_bounds_from_args,
    get_max_from_args,
    get_min_from_args,
)
from scaler.constants import AUTO
from scaler.errors import (
    InvalidArgsForMinMaxScale,
    InvalidMaxForScale,
    InvalidMinForScale,
)
from scaler.model import ScaleRange


def _args(*bounds):
    return ['scale', 'my-app.now.sh', 'sfo'] + list(bounds)


class GetMinFromArgsTests(SynchronousTestCase):
    """Tests for :func:`get_min_from_args`."""

    def test_default(self):
        """``min`` defaults to 0."""
        self.assertEqual(get_min_from_args(_args()), 0)

    def test_number(self):
        """A non-negative integer is parsed."""
        self.assertEqual(get_min_from_args(_args('0')), 0)
        self.assertEqual(get_min_from_args(_args('12')), 12)

    def test_auto(self):
        """``auto`` is accepted whatever its case."""
        self.assertEqual(get_min_from_args(_args('auto', '2')), AUTO)
        self.assertEqual(get_min_from_args(_args('AUTO', '2')), AUTO)

    def test_invalid(self):
        """Anything else is rejected with the given value."""
        for value in ['-1', '1.5', 'many', '']:
            with self.assertRaises(InvalidMinForScale) as cm:
                get_min_from_args(_args(value))
            self.assertEqual(cm.exception.value, value)

    def test_ascii_digits_only(self):
        """Numbers are made of ASCII digits and nothing else."""
        for value in ['3\n', ' 3', '+3', '\uff13', '\u0663']:
            self.assertRaises(InvalidMinForScale,
                              get_min_from_args, _args(value))


class GetMaxFromArgsTests(SynchronousTestCase):
    """Tests for :func:`get_max_from_args`."""

    def test_default(self):
        """``max`` defaults to 1."""
        self.assertEqual(get_max_from_args(_args()), 1)
        self.assertEqual(get_max_from_args(_args('3')), 1)

    def test_auto_min_requires_max(self):
        """An ``auto`` min without max is not enough arguments."""
        with self.assertRaises(InvalidArgsForMinMaxScale) as cm:
            get_max_from_args(_args('auto'))
        self.assertEqual(cm.exception, InvalidArgsForMinMaxScale(AUTO))

    def test_number(self):
        """A positive integer is parsed."""
        self.assertEqual(get_max_from_args(_args('0', '5')), 5)

    def test_auto(self):
        """``auto`` is accepted."""
        self.assertEqual(get_max_from_args(_args('auto', 'auto')), AUTO)

    def test_zero(self):
        """A max of 0 is rejected."""
        self.assertRaises(InvalidMaxForScale,
                          get_max_from_args, _args('0', '0'))

    def test_invalid(self):
        """Anything else is rejected with the given value."""
        with self.assertRaises(InvalidMaxForScale) as cm:
            get_max_from_args(_args('1', 'lots'))
        self.assertEqual(cm.exception.value, 'lots')

    def test_ascii_digits_only(self):
        """A max of a trailing newline or fullwidth digits is rejected."""
        for value in ['3\n', '\uff13']:
            with self.assertRaises(InvalidMaxForScale) as cm:
                get_max_from_args(_args('1', value))
            self.assertEqual(cm.exception.value, value)

    def test_invalid_min_first(self):
        """An invalid min is reported before the max is looked at."""
        self.assertRaises(InvalidMinForScale,
                          get_max_from_args, _args('x', 'y'))


class GetBoundsFromArgsTests(SynchronousTestCase):
    """Tests for :func:`get_bounds_from_args`."""

    def test_defaults(self):
        """No bounds means ``(0, 1)``."""
        self.assertEqual(get_bounds_from_args(_args()), ScaleRange(0, 1))

    def test_auto_auto(self):
        """``auto auto`` is a valid range."""
        self.assertEqual(get_bounds_from_args(_args('auto', 'auto')),
                         ScaleRange(AUTO, AUTO))

    def test_min_above_max(self):
        """
        A min above the max is accepted as is, since limits are enforced
        remotely.
        """
        self.assertEqual(get_bounds_from_args(_args('3', '1')),
                         ScaleRange(3, 1))
