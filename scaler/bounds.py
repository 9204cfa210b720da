"""
Parsing of the ``min`` and ``max`` bounds of a scale.

``min`` defaults to 0 and ``max`` to 1, so ``scale <deployment> sfo`` enables
a deployment in one region while letting it sleep when idle. Whether ``min``
is above ``max`` is left to the control plane, whose plan limits decide what
is acceptable.
"""
import re

from scaler.constants import AUTO
from scaler.errors import (
    InvalidArgsForMinMaxScale,
    InvalidMaxForScale,
    InvalidMinForScale,
)
from scaler.model import ScaleRange


MIN_INDEX = 3
MAX_INDEX = 4

DEFAULT_MIN = 0
DEFAULT_MAX = 1

_INTEGER = re.compile(r'[0-9]+')


def _arg(args, index):
    return args[index] if len(args) > index else None


def _parse_bound(value):
    """
    :return: :data:`AUTO` or an `int`, or ``None`` if ``value`` is neither.
    """
    if value.lower() == AUTO:
        return AUTO
    if _INTEGER.fullmatch(value):
        return int(value)
    return None


def get_min_from_args(args):
    """
    :raise: :class:`InvalidMinForScale`
    :return: the requested ``min``: a non-negative `int` or :data:`AUTO`.
    """
    value = _arg(args, MIN_INDEX)
    if value is None:
        return DEFAULT_MIN

    bound = _parse_bound(value)
    if bound is None:
        raise InvalidMinForScale(value)
    return bound


def get_max_from_args(args):
    """
    :raise: :class:`InvalidMinForScale` if ``min`` is invalid,
        :class:`InvalidArgsForMinMaxScale` if ``max`` is missing although
        ``min`` is :data:`AUTO`, :class:`InvalidMaxForScale` if ``max`` is
        not a positive `int` nor :data:`AUTO`.
    :return: the requested ``max``: a positive `int` or :data:`AUTO`.
    """
    min_ = get_min_from_args(args)
    value = _arg(args, MAX_INDEX)
    if value is None:
        if min_ == AUTO:
            raise InvalidArgsForMinMaxScale(min_)
        return DEFAULT_MAX

    bound = _parse_bound(value)
    if bound is None or bound == 0:
        raise InvalidMaxForScale(value)
    return bound


def get_bounds_from_args(args):
    """
    :return: the :class:`ScaleRange` requested on the command line.
    """
    return ScaleRange(min=get_min_from_args(args),
                      max=get_max_from_args(args))
