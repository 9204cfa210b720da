"""
Human readable durations, such as ``90s`` or ``5m``.
"""
import re


# unit, milliseconds
_UNITS = [('h', 3600000), ('m', 60000), ('s', 1000), ('ms', 1)]

_DURATION = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$', re.ASCII)


def parse_duration(value):
    """
    :param str value: a number of seconds, optionally followed by one of the
        units ``ms``, ``s``, ``m`` or ``h``.
    :raise: `ValueError` if ``value`` is not a duration.
    :return: `float` seconds.
    """
    match = _DURATION.match(value)
    if match is None:
        raise ValueError("Invalid duration: {0!r}".format(value))
    number, unit = match.groups()
    return float(number) * dict(_UNITS)[unit or 's'] / 1000


def format_duration(seconds):
    """
    Format seconds with the largest unit that divides them exactly.

    >>> format_duration(300)
    '5m'
    >>> format_duration(90)
    '90s'
    """
    millis = int(round(seconds * 1000))
    for unit, size in _UNITS:
        if millis >= size and millis % size == 0:
            return '{0}{1}'.format(millis // size, unit)
    return '0s'
