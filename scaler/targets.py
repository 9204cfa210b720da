"""
Resolution of the regions and datacenters a scale applies to.

The arguments handled here are the positional arguments of the command line,
``[command, deployment, targets, min, max]``, where ``targets`` is one
identifier or several separated by commas.
"""
import re

from toolz.itertoolz import unique

from scaler.constants import ALL_TARGETS, REGIONS
from scaler.errors import InvalidAllForScale, InvalidRegionOrDCForScale


TARGETS_INDEX = 2

_DC_PATTERN = re.compile(r'([a-z]+)[0-9]+')


def is_valid_region_or_dc(target):
    """
    :param str target: a lower-cased identifier.
    :return: whether ``target`` is a known region such as ``sfo`` or one of
        its datacenters such as ``sfo1``.
    """
    if target in REGIONS:
        return True
    match = _DC_PATTERN.fullmatch(target)
    return match is not None and match.group(1) in REGIONS


def get_targets_from_args(args):
    """
    Parse the targets of a scale out of the command line arguments.

    :param list args: positional arguments.
    :raise: :class:`InvalidAllForScale` if ``all`` is combined with anything
        else, :class:`InvalidRegionOrDCForScale` for the first unknown
        identifier.
    :return: `tuple` of lower-cased targets, without duplicates, in the order
        they were given.
    """
    tokens = [token.strip() for token in args[TARGETS_INDEX].split(',')]
    targets = tuple(unique(token.lower() for token in tokens if token))

    if ALL_TARGETS in targets:
        if len(targets) > 1:
            raise InvalidAllForScale()
        return targets

    for token in tokens:
        if not is_valid_region_or_dc(token.lower()):
            raise InvalidRegionOrDCForScale(token)

    return targets
