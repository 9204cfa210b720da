"""
Data classes shared by the parsing, applying and verifying phases of a scale.
"""
import attr
from attr.validators import instance_of, optional

from pyrsistent import PMap, freeze, pmap, thaw

from toolz.dicttoolz import valmap

from scaler.constants import AUTO, DeploymentState, DeploymentType


def _is_bound(inst, attribute, value):
    if value != AUTO and not (isinstance(value, int) and value >= 0):
        raise ValueError(
            "{0} must be {1!r} or a non-negative integer, not {2!r}".format(
                attribute.name, AUTO, value))


@attr.s(frozen=True)
class ScaleRange(object):
    """
    The bounds a target is scaled within.

    :ivar min: A non-negative `int` or :data:`AUTO`.
    :ivar max: A non-negative `int` or :data:`AUTO`.
    """
    min = attr.ib(validator=_is_bound)
    max = attr.ib(validator=_is_bound)

    def as_json(self):
        """
        :return: the wire representation of the range.
        """
        return {'min': self.min, 'max': self.max}


def build_scale_spec(targets, scale_range):
    """
    Associate every target with the same range.

    :param targets: ordered targets, as returned by
        :func:`scaler.targets.get_targets_from_args`.
    :param ScaleRange scale_range: bounds for all the targets.

    :return: immutable mapping of target to :class:`ScaleRange`.
    """
    return pmap({target: scale_range for target in targets})


def scale_spec_to_json(scale_spec):
    """
    :return: the request body for a scale spec, as a `dict` of
        ``{target: {"min": min, "max": max}}``.
    """
    return {target: scale_range.as_json()
            for target, scale_range in scale_spec.items()}


@attr.s(frozen=True)
class TargetScale(object):
    """
    Scale of one datacenter as reported by the control plane.

    :ivar min: configured lower bound, an `int` or :data:`AUTO`.
    :ivar max: configured upper bound, an `int` or :data:`AUTO`.
    :ivar current: number of running instances, or ``None`` if not reported.
    """
    min = attr.ib()
    max = attr.ib()
    current = attr.ib(default=None)

    @classmethod
    def from_json(cls, scale_json):
        """
        Create a :class:`TargetScale` from one entry of a deployment's
        ``scale`` object.
        """
        return cls(min=scale_json.get('min', 0),
                   max=scale_json.get('max', AUTO),
                   current=scale_json.get('current'))


def _lookup_constant(constants, value):
    try:
        return constants.lookupByValue(value)
    except ValueError:
        return value


@attr.s(frozen=True)
class Deployment(object):
    """
    Information about a deployment that was retrieved from the control plane.

    :ivar str uid: The deployment id.
    :ivar str url: The host the deployment is served from.
    :ivar type: A member of :class:`DeploymentType`, or the raw string for
        types this code does not know about.
    :ivar state: A member of :class:`DeploymentState`, or the raw string.
    :ivar PMap scale: datacenter to :class:`TargetScale`.
    :ivar PMap json: JSON dict received from the control plane
    """
    uid = attr.ib()
    url = attr.ib()
    type = attr.ib()
    state = attr.ib()
    scale = attr.ib(default=attr.Factory(pmap), validator=instance_of(PMap))
    json = attr.ib(default=attr.Factory(pmap), validator=instance_of(PMap),
                   repr=False)

    @classmethod
    def from_json(cls, deployment_json):
        """
        Create a :class:`Deployment` from the control plane's deployment
        JSON.
        """
        scale = deployment_json.get('scale') or {}
        return cls(
            uid=deployment_json['uid'],
            url=deployment_json.get('url'),
            type=_lookup_constant(DeploymentType, deployment_json.get('type')),
            state=_lookup_constant(DeploymentState,
                                   deployment_json.get('state')),
            scale=pmap(valmap(TargetScale.from_json, scale)),
            json=freeze(deployment_json))

    def as_json(self):
        """
        :return: the original JSON as mutable structures.
        """
        return thaw(self.json)


@attr.s(frozen=True)
class Converged(object):
    """
    The deployment was observed to satisfy the scale spec.

    :ivar PMap scale: the scale reported by the last check.
    """
    scale = attr.ib()


@attr.s(frozen=True)
class ScaleResult(object):
    """
    A scale that was saved, and possibly verified.

    :ivar PMap spec: the scale spec that was accepted.
    :ivar Deployment deployment: the deployment as fetched before scaling.
    :ivar verification: :class:`Converged`, or ``None`` when verification
        was skipped or does not apply to the deployment type.
    """
    spec = attr.ib()
    deployment = attr.ib()
    verification = attr.ib(default=None, validator=optional(
        instance_of(Converged)))
