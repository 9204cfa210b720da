"""
The closed set of expected failures of a scale invocation.

Each error carries only what is needed to explain it to a user (the offending
token, the plan limit, the timeout). Components raise them; the controller
hands them back as values so the caller decides on messaging and exit status.
"""
import attr


class ScaleError(Exception):
    """
    Base class of every expected scale failure.
    """
    def __str__(self):
        return repr(self)


# ----- Input shape -----

class InvalidInputError(ScaleError):
    """
    The command line arguments do not describe a valid scale request. Always
    detected before any request is made.
    """


@attr.s
class InvalidArgsForScale(InvalidInputError):
    """
    Wrong number of positional arguments.

    :ivar int count: how many arguments were given after the command.
    """
    count = attr.ib()


@attr.s
class DeprecatedScaleCommand(InvalidInputError):
    """
    A sub-command that no longer exists, such as ``scale ls``.
    """
    command = attr.ib()


@attr.s
class InvalidAllForScale(InvalidInputError):
    """
    ``all`` was combined with other region or datacenter identifiers.
    """


@attr.s
class InvalidRegionOrDCForScale(InvalidInputError):
    """
    A target is neither ``all``, a known region nor a datacenter.
    """
    region_or_dc = attr.ib()


@attr.s
class InvalidMinForScale(InvalidInputError):
    """
    The ``min`` argument is neither a non-negative integer nor ``auto``.
    """
    value = attr.ib()


@attr.s
class InvalidMaxForScale(InvalidInputError):
    """
    The ``max`` argument is neither a positive integer nor ``auto``.
    """
    value = attr.ib()


@attr.s
class InvalidArgsForMinMaxScale(InvalidInputError):
    """
    ``max`` is required with the given ``min`` but was omitted.
    """
    min = attr.ib()


# ----- Lookup -----

class DeploymentLookupError(ScaleError):
    """
    The deployment could not be retrieved.
    """


@attr.s
class DeploymentNotFound(DeploymentLookupError):
    """
    No deployment with the given id or host exists in the scope.
    """
    id = attr.ib()
    context = attr.ib()


@attr.s
class DeploymentPermissionDenied(DeploymentLookupError):
    """
    The deployment exists but the scope may not access it.
    """
    id = attr.ib()
    context = attr.ib()


# ----- Preconditions -----

class PreconditionError(ScaleError):
    """
    The deployment cannot be scaled in its current form.
    """


@attr.s
class StaticDeploymentNotScalable(PreconditionError):
    """
    Static deployments have no instances to scale.
    """
    url = attr.ib()


@attr.s
class DeploymentInErrorState(PreconditionError):
    """
    The deployment is in the terminal ``ERROR`` state.
    """
    url = attr.ib()


# ----- Remote policy -----

class RemotePolicyError(ScaleError):
    """
    The control plane refused the scale request.
    """


@attr.s
class ForbiddenScaleMinInstances(RemotePolicyError):
    """
    The requested ``min`` is above what the current plan allows.

    :ivar int max: the highest ``min`` the plan allows.
    """
    url = attr.ib()
    max = attr.ib()


@attr.s
class ForbiddenScaleMaxInstances(RemotePolicyError):
    """
    The requested ``max`` is above what the current plan allows.

    :ivar int max: the highest ``max`` the plan allows.
    """
    url = attr.ib()
    max = attr.ib()


@attr.s
class InvalidScaleMinMaxRelation(RemotePolicyError):
    """
    ``min`` resolved to more than ``max``.
    """
    url = attr.ib()


@attr.s
class NotSupportedMinScaleSlots(RemotePolicyError):
    """
    The platform generation of the deployment only supports a ``min`` of 0.
    """
    url = attr.ib()


# ----- Convergence -----

@attr.s
class VerifyScaleTimeout(ScaleError):
    """
    The scale was accepted but not observed to converge in time.

    :ivar float timeout: the allotted time, in seconds.
    """
    timeout = attr.ib()
