"""Constants."""

from constantly import ValueConstant, Values


class DeploymentType(Values):
    """
    Constants representing the kind of workload a deployment runs, with the
    values the control plane reports.
    """
    STATIC = ValueConstant('STATIC')
    NPM = ValueConstant('NPM')
    DOCKER = ValueConstant('DOCKER')
    LAMBDAS = ValueConstant('LAMBDAS')


class DeploymentState(Values):
    """
    Constants representing the lifecycle state of a deployment.
    """
    INITIALIZING = ValueConstant('INITIALIZING')
    DEPLOYING = ValueConstant('DEPLOYING')
    BUILDING = ValueConstant('BUILDING')
    READY = ValueConstant('READY')
    FROZEN = ValueConstant('FROZEN')
    ERROR = ValueConstant('ERROR')


# types whose runtime reports live instance counts, so a scale can be verified
VERIFIABLE_TYPES = frozenset([DeploymentType.NPM, DeploymentType.DOCKER])


ALL_TARGETS = 'all'

AUTO = 'auto'

REGIONS = frozenset(['bru', 'cdg', 'gru', 'hnd', 'iad', 'lhr', 'sfo', 'syd'])
