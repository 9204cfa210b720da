"""
Explicit configuration for a scale invocation.

There is no global configuration: a :class:`ScaleConfig` is built once by
:func:`load_config` and handed to every component that needs it.
"""
import attr

from toolz.dicttoolz import merge, valfilter

import yaml

from scaler.json_schema import config as config_schema, validate


DEFAULT_API_URL = 'https://api.zeit.co'
DEFAULT_VERIFY_TIMEOUT = 5 * 60
DEFAULT_VERIFY_INTERVAL = 5
DEFAULT_REQUEST_TIMEOUT = 45


@attr.s(frozen=True)
class ScaleConfig(object):
    """
    Everything a scale invocation needs to know about its environment.

    :ivar str api_url: Root URL of the control plane API.
    :ivar str token: Bearer token used to authenticate requests.
    :ivar str team_id: Team scope of the requests, or ``None`` for the
        personal account.
    :ivar str context_name: Human readable name of the scope, used only in
        messages.
    :ivar bool verify: Whether to wait for the scale to converge.
    :ivar float verify_timeout: Seconds to wait for convergence.
    :ivar float verify_interval: Seconds between two convergence checks.
    :ivar float request_timeout: Seconds before a single HTTP request is
        abandoned.
    """
    api_url = attr.ib(default=DEFAULT_API_URL)
    token = attr.ib(default=None)
    team_id = attr.ib(default=None)
    context_name = attr.ib(default=None)
    verify = attr.ib(default=True)
    verify_timeout = attr.ib(default=DEFAULT_VERIFY_TIMEOUT)
    verify_interval = attr.ib(default=DEFAULT_VERIFY_INTERVAL)
    request_timeout = attr.ib(default=DEFAULT_REQUEST_TIMEOUT)

    def scope_name(self):
        """
        :return: the name of the account or team requests are made in.
        """
        return self.context_name or self.team_id or 'your account'


def read_config_file(path):
    """
    Read and validate a configuration file, written in YAML or JSON.

    :param str path: path of the file.
    :raise: :class:`yaml.YAMLError` if the file cannot be parsed,
        :class:`jsonschema.ValidationError` if the content does not
        conform to :data:`scaler.json_schema.config`.
    :return: `dict` of the configuration data.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    # an empty file holds no settings
    if data is None:
        data = {}
    validate(data, config_schema)
    return data


def load_config(path=None, **overrides):
    """
    Build a :class:`ScaleConfig` from defaults, an optional configuration
    file and explicit overrides, in increasing order of precedence.
    Overrides that are ``None`` are ignored.
    """
    data = read_config_file(path) if path is not None else {}
    return ScaleConfig(**merge(data, valfilter(lambda v: v is not None,
                                               overrides)))
