"""
Draft 3 JSON schemas (http://tools.ietf.org/html/draft-zyp-json-schema-03)
of data that is read by scaler.
"""
import functools

from jsonschema import Draft3Validator, FormatChecker, validate

g_format_checker = FormatChecker()

validate = functools.partial(validate, cls=Draft3Validator,
                             format_checker=g_format_checker)


_positive_number = {
    "type": "number",
    "minimum": 0,
    "exclusiveMinimum": True
}

config = {
    "type": "object",
    "description": "Schema of the configuration file read by scaler",
    "properties": {
        "api_url": {
            "type": "string",
            "format": "uri",
            "description": "Root URL of the control plane API"
        },
        "token": {"type": "string", "minLength": 1},
        "team_id": {"type": ["string", "null"]},
        "context_name": {"type": "string"},
        "verify": {"type": "boolean"},
        "verify_timeout": _positive_number,
        "verify_interval": _positive_number,
        "request_timeout": _positive_number
    },
    "additionalProperties": False
}
