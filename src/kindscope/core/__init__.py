"""Core layer: exceptions, structured logging, and YAML loading.

Depends only on the standard library and PyYAML; used by
[kindscope.explorer][kindscope.explorer] and the CLI.

Attributes:
    Logger: Structured logger supporting key=value and JSON output modes.
        See [Logger][kindscope.core.logger.Logger].
    StructuredFormatter: Root-handler formatter unifying ``Logger`` and
        plain ``logging`` output.
    load_yaml: Safe YAML loading. See [load_yaml()][kindscope.core.yaml.load_yaml].
    KindscopeError: Root of the exception hierarchy in
        [kindscope.core.exceptions][kindscope.core.exceptions].
"""

from .exceptions import (
    ConfigurationError,
    ConnectivityError,
    InputError,
    InvalidKeyError,
    KindscopeError,
    LookupFailedError,
    RelayTimeoutError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .yaml import load_yaml


__all__ = [
    "ConfigurationError",
    "ConnectivityError",
    "InputError",
    "InvalidKeyError",
    "KindscopeError",
    "Logger",
    "LookupFailedError",
    "RelayTimeoutError",
    "StructuredFormatter",
    "format_kv_pairs",
    "load_yaml",
]
