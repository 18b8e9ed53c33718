"""PostageApp Python client."""

from .client import PostageAppClient
from .config import (
    VERSION as __version__,
    Configuration,
    JsonFileCredentials,
    MappingCredentials,
    configure,
    get_configuration,
    reset_configuration,
)
from .errors import ConfigurationError, PostageAppError, ProtocolError, TransportError
from .request import Request
from .response import Response, classify
from .webhook import sign, verify

__all__ = [
    "PostageAppClient",
    "Configuration",
    "ConfigurationError",
    "JsonFileCredentials",
    "MappingCredentials",
    "PostageAppError",
    "ProtocolError",
    "Request",
    "Response",
    "TransportError",
    "classify",
    "configure",
    "get_configuration",
    "reset_configuration",
    "sign",
    "verify",
]
