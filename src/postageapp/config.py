"""Configuration objects for the PostageApp Python client.

Settings are resolved once per process from three ordered sources:

1. an optional credential store (any object with ``lookup(key)``),
2. ``POSTAGEAPP_<NAME>`` environment variables, one per name and alias,
3. the static or computed defaults declared on :class:`Configuration`.

Each entry of :data:`PARAMS` describes how one setting is sourced: its
aliases, the parser applied to sourced values, whether the environment may
supply it, and the hook that keeps dependent settings consistent after an
explicit :meth:`Configuration.set`.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import re
import sys
from dataclasses import dataclass, field
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Mapping, MutableMapping, Optional, Protocol
from urllib.parse import quote

from .errors import ConfigurationError

VERSION = "1.0.0"

ENV_PREFIX = "POSTAGEAPP_"
CREDENTIALS_NAMESPACE = "postageapp"

DEFAULT_HOST = "api.postageapp.com"
SOCKS5_PORT_DEFAULT = 1080
HTTP_PORT_DEFAULT = 80
HTTPS_PORT_DEFAULT = 443

DEFAULT_PORTS = {"http": HTTP_PORT_DEFAULT, "https": HTTPS_PORT_DEFAULT}
SCHEME_FOR_SECURE = {True: "https", False: "http"}

_TRUTHY_WORDS = ("true", "yes", "on")
_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")
_LEADING_NUMBER_RE = re.compile(r"\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+))")
_METHOD_SPLIT_RE = re.compile(r"\s*(?:,|\s)\s*")
_NON_BLANK_RE = re.compile(r"\S+")

_FRAMEWORKS = (
    ("django", "Django"),
    ("flask", "Flask"),
    ("fastapi", "FastAPI"),
)


class CredentialStore(Protocol):
    def lookup(self, key: str) -> Optional[Any]:
        ...


class MappingCredentials:
    """Credential store over a nested mapping, e.g. ``{"postageapp": {"api_key": ...}}``."""

    def __init__(self, mapping: Mapping[str, Any], namespace: Optional[str] = CREDENTIALS_NAMESPACE) -> None:
        self._mapping = mapping
        self._namespace = namespace

    def lookup(self, key: str) -> Optional[Any]:
        scope = self._mapping.get(self._namespace) if self._namespace else self._mapping
        if not isinstance(scope, Mapping):
            return None
        return scope.get(key)


class JsonFileCredentials(MappingCredentials):
    """Reads credentials from a JSON document; a missing file provides nothing."""

    def __init__(self, path: str | os.PathLike[str], namespace: Optional[str] = CREDENTIALS_NAMESPACE) -> None:
        self.path = Path(path)
        data: Dict[str, Any] = {}
        if self.path.exists():
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                raise ConfigurationError(f"Credential file {self.path} is not valid JSON") from exc
            if not isinstance(data, dict):
                raise ConfigurationError(f"Credential file {self.path} must contain a JSON object")
        super().__init__(data, namespace)


def parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        if value.strip().lower() in _TRUTHY_WORDS:
            return True
        match = _LEADING_INT_RE.match(value)
        return bool(match and int(match.group(1)) != 0)
    return bool(value)


def parse_int(value: Any) -> int:
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        return int(match.group(1)) if match else 0
    return int(value)


def parse_seconds(value: Any) -> float:
    if isinstance(value, str):
        match = _LEADING_NUMBER_RE.match(value)
        return float(match.group(1)) if match else 0.0
    return float(value)


def parse_method_list(value: Any) -> tuple[str, ...]:
    """Coerce ``"send_message, get_method_list"`` or an iterable into an ordered set."""
    if value is None:
        return ()
    if isinstance(value, str):
        items: Iterable[str] = (part for part in _METHOD_SPLIT_RE.split(value) if part.strip())
    else:
        items = (str(part) for part in value)
    return tuple(dict.fromkeys(items))


def _detect_framework() -> str:
    label = f"Python {platform.python_version()}"
    for module_name, display in _FRAMEWORKS:
        if module_name not in sys.modules:
            continue
        try:
            return f"{label} / {display} {metadata.version(module_name)}"
        except metadata.PackageNotFoundError:
            return f"{label} / {display}"
    return label


def _sync_scheme_with_secure(config: "Configuration") -> None:
    if config.secure:
        config._assign("scheme", SCHEME_FOR_SECURE[True])
        if config.port == HTTP_PORT_DEFAULT:
            config._assign("port", HTTPS_PORT_DEFAULT)
    else:
        config._assign("scheme", SCHEME_FOR_SECURE[False])
        if config.port == HTTPS_PORT_DEFAULT:
            config._assign("port", HTTP_PORT_DEFAULT)


@dataclass(frozen=True)
class Param:
    name: str
    aliases: tuple[str, ...] = ()
    parse: Optional[Callable[[Any], Any]] = None
    env: bool = True
    after_set: Optional[Callable[["Configuration"], None]] = None
    description: str = ""

    @property
    def sources(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)

    @property
    def env_vars(self) -> tuple[str, ...]:
        if not self.env:
            return ()
        return tuple(ENV_PREFIX + source.upper() for source in self.sources)


PARAMS: tuple[Param, ...] = (
    Param("api_key", description="Project API key to use"),
    Param("account_api_key", description="Account API key to use"),
    Param("postback_secret", aliases=("webhook_secret",), description="Secret for validating inbound webhooks"),
    Param("project_root", description="Project root for logging purposes"),
    Param("recipient_override", description="Override recipients on send_message calls"),
    Param("logger", env=False, description="Logger instance to use"),
    Param(
        "secure",
        parse=parse_bool,
        env=False,
        after_set=_sync_scheme_with_secure,
        description="Use HTTPS when contacting the API",
    ),
    Param("verify_tls", aliases=("verify_certificate",), parse=parse_bool, description="Verify TLS certificates"),
    Param("host", description="API host to contact"),
    Param("port", parse=parse_int, description="API port to contact"),
    Param("scheme", aliases=("protocol",), description="HTTP scheme to use"),
    Param("proxy_username", aliases=("proxy_user",), description="SOCKS5 proxy username"),
    Param("proxy_password", aliases=("proxy_pass",), description="SOCKS5 proxy password"),
    Param("proxy_host", description="SOCKS5 proxy host"),
    Param("proxy_port", parse=parse_int, description="SOCKS5 proxy port"),
    Param("open_timeout", aliases=("http_open_timeout",), parse=parse_seconds, description="Connect timeout in seconds"),
    Param("read_timeout", aliases=("http_read_timeout",), parse=parse_seconds, description="Read timeout in seconds"),
    Param(
        "retry_methods",
        aliases=("requests_to_resend",),
        parse=parse_method_list,
        description="API calls retried once on transport failure, comma and/or space separated",
    ),
    Param("framework", description="Framework label reported in the User-Agent"),
    Param("environment", description="Operational mode, e.g. production or development"),
)

PARAMS_BY_NAME: Dict[str, Param] = {param.name: param for param in PARAMS}
ALIASES: Dict[str, str] = {source: param.name for param in PARAMS for source in param.sources}


def _present(value: Any) -> bool:
    return value is not None and value != ""


@dataclass(frozen=True)
class Configuration:
    api_key: Optional[str] = field(default=None, repr=False)
    account_api_key: Optional[str] = field(default=None, repr=False)
    postback_secret: Optional[str] = field(default=None, repr=False)
    project_root: str = field(default_factory=os.getcwd)
    recipient_override: Optional[str] = None
    logger: Optional[logging.Logger] = field(default=None, repr=False, compare=False)
    secure: bool = True
    verify_tls: bool = True
    host: str = DEFAULT_HOST
    port: int = HTTPS_PORT_DEFAULT
    scheme: str = "https"
    proxy_username: Optional[str] = None
    proxy_password: Optional[str] = field(default=None, repr=False)
    proxy_host: Optional[str] = None
    proxy_port: int = SOCKS5_PORT_DEFAULT
    open_timeout: float = 5.0
    read_timeout: float = 10.0
    retry_methods: tuple[str, ...] = ("send_message",)
    framework: str = field(default_factory=_detect_framework)
    environment: str = "production"

    @classmethod
    def resolve(
        cls,
        credentials: Optional[CredentialStore] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Configuration":
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for param in PARAMS:
            raw = _lookup_credentials(credentials, param)
            if raw is None:
                raw = _lookup_environ(env, param)
            if raw is None:
                continue
            values[param.name] = param.parse(raw) if param.parse else raw
        return cls(**values)

    def get(self, name: str) -> Any:
        return getattr(self, _canonical(name))

    def set(self, name: str, value: Any) -> "Configuration":
        param = PARAMS_BY_NAME[_canonical(name)]
        if param.parse and value is not None:
            value = param.parse(value)
        self._assign(param.name, value)
        if param.after_set:
            param.after_set(self)
        return self

    def update(self, **values: Any) -> "Configuration":
        for name, value in values.items():
            self.set(name, value)
        return self

    def _assign(self, name: str, value: Any) -> None:
        object.__setattr__(self, name, value)

    def require(self, name: str) -> Any:
        value = self.get(name)
        if not _present(value) or (isinstance(value, str) and not value.strip()):
            canonical = _canonical(name)
            raise ConfigurationError(
                f"Missing required PostageApp setting {canonical!r}; set it in the credential store, "
                f"as {ENV_PREFIX}{canonical.upper()} in the environment, or via postageapp.configure()"
            )
        return value

    # Aliases read the same underlying value as their parameter.

    @property
    def webhook_secret(self) -> Optional[str]:
        return self.postback_secret

    @property
    def verify_certificate(self) -> bool:
        return self.verify_tls

    @property
    def protocol(self) -> str:
        return self.scheme

    @property
    def proxy_user(self) -> Optional[str]:
        return self.proxy_username

    @property
    def proxy_pass(self) -> Optional[str]:
        return self.proxy_password

    @property
    def http_open_timeout(self) -> float:
        return self.open_timeout

    @property
    def http_read_timeout(self) -> float:
        return self.read_timeout

    @property
    def requests_to_resend(self) -> tuple[str, ...]:
        return self.retry_methods

    # Derived values.

    @property
    def recipient_override_enabled(self) -> bool:
        return bool(self.recipient_override)

    @property
    def port_default(self) -> bool:
        """True when the port is the canonical one for the scheme (80 for http, 443 for https)."""
        return self.port == DEFAULT_PORTS.get(self.scheme)

    @property
    def has_proxy(self) -> bool:
        return isinstance(self.proxy_host, str) and _NON_BLANK_RE.fullmatch(self.proxy_host) is not None

    @property
    def proxy_url(self) -> Optional[str]:
        if not self.has_proxy:
            return None
        auth = ""
        if self.proxy_username:
            auth = quote(self.proxy_username, safe="")
            if self.proxy_password:
                auth += ":" + quote(self.proxy_password, safe="")
            auth += "@"
        return f"socks5://{auth}{self.proxy_host}:{self.proxy_port}"

    @property
    def url(self) -> str:
        port = "" if self.port_default else f":{self.port}"
        return f"{self.scheme}://{self.host}{port}"

    @property
    def user_agent(self) -> str:
        return f"PostageApp Python {VERSION} ({self.framework}, {self.environment})"

    @property
    def log(self) -> logging.Logger:
        return self.logger or logging.getLogger("postageapp")


def _canonical(name: str) -> str:
    try:
        return ALIASES[name]
    except KeyError:
        raise ConfigurationError(f"Unknown PostageApp setting {name!r}") from None


def _lookup_credentials(credentials: Optional[CredentialStore], param: Param) -> Optional[Any]:
    if credentials is None:
        return None
    for source in param.sources:
        value = credentials.lookup(source)
        if _present(value):
            return value
    return None


def _lookup_environ(environ: Mapping[str, str], param: Param) -> Optional[str]:
    for var in param.env_vars:
        value = environ.get(var)
        if _present(value):
            return value
    return None


_configuration: Optional[Configuration] = None


def configure(
    *,
    credentials: Optional[CredentialStore] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> Configuration:
    """Resolve the process-wide configuration, apply explicit overrides and install it."""
    global _configuration
    config = Configuration.resolve(credentials=credentials, environ=environ)
    if overrides:
        config.update(**overrides)
    _configuration = config
    return config


def get_configuration() -> Configuration:
    if _configuration is None:
        return configure()
    return _configuration


def reset_configuration() -> None:
    global _configuration
    _configuration = None


def describe(config: Configuration, *, mask: bool = True) -> MutableMapping[str, Any]:
    """Settings as a plain mapping, with secrets masked unless ``mask`` is False."""
    secret = {"api_key", "account_api_key", "postback_secret", "proxy_password"}
    out: Dict[str, Any] = {}
    for param in PARAMS:
        if param.name == "logger":
            continue
        value = getattr(config, param.name)
        if mask and param.name in secret and _present(value):
            value = str(value)[:4] + "..." if len(str(value)) > 8 else "***"
        out[param.name] = value
    return out


__all__ = [
    "ALIASES",
    "PARAMS",
    "Configuration",
    "CredentialStore",
    "JsonFileCredentials",
    "MappingCredentials",
    "Param",
    "configure",
    "describe",
    "get_configuration",
    "parse_bool",
    "parse_method_list",
    "reset_configuration",
]
