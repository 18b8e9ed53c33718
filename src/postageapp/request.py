"""Construction of idempotent PostageApp API calls."""

from __future__ import annotations

import hashlib
import itertools
import os
import time
from typing import Any, Dict, Mapping, Optional

from .config import Configuration, get_configuration

API_VERSION = (1, 1)

_counter = itertools.count()


def generate_uid(method: str) -> str:
    """Return a 40 character lowercase hex token unique to this call."""
    seed = b"%s:%s:%d:%d" % (
        os.urandom(16).hex().encode(),
        method.encode("utf-8"),
        time.monotonic_ns(),
        next(_counter),
    )
    return hashlib.sha1(seed).hexdigest()


class Request:
    """One API call: a method name plus its arguments, signed and tagged with a UID.

    ``api_key`` and ``uid`` entries in ``arguments`` are promoted out of the
    argument mapping; everything else is sent verbatim under ``arguments``.
    """

    def __init__(
        self,
        method: str,
        arguments: Optional[Mapping[str, Any]] = None,
        *,
        config: Optional[Configuration] = None,
    ) -> None:
        self.method = str(method)
        self._config = config or get_configuration()
        remaining = dict(arguments or {})
        self.api_key: Optional[str] = remaining.pop("api_key", None) or self._config.api_key
        supplied_uid = remaining.pop("uid", None)
        self._uid = str(supplied_uid) if supplied_uid else generate_uid(self.method)
        self._arguments: Dict[str, Any] = remaining

    def __repr__(self) -> str:
        return f"Request(method={self.method!r}, uid={self.uid()!r})"

    @property
    def config(self) -> Configuration:
        return self._config

    @property
    def arguments(self) -> Dict[str, Any]:
        return self._arguments

    @arguments.setter
    def arguments(self, value: Optional[Mapping[str, Any]]) -> None:
        self._arguments = dict(value or {})

    def uid(self, regenerate: bool = False) -> str:
        if regenerate:
            self._uid = generate_uid(self.method)
        return self._uid

    def set_uid(self, value: str) -> None:
        self._uid = value

    def to_wire_arguments(self) -> Dict[str, Any]:
        arguments = dict(self._arguments)
        if self.method == "send_message" and self._config.recipient_override_enabled:
            arguments["recipient_override"] = self._config.recipient_override
        return {
            "api_key": self.api_key,
            "uid": self.uid(),
            "arguments": arguments,
        }

    def endpoint_path(self) -> str:
        major, minor = API_VERSION
        return f"/v.{major}.{minor}/{self.method}.json"

    def url(self) -> str:
        return self._config.url + self.endpoint_path()

    @property
    def retryable(self) -> bool:
        return self.method in (self._config.retry_methods or ())


__all__ = ["API_VERSION", "Request", "generate_uid"]
