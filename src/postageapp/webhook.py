"""HMAC authentication of inbound PostageApp webhook payloads."""

from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Optional, Union

from .errors import ConfigurationError

SIGNATURE_HEADER = "X-PostageApp-Signature"

Body = Union[str, bytes]


def _as_bytes(value: Body) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def _require_secret(secret: Optional[Body]) -> bytes:
    if not secret or (isinstance(secret, str) and not secret.strip()):
        raise ConfigurationError(
            "Missing PostageApp postback secret; set postback_secret in the credential store, "
            "POSTAGEAPP_POSTBACK_SECRET in the environment, or via postageapp.configure()"
        )
    return _as_bytes(secret)


def sign(raw_body: Body, secret: Optional[Body]) -> str:
    """Base64 encoded HMAC-SHA1 of ``raw_body`` keyed by ``secret``."""
    digest = hmac.new(_require_secret(secret), _as_bytes(raw_body), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def verify(raw_body: Body, signature: Optional[str], secret: Optional[Body]) -> bool:
    """Check ``signature`` against the body in constant time.

    A missing secret raises :class:`ConfigurationError` rather than returning
    False, so a misconfigured receiver cannot be mistaken for a forged request.
    """
    expected = sign(raw_body, secret)
    if not signature:
        return False
    return hmac.compare_digest(expected.encode("ascii"), _as_bytes(signature))


__all__ = ["SIGNATURE_HEADER", "sign", "verify"]
