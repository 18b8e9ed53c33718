"""Normalized view of PostageApp API replies."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Union

from .errors import ProtocolError, TransportError

Status = Literal["ok", "fail", "error"]

UNPARSEABLE = "unparseable response"


@dataclass(frozen=True)
class Response:
    status: Status
    uid: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    http_status: Optional[int] = None
    transport_failure: bool = False
    exception: Optional[BaseException] = field(default=None, repr=False, compare=False)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def fail(self) -> bool:
        return self.status == "fail"

    @property
    def is_error(self) -> bool:
        return self.status == "error"

    @property
    def message(self) -> Optional[Dict[str, Any]]:
        if not self.data:
            return None
        return self.data.get("message")

    def raise_for_error(self) -> "Response":
        """Raise the matching exception for an ``error`` response, otherwise return self."""
        if not self.is_error:
            return self
        if self.transport_failure:
            raise TransportError(self.error or "transport failure", cause=self.exception) from self.exception
        raise ProtocolError(self.error or UNPARSEABLE) from self.exception


def classify(raw_body: Union[str, bytes, None], *, http_status: Optional[int] = None) -> Response:
    try:
        body = json.loads(raw_body) if raw_body else None
    except (TypeError, ValueError):
        body = None
    if not isinstance(body, dict):
        return Response(status="error", error=_describe(UNPARSEABLE, http_status), http_status=http_status)

    status = body.get("status")
    if status == "ok":
        data = {key: value for key, value in body.items() if key not in ("status", "uid")}
        uid = body.get("uid")
        return Response(
            status="ok",
            uid=str(uid) if uid is not None else None,
            data=data,
            http_status=http_status,
        )
    if status == "fail":
        return Response(status="fail", http_status=http_status)
    return Response(
        status="error",
        error=_describe(f"unexpected response status {status!r}", http_status),
        http_status=http_status,
    )


def transport_failure(exc: BaseException) -> Response:
    detail = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
    return Response(status="error", error=detail, transport_failure=True, exception=exc)


def protocol_failure(exc: BaseException, *, http_status: Optional[int] = None) -> Response:
    """An exchange that completed but whose body could not be decoded."""
    return Response(status="error", error=_describe(UNPARSEABLE, http_status), http_status=http_status, exception=exc)


def _describe(detail: str, http_status: Optional[int]) -> str:
    if http_status is None or 200 <= http_status < 300:
        return detail
    return f"{detail} (HTTP {http_status})"


__all__ = ["Response", "Status", "classify", "protocol_failure", "transport_failure"]
