"""Python client for the PostageApp API."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

import httpx
from prometheus_client import Counter

from .config import Configuration, get_configuration
from .request import Request
from .response import Response, classify, protocol_failure, transport_failure

logger = logging.getLogger("postageapp.client")

API_CALLS = Counter("postageapp_api_calls_total", "PostageApp API calls by outcome", ["method", "status"])
API_RETRIES = Counter("postageapp_api_retries_total", "PostageApp API calls re-sent after a transport failure", ["method"])


class PostageAppClient:
    def __init__(self, config: Optional[Configuration] = None, *, transport: Optional[httpx.BaseTransport] = None) -> None:
        self._config = config or get_configuration()
        self._log = self._config.logger or logger
        self._client = httpx.Client(
            timeout=httpx.Timeout(self._config.read_timeout, connect=self._config.open_timeout),
            verify=self._config.verify_tls,
            proxy=self._config.proxy_url,
            transport=transport,
        )

    def __enter__(self) -> "PostageAppClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def config(self) -> Configuration:
        return self._config

    def _headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self._config.user_agent,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def request(self, method: str, arguments: Optional[Mapping[str, Any]] = None) -> Request:
        return Request(method, arguments, config=self._config)

    def send(self, request: Request) -> Response:
        """Post ``request`` once, re-sending the identical body once more on a
        transport failure when the method is listed in ``retry_methods``."""
        if not request.api_key:
            request.config.require("api_key")
        url = request.url()
        body = json.dumps(request.to_wire_arguments(), separators=(",", ":"))
        headers = self._headers()
        attempts = 2 if request.retryable else 1

        response: Optional[Response] = None
        for attempt in range(1, attempts + 1):
            try:
                http_response = self._client.post(url, content=body, headers=headers)
            except httpx.TransportError as exc:
                self._log.warning(
                    "PostageApp transport failure method=%s uid=%s attempt=%s/%s error=%r",
                    request.method,
                    request.uid(),
                    attempt,
                    attempts,
                    exc,
                )
                if attempt < attempts:
                    API_RETRIES.labels(method=request.method).inc()
                    continue
                response = transport_failure(exc)
            except httpx.DecodingError as exc:
                response = protocol_failure(exc)
            else:
                response = classify(http_response.content, http_status=http_response.status_code)
            break

        assert response is not None
        if response.is_error:
            self._log.error("PostageApp call failed method=%s uid=%s error=%s", request.method, request.uid(), response.error)
        else:
            self._log.info("PostageApp call method=%s uid=%s status=%s", request.method, request.uid(), response.status)
        API_CALLS.labels(method=request.method, status=response.status).inc()
        return response

    def call(self, method: str, arguments: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Response:
        merged = dict(arguments or {})
        merged.update(kwargs)
        return self.send(self.request(method, merged))

    def send_message(self, arguments: Mapping[str, Any]) -> Response:
        return self.call("send_message", arguments)

    def get_method_list(self) -> Response:
        return self.call("get_method_list")

    def get_project_info(self) -> Response:
        return self.call("get_project_info")

    def get_account_info(self) -> Response:
        return self.call("get_account_info", api_key=self._config.require("account_api_key"))

    def get_message_receipt(self, uid: str) -> Response:
        return self.call("get_message_receipt", uid=uid)

    def close(self) -> None:
        self._client.close()


__all__ = ["PostageAppClient"]
