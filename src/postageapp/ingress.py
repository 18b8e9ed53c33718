"""FastAPI endpoint receiving signed inbound emails from PostageApp."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import uvicorn
from fastapi import APIRouter, FastAPI, Request, Response
from prometheus_client import Counter
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import Configuration, get_configuration
from .webhook import SIGNATURE_HEADER, verify

logger = logging.getLogger("postageapp.ingress")

INBOUND_PATH = "/postageapp/inbound_emails"

WEBHOOK_OUTCOMES = Counter("postageapp_webhooks_total", "Inbound webhook requests by outcome", ["outcome"])

Ingest = Callable[[str], Union[Any, Awaitable[Any]]]


class InboundMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: str = Field(..., min_length=1)


class InboundEmail(BaseModel):
    model_config = ConfigDict(extra="allow")

    inbound_email: InboundMessage


def _log_ingest(message: str) -> None:
    logger.info("Inbound email received bytes=%s", len(message))


def create_router(config: Configuration, ingest: Ingest, *, path: str = INBOUND_PATH) -> APIRouter:
    """Build the inbound email route.

    Raises :class:`~postageapp.errors.ConfigurationError` when no postback
    secret is configured, so an unauthenticated endpoint is never mounted.
    """
    secret = config.require("postback_secret")
    router = APIRouter()

    @router.post(path)
    async def inbound_email(request: Request) -> Response:
        body = await request.body()
        if not verify(body, request.headers.get(SIGNATURE_HEADER), secret):
            WEBHOOK_OUTCOMES.labels(outcome="unauthorized").inc()
            logger.warning("Rejected inbound email with invalid signature client=%s", request.client)
            return Response(status_code=401)

        try:
            payload = InboundEmail.model_validate_json(body)
        except ValidationError as exc:
            WEBHOOK_OUTCOMES.labels(outcome="unprocessable").inc()
            logger.error("Inbound email payload rejected: %s", exc)
            return Response(status_code=422)

        result = ingest(payload.inbound_email.message)
        if inspect.isawaitable(result):
            await result
        WEBHOOK_OUTCOMES.labels(outcome="accepted").inc()
        return Response(status_code=200)

    return router


def create_app(config: Optional[Configuration] = None, ingest: Optional[Ingest] = None) -> FastAPI:
    config = config or get_configuration()
    app = FastAPI(title="PostageApp Inbound Email", version="1.0.0")
    app.include_router(create_router(config, ingest or _log_ingest))

    @app.get("/healthz")
    def health() -> Dict[str, str]:
        return {"status": "ok", "service": "postageapp-ingress"}

    return app


def serve(host: str = "0.0.0.0", port: int = 8000) -> None:  # pragma: no cover - process wiring
    uvicorn.run("postageapp.ingress:create_app", factory=True, host=host, port=port)


__all__ = ["INBOUND_PATH", "InboundEmail", "create_app", "create_router", "serve"]
