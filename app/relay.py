"""Stateless relay: re-exposes the inference call behind a CORS-enabled endpoint."""

from __future__ import annotations

import json
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError

from app.dependencies import get_transport
from app.exceptions import ServiceError, UpstreamError, ValidationError
from app.models import ChatResult, Err, ErrorEnvelope, Ok, RelayRequest, RelayResponse
from app.services.inference import InferenceTransport

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

FAILURE = "Failed to process request"
HINT = "Make sure Ollama is running locally and the selected model is installed"


async def relay_chat(body: Any, transport: InferenceTransport) -> ChatResult:
    """Validate ``body`` and forward it upstream, folding failures into ``Err``."""

    try:
        request = _parse(body)
        content = await transport.chat(
            request.model, request.messages, honor_error_field=False
        )
    except UpstreamError as exc:
        details = f"Ollama API error: {exc.body}" if exc.body is not None else exc.message
        return Err(kind=exc.code, message=details)
    except ServiceError as exc:
        return Err(kind=exc.code, message=exc.message)
    return Ok(content=content)


def _parse(body: Any) -> RelayRequest:
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        request = RelayRequest.model_validate(body)
    except PydanticValidationError as exc:
        raise ValidationError(f"Malformed request body: {exc.errors()[0]['msg']}") from exc
    if not request.messages:
        raise ValidationError("Messages array is required")
    if not request.model:
        raise ValidationError("Model selection is required")
    return request


@router.options("/chat")
async def relay_preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/chat")
async def relay_endpoint(
    request: Request,
    transport: Annotated[InferenceTransport, Depends(get_transport)],
) -> JSONResponse:
    """Forward ``{model, messages}`` to the inference server as ``{response}``."""

    raw = await request.body()
    try:
        body = json.loads(raw) if raw else None
    except ValueError:
        body = None

    result = await relay_chat(body, transport)
    if isinstance(result, Ok):
        return JSONResponse(
            RelayResponse(response=result.content).model_dump(),
            headers=CORS_HEADERS,
        )

    logger.error("Error in relay chat", extra={"error_code": result.kind, "details": result.message})
    envelope = ErrorEnvelope(error=FAILURE, details=result.message, hint=HINT)
    return JSONResponse(envelope.model_dump(), status_code=500, headers=CORS_HEADERS)
