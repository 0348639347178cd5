"""WebSocket handlers for the chat front-end."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Annotated

from fastapi import Depends, WebSocket, WebSocketDisconnect, status
from starlette.websockets import WebSocketState

from app.config import Settings, get_settings
from app.dependencies import get_transport
from app.exceptions import ValidationError
from app.models import ClientFrame, ErrorResponse, Message, MessageFrame, StatusFrame
from app.services.chat_session import ChatSession
from app.services.inference import InferenceTransport

logger = logging.getLogger(__name__)


async def websocket_endpoint(
    websocket: WebSocket,
    transport: Annotated[InferenceTransport, Depends(get_transport)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """One chat session per connection: frames in, transcript entries out."""

    await websocket.accept()

    async def publish(entry: Message) -> None:
        await websocket.send_text(
            MessageFrame(role=entry.role, content=entry.content).model_dump_json()
        )
        await _send_status(websocket, session)

    session = ChatSession(
        transport, settings.available_models, settings.default_model, on_append=publish
    )
    should_close = True
    logger.info(
        "WebSocket connection accepted",
        extra={"client": _client_repr(websocket)},
    )

    try:
        await _send_status(websocket, session)
        while True:
            try:
                message = await asyncio.wait_for(
                    websocket.receive_text(),
                    timeout=settings.ws_inactivity_timeout,
                )
            except asyncio.TimeoutError:
                logger.info(
                    "WebSocket inactive; closing",
                    extra={"client": _client_repr(websocket)},
                )
                await websocket.close(code=status.WS_1000_NORMAL_CLOSURE)
                should_close = False
                break
            except WebSocketDisconnect:
                logger.info(
                    "WebSocket client disconnected",
                    extra={"client": _client_repr(websocket)},
                )
                should_close = False
                break

            try:
                frame = ClientFrame.model_validate_json(message)
            except ValueError:
                await _send_error(
                    websocket,
                    ErrorResponse(error="invalid_payload", detail="Invalid JSON payload."),
                )
                continue

            if frame.type == "select_model":
                try:
                    session.select_model(frame.model or "")
                except ValidationError as exc:
                    await _send_error(
                        websocket, ErrorResponse(error=exc.code, detail=exc.message)
                    )
                    continue
                await _send_status(websocket, session)
                continue

            text = frame.text or ""
            if len(text.strip()) > settings.max_text_length:
                await _send_error(
                    websocket,
                    ErrorResponse(
                        error="validation_error",
                        detail=f"Text length exceeds limit of {settings.max_text_length} characters.",
                    ),
                )
                continue

            if await session.submit(text) is None:
                await _send_status(websocket, session)
    finally:
        if should_close and websocket.application_state == WebSocketState.CONNECTED:
            with suppress(RuntimeError, WebSocketDisconnect):
                await websocket.close()
        logger.info(
            "WebSocket connection closed",
            extra={"client": _client_repr(websocket)},
        )


async def _send_status(websocket: WebSocket, session: ChatSession) -> None:
    state = session.state
    frame = StatusFrame(
        loading=state.loading,
        error=state.error,
        model=state.selected_model,
        models=session.models,
    )
    await websocket.send_text(frame.model_dump_json())


async def _send_error(websocket: WebSocket, error: ErrorResponse) -> None:
    """Send a structured error frame."""

    await websocket.send_text(error.model_dump_json())


def _client_repr(websocket: WebSocket) -> str:
    """Render the remote client for logging purposes."""

    client = websocket.client
    if client is None:
        return "unknown"
    return f"{client.host}:{client.port}"
