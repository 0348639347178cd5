"""Pydantic models shared across application layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """A single transcript entry."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Body sent to the inference server's chat endpoint."""

    model: str
    messages: list[dict[str, Any]] = Field(min_length=1)
    stream: Literal[False] = False


class RelayRequest(BaseModel):
    """Body accepted by the relay; both fields are checked by hand."""

    model: str | None = None
    messages: list[dict[str, Any]] | None = None


class RelayResponse(BaseModel):
    response: str


class ErrorEnvelope(BaseModel):
    """Error body returned by the relay."""

    error: str
    details: str
    hint: str | None = None


class ClientFrame(BaseModel):
    """Incoming WebSocket payload from the front-end."""

    type: Literal["submit", "select_model"]
    text: str | None = None
    model: str | None = None


class MessageFrame(BaseModel):
    type: Literal["message"] = "message"
    role: Literal["user", "assistant"]
    content: str


class StatusFrame(BaseModel):
    """Session status sent after every front-end operation."""

    type: Literal["status"] = "status"
    loading: bool
    error: str | None = None
    model: str
    models: list[str]


class ErrorResponse(BaseModel):
    """Error frame returned to WebSocket clients."""

    error: str
    detail: str | None = None


@dataclass(frozen=True)
class Ok:
    content: str


@dataclass(frozen=True)
class Err:
    kind: str
    message: str


ChatResult = Union[Ok, Err]
