"""Adapter for the Ollama chat endpoint."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from app.config import Settings
from app.exceptions import InferenceError, NetworkError, UpstreamError
from app.models import ChatRequest

logger = logging.getLogger(__name__)

INVALID_FORMAT = "Invalid response format from Ollama"


class InferenceTransport(Protocol):
    """Send one chat request and return the assistant content."""

    async def chat(
        self,
        model: str,
        messages: list[dict[str, Any]],
        *,
        honor_error_field: bool = True,
    ) -> str:
        ...


class OllamaTransport:
    """Wrapper around Ollama's non-streaming ``/api/chat`` endpoint."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    async def chat(
        self,
        model: str,
        messages: list[dict[str, Any]],
        *,
        honor_error_field: bool = True,
    ) -> str:
        """Forward ``messages`` to ``model`` and return the reply content.

        Raises ``NetworkError`` when the server cannot be reached and
        ``UpstreamError`` for non-2xx statuses or payloads without
        ``message.content``. With ``honor_error_field`` a 2xx reply carrying
        an ``error`` field raises ``InferenceError`` with its ``details`` or
        ``error`` text; without it the field is ignored and only the content
        decides the outcome.
        """

        payload = ChatRequest(model=model, messages=messages).model_dump()

        try:
            response = await self._client.post(
                self._settings.chat_endpoint,
                headers={"Content-Type": "application/json"},
                json=payload,
                timeout=self._settings.chat_timeout,
            )
        except httpx.TimeoutException as exc:
            logger.warning("Chat request timed out", exc_info=exc)
            raise NetworkError("Inference server timed out") from exc
        except httpx.HTTPError as exc:
            logger.error(
                "Inference server unreachable",
                extra={"endpoint": self._settings.chat_endpoint, "reason": str(exc)},
            )
            raise NetworkError(
                f"Could not reach the inference server at {self._settings.ollama_base_url}"
            ) from exc

        data = _decode(response)
        reported = isinstance(data, dict) and data.get("error")
        if reported and (honor_error_field or not response.is_success):
            reason = str(data.get("details") or data["error"])
            logger.error(
                "Inference server reported an error",
                extra={"status_code": response.status_code, "model": model, "reason": reason},
            )
            if response.is_success:
                raise InferenceError(reason, status_code=response.status_code)
            raise UpstreamError(reason, status_code=response.status_code, body=response.text)

        if not response.is_success:
            logger.error(
                "Chat request failed",
                extra={"status_code": response.status_code, "response_text": response.text},
            )
            raise UpstreamError(
                f"Ollama API error: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            content = data["message"]["content"]
        except (KeyError, TypeError) as exc:
            logger.error("Malformed chat response", extra={"raw_response": data})
            raise UpstreamError(INVALID_FORMAT, status_code=response.status_code) from exc

        if not isinstance(content, str) or not content:
            logger.error("Malformed chat response", extra={"raw_response": data})
            raise UpstreamError(INVALID_FORMAT, status_code=response.status_code)

        return content


def _decode(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        if response.is_success:
            logger.error("Chat response is not JSON", extra={"response_text": response.text})
            raise UpstreamError(INVALID_FORMAT, status_code=response.status_code)
        return None
