"""Chat front-end controller: transcript state and single-message submission."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from app.exceptions import ServiceError, ValidationError
from app.models import ChatResult, Err, Message, Ok
from app.services.inference import InferenceTransport

logger = logging.getLogger(__name__)

AppendListener = Callable[[Message], Awaitable[None]]

ERROR_TEMPLATE = (
    "Error: {message}. Please make sure the inference server is running locally "
    "and the selected model is installed."
)


@dataclass
class SessionState:
    """Everything the front-end renders for one session."""

    selected_model: str
    messages: list[Message] = field(default_factory=list)
    draft: str = ""
    loading: bool = False
    error: str | None = None


class ChatSession:
    """Owns one transcript and performs one request per submission.

    History is never sent upstream: every request carries only the message
    that was just submitted.
    """

    def __init__(
        self,
        transport: InferenceTransport,
        models: list[str],
        default_model: str,
        on_append: AppendListener | None = None,
    ) -> None:
        if default_model not in models:
            raise ValidationError(f"Unknown default model: {default_model}")
        self._transport = transport
        self._models = list(models)
        self._on_append = on_append
        self.state = SessionState(selected_model=default_model)

    @property
    def models(self) -> list[str]:
        return list(self._models)

    @property
    def transcript(self) -> tuple[Message, ...]:
        return tuple(self.state.messages)

    def select_model(self, model: str) -> None:
        if model not in self._models:
            raise ValidationError(f"Unknown model: {model}")
        self.state.selected_model = model

    async def submit(self, text: str | None = None) -> ChatResult | None:
        """Send ``text`` (or the current draft) to the selected model.

        Returns ``None`` without touching the transcript when the input is
        blank or a request is already in flight. ``on_append`` sees the user
        entry while the request is still loading, then the reply once it
        has finished.
        """

        if text is None:
            text = self.state.draft
        if not text.strip() or self.state.loading:
            return None

        state = self.state
        entry = Message(role="user", content=text)
        state.messages.append(entry)
        state.draft = ""
        state.loading = True
        state.error = None
        model = state.selected_model

        try:
            await self._notify(entry)
            content = await self._transport.chat(model, [{"role": "user", "content": text}])
        except ServiceError as exc:
            logger.info(
                "Chat submission failed",
                extra={"model": model, "error_code": exc.code, "reason": exc.message},
            )
            state.error = exc.message
            reply = Message(role="assistant", content=ERROR_TEMPLATE.format(message=exc.message))
            result: ChatResult = Err(kind=exc.code, message=exc.message)
        else:
            reply = Message(role="assistant", content=content)
            result = Ok(content=content)
        finally:
            state.loading = False

        state.messages.append(reply)
        await self._notify(reply)
        return result

    async def _notify(self, entry: Message) -> None:
        if self._on_append is not None:
            await self._on_append(entry)
