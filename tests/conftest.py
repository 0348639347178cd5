"""Shared pytest fixtures."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENVIRONMENT", "test")

from app.exceptions import ServiceError  # noqa: E402
from app.main import create_app  # noqa: E402


class StubTransport:
    """In-memory transport that records calls and replays canned outcomes."""

    def __init__(self, *outcomes: str | ServiceError) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[tuple[str, list[dict[str, Any]]]] = []
        self.honor_error_field: list[bool] = []

    async def chat(
        self,
        model: str,
        messages: list[dict[str, Any]],
        *,
        honor_error_field: bool = True,
    ) -> str:
        self.calls.append((model, messages))
        self.honor_error_field.append(honor_error_field)
        outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if isinstance(outcome, ServiceError):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def configure_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests independent of a developer's local environment."""

    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.delenv("OLLAMA_BASE_URL", raising=False)
    monkeypatch.delenv("AVAILABLE_MODELS", raising=False)
    monkeypatch.delenv("DEFAULT_MODEL", raising=False)


@pytest.fixture
def app():
    return create_app()
