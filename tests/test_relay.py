import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.dependencies import get_transport
from app.exceptions import NetworkError
from app.models import Err
from app.relay import relay_chat
from app.services.inference import OllamaTransport
from tests.conftest import StubTransport

HINT = "Make sure Ollama is running locally and the selected model is installed"


def get_test_client(app, transport) -> TestClient:
    app.dependency_overrides[get_transport] = lambda: transport
    return TestClient(app)


@pytest.fixture
def upstream():
    """Build transports backed by a mocked Ollama; clients close on teardown."""

    clients: list[httpx.AsyncClient] = []

    def build(handler) -> OllamaTransport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return OllamaTransport(client, Settings())

    yield build

    for client in clients:
        asyncio.run(client.aclose())


def test_relay_preflight(app) -> None:
    client = get_test_client(app, StubTransport("unused"))

    response = client.options("/chat")

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert (
        response.headers["access-control-allow-headers"]
        == "authorization, x-client-info, apikey, content-type"
    )
    assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
    assert response.content == b""


def test_relay_success(app, upstream) -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content.decode()))
        return httpx.Response(200, json={"message": {"content": "ok"}})

    client = get_test_client(app, upstream(handler))
    messages = [{"role": "user", "content": "hi"}]

    response = client.post("/chat", json={"model": "gemma3", "messages": messages})

    assert response.status_code == 200
    assert response.json() == {"response": "ok"}
    assert response.headers["access-control-allow-origin"] == "*"
    assert seen == [{"model": "gemma3", "messages": messages, "stream": False}]


def test_relay_forwards_history_unmodified(app) -> None:
    transport = StubTransport("ok")
    client = get_test_client(app, transport)
    messages = [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
        {"role": "user", "content": "again"},
    ]

    client.post("/chat", json={"model": "llama3", "messages": messages})

    assert transport.calls == [("llama3", messages)]


@pytest.mark.parametrize(
    ("body", "details"),
    [
        ({}, "Messages array is required"),
        ({"model": "gemma3", "messages": []}, "Messages array is required"),
        ({"messages": [{"role": "user", "content": "hi"}]}, "Model selection is required"),
    ],
)
def test_relay_validation(app, body: dict, details: str) -> None:
    transport = StubTransport("unused")
    client = get_test_client(app, transport)

    response = client.post("/chat", json=body)

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to process request",
        "details": details,
        "hint": HINT,
    }
    assert response.headers["access-control-allow-origin"] == "*"
    assert transport.calls == []


def test_relay_rejects_non_json_body(app) -> None:
    client = get_test_client(app, StubTransport("unused"))

    response = client.post("/chat", content=b"not-json")

    assert response.status_code == 500
    assert response.json()["details"] == "Request body must be a JSON object"


def test_relay_upstream_status_error(app, upstream) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "model 'gemma3' not found"})

    client = get_test_client(app, upstream(handler))

    response = client.post(
        "/chat", json={"model": "gemma3", "messages": [{"role": "user", "content": "hi"}]}
    )

    assert response.status_code == 500
    details = response.json()["details"]
    assert details.startswith("Ollama API error: ")
    assert "model 'gemma3' not found" in details


def test_relay_invalid_upstream_format(app, upstream) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"done": True})

    client = get_test_client(app, upstream(handler))

    response = client.post(
        "/chat", json={"model": "gemma3", "messages": [{"role": "user", "content": "hi"}]}
    )

    assert response.status_code == 500
    assert response.json()["details"] == "Invalid response format from Ollama"


def test_relay_network_error(app) -> None:
    client = get_test_client(app, StubTransport(NetworkError("Inference server timed out")))

    response = client.post(
        "/chat", json={"model": "gemma3", "messages": [{"role": "user", "content": "hi"}]}
    )

    assert response.status_code == 500
    assert response.json()["details"] == "Inference server timed out"
    assert response.json()["hint"] == HINT


def test_models_endpoint(app) -> None:
    client = TestClient(app)

    response = client.get("/models")

    assert response.json() == {"models": ["llama3.1", "gemma3", "llama3"], "default": "gemma3"}


def test_relay_ignores_error_field_without_content(app, upstream) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "boom", "details": "bad model"})

    client = get_test_client(app, upstream(handler))

    response = client.post(
        "/chat", json={"model": "gemma3", "messages": [{"role": "user", "content": "hi"}]}
    )

    assert response.status_code == 500
    assert response.json()["details"] == "Invalid response format from Ollama"


def test_relay_returns_content_despite_error_field(app, upstream) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "warning", "message": {"content": "ok"}})

    client = get_test_client(app, upstream(handler))

    response = client.post(
        "/chat", json={"model": "gemma3", "messages": [{"role": "user", "content": "hi"}]}
    )

    assert response.status_code == 200
    assert response.json() == {"response": "ok"}


@pytest.mark.asyncio
async def test_relay_chat_reports_upstream_error_kind() -> None:
    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "boom", "details": "bad model"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        result = await relay_chat(
            {"model": "gemma3", "messages": [{"role": "user", "content": "hi"}]},
            OllamaTransport(client, Settings()),
        )

    assert result == Err(kind="upstream_error", message="Invalid response format from Ollama")


def test_relay_disables_client_error_policy(app) -> None:
    transport = StubTransport("ok")
    client = get_test_client(app, transport)

    client.post("/chat", json={"model": "gemma3", "messages": [{"role": "user", "content": "hi"}]})

    assert transport.honor_error_field == [False]
