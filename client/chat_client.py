"""Terminal front-end for the chat WebSocket."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Any

import websockets

DEFAULT_URL = "ws://127.0.0.1:8000/ws"
PROMPT = "> "


async def _receive(websocket: Any, timeout: float | None) -> dict[str, Any]:
    raw = await asyncio.wait_for(websocket.recv(), timeout=timeout)
    return json.loads(raw)


async def _drain_until_status(websocket: Any, timeout: float | None) -> dict[str, Any]:
    """Print transcript frames until the session reports it is idle."""

    while True:
        frame = await _receive(websocket, timeout)
        kind = frame.get("type")
        if kind == "status":
            if frame.get("loading"):
                print("Processing your request...")
                continue
            return frame
        if kind == "message":
            if frame["role"] == "assistant":
                print(f"\n{frame['content']}\n")
        elif "error" in frame:
            print(f"[{frame['error']}] {frame.get('detail') or ''}")
            return frame


async def run_client(url: str, model: str | None, timeout: float | None) -> None:
    """Connect to the front-end socket and relay terminal input to it."""

    logger = logging.getLogger("chat_client")
    loop = asyncio.get_running_loop()

    async with websockets.connect(url, ping_interval=None) as websocket:
        status = await _receive(websocket, timeout)
        if model:
            await websocket.send(json.dumps({"type": "select_model", "model": model}))
            status = await _drain_until_status(websocket, timeout)
        current = status.get("model", model)
        logger.info("Connected to %s", url)
        print(f"Chat with {current}. '/model NAME' switches models, '/quit' exits.")

        while True:
            try:
                line = await loop.run_in_executor(None, input, PROMPT)
            except EOFError:
                print()
                break

            line = line.strip()
            if not line:
                continue
            if line in {"/quit", "/exit"}:
                break
            if line.startswith("/model"):
                name = line.partition(" ")[2].strip()
                await websocket.send(json.dumps({"type": "select_model", "model": name}))
                frame = await _drain_until_status(websocket, timeout)
                if frame.get("type") == "status":
                    print(f"Now chatting with {frame['model']}.")
                continue

            await websocket.send(json.dumps({"type": "submit", "text": line}))
            frame = await _drain_until_status(websocket, timeout)
            if frame.get("error") and frame.get("type") == "status":
                logger.warning("Last request failed: %s", frame["error"])


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Terminal chat front-end for a local model.")
    parser.add_argument("--url", default=DEFAULT_URL, help="WebSocket URL (default: %(default)s)")
    parser.add_argument("--model", help="Model to select after connecting.")
    parser.add_argument(
        "--timeout", type=float, default=None, help="Seconds to wait for a reply (default: forever)."
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))
    try:
        asyncio.run(run_client(args.url, args.model, args.timeout))
    except KeyboardInterrupt:  # pragma: no cover - manual usage only
        pass


if __name__ == "__main__":  # pragma: no cover
    main()
