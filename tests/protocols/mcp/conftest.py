"""Fixtures for MCP client tests: a scripted stand-in for WebSocket servers."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from stamina.instrumentation import set_on_retry_hooks

INIT_REPLY = {
    "jsonrpc": "2.0",
    "id": 1,
    "result": {
        "protocolVersion": "2024-11-05",
        "capabilities": {"tools": {}},
        "serverInfo": {"name": "fake-mcp", "version": "1.0"},
    },
}


class FakeWebSocket:
    """Replays scripted inbound frames and records outbound ones.

    Once the script is exhausted ``recv`` blocks, like a silent server.
    """

    def __init__(self, frames: list[Any]) -> None:
        self._frames = list(frames)
        self.sent: list[dict[str, Any]] = []
        self.close = AsyncMock()

    async def send(self, payload: str) -> None:
        self.sent.append(json.loads(payload))

    async def recv(self) -> str:
        if not self._frames:
            await asyncio.sleep(3600)
        frame = self._frames.pop(0)
        if isinstance(frame, BaseException):
            raise frame
        return frame if isinstance(frame, str) else json.dumps(frame)


class WebSocketHarness:
    """Queue of fake sockets handed out by the patched ``websockets.connect``."""

    def __init__(self, connect: AsyncMock) -> None:
        self.connect = connect
        self.sockets: list[FakeWebSocket] = []
        self._queue: list[FakeWebSocket] = []
        connect.side_effect = self._next

    def add(self, *frames: Any, handshake: bool = True) -> FakeWebSocket:
        ws = FakeWebSocket([INIT_REPLY, *frames] if handshake else list(frames))
        self._queue.append(ws)
        return ws

    def fail(self, exc: BaseException) -> None:
        self.connect.side_effect = exc

    async def _next(self, *_: Any, **__: Any) -> FakeWebSocket:
        if not self._queue:
            raise OSError("connection refused")
        ws = self._queue.pop(0)
        self.sockets.append(ws)
        return ws


@pytest.fixture
def retry_waits() -> Any:
    """Backoff delays stamina schedules, in order."""
    waits: list[float] = []
    set_on_retry_hooks([lambda details: waits.append(details.wait_for)])
    yield waits
    set_on_retry_hooks(None)


@pytest.fixture
def ws_server() -> Any:
    with patch("toolbridge.protocols.mcp.session.websockets.connect", new_callable=AsyncMock) as connect:
        yield WebSocketHarness(connect)
