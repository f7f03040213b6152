"""Shared test fixtures for the moodlight test suite.

Provides a scripted stand-in for the serial channel and a mocked
Socket.IO server so the relay can be exercised without hardware or a
running event transport.
"""

from __future__ import annotations

from typing import AsyncIterator
from unittest.mock import AsyncMock

import pytest
import socketio

from moodlight.device.channel import ChannelNotOpenError, SerialWriteError


class FakeChannel:
    """In-memory SerialChannel: records writes, replays scripted lines."""

    def __init__(
        self,
        port: str = "/dev/ttyFAKE0",
        lines: list[str] | None = None,
        open_error: Exception | None = None,
        write_error: Exception | None = None,
    ) -> None:
        self.port = port
        self.writes: list[str] = []
        self.open_calls = 0
        self.close_calls = 0
        self._lines = list(lines or [])
        self._open_error = open_error
        self._write_error = write_error
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> None:
        self.open_calls += 1
        if self._open_error is not None:
            raise self._open_error
        self._open = True

    async def close(self) -> None:
        self.close_calls += 1
        self._open = False

    async def write(self, code: str) -> None:
        if not self._open:
            raise ChannelNotOpenError(f"Serial port {self.port} not open")
        if self._write_error is not None:
            raise SerialWriteError(str(self._write_error))
        self.writes.append(code + "\n")

    async def lines(self) -> AsyncIterator[str]:
        if not self._open:
            raise ChannelNotOpenError(f"Serial port {self.port} not open")
        for line in self._lines:
            yield line


# ---------------------------------------------------------------------------
# Channel fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def open_channel() -> FakeChannel:
    """A channel that is already open and accepts writes."""
    channel = FakeChannel()
    channel._open = True
    return channel


@pytest.fixture
def closed_channel() -> FakeChannel:
    """A channel that never opened (device unplugged)."""
    return FakeChannel()


@pytest.fixture
def failing_channel() -> FakeChannel:
    """An open channel whose every write fails with an I/O error."""
    channel = FakeChannel(write_error=OSError("Input/output error"))
    channel._open = True
    return channel


# ---------------------------------------------------------------------------
# Socket.IO fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_sio() -> socketio.AsyncServer:
    """A Socket.IO server whose emit() is recorded instead of sent."""
    sio = socketio.AsyncServer(async_mode="asgi")
    sio.emit = AsyncMock()  # type: ignore[method-assign]
    return sio


@pytest.fixture
def index_html() -> bytes:
    return b"<!DOCTYPE html><html><body>mood light test page</body></html>"
