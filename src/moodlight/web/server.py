"""Web relay between browser tabs and the serial device.

Serves the control page over HTTP and accepts mood-selection events
over Socket.IO. Each event is translated into a one-digit command,
written to the serial channel, and acknowledged to the originating tab
with a single ``ledStatus`` event.

    GET  /  (any path)    -> control page (text/html)

Socket.IO events (client -> server, no payload):

    stopLED, pulseLED, Happy, Calm, Energetic, Romantic, Focus, Party

Socket.IO events (server -> client):

    ledStatus  <- "Calm mode" | "Serial not open; couldn’t send ..." | "Error sending ..."

Lines received from the device are logged only; they are never
forwarded to browsers.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import socketio
import uvicorn
from fastapi import FastAPI, Response

from moodlight.commands import (
    COMMANDS,
    command_for,
    not_open_label,
    write_error_label,
)
from moodlight.config.settings import SerialConfig, Settings
from moodlight.device.channel import (
    ChannelNotOpenError,
    SerialChannel,
    SerialChannelError,
    SerialWriteError,
)
from moodlight.utils.logging import setup_logging

logger = logging.getLogger(__name__)

STATUS_EVENT = "ledStatus"

DEFAULT_INDEX_PATH = Path(__file__).parent / "static" / "index.html"

HTTP_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


# ---------------------------------------------------------------------------
# Command relay
# ---------------------------------------------------------------------------

class CommandRelay:
    """Forwards browser events to the serial channel and acknowledges them.

    Holds no per-client state: the Socket.IO session id of the sender
    is only used to address the acknowledgement.
    """

    def __init__(self, sio: socketio.AsyncServer, channel: SerialChannel) -> None:
        self._sio = sio
        self._channel = channel

    async def dispatch(self, sid: str, event: str) -> str:
        """Send the command for ``event`` and ack the sender.

        Returns the status text emitted to the client. Serial errors are
        logged and reported to ``sid`` only; they never propagate.
        """
        command = command_for(event)
        logger.info("Browser requested: %s (sid=%s)", event, sid)
        try:
            await self._channel.write(command.code)
        except ChannelNotOpenError as e:
            logger.warning("Cannot send %r: %s", command.code, e)
            status = not_open_label(command)
        except SerialWriteError as e:
            logger.error("Write error: %s", e)
            status = write_error_label(command)
        else:
            logger.info("Sent to device: %r", command.code)
            status = command.label
        await self._sio.emit(STATUS_EVENT, status, to=sid)
        return status

    def handler_for(self, event: str):  # type: ignore[no-untyped-def]
        """Build the Socket.IO handler for one event name."""

        async def _handle(sid: str, *args: object) -> None:
            await self.dispatch(sid, event)

        _handle.__name__ = f"on_{event}"
        return _handle


async def log_device_lines(channel: SerialChannel) -> None:
    """Log every line the device sends until the stream ends."""
    try:
        async for line in channel.lines():
            logger.info("From device: %s", line)
    except SerialChannelError as e:
        logger.error("Serial error: %s", e)
    logger.info("Serial reader stopped")


def build_channel(config: SerialConfig) -> SerialChannel:
    """Create an unopened SerialChannel from the serial settings."""
    return SerialChannel(
        port=config.port,
        baudrate=config.baudrate,
        bytesize=config.bytesize,
        parity=config.parity,
        stopbits=config.stopbits,
        delimiter=config.delimiter.encode(config.encoding),
        encoding=config.encoding,
    )


def load_index(path: Path | str | None = None) -> bytes:
    """Read the control page served for every HTTP request."""
    return Path(path or DEFAULT_INDEX_PATH).read_bytes()


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app(
    settings: Settings | None = None,
    channel: SerialChannel | None = None,
    sio: socketio.AsyncServer | None = None,
    index_html: bytes | None = None,
) -> FastAPI:
    """Create the relay application.

    Args:
        settings: Relay configuration. Defaults to ``Settings()``.
        channel: Optional pre-configured SerialChannel (for testing).
        sio: Optional pre-configured Socket.IO server (for testing).
        index_html: Optional page bytes, instead of reading from disk.

    The returned FastAPI app carries ``state.channel``, ``state.sio`` and
    ``state.relay``. Wrap it with :func:`create_asgi_app` to serve
    Socket.IO alongside it.
    """
    if settings is None:
        settings = Settings()
    if channel is None:
        channel = build_channel(settings.serial)
    if sio is None:
        sio = socketio.AsyncServer(
            async_mode="asgi",
            cors_allowed_origins=settings.web.cors_allowed_origins,
            logger=logging.getLogger("socketio.server"),
            engineio_logger=logging.getLogger("engineio.server"),
        )
    if index_html is None:
        index_html = load_index(settings.web.index_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        ch: SerialChannel = app.state.channel
        try:
            await ch.open()
        except SerialChannelError as e:
            logger.error("Serial error: %s", e)
            logger.warning(
                "Serial port %s not available; every command will be reported "
                "as not sent. Plug in the device and restart.",
                ch.port,
            )

        app.state.reader_task = None
        if ch.is_open:
            app.state.reader_task = asyncio.create_task(log_device_lines(ch))
        logger.info("moodlight relay started")

        yield

        if app.state.reader_task is not None:
            app.state.reader_task.cancel()
            try:
                await app.state.reader_task
            except asyncio.CancelledError:
                pass
        await ch.close()
        logger.info("moodlight relay stopped")

    app = FastAPI(
        title="moodlight",
        description="Browser to serial relay for an LED mood lamp",
        version="0.1.0",
        lifespan=lifespan,
        # every path serves the control page
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.channel = channel
    app.state.sio = sio
    app.state.relay = relay = CommandRelay(sio, channel)

    # -------------------------------------------------------------------
    # Socket.IO events
    # -------------------------------------------------------------------

    async def on_connect(sid: str, environ: dict, auth: object = None) -> None:
        logger.info("Client connected (sid=%s)", sid)

    async def on_disconnect(sid: str, *args: object) -> None:
        logger.info("Client disconnected (sid=%s)", sid)

    sio.on("connect", handler=on_connect)
    sio.on("disconnect", handler=on_disconnect)
    for event in COMMANDS:
        sio.on(event, handler=relay.handler_for(event))

    # -------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------

    @app.api_route("/{path:path}", methods=HTTP_METHODS, include_in_schema=False)
    async def control_page(path: str) -> Response:
        return Response(content=index_html, media_type="text/html")

    return app


def create_asgi_app(
    settings: Settings | None = None,
    channel: SerialChannel | None = None,
    sio: socketio.AsyncServer | None = None,
    index_html: bytes | None = None,
) -> socketio.ASGIApp:
    """Create the relay wrapped with the Socket.IO endpoint (``/socket.io``)."""
    app = create_app(settings=settings, channel=channel, sio=sio, index_html=index_html)
    return socketio.ASGIApp(app.state.sio, other_asgi_app=app)


# ---------------------------------------------------------------------------
# Standalone entry point
# ---------------------------------------------------------------------------

def main(settings: Settings | None = None) -> None:
    """Run the relay server."""
    if settings is None:
        settings = Settings()
    setup_logging(settings.logging)
    asgi_app = create_asgi_app(settings=settings)
    logger.info("Server running at http://localhost:%d", settings.web.port)
    # log_config=None keeps uvicorn on the handlers installed above
    uvicorn.run(asgi_app, host=settings.web.host, port=settings.web.port, log_config=None)


if __name__ == "__main__":
    main()
