"""Serial link to the LED controller.

Opens one pyserial-asyncio connection (8N1 at 9600 baud by default)
and exposes it as:

- ``write(code)``: send a single-character command followed by ``\\n``
- ``lines()``: iterate over ``\\r\\n`` terminated text lines from the device

Writes are fire-and-forget: nothing correlates a write with any line
read back, and nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

import serial
import serial_asyncio

from moodlight.commands import encode

logger = logging.getLogger(__name__)

DEFAULT_BAUDRATE = 9600
DEFAULT_DELIMITER = b"\r\n"


class SerialChannelError(Exception):
    """Raised when the serial channel cannot be opened or used."""


class ChannelNotOpenError(SerialChannelError):
    """Raised when writing to or reading from a channel that is not open."""


class SerialWriteError(SerialChannelError):
    """Raised when an I/O error occurs while writing a command."""


class SerialChannel:
    """A single open serial connection to the device.

    Usage::

        channel = SerialChannel("/dev/ttyUSB0")
        await channel.open()
        await channel.write("2")
        async for line in channel.lines():
            print(line)
        await channel.close()
    """

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        bytesize: int = serial.EIGHTBITS,
        parity: str = serial.PARITY_NONE,
        stopbits: float = serial.STOPBITS_ONE,
        delimiter: bytes = DEFAULT_DELIMITER,
        encoding: str = "utf-8",
    ) -> None:
        self._port = port
        self._baudrate = baudrate
        self._bytesize = bytesize
        self._parity = parity
        self._stopbits = stopbits
        self._delimiter = delimiter
        self._encoding = encoding
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    @property
    def port(self) -> str:
        return self._port

    @property
    def is_open(self) -> bool:
        return self._writer is not None and not self._writer.is_closing()

    async def open(self) -> None:
        """Open the serial port with the configured framing."""
        try:
            self._reader, self._writer = await serial_asyncio.open_serial_connection(
                url=self._port,
                baudrate=self._baudrate,
                bytesize=self._bytesize,
                parity=self._parity,
                stopbits=self._stopbits,
            )
        except (OSError, serial.SerialException, ValueError) as e:
            self._reader = self._writer = None
            raise SerialChannelError(f"Cannot open serial port {self._port}: {e}") from e
        logger.info("Serial port OPEN: %s (%d baud)", self._port, self._baudrate)

    async def close(self) -> None:
        """Close the port. Safe to call more than once."""
        if self._writer is None:
            return
        writer = self._writer
        self._reader = self._writer = None
        writer.close()
        try:
            await writer.wait_closed()
        except (OSError, serial.SerialException) as e:
            logger.debug("Error while closing serial port %s: %s", self._port, e)
        logger.info("Closed serial port %s", self._port)

    async def write(self, code: str) -> None:
        """Send one command code followed by a newline.

        Raises:
            ChannelNotOpenError: If the port is not open. Nothing is written.
            SerialWriteError: If the underlying write fails.
        """
        writer = self._writer
        if writer is None or writer.is_closing():
            raise ChannelNotOpenError(f"Serial port {self._port} not open")
        payload = encode(code)
        try:
            writer.write(payload)
            await writer.drain()
        except (OSError, serial.SerialException) as e:
            raise SerialWriteError(f"Failed to write {code!r} to {self._port}: {e}") from e
        logger.debug("Wrote %r to %s", payload, self._port)

    async def lines(self) -> AsyncIterator[str]:
        """Yield each delimited line received from the device, as text.

        Every call starts a new iteration over the same stream. At EOF a
        trailing unterminated line is yielded once before stopping. A line
        longer than the reader's buffer limit is dropped whole and reading
        carries on with the next one.

        Raises:
            ChannelNotOpenError: If the port is not open.
            SerialChannelError: If reading from the port fails.
        """
        if self._reader is None:
            raise ChannelNotOpenError(f"Serial port {self._port} not open")
        reader = self._reader
        # Set while the rest of an oversized line is still arriving
        discarding = False
        while True:
            try:
                raw = await reader.readuntil(self._delimiter)
            except asyncio.IncompleteReadError as e:
                if e.partial and not discarding:
                    yield self._decode(e.partial)
                return
            except asyncio.LimitOverrunError as e:
                if not discarding:
                    logger.warning("Dropping oversized line from %s", self._port)
                    discarding = True
                try:
                    await reader.readexactly(e.consumed)
                except asyncio.IncompleteReadError:
                    return
                except (OSError, serial.SerialException) as exc:
                    raise SerialChannelError(f"Failed to read from {self._port}: {exc}") from exc
                continue
            except (OSError, serial.SerialException) as e:
                raise SerialChannelError(f"Failed to read from {self._port}: {e}") from e
            if discarding:
                discarding = False
                continue
            yield self._decode(raw[: -len(self._delimiter)])

    def _decode(self, data: bytes) -> str:
        return data.decode(self._encoding, errors="replace")

    async def __aenter__(self) -> SerialChannel:
        await self.open()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()
