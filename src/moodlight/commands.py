"""Browser event names and the command codes they map to.

The device firmware understands a single ASCII digit per command,
terminated by a newline:

    b"<code>\\n"

- "0" stops the current effect
- "1" pulses the LED and plays music
- "2".."7" select a mood preset
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Terminates every command written to the device
COMMAND_TERMINATOR: str = "\n"


class Command(BaseModel):
    """A browser event bound to the code sent for it."""

    model_config = ConfigDict(frozen=True)

    event: str = Field(description="Socket.IO event name sent by the browser")
    code: str = Field(min_length=1, max_length=1, description="Single-character device code")
    label: str = Field(description="Status text echoed to the browser on success")


# ---------------------------------------------------------------------------
# Event name -> command
# ---------------------------------------------------------------------------

COMMANDS: dict[str, Command] = {
    c.event: c
    for c in (
        Command(event="stopLED", code="0", label="Stopped"),
        Command(event="pulseLED", code="1", label="Pulsing LED + music…"),
        Command(event="Happy", code="2", label="Solid yellow (Happy)"),
        Command(event="Calm", code="3", label="Calm mode"),
        Command(event="Energetic", code="4", label="Energetic mode"),
        Command(event="Romantic", code="5", label="Romantic mode"),
        Command(event="Focus", code="6", label="Focus mode"),
        Command(event="Party", code="7", label="Party mode"),
    )
}

EVENT_NAMES: tuple[str, ...] = tuple(COMMANDS)


def command_for(event: str) -> Command:
    """Look up the command bound to a browser event.

    Raises:
        ValueError: If the event name is not recognized.
    """
    try:
        return COMMANDS[event]
    except KeyError:
        raise ValueError(f"Unknown event: {event!r}") from None


def encode(code: str) -> bytes:
    """Serial payload for a command code."""
    return (code + COMMAND_TERMINATOR).encode("ascii")


def not_open_label(command: Command) -> str:
    return f"Serial not open; couldn’t send {command.label}"


def write_error_label(command: Command) -> str:
    return f"Error sending {command.label}"
