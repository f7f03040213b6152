"""Serial device access for moodlight.

Owns the single serial connection to the LED controller: command
codes go out, status lines come back.
"""

from moodlight.device.channel import (
    ChannelNotOpenError,
    SerialChannel,
    SerialChannelError,
    SerialWriteError,
)

__all__ = ["ChannelNotOpenError", "SerialChannel", "SerialChannelError", "SerialWriteError"]
