"""moodlight -- browser-to-serial relay for an LED mood lamp.

A small ASGI service: browser tabs send mood-selection events over
Socket.IO, the relay writes the matching one-digit command to the
lamp's microcontroller over a serial link and acknowledges each
command back to the tab that sent it.
"""

__version__ = "0.1.0"
