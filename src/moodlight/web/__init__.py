"""Browser-facing side of moodlight.

Serves the control page and relays Socket.IO events from browser tabs
to the serial device.
"""
