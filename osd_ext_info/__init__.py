"""
osd-ext-info

Periodic on-screen status messages (clock, new mail, weather) for mpv,
driven over mpv's JSON IPC socket.
"""

__version__ = "0.3.0"
