"""Public IP and network speed monitor."""

__version__ = "0.1.0"
