"""powerbot — remote power-button agent driven by a chat channel."""

__version__ = "1.0.0"
