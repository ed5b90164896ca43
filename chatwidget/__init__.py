"""Conversation state and request lifecycle core for a chat assistant widget."""

__version__ = "0.1.0"
