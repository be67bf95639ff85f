"""Gemini exchange REST client and ticker poller."""

__version__ = "0.1.0"
