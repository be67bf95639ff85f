"""Exchange connectors (REST).

Re-exports core connector classes:

    from gembot.connectors import BaseConnector, GeminiConnector
    from gembot.connectors import HTTPTransport, Transport
"""

from gembot.connectors.base import BaseConnector
from gembot.connectors.gemini import GeminiConnector
from gembot.connectors.http import HTTPTransport, Transport

__all__ = [
    "BaseConnector",
    "GeminiConnector",
    "HTTPTransport",
    "Transport",
]
