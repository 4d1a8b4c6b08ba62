"""Transport layer for the Tonhub connector.

Components:
- base: transport contract and relay method names
- http: aiohttp client for the relay REST API
- embedded: transport backed by an injected in-app bridge
"""

from .base import Transport
from .embedded import EmbeddedBridge, TonhubEmbeddedTransport
from .http import TonhubHttpTransport

__all__ = [
    "EmbeddedBridge",
    "TonhubEmbeddedTransport",
    "TonhubHttpTransport",
    "Transport",
]
