"""Client error types for Tonhub connector interactions."""

from __future__ import annotations


class TonhubClientError(Exception):
    """Base error for Tonhub connector failures."""


class TonhubTransportError(TonhubClientError):
    """Retryable failure while talking to the relay or provider."""


class TonhubTimeout(TonhubTransportError):
    """Timeout while communicating with the relay."""


class TonhubConnectionError(TonhubTransportError):
    """Network connection to the relay failed."""


class TonhubResponseError(TonhubTransportError):
    """HTTP or relay-level error response."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status


class TonhubProtocolError(TonhubClientError):
    """Relay or provider payload does not match the expected shape."""


class TonhubIntegrityError(TonhubClientError):
    """Signed data relayed to the client failed verification."""


class TonhubProviderError(TonhubClientError):
    """Injected in-app provider is missing, invalid or reported an error."""
