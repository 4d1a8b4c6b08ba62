"""Tonhub wallet connector.

Lets an app authorize against a user's wallet through the Tonhub connect relay
(or the in-app provider) and request signed transactions and messages without
ever holding wallet keys.
"""

__version__ = "0.1.0"

from .config import ConfigurationError, ConnectorConfig, Network, load_config
from .connector import TonhubConnector
from .crypto import id_from_seed
from .errors import (
    TonhubClientError,
    TonhubConnectionError,
    TonhubIntegrityError,
    TonhubProtocolError,
    TonhubProviderError,
    TonhubResponseError,
    TonhubTimeout,
    TonhubTransportError,
)
from .local import TonhubLocalConnector
from .models import (
    CreatedSession,
    Expired,
    InvalidSession,
    LocalConfig,
    LocalSignRequest,
    LocalSignResponse,
    LocalTransactionRequest,
    LocalTransactionResponse,
    Rejected,
    SessionAwaited,
    SessionState,
    SessionStateExpired,
    SessionStateIniting,
    SessionStateReady,
    SessionStateRevoked,
    SignRequest,
    SignResponse,
    SignSuccess,
    TransactionRequest,
    TransactionResponse,
    TransactionSuccess,
    WalletConfig,
)
from .transport import TonhubEmbeddedTransport, TonhubHttpTransport, Transport
from .verify import verify_signature_response, verify_wallet_config
from .wallets import register_wallet_decoder

__all__ = [
    "ConfigurationError",
    "ConnectorConfig",
    "CreatedSession",
    "Expired",
    "InvalidSession",
    "LocalConfig",
    "LocalSignRequest",
    "LocalSignResponse",
    "LocalTransactionRequest",
    "LocalTransactionResponse",
    "Network",
    "Rejected",
    "SessionAwaited",
    "SessionState",
    "SessionStateExpired",
    "SessionStateIniting",
    "SessionStateReady",
    "SessionStateRevoked",
    "SignRequest",
    "SignResponse",
    "SignSuccess",
    "TonhubClientError",
    "TonhubConnectionError",
    "TonhubConnector",
    "TonhubEmbeddedTransport",
    "TonhubHttpTransport",
    "TonhubIntegrityError",
    "TonhubLocalConnector",
    "TonhubProtocolError",
    "TonhubProviderError",
    "TonhubResponseError",
    "TonhubTimeout",
    "TonhubTransportError",
    "TransactionRequest",
    "TransactionResponse",
    "TransactionSuccess",
    "Transport",
    "WalletConfig",
    "__version__",
    "id_from_seed",
    "load_config",
    "register_wallet_decoder",
    "verify_signature_response",
    "verify_wallet_config",
]
