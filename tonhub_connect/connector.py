"""Relay-backed connector between an app and a Tonhub wallet.

The connector owns no long-lived state besides its configuration: every public
operation runs its own polling loop, and the only secret, the session seed, is
held by the caller.

Usage:
    connector = TonhubConnector(network="testnet")
    created = await connector.create_new_session("My App", "https://app.example")
    # show created.link to the user, persist created.seed
    session = await connector.await_session_ready(created.id, timeout=300)
    if session.state == "ready":
        result = await connector.request_transaction(
            TransactionRequest(
                seed=created.seed,
                app_public_key=session.wallet.app_public_key,
                to="EQ...",
                value="10000000",
                timeout=300,
            )
        )
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pytoniq_core import Address, Cell

from .backoff import backoff
from .cells import (
    build_job_envelope,
    build_sign_job,
    build_transaction_job,
    parse_optional_boc,
    parse_sign_result,
)
from .config import ConnectorConfig, Network
from .crypto import (
    decode_base64,
    encode_base64,
    id_from_seed,
    keypair_from_seed,
    new_seed,
    safe_sign,
    to_url_safe,
)
from .errors import TonhubResponseError
from .jobs import normalize_job_state
from .models import (
    CreatedSession,
    Expired,
    InvalidSession,
    JobCompleted,
    JobOutcome,
    JobRejected,
    JobState,
    JobSubmitted,
    Rejected,
    SessionAwaited,
    SessionState,
    SessionStateExpired,
    SessionStateIniting,
    SessionStateReady,
    SignRequest,
    SignResponse,
    SignSuccess,
    TransactionRequest,
    TransactionResponse,
    TransactionSuccess,
    WalletConfig,
)
from .protocol import build_connect_link
from .session import normalize_session_state
from .transport import TonhubHttpTransport, Transport
from .transport.base import (
    METHOD_COMMAND_GET,
    METHOD_COMMAND_NEW,
    METHOD_SESSION_GET,
    METHOD_SESSION_NEW,
    METHOD_SESSION_WAIT,
)
from .verify import verify_signature_response, verify_wallet_config

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class TonhubConnector:
    """Create wallet sessions and submit signing jobs through the relay."""

    @staticmethod
    def verify_wallet_config(session_id: str, config: WalletConfig) -> bool:
        """Check that ``config`` was signed by its wallet for ``session_id``."""
        return verify_wallet_config(session_id, config)

    def __init__(
        self,
        network: Network | str | None = None,
        transport: Transport | None = None,
        *,
        config: ConnectorConfig | None = None,
    ) -> None:
        """Initialize connector.

        Args:
            network: Network to accept sessions for; overrides ``config``.
            transport: Relay transport. Defaults to an HTTP transport built
                from ``config``.
            config: Connector settings.
        """
        config = config or ConnectorConfig()
        if network is not None:
            config = dataclasses.replace(config, network=Network.parse(network))
        self.config = config
        self.network = config.network

        self._owns_transport = transport is None
        self.transport: Transport = transport or TonhubHttpTransport(
            endpoint=config.endpoint,
            timeout=config.request_timeout,
            long_poll_timeout=config.long_poll_timeout,
        )

    async def __aenter__(self) -> TonhubConnector:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the default HTTP transport."""
        if self._owns_transport and isinstance(self.transport, TonhubHttpTransport):
            await self.transport.close()

    async def _retry(self, operation: Callable[[], Awaitable[T]]) -> T:
        return await backoff(
            operation,
            max_failures=self.config.max_failures,
            min_delay=self.config.min_backoff,
            max_delay=self.config.max_backoff,
        )

    # -------------------------------------------------------------------------
    # Public API: Sessions
    # -------------------------------------------------------------------------

    async def create_new_session(self, name: str, url: str) -> CreatedSession:
        """Register a new session with the relay.

        Returns:
            The session id, the secret seed the caller must persist, and the
            deep link the wallet opens to join.
        """
        seed = new_seed()
        session_id = id_from_seed(seed)

        async def _create() -> None:
            res = await self.transport.call(
                METHOD_SESSION_NEW,
                {
                    "key": session_id,
                    "testnet": self.network.is_testnet,
                    "name": name,
                    "url": url,
                },
            )
            if not isinstance(res, dict) or not res.get("ok"):
                raise TonhubResponseError(200, "Unable to create state")

        await self._retry(_create)
        _LOGGER.info("[%s] Session created for %s", session_id, url)

        return CreatedSession(
            id=session_id,
            seed=seed,
            link=build_connect_link(
                session_id, self.network, self.config.link_endpoint
            ),
        )

    async def get_session_state(self, session_id: str) -> SessionState:
        """Fetch and verify the current session state.

        Raises:
            TonhubIntegrityError: If a ready session fails verification.
            TonhubProtocolError: If the relay returns a malformed record.
        """

        async def _fetch() -> SessionState:
            raw = await self.transport.call(METHOD_SESSION_GET, {"id": session_id})
            return normalize_session_state(session_id, raw, self.network)

        return await self._retry(_fetch)

    async def wait_for_session_state(
        self, session_id: str, last_updated: int | None = None
    ) -> SessionState:
        """Long-poll until the session changes after ``last_updated``."""

        async def _wait() -> SessionState:
            raw = await self.transport.call(
                METHOD_SESSION_WAIT, {"id": session_id, "lastUpdated": last_updated}
            )
            return normalize_session_state(session_id, raw, self.network)

        return await self._retry(_wait)

    async def await_session_ready(
        self, session_id: str, timeout: float, last_updated: int | None = None
    ) -> SessionAwaited:
        """Poll until the session is ready or revoked.

        Args:
            session_id: Session to watch.
            timeout: Wall-clock budget in seconds.
            last_updated: Relay timestamp of the last observed change.

        Returns:
            The ready or revoked state, or an expired state once ``timeout``
            elapses.
        """
        loop = asyncio.get_running_loop()
        expires = loop.time() + timeout
        while loop.time() < expires:
            existing = await self.wait_for_session_state(session_id, last_updated)
            if not isinstance(existing, SessionStateIniting):
                _LOGGER.debug("[%s] Session is %s", session_id, existing.state)
                return existing
            last_updated = existing.updated
            remaining = expires - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(self.config.poll_interval, remaining))

        _LOGGER.debug("[%s] Session await expired", session_id)
        return SessionStateExpired()

    # -------------------------------------------------------------------------
    # Public API: Jobs
    # -------------------------------------------------------------------------

    async def request_transaction(
        self, request: TransactionRequest
    ) -> TransactionResponse:
        """Ask the wallet to send a transfer.

        Raises:
            ValueError: If the request holds an invalid address, amount or BOC.
        """
        session_id = id_from_seed(request.seed)
        session = await self._ready_session(session_id, request.app_public_key)
        if session is None:
            return InvalidSession()

        try:
            to = Address(request.to)
        except Exception as err:  # noqa: BLE001 - address parser raises several types
            raise ValueError(f"Invalid destination address: {request.to!r}") from err
        value = int(request.value, 10)
        payload = parse_optional_boc(request.payload, "payload")
        state_init = parse_optional_boc(request.state_init, "state_init")

        job = build_transaction_job(
            app_public_key=decode_base64(session.wallet.app_public_key),
            expires=_expires_at(request.timeout),
            to=to,
            value=value,
            text=request.text or "",
            payload=payload,
            state_init=state_init,
        )
        boc = self._sign_job(request.seed, job)
        await self._submit_job(session_id, boc)

        result = await self._await_job_state(request.app_public_key, boc)
        if isinstance(result, JobCompleted):
            return TransactionSuccess(response=result.result)
        if isinstance(result, JobRejected):
            return Rejected()
        return Expired()

    async def request_sign(self, request: SignRequest) -> SignResponse:
        """Ask the wallet to sign a comment and optional payload cell.

        A completed job is only reported as success when the returned
        signature verifies against the requested message.
        """
        session_id = id_from_seed(request.seed)
        session = await self._ready_session(session_id, request.app_public_key)
        if session is None:
            return InvalidSession()

        job = build_sign_job(
            app_public_key=decode_base64(session.wallet.app_public_key),
            expires=_expires_at(request.timeout),
            text=request.text or "",
            payload=parse_optional_boc(request.payload, "payload"),
        )
        boc = self._sign_job(request.seed, job)
        await self._submit_job(session_id, boc)

        result = await self._await_job_state(request.app_public_key, boc)
        if isinstance(result, JobCompleted):
            try:
                signature = encode_base64(parse_sign_result(result.result))
            except Exception as err:  # noqa: BLE001 - BOC parser raises several types
                _LOGGER.warning("[%s] Unreadable sign result: %s", session_id, err)
                return Rejected()
            if verify_signature_response(
                signature,
                session.wallet,
                text=request.text,
                payload=request.payload,
            ):
                return SignSuccess(signature=signature)
            _LOGGER.warning("[%s] Sign result failed verification", session_id)
            return Rejected()
        if isinstance(result, JobRejected):
            return Rejected()
        return Expired()

    # -------------------------------------------------------------------------
    # Internal: Jobs
    # -------------------------------------------------------------------------

    async def _ready_session(
        self, session_id: str, app_public_key: str
    ) -> SessionStateReady | None:
        session = await self.get_session_state(session_id)
        if not isinstance(session, SessionStateReady):
            _LOGGER.info("[%s] Session is %s, not ready", session_id, session.state)
            return None
        if session.wallet.app_public_key != app_public_key:
            _LOGGER.info("[%s] App public key mismatch", session_id)
            return None
        return session

    @staticmethod
    def _sign_job(seed: str, job: Cell) -> str:
        keypair = keypair_from_seed(seed)
        signature = safe_sign(job, keypair.secret_key)
        return build_job_envelope(signature, keypair.public_key, job)

    async def _submit_job(self, session_id: str, boc: str) -> None:
        await self._retry(lambda: self.transport.call(METHOD_COMMAND_NEW, {"job": boc}))
        _LOGGER.info("[%s] Job submitted", session_id)

    async def _await_job_state(self, app_public_key: str, boc: str) -> JobOutcome:
        """Poll the relay until the submitted job reaches a terminal state."""
        while True:
            state = await self._retry(lambda: self._get_job_state(app_public_key, boc))
            if not isinstance(state, JobSubmitted):
                return state
            await asyncio.sleep(self.config.poll_interval)

    async def _get_job_state(self, app_public_key: str, boc: str) -> JobState:
        raw: Any = await self.transport.call(
            METHOD_COMMAND_GET, {"appk": to_url_safe(app_public_key)}
        )
        return normalize_job_state(raw, boc)


def _expires_at(timeout: float) -> int:
    """Unix time (seconds) a job stays valid until."""
    return int(time.time() + timeout)
