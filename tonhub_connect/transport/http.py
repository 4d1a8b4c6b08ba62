"""HTTP transport for the Tonhub connect relay."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import aiohttp

from ..config import DEFAULT_ENDPOINT
from ..errors import (
    TonhubConnectionError,
    TonhubProtocolError,
    TonhubResponseError,
    TonhubTimeout,
)
from .base import (
    METHOD_COMMAND_GET,
    METHOD_COMMAND_NEW,
    METHOD_SESSION_GET,
    METHOD_SESSION_NEW,
    METHOD_SESSION_WAIT,
)


class TonhubHttpTransport:
    """HTTP client wrapper for the relay endpoints.

    Pass an existing ``aiohttp.ClientSession`` to share a connection pool;
    otherwise the transport creates one and closes it in :meth:`close`.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 5.0,
        long_poll_timeout: float = 40.0,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self._endpoint = endpoint.rstrip("/")
        self._timeout = timeout
        self._long_poll_timeout = long_poll_timeout

    async def __aenter__(self) -> TonhubHttpTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if this transport created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _url(self, path: str) -> str:
        return f"{self._endpoint}{path}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    async def call(self, method: str, args: dict[str, Any]) -> Any:
        """Dispatch a relay method name onto its HTTP endpoint."""
        if method == METHOD_SESSION_NEW:
            return await self.create_session(args)
        if method == METHOD_SESSION_GET:
            return await self.get_session(args)
        if method == METHOD_SESSION_WAIT:
            return await self.wait_session(args)
        if method == METHOD_COMMAND_NEW:
            return await self.create_command(args)
        if method == METHOD_COMMAND_GET:
            return await self.get_command(args)
        raise ValueError(f"Unsupported method: {method}")

    async def create_session(self, args: dict[str, Any]) -> dict[str, Any]:
        """Register a new session via POST /connect/init."""
        data = await self._post("/connect/init", args, what="Session init")
        return self._ensure_ok(data, "Unable to create session")

    async def get_session(self, args: dict[str, Any]) -> dict[str, Any]:
        """Fetch a session record via GET /connect/<id>."""
        session_id = self._require_id(args)
        data = await self._get(
            f"/connect/{quote(session_id)}",
            timeout=self._timeout,
            what="Session fetch",
        )
        return self._ensure_ok(data, "Unable to fetch session")

    async def wait_session(self, args: dict[str, Any]) -> dict[str, Any]:
        """Long-poll a session record via GET /connect/<id>/wait."""
        session_id = self._require_id(args)
        last_updated = args.get("lastUpdated") or 0
        data = await self._get(
            f"/connect/{quote(session_id)}/wait?lastUpdated={last_updated}",
            timeout=self._long_poll_timeout,
            what="Session wait",
        )
        return self._ensure_ok(data, "Unable to wait for session")

    async def create_command(self, args: dict[str, Any]) -> dict[str, Any]:
        """Submit a job via POST /connect/command."""
        data = await self._post("/connect/command", args, what="Command submit")
        return self._ensure_ok(data, "Cannot create command")

    async def get_command(self, args: dict[str, Any]) -> Any:
        """Fetch the current job of an app key via GET /connect/command/<appk>."""
        appk = args.get("appk")
        if not appk:
            raise ValueError("Invalid app key")
        return await self._get(
            f"/connect/command/{quote(appk)}",
            timeout=self._timeout,
            what="Command fetch",
        )

    @staticmethod
    def _require_id(args: dict[str, Any]) -> str:
        session_id = args.get("id")
        if not session_id:
            raise ValueError("Invalid session id")
        return session_id

    @staticmethod
    def _ensure_ok(data: Any, message: str) -> dict[str, Any]:
        if not isinstance(data, dict) or not data.get("ok"):
            raise TonhubResponseError(200, f"{message}: {data!r}")
        return data

    async def _get(self, path: str, *, timeout: float, what: str) -> Any:
        try:
            async with self._get_session().get(
                self._url(path),
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                return await self._read_json(resp, what)
        except TimeoutError as err:
            raise TonhubTimeout(f"{what} request timed out") from err
        except aiohttp.ClientError as err:
            raise TonhubConnectionError(f"{what} request failed") from err

    async def _post(self, path: str, body: dict[str, Any], *, what: str) -> Any:
        try:
            async with self._get_session().post(
                self._url(path),
                json=body,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                return await self._read_json(resp, what)
        except TimeoutError as err:
            raise TonhubTimeout(f"{what} request timed out") from err
        except aiohttp.ClientError as err:
            raise TonhubConnectionError(f"{what} request failed") from err

    @staticmethod
    async def _read_json(resp: aiohttp.ClientResponse, what: str) -> Any:
        if resp.status != 200:
            raise TonhubResponseError(
                resp.status, f"{what} failed with status {resp.status}"
            )
        try:
            return await resp.json()
        except (aiohttp.ContentTypeError, ValueError) as err:
            raise TonhubProtocolError(f"{what} returned a non-JSON body") from err
