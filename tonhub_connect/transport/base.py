"""Transport contract shared by relay and in-app transports."""

from __future__ import annotations

from typing import Any, Protocol

METHOD_SESSION_NEW = "session_new"
METHOD_SESSION_GET = "session_get"
METHOD_SESSION_WAIT = "session_wait"
METHOD_COMMAND_NEW = "command_new"
METHOD_COMMAND_GET = "command_get"


class Transport(Protocol):
    """Anything able to execute a named relay method."""

    async def call(self, method: str, args: dict[str, Any]) -> Any:
        """Execute ``method`` with JSON-serializable ``args``."""
