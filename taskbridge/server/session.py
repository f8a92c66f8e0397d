"""
Transport Session Manager

Owns the single streaming connection between an agent runtime and the tool
registry (MCP over SSE):

- GET /sse opens a Session; its push channel feeds the event stream
- POST /messages?session_id=... is decoded here as JSON-RPC, run against the
  registry, and the response is pushed onto the session's channel

At most one Session is active. Opening a new one replaces the old outright:
the old stream is no longer addressed but is not closed, and messages
carrying the old token fail with SessionNotFoundError.
"""

import asyncio
import json
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from mcp.types import (
    CallToolResult,
    ErrorData,
    Implementation,
    InitializeResult,
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    LATEST_PROTOCOL_VERSION,
    ListToolsResult,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    ServerCapabilities,
    TextContent,
    ToolsCapability,
)
from mcp.shared.version import SUPPORTED_PROTOCOL_VERSIONS

from .registry import (
    ToolHandlerError,
    ToolRegistry,
    ToolValidationError,
    UnknownToolError,
)

logger = logging.getLogger("taskbridge.server.session")

JSONRPC_VERSION = "2.0"


class SessionNotFoundError(Exception):
    """Message addressed to a session that is absent or was superseded."""
    pass


@dataclass(frozen=True)
class Session:
    """One live SSE connection"""
    token: str
    channel: asyncio.Queue = field(compare=False, repr=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, compare=False, repr=False)

    @property
    def endpoint(self) -> str:
        """Relative URL the client must POST messages to"""
        return f"/messages?session_id={self.token}"


class SessionManager:
    """
    Single-session transport.

    There is intentionally no per-client session table: the process serves
    one agent runtime at a time.
    """

    def __init__(self, registry: ToolRegistry, server_name: str = "notion-project-manager", server_version: str = "0.1.0"):
        self.registry = registry
        self.server_name = server_name
        self.server_version = server_version
        self._current: Optional[Session] = None

    @property
    def current(self) -> Optional[Session]:
        return self._current

    def open_session(self) -> Session:
        """Create a Session and make it the only addressable one."""
        session = Session(token=secrets.token_hex(16), channel=asyncio.Queue())
        previous, self._current = self._current, session
        if previous is not None:
            logger.info("Session %s superseded by %s", previous.token[:8], session.token[:8])
        else:
            logger.info("Session %s opened", session.token[:8])
        return session

    def close_session(self, session: Session) -> None:
        """Forget the session if it is still current (its stream ended)."""
        if self._current is session:
            self._current = None
            logger.info("Session %s closed", session.token[:8])

    def resolve(self, token: Optional[str]) -> Session:
        """
        Return the current session if ``token`` addresses it.

        A missing token addresses the current session.
        """
        session = self._current
        if session is None:
            raise SessionNotFoundError("No active session")
        if token is not None and token != session.token:
            raise SessionNotFoundError(f"Session {token[:8]} is not active")
        return session

    async def dispatch(self, token: Optional[str], raw_message) -> Optional[Dict[str, Any]]:
        """
        Route one inbound message to the current session.

        Messages on a session are handled one at a time in arrival order.
        The response (if the message was a request) is pushed onto the
        session's channel and also returned.

        Raises:
            SessionNotFoundError: ``token`` does not address the current session
        """
        session = self.resolve(token)
        async with session.lock:
            response = await self.handle_message(raw_message)
            if response is not None:
                await session.channel.put(response)
        return response

    # =========================================================================
    # JSON-RPC
    # =========================================================================

    async def handle_message(self, raw_message) -> Optional[Dict[str, Any]]:
        """Decode a JSON-RPC message and build its response (None for notifications)."""
        if isinstance(raw_message, (bytes, str)):
            try:
                message = json.loads(raw_message)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                return _error(None, PARSE_ERROR, f"Parse error: {e}")
        else:
            message = raw_message

        if not isinstance(message, dict) or message.get("jsonrpc") != JSONRPC_VERSION:
            return _error(None, INVALID_REQUEST, "Invalid JSON-RPC message")

        method = message.get("method")
        msg_id = message.get("id")

        if method is None:
            # Response to a server request; we never send any
            logger.debug("Ignoring JSON-RPC response %s", msg_id)
            return None

        if msg_id is None:
            logger.debug("Notification: %s", method)
            return None

        params = message.get("params") or {}

        try:
            if method == "initialize":
                return _result(msg_id, self._initialize(params))
            if method == "ping":
                return _result(msg_id, {})
            if method == "tools/list":
                result = ListToolsResult(tools=self.registry.list_tools())
                return _result(msg_id, result.model_dump(by_alias=True, mode="json", exclude_none=True))
            if method == "tools/call":
                return await self._call_tool(msg_id, params)
        except Exception as e:
            logger.exception("Failed to handle %s", method)
            return _error(msg_id, INTERNAL_ERROR, str(e))

        return _error(msg_id, METHOD_NOT_FOUND, f"Method not found: {method}")

    def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        requested = params.get("protocolVersion")
        if requested not in SUPPORTED_PROTOCOL_VERSIONS:
            requested = LATEST_PROTOCOL_VERSION
        result = InitializeResult(
            protocolVersion=requested,
            capabilities=ServerCapabilities(tools=ToolsCapability(listChanged=False)),
            serverInfo=Implementation(name=self.server_name, version=self.server_version),
        )
        return result.model_dump(by_alias=True, mode="json", exclude_none=True)

    async def _call_tool(self, msg_id, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            return _error(msg_id, INVALID_PARAMS, "tools/call requires a tool name")

        try:
            tool_result = await self.registry.invoke(name, params.get("arguments"))
            result = CallToolResult(content=tool_result.content, isError=False)
        except UnknownToolError as e:
            return _error(msg_id, INVALID_PARAMS, str(e))
        except (ToolValidationError, ToolHandlerError) as e:
            result = CallToolResult(
                content=[TextContent(type="text", text=f"Error: {e}")],
                isError=True,
            )

        return _result(msg_id, result.model_dump(by_alias=True, mode="json", exclude_none=True))


def _result(msg_id, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": msg_id, "result": result}


def _error(msg_id, code: int, message: str) -> Dict[str, Any]:
    error = ErrorData(code=code, message=message)
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": msg_id,
        "error": error.model_dump(exclude_none=True),
    }


def format_sse(event: str, data: str) -> str:
    """Encode one server-sent event"""
    lines = "".join(f"data: {line}\n" for line in data.splitlines() or [""])
    return f"event: {event}\n{lines}\n"
