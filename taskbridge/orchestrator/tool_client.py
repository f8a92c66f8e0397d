"""
Tool Callers

How the proposal workflow reaches the task tools:

- LocalToolCaller: calls an in-process ToolRegistry directly
- RemoteToolCaller: MCP client session against a tool server's /sse endpoint

Both are async context managers and return a ToolResult or raise
ToolCallError.
"""

import logging
from contextlib import AsyncExitStack
from datetime import timedelta
from typing import Any, Dict, Optional

import anyio
from mcp import ClientSession
from mcp.client.sse import sse_client
from mcp.shared.exceptions import McpError
from mcp.types import TextContent

from ..common.errors import UpstreamError
from ..server.registry import ToolError, ToolRegistry, ToolResult

logger = logging.getLogger("taskbridge.orchestrator.tool_client")


class ToolCallError(Exception):
    """A tool call was rejected or its handler failed."""

    def __init__(self, tool: str, message: str):
        self.tool = tool
        super().__init__(f"{tool}: {message}")


class ToolTransportError(UpstreamError):
    """The tool server could not be reached within the connection ceiling."""
    pass


class ToolCaller:
    """Interface for calling a named tool with an argument map."""

    async def __aenter__(self) -> "ToolCaller":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def call(self, name: str, arguments: Dict[str, Any]) -> ToolResult:
        raise NotImplementedError


class LocalToolCaller(ToolCaller):
    """Calls tools on an in-process registry."""

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def call(self, name: str, arguments: Dict[str, Any]) -> ToolResult:
        try:
            return await self.registry.invoke(name, arguments)
        except ToolError as e:
            raise ToolCallError(name, str(e)) from e


class RemoteToolCaller(ToolCaller):
    """
    MCP client over SSE.

    Usage:
        async with RemoteToolCaller("http://localhost:3000/sse") as tools:
            result = await tools.call("search_notion", {"query": "Tasks"})

    The tool server keeps one session at a time. Once another client
    connects, this caller's requests are rejected and each call fails after
    at most ``call_timeout`` seconds.
    """

    def __init__(self, url: str, timeout: float = 15.0, call_timeout: float = 60.0):
        """
        Args:
            url: Tool server SSE endpoint
            timeout: Ceiling for connection setup in seconds; exceeding it
                is a connection failure
            call_timeout: Ceiling for a single tool call's response
        """
        self.url = url
        self.timeout = timeout
        self.call_timeout = call_timeout
        self._stack: Optional[AsyncExitStack] = None
        self._session: Optional[ClientSession] = None

    async def __aenter__(self) -> "RemoteToolCaller":
        stack = AsyncExitStack()
        logger.info("Connecting to tool server %s", self.url)
        try:
            read, write = await stack.enter_async_context(sse_client(self.url, timeout=self.timeout))
            session = await stack.enter_async_context(
                ClientSession(read, write, read_timeout_seconds=timedelta(seconds=self.call_timeout))
            )
            with anyio.fail_after(self.timeout):
                await session.initialize()
        except Exception as e:
            await stack.aclose()
            raise ToolTransportError(f"Could not connect to tool server at {self.url}: {e}") from e

        self._stack = stack
        self._session = session
        logger.info("Connected to tool server")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._stack is not None:
            await self._stack.aclose()
        self._stack = None
        self._session = None

    async def call(self, name: str, arguments: Dict[str, Any]) -> ToolResult:
        if self._session is None:
            raise ToolTransportError("RemoteToolCaller used outside 'async with'")

        try:
            result = await self._session.call_tool(name, arguments)
        except McpError as e:
            # A timeout here usually means another client took over the session
            logger.warning("Tool call %s failed: %s", name, e)
            raise ToolCallError(name, str(e)) from e
        except Exception as e:
            raise ToolCallError(name, f"transport error: {e}") from e

        parts = [part for part in result.content if isinstance(part, TextContent)]
        if result.isError:
            raise ToolCallError(name, "\n".join(p.text for p in parts) or "tool returned an error")
        return ToolResult(content=parts)
