"""
Tool Registry

Declares the remotely invokable tools and validates arguments before any
handler runs. Each tool's arguments are a pydantic model, so a handler only
ever receives a fully checked, typed record.

The registry is populated once at startup and sealed; after that it is
read-only and safe to share between concurrent requests.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from mcp.types import TextContent, Tool, ToolAnnotations
from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger("taskbridge.server.registry")


# =============================================================================
# Errors
# =============================================================================

class ToolError(Exception):
    """Base class for tool registry errors."""
    pass


class DuplicateToolError(ToolError):
    pass


class RegistrySealedError(ToolError):
    pass


class UnknownToolError(ToolError):
    pass


class ToolValidationError(ToolError):
    """Arguments did not match the tool's schema. Raised before any side effect."""

    def __init__(self, tool: str, field: str, message: str):
        self.tool = tool
        self.field = field
        self.message = message
        super().__init__(f"Invalid argument '{field}' for {tool}: {message}")


class ToolHandlerError(ToolError):
    """A tool handler failed (typically a Notion or Slack call)."""

    def __init__(self, tool: str, cause: BaseException):
        self.tool = tool
        self.cause = cause
        super().__init__(f"{tool} failed: {cause}")


# =============================================================================
# Descriptors
# =============================================================================

class ToolArguments(BaseModel):
    """Base class for tool argument records (strict types, extra keys ignored)"""
    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)


@dataclass(frozen=True)
class ToolResult:
    """Ordered content parts produced by one tool call"""
    content: List[TextContent]

    @classmethod
    def from_text(cls, *texts: str) -> "ToolResult":
        return cls(content=[TextContent(type="text", text=t) for t in texts])

    @property
    def text(self) -> str:
        return "\n".join(part.text for part in self.content)


ToolHandler = Callable[[Any], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    arguments: Type[ToolArguments]
    handler: ToolHandler
    annotations: Optional[ToolAnnotations] = None

    def input_schema(self) -> Dict[str, Any]:
        return self.arguments.model_json_schema()

    def to_mcp_tool(self) -> Tool:
        return Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema(),
            annotations=self.annotations,
        )


# =============================================================================
# Registry
# =============================================================================

class ToolRegistry:
    """Mapping from tool name to descriptor."""

    def __init__(self):
        self._tools: Dict[str, ToolDescriptor] = {}
        self._sealed = False

    def register(self, descriptor: ToolDescriptor) -> None:
        if self._sealed:
            raise RegistrySealedError(f"Cannot register {descriptor.name}: registry is sealed")
        if descriptor.name in self._tools:
            raise DuplicateToolError(f"Tool already registered: {descriptor.name}")
        self._tools[descriptor.name] = descriptor

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def get(self, name: str) -> ToolDescriptor:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(f"Unknown tool: {name}") from None

    def list_tools(self) -> List[Tool]:
        return [descriptor.to_mcp_tool() for descriptor in self._tools.values()]

    def validate(self, name: str, raw_args: Optional[Dict[str, Any]]) -> ToolArguments:
        """Turn an untyped argument map into the tool's argument record."""
        descriptor = self.get(name)
        if raw_args is None:
            raw_args = {}
        if not isinstance(raw_args, dict):
            raise ToolValidationError(name, "arguments", "must be an object")

        try:
            return descriptor.arguments.model_validate(raw_args)
        except ValidationError as exc:
            error = exc.errors()[0]
            field = ".".join(str(part) for part in error.get("loc", ())) or "arguments"
            raise ToolValidationError(name, field, error.get("msg", "invalid value")) from None

    async def invoke(self, name: str, raw_args: Optional[Dict[str, Any]] = None) -> ToolResult:
        """
        Validate arguments and run the tool's handler.

        Raises:
            UnknownToolError: No tool with that name
            ToolValidationError: Missing required field or type mismatch
            ToolHandlerError: The handler raised
        """
        descriptor = self.get(name)
        args = self.validate(name, raw_args)

        logger.debug("Invoking %s", name)
        try:
            return await descriptor.handler(args)
        except Exception as e:
            logger.warning("Tool %s failed: %s", name, e)
            raise ToolHandlerError(name, e) from e
