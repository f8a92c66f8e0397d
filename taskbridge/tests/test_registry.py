"""Tests for the tool registry: registration, validation, invocation."""

from typing import Optional

import pytest

from taskbridge.server.registry import (
    DuplicateToolError,
    RegistrySealedError,
    ToolArguments,
    ToolDescriptor,
    ToolHandlerError,
    ToolRegistry,
    ToolResult,
    ToolValidationError,
    UnknownToolError,
)


class EchoArgs(ToolArguments):
    message: str
    repeat: int = 1
    suffix: Optional[str] = None


def make_registry(handler=None):
    calls = []

    async def echo(args: EchoArgs) -> ToolResult:
        calls.append(args)
        return ToolResult.from_text(*([args.message] * args.repeat))

    registry = ToolRegistry()
    registry.register(ToolDescriptor(
        name="echo",
        description="Echo a message",
        arguments=EchoArgs,
        handler=handler or echo,
    ))
    return registry, calls


class TestRegistration:
    def test_duplicate_name_rejected(self):
        registry, _ = make_registry()
        with pytest.raises(DuplicateToolError):
            registry.register(registry.get("echo"))

    def test_sealed_registry_rejects_register(self):
        registry, _ = make_registry()
        registry.seal()
        other = ToolDescriptor("other", "", EchoArgs, registry.get("echo").handler)
        with pytest.raises(RegistrySealedError):
            registry.register(other)
        assert registry.sealed
        assert "other" not in registry

    def test_list_tools_exposes_schema(self):
        registry, _ = make_registry()
        tools = registry.list_tools()
        assert [t.name for t in tools] == ["echo"]
        schema = tools[0].inputSchema
        assert schema["required"] == ["message"]
        assert set(schema["properties"]) == {"message", "repeat", "suffix"}


class TestInvoke:
    @pytest.mark.asyncio
    async def test_defaults_applied(self):
        registry, calls = make_registry()
        result = await registry.invoke("echo", {"message": "hi"})
        assert result.text == "hi"
        assert calls[0].repeat == 1
        assert calls[0].suffix is None

    @pytest.mark.asyncio
    async def test_multiple_content_parts_in_order(self):
        registry, _ = make_registry()
        result = await registry.invoke("echo", {"message": "a", "repeat": 3})
        assert [part.text for part in result.content] == ["a", "a", "a"]

    @pytest.mark.asyncio
    async def test_missing_field_named(self):
        registry, calls = make_registry()
        with pytest.raises(ToolValidationError) as exc_info:
            await registry.invoke("echo", {"repeat": 2})
        assert exc_info.value.field == "message"
        assert calls == []

    @pytest.mark.asyncio
    async def test_type_mismatch_named(self):
        registry, calls = make_registry()
        with pytest.raises(ToolValidationError) as exc_info:
            await registry.invoke("echo", {"message": "hi", "repeat": "3"})
        assert exc_info.value.field == "repeat"
        assert calls == []

    @pytest.mark.asyncio
    async def test_non_object_arguments(self):
        registry, _ = make_registry()
        with pytest.raises(ToolValidationError) as exc_info:
            await registry.invoke("echo", ["hi"])
        assert exc_info.value.field == "arguments"

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        registry, _ = make_registry()
        with pytest.raises(UnknownToolError):
            await registry.invoke("nope", {})

    @pytest.mark.asyncio
    async def test_handler_failure_wrapped(self):
        async def broken(args):
            raise RuntimeError("downstream exploded")

        registry, _ = make_registry(handler=broken)
        with pytest.raises(ToolHandlerError) as exc_info:
            await registry.invoke("echo", {"message": "hi"})
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert "downstream exploded" in str(exc_info.value)
