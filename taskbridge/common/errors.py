"""Error types shared across the server and the orchestrator."""


class TaskBridgeError(Exception):
    """Base class for taskbridge errors."""
    pass


class ConfigError(TaskBridgeError):
    """Required configuration is missing or invalid."""
    pass


class UpstreamError(TaskBridgeError):
    """A call to an external service (LLM, Notion, Slack, tool server) failed."""
    pass


class DecodeError(TaskBridgeError):
    """A task reference URL could not be decoded into a task id."""
    pass
