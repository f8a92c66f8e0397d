"""
taskbridge Common Module

Shared infrastructure for the tool server and the orchestrator.
"""

from .config import TaskBridgeConfig, load_config
from .errors import TaskBridgeError, ConfigError, UpstreamError, DecodeError
from .reference import ReferenceCodec, extract_task_id, task_url
from .notion_client import NotionClient, NotionError
from .slack_client import SlackClient, SlackError

__all__ = [
    "TaskBridgeConfig",
    "load_config",
    "TaskBridgeError",
    "ConfigError",
    "UpstreamError",
    "DecodeError",
    "ReferenceCodec",
    "extract_task_id",
    "task_url",
    "NotionClient",
    "NotionError",
    "SlackClient",
    "SlackError",
]
