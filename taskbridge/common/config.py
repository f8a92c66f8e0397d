"""
Configuration Management for taskbridge

Loads configuration from ~/.taskbridge/config.json and environment variables
(a local .env file is read first via python-dotenv).
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

from .errors import ConfigError
from .reference import DEFAULT_TASK_DOMAINS, DEFAULT_BASE_URL

logger = logging.getLogger("taskbridge.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".taskbridge"
CONFIG_PATH = CONFIG_DIR / "config.json"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass
class NotionConfig:
    """Task store (Notion) configuration"""
    api_key: str = ""
    database_id: str = ""
    api_version: str = "2022-06-28"
    title_property: str = "Name"
    status_property: str = "Status"
    project_property: str = "Project"
    domains: List[str] = field(default_factory=lambda: list(DEFAULT_TASK_DOMAINS))
    base_url: str = DEFAULT_BASE_URL


@dataclass
class SlackConfig:
    """Chat provider (Slack) configuration"""
    webhook_url: str = ""
    signing_secret: str = ""


@dataclass
class LLMConfig:
    """Normalizer LLM configuration"""
    provider: str = "openai"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    google_api_key: str = ""
    google_model: str = "gemini-2.0-flash-exp"


@dataclass
class ServerConfig:
    """MCP tool server configuration"""
    host: str = "0.0.0.0"
    port: int = 3000
    server_name: str = "notion-project-manager"


@dataclass
class OrchestratorConfig:
    """Transcript orchestrator configuration"""
    host: str = "0.0.0.0"
    port: int = 4000
    mcp_server_url: str = ""  # empty: run the tool registry in-process
    connect_timeout: float = 15.0
    call_timeout: float = 60.0  # per tool call over MCP
    project_id: str = ""


@dataclass
class TaskBridgeConfig:
    """Main taskbridge configuration"""
    notion: NotionConfig = field(default_factory=NotionConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    log_level: str = "INFO"


def _parse_notion_config(data: dict) -> NotionConfig:
    """Parse notion section from config dict"""
    notion_data = data.get("notion", {})
    defaults = NotionConfig()
    return NotionConfig(
        api_key=notion_data.get("api_key", ""),
        database_id=notion_data.get("database_id", ""),
        api_version=notion_data.get("api_version", defaults.api_version),
        title_property=notion_data.get("title_property", defaults.title_property),
        status_property=notion_data.get("status_property", defaults.status_property),
        project_property=notion_data.get("project_property", defaults.project_property),
        domains=list(notion_data.get("domains", defaults.domains)),
        base_url=notion_data.get("base_url", defaults.base_url),
    )


def _parse_slack_config(data: dict) -> SlackConfig:
    """Parse slack section from config dict"""
    slack_data = data.get("slack", {})
    return SlackConfig(
        webhook_url=slack_data.get("webhook_url", ""),
        signing_secret=slack_data.get("signing_secret", ""),
    )


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    defaults = LLMConfig()
    return LLMConfig(
        provider=llm_data.get("provider", defaults.provider),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", defaults.anthropic_model),
        openai_api_key=llm_data.get("openai_api_key", ""),
        openai_model=llm_data.get("openai_model", defaults.openai_model),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", defaults.google_model),
    )


def _parse_server_config(data: dict) -> ServerConfig:
    """Parse server section from config dict"""
    server_data = data.get("server", {})
    defaults = ServerConfig()
    return ServerConfig(
        host=server_data.get("host", defaults.host),
        port=server_data.get("port", defaults.port),
        server_name=server_data.get("server_name", defaults.server_name),
    )


def _parse_orchestrator_config(data: dict) -> OrchestratorConfig:
    """Parse orchestrator section from config dict"""
    orchestrator_data = data.get("orchestrator", {})
    defaults = OrchestratorConfig()
    return OrchestratorConfig(
        host=orchestrator_data.get("host", defaults.host),
        port=orchestrator_data.get("port", defaults.port),
        mcp_server_url=orchestrator_data.get("mcp_server_url", ""),
        connect_timeout=orchestrator_data.get("connect_timeout", defaults.connect_timeout),
        call_timeout=orchestrator_data.get("call_timeout", defaults.call_timeout),
        project_id=orchestrator_data.get("project_id", ""),
    )


def load_config() -> TaskBridgeConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (including a local .env file)
    2. Config file (~/.taskbridge/config.json)
    3. Default values
    """
    load_dotenv()
    config = TaskBridgeConfig()

    # Load from config file if exists
    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.notion = _parse_notion_config(data)
            config.slack = _parse_slack_config(data)
            config.llm = _parse_llm_config(data)
            config.server = _parse_server_config(data)
            config.orchestrator = _parse_orchestrator_config(data)
            config.log_level = data.get("log_level", "INFO")
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file %s: %s", CONFIG_PATH, e)

    # Environment variable overrides
    if os.getenv("NOTION_API_KEY"):
        config.notion.api_key = os.getenv("NOTION_API_KEY")
    if os.getenv("NOTION_DATABASE_ID"):
        config.notion.database_id = os.getenv("NOTION_DATABASE_ID")
    if os.getenv("NOTION_DOMAINS"):
        config.notion.domains = [
            d.strip() for d in os.getenv("NOTION_DOMAINS").split(",") if d.strip()
        ]

    if os.getenv("SLACK_WEBHOOK_URL"):
        config.slack.webhook_url = os.getenv("SLACK_WEBHOOK_URL")
    if os.getenv("SLACK_SIGNING_SECRET"):
        config.slack.signing_secret = os.getenv("SLACK_SIGNING_SECRET")

    if os.getenv("HOST"):
        config.server.host = os.getenv("HOST")
    if os.getenv("PORT"):
        config.server.port = int(os.getenv("PORT"))
    if os.getenv("ORCHESTRATOR_HOST"):
        config.orchestrator.host = os.getenv("ORCHESTRATOR_HOST")
    if os.getenv("ORCHESTRATOR_PORT"):
        config.orchestrator.port = int(os.getenv("ORCHESTRATOR_PORT"))
    if os.getenv("MCP_SERVER_URL"):
        config.orchestrator.mcp_server_url = os.getenv("MCP_SERVER_URL")
    if os.getenv("MCP_CONNECT_TIMEOUT"):
        config.orchestrator.connect_timeout = float(os.getenv("MCP_CONNECT_TIMEOUT"))
    if os.getenv("MCP_CALL_TIMEOUT"):
        config.orchestrator.call_timeout = float(os.getenv("MCP_CALL_TIMEOUT"))
    if os.getenv("NOTION_PROJECT_ID"):
        config.orchestrator.project_id = os.getenv("NOTION_PROJECT_ID")

    _env_llm_map = {
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "ANTHROPIC_MODEL": "anthropic_model",
        "OPENAI_API_KEY": "openai_api_key",
        "OPENAI_MODEL": "openai_model",
        "GOOGLE_API_KEY": "google_api_key",
        "GEMINI_API_KEY": "google_api_key",
        "GOOGLE_MODEL": "google_model",
        "TASKBRIDGE_LLM_PROVIDER": "provider",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)

    if os.getenv("TASKBRIDGE_LOG_LEVEL"):
        config.log_level = os.getenv("TASKBRIDGE_LOG_LEVEL")

    return config


def require_notion_credentials(config: TaskBridgeConfig) -> None:
    """Raise ConfigError if the task store cannot be reached at all."""
    if not config.notion.api_key:
        raise ConfigError("NOTION_API_KEY is missing.")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once per process"""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
