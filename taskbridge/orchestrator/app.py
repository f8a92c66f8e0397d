"""
Transcript Orchestrator

FastAPI service that receives meeting transcripts and turns them into task
proposals.

Endpoints:
- POST /process-transcript: Normalize a transcript and propose its action items
- POST /webhook: Same as /process-transcript (for transcript providers)
- GET /health: Health check

The body is JSON with the transcript under ``transcript``, ``text`` or
``content``.
"""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..common.config import (
    TaskBridgeConfig,
    configure_logging,
    load_config,
    require_notion_credentials,
)
from ..common.errors import ConfigError
from ..common.llm_client import LLMClient
from ..common.notion_client import NotionClient
from ..common.slack_client import SlackClient
from ..server.tools import build_registry
from .normalizer import Normalizer
from .tool_client import LocalToolCaller, RemoteToolCaller, ToolCaller
from .workflow import TranscriptOrchestrator

logger = logging.getLogger("taskbridge.orchestrator.app")

TRANSCRIPT_FIELDS = ("transcript", "text", "content")

ToolCallerFactory = Callable[[], ToolCaller]


def extract_transcript(body: Any) -> Optional[str]:
    """First non-empty transcript field of a request body"""
    if not isinstance(body, dict):
        return None
    for key in TRANSCRIPT_FIELDS:
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def create_app(
    config: Optional[TaskBridgeConfig] = None,
    normalizer: Optional[Normalizer] = None,
    caller_factory: Optional[ToolCallerFactory] = None,
) -> FastAPI:
    """
    Build the orchestrator.

    Args:
        config: Loaded configuration (default: load_config())
        normalizer: Normalizer override (tests pass fakes)
        caller_factory: Returns a fresh ToolCaller per request. Defaults to an
            MCP client when MCP_SERVER_URL is set, otherwise an in-process
            tool registry (which needs the Notion credentials).
    """
    config = config or load_config()
    closers = []

    if normalizer is None:
        llm = LLMClient.from_config(config.llm)
        if not llm.is_available:
            logger.warning("No LLM available for provider '%s'. Transcripts will fail.", config.llm.provider)
        normalizer = Normalizer(llm)

    if caller_factory is None:
        if config.orchestrator.mcp_server_url:
            url = config.orchestrator.mcp_server_url
            timeout = config.orchestrator.connect_timeout
            call_timeout = config.orchestrator.call_timeout
            caller_factory = lambda: RemoteToolCaller(url, timeout=timeout, call_timeout=call_timeout)  # noqa: E731
            mode = f"remote ({url})"
        else:
            require_notion_credentials(config)
            task_store = NotionClient.from_config(config.notion)
            chat = SlackClient.from_config(config.slack)
            registry = build_registry(task_store, chat)
            closers.extend([task_store.close, chat.close])
            caller_factory = lambda: LocalToolCaller(registry)  # noqa: E731
            mode = "in-process"
    else:
        mode = "custom"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Orchestrator ready (tools: %s)", mode)
        yield
        logger.info("Shutting down...")
        for close in closers:
            await close()

    app = FastAPI(
        title="taskbridge Orchestrator",
        description="Meeting transcripts to Notion task proposals",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.normalizer = normalizer

    async def handle_transcript(request: Request) -> JSONResponse:
        try:
            body: Dict[str, Any] = json.loads(await request.body())
        except (json.JSONDecodeError, UnicodeDecodeError):
            return JSONResponse({"error": "Request body must be JSON"}, status_code=400)

        transcript = extract_transcript(body)
        if transcript is None:
            return JSONResponse(
                {"error": "No transcript found. Send 'transcript', 'text', or 'content'."},
                status_code=400,
            )

        orchestrator = TranscriptOrchestrator(
            normalizer,
            caller_factory(),
            database_id=config.notion.database_id,
            project_id=config.orchestrator.project_id or None,
        )

        try:
            reply = await orchestrator.process(transcript)
        except Exception as e:
            logger.exception("Transcript processing failed")
            return JSONResponse({"error": str(e)}, status_code=500)

        return JSONResponse({
            "status": "success",
            "message": "Transcript processed",
            "agent_reply": reply,
        })

    @app.post("/process-transcript")
    async def process_transcript(request: Request):
        """Normalize a transcript and propose its action items"""
        return await handle_transcript(request)

    @app.post("/webhook")
    async def webhook(request: Request):
        """Transcript provider webhook"""
        return await handle_transcript(request)

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "orchestrator",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "normalizer_available": normalizer.is_available,
            "tools": mode,
        }

    return app


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Run the orchestrator"""
    import uvicorn

    config = load_config()
    configure_logging(config.log_level)

    try:
        app = create_app(config)
    except ConfigError as e:
        logger.critical("%s", e)
        raise SystemExit(1)

    logger.info("Starting orchestrator on port %d", config.orchestrator.port)
    uvicorn.run(app, host=config.orchestrator.host, port=config.orchestrator.port, reload=False)


if __name__ == "__main__":
    run_server()
