"""
Tool Server

FastAPI server exposing the Notion/Slack task tools to an agent runtime and
receiving Slack button presses on proposals.

Endpoints:
- GET /sse: Open the MCP session (server-sent events)
- POST /messages: JSON-RPC messages for the current session
- POST /slack/events: Slack interactivity webhook (Approve/Skip/Feedback)
- GET /proposals: Proposals sent and how they were resolved
- GET /health: Health check

Flow:
1. Agent connects to /sse and calls tools through /messages
2. create_proposed_task writes to Notion, send_slack_proposal posts to Slack
3. Reviewer clicks a button; Slack posts to /slack/events
4. The request is acknowledged, then the proposal is resolved in the background
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import BackgroundTasks, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from .. import __version__
from ..common.config import (
    TaskBridgeConfig,
    configure_logging,
    load_config,
    require_notion_credentials,
)
from ..common.errors import ConfigError
from ..common.notion_client import NotionClient
from ..common.reference import ReferenceCodec
from ..common.slack_client import SlackClient
from .handlers import SlackHandler
from .ledger import ProposalLedger
from .resolution import ProposalResolver, resolve_in_background
from .session import SessionManager, SessionNotFoundError, format_sse
from .tools import build_registry

logger = logging.getLogger("taskbridge.server.app")

KEEPALIVE_INTERVAL = 15.0


def create_app(
    config: Optional[TaskBridgeConfig] = None,
    task_store: Optional[NotionClient] = None,
    chat: Optional[SlackClient] = None,
) -> FastAPI:
    """
    Build the tool server.

    Args:
        config: Loaded configuration (default: load_config())
        task_store: Notion client override (tests pass fakes)
        chat: Slack client override

    Raises:
        ConfigError: No task store given and NOTION_API_KEY is missing
    """
    config = config or load_config()

    if task_store is None:
        require_notion_credentials(config)
        task_store = NotionClient.from_config(config.notion)
    if chat is None:
        chat = SlackClient.from_config(config.slack)
        if not chat.is_configured:
            logger.warning("SLACK_WEBHOOK_URL is missing. Slack notifications will fail.")

    codec = ReferenceCodec(domains=config.notion.domains, base_url=config.notion.base_url)
    ledger = ProposalLedger()
    registry = build_registry(task_store, chat, ledger, codec)
    sessions = SessionManager(registry, server_name=config.server.server_name, server_version=__version__)
    resolver = ProposalResolver(task_store, chat, ledger, codec)
    slack_handler = SlackHandler(signing_secret=config.slack.signing_secret)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Tool server ready (%d tools: %s)", len(registry), ", ".join(registry.names))
        yield
        logger.info("Shutting down...")
        await task_store.close()
        await chat.close()

    app = FastAPI(
        title="taskbridge Tool Server",
        description="Notion task tools over MCP with Slack proposal review",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.registry = registry
    app.state.sessions = sessions
    app.state.ledger = ledger
    app.state.resolver = resolver

    # =========================================================================
    # MCP transport
    # =========================================================================

    @app.get("/sse")
    async def sse(request: Request):
        """Open a session; any previous session stops being addressable."""
        session = sessions.open_session()

        async def event_stream():
            try:
                yield format_sse("endpoint", session.endpoint)
                while True:
                    try:
                        message = await asyncio.wait_for(session.channel.get(), timeout=KEEPALIVE_INTERVAL)
                    except asyncio.TimeoutError:
                        if await request.is_disconnected():
                            break
                        yield ": keepalive\n\n"
                        continue
                    yield format_sse("message", json.dumps(message, separators=(",", ":")))
            finally:
                sessions.close_session(session)

        return StreamingResponse(
            event_stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    @app.post("/messages")
    async def messages(request: Request, session_id: Optional[str] = None):
        """Handle one JSON-RPC message for the current session."""
        body = await request.body()
        if not body:
            raise HTTPException(status_code=400, detail="Empty message body")

        try:
            await sessions.dispatch(session_id, body)
        except SessionNotFoundError as e:
            logger.warning("Dropping message: %s", e)
            return JSONResponse({"error": str(e)}, status_code=404)

        return Response(content="Accepted", status_code=202)

    # =========================================================================
    # Slack interactivity
    # =========================================================================

    @app.post("/slack/events")
    async def slack_events(
        request: Request,
        background_tasks: BackgroundTasks,
        x_slack_signature: Optional[str] = Header(None),
        x_slack_request_timestamp: Optional[str] = Header(None)
    ):
        """
        Handle Slack interactivity callbacks.

        Always answers 200 as soon as the payload is understood; the proposal
        is resolved after the response has been sent.
        """
        body = await request.body()

        if not slack_handler.verify_signature(
            body,
            x_slack_signature or "",
            x_slack_request_timestamp or ""
        ):
            raise HTTPException(status_code=401, detail="Invalid signature")

        payload = slack_handler.decode_body(body)
        if payload is None:
            raise HTTPException(status_code=400, detail="Invalid payload")

        if slack_handler.is_url_verification(payload):
            return JSONResponse({"challenge": slack_handler.get_challenge(payload)})

        event = slack_handler.parse_interaction(payload)
        if event is not None:
            logger.info("Slack action %s from %s", event.action_id, event.actor_name)
            background_tasks.add_task(resolve_in_background, resolver, event)

        return JSONResponse({"ok": True})

    # =========================================================================
    # Status
    # =========================================================================

    @app.get("/proposals")
    async def get_proposals():
        """List proposals and their resolution state"""
        return {
            "stats": ledger.get_stats(),
            "items": [
                {
                    "task_id": entry.task_id,
                    "task_name": entry.task_name,
                    "task_url": entry.task_url,
                    "state": entry.state.value,
                    "actor": entry.actor,
                    "created_at": entry.created_at,
                    "resolved_at": entry.resolved_at,
                }
                for entry in ledger.list()
            ],
        }

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        current = sessions.current
        return {
            "status": "healthy",
            "service": "tool-server",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "tools": registry.names,
            "session_active": current is not None,
            "session_opened_at": current.created_at.isoformat() if current else None,
            "slack_configured": chat.is_configured,
        }

    return app


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Run the tool server"""
    import uvicorn

    config = load_config()
    configure_logging(config.log_level)

    try:
        app = create_app(config)
    except ConfigError as e:
        logger.critical("%s", e)
        raise SystemExit(1)

    logger.info("Starting tool server on port %d", config.server.port)
    uvicorn.run(app, host=config.server.host, port=config.server.port, reload=False)


if __name__ == "__main__":
    run_server()
