"""
taskbridge

Turns meeting transcripts into reviewed Notion tasks.

Components:
- server: MCP tool server (Notion + Slack tools over SSE) and the Slack
  interactivity endpoint that resolves proposals
- orchestrator: transcript normalizer and the proposal workflow that drives
  the tool server

Usage:
    from taskbridge.common import load_config
    from taskbridge.server.app import create_app
    from taskbridge.orchestrator import Normalizer, ProposalWorkflow
"""

__version__ = "0.1.0"
