"""
Gatekeeper API - HTTP surface for the chat UI.
"""

from gatekeeper.api.server import app, run_server

__all__ = ["app", "run_server"]
