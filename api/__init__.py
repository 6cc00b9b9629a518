"""pulseboard HTTP API"""

from .server import app, run_server

__all__ = ["app", "run_server"]
