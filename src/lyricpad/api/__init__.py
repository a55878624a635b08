"""HTTP surface for the suggestion and inspiration endpoints."""

from .app import create_app
from .routes import ABORTED_STATUS, run_until_disconnect

__all__ = ["ABORTED_STATUS", "create_app", "run_until_disconnect"]
