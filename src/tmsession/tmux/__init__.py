"""
tmux access for tm.

This package provides:
- A typed client exposing the tmux control commands tm issues
- Error classification for tmux failures
- Logging helpers for tmux operations
"""

from ..utils.logging import PaneTooSmallError, TmuxError
from .client import (
    PANE_TOO_SMALL_MARKERS,
    TmuxClient,
    TmuxCommand,
    get_tmux_client,
    reset_tmux_client,
)

__all__ = [
    "PANE_TOO_SMALL_MARKERS",
    "PaneTooSmallError",
    "TmuxClient",
    "TmuxCommand",
    "TmuxError",
    "get_tmux_client",
    "reset_tmux_client",
]
