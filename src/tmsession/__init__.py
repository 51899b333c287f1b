"""tmsession: build and attach to tmux sessions, optionally over SSH."""

__version__ = "0.1.0"

from .core.dispatcher import SessionDispatcher
from .core.invocation import Invocation, resolve_invocation

__all__ = ["SessionDispatcher", "Invocation", "resolve_invocation", "__version__"]
