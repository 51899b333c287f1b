"""Core session logic for tmsession."""

from .dispatcher import AttachPlan, SessionDispatcher
from .enums import Mode
from .invocation import Invocation, resolve_invocation

__all__ = [
    "AttachPlan",
    "Invocation",
    "Mode",
    "SessionDispatcher",
    "resolve_invocation",
]
