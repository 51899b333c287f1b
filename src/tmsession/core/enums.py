"""Shared enums for tmsession."""

from enum import Enum


class Mode(Enum):
    """What a tm invocation does."""

    LIST = "ls"
    SSH = "s"
    MULTI_SSH = "ms"
    KILL = "k"
    SESSION = "session"


# Words that select a mode in the traditional command form
TRADITIONAL_MODES = {
    "ls": Mode.LIST,
    "s": Mode.SSH,
    "ms": Mode.MULTI_SSH,
    "k": Mode.KILL,
}
