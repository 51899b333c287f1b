"""Derivation of tmux session names."""

import os
import socket
from collections.abc import Callable, Iterable

from ..utils.logging import TmuxError

# Characters tmux rejects or mangles in session names
_DROPPED_CHARACTERS = str.maketrans("", "", " :\"'")


def clean_session_name(name: str) -> str:
    """Make ``name`` safe for use as a tmux session name.

    Spaces, colons and quotes are removed, dots become underscores.
    """
    return name.translate(_DROPPED_CHARACTERS).replace(".", "_")


def local_hostname() -> str:
    """Short name of the local machine."""
    return socket.gethostname().split(".")[0]


def session_name_for(
    mode_tag: str,
    hosts: Iterable[str],
    *,
    sort: bool = True,
    host_prefix: str | None = None,
) -> str:
    """Derive the session name for connecting to ``hosts``.

    With ``sort`` the hosts are sorted and de-duplicated so that the same host
    set always yields the same name. The mode tag keeps its place in front.
    """
    targets = sorted(set(hosts)) if sort else list(hosts)
    parts = [mode_tag, *targets]
    if host_prefix:
        parts.insert(0, host_prefix)
    return clean_session_name("_".join(parts))


def unique_session_name(
    name: str, exists: Callable[[str], bool], pid: int | None = None
) -> str:
    """Return ``name``, or ``<pid>_<name>`` if a session called ``name`` exists.

    Raises:
        TmuxError: If the prefixed name is taken as well
    """
    if not exists(name):
        return name
    unique = clean_session_name(f"{pid if pid is not None else os.getpid()}_{name}")
    if exists(unique):
        raise TmuxError(
            f"Sessions {name} and {unique} both exist",
            command=["has-session", "-t", unique],
        )
    return unique
