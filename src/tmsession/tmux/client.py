"""
Typed tmux client.

Wraps a libtmux server and exposes the fixed set of tmux control commands
tm needs. Every command goes through :meth:`TmuxClient.run`, which turns
tmux's stderr output into :class:`TmuxError` (or :class:`PaneTooSmallError`
for the one condition callers know how to recover from).
"""

import os
import shlex
from enum import Enum
from typing import Any

import libtmux

from ..utils.logging import PaneTooSmallError, TmuxError
from .logging_utils import (
    log_session_attach,
    log_session_operation,
    log_tmux_command,
    tmux_logger,
)

# tmux >= 3.0 says "pane too small", older releases "no space for new pane"
PANE_TOO_SMALL_MARKERS = ("pane too small", "no space for new pane")


class TmuxCommand(str, Enum):
    """tmux subcommands issued by tm."""

    NEW_SESSION = "new-session"
    NEW_WINDOW = "new-window"
    SPLIT_WINDOW = "split-window"
    SET_WINDOW_OPTION = "set-window-option"
    SELECT_LAYOUT = "select-layout"
    KILL_SESSION = "kill-session"
    HAS_SESSION = "has-session"
    LIST_SESSIONS = "list-sessions"
    ATTACH_SESSION = "attach-session"
    SWITCH_CLIENT = "switch-client"


class TmuxClient:
    """Client for the tmux server tm talks to."""

    def __init__(self, server: libtmux.Server | None = None):
        """Initialize tmux client.

        Args:
            server: libtmux server to use, the default server if omitted
        """
        self._server = server if server is not None else libtmux.Server()

    @property
    def server(self) -> libtmux.Server:
        return self._server

    def _cmd(self, command: TmuxCommand | str, *args: str) -> Any:
        name = command.value if isinstance(command, TmuxCommand) else command
        log_tmux_command([name, *args])
        return self._server.cmd(name, *args)

    def run(self, command: TmuxCommand | str, *args: str) -> list[str]:
        """Run a tmux command and return its stdout lines.

        Raises:
            PaneTooSmallError: If tmux had no room for a new pane
            TmuxError: If tmux reported any other error
        """
        proc = self._cmd(command, *args)
        if proc.stderr:
            name = command.value if isinstance(command, TmuxCommand) else command
            message = "; ".join(proc.stderr)
            full_command = [name, *args]
            if any(marker in message for marker in PANE_TOO_SMALL_MARKERS):
                raise PaneTooSmallError(
                    f"tmux {name}: {message}", command=full_command, stderr=proc.stderr
                )
            raise TmuxError(
                f"tmux {name}: {message}", command=full_command, stderr=proc.stderr
            )
        return list(proc.stdout)

    def run_line(self, line: str) -> list[str]:
        """Run a tmux command written as a single shell-quoted line."""
        tokens = shlex.split(line)
        if not tokens:
            return []
        return self.run(tokens[0], *tokens[1:])

    def new_session(
        self,
        session_name: str,
        window_name: str | None = None,
        command: str | None = None,
        group: str | None = None,
    ) -> None:
        """Create a detached session.

        Args:
            session_name: Name of the new session
            window_name: Title of its first window
            command: Command run in the first window
            group: Existing session whose windows the new session shares
        """
        args = ["-d", "-s", session_name]
        if group:
            args += ["-t", group]
        if window_name:
            args += ["-n", window_name]
        if command:
            args.append(command)
        self.run(TmuxCommand.NEW_SESSION, *args)
        log_session_operation("create", session_name)

    def new_window(
        self, target: str, window_name: str | None = None, command: str | None = None
    ) -> None:
        """Add a window to the session ``target``."""
        args = ["-d", "-t", target]
        if window_name:
            args += ["-n", window_name]
        if command:
            args.append(command)
        self.run(TmuxCommand.NEW_WINDOW, *args)

    def split_window(self, target: str, command: str | None = None) -> None:
        """Split the active pane of window ``target``."""
        args = ["-d", "-t", target]
        if command:
            args.append(command)
        self.run(TmuxCommand.SPLIT_WINDOW, *args)

    def set_window_option(self, target: str, option: str, value: str) -> None:
        self.run(TmuxCommand.SET_WINDOW_OPTION, "-t", target, option, value)

    def select_layout(self, target: str, layout: str = "tiled") -> None:
        self.run(TmuxCommand.SELECT_LAYOUT, "-t", target, layout)

    def kill_session(self, session_name: str) -> None:
        self.run(TmuxCommand.KILL_SESSION, "-t", session_name)
        log_session_operation("kill", session_name)

    def has_session(self, session_name: str) -> bool:
        """Check if a session with exactly this name exists."""
        proc = self._cmd(TmuxCommand.HAS_SESSION, "-t", f"={session_name}")
        return not proc.stderr

    def list_sessions(self) -> list[str]:
        """Return the lines tmux prints for ``list-sessions``.

        A server without sessions is not an error.
        """
        proc = self._cmd(TmuxCommand.LIST_SESSIONS)
        if proc.stderr:
            tmux_logger.debug(f"list-sessions: {'; '.join(proc.stderr)}")
            return []
        return list(proc.stdout)

    def attach(self, session_name: str, options: list[str] | None = None) -> None:
        """Hand the terminal over to tmux.

        Outside tmux the current process is replaced by ``tmux attach-session``.
        Inside tmux the current client is switched to the session.
        """
        options = options or []
        log_session_attach(session_name, options)
        if os.environ.get("TMUX"):
            self.run(TmuxCommand.SWITCH_CLIENT, "-t", session_name)
            return

        tmux_bin = getattr(self._server, "tmux_bin", None) or "tmux"
        argv = [tmux_bin]
        socket_name = getattr(self._server, "socket_name", None)
        socket_path = getattr(self._server, "socket_path", None)
        if socket_name:
            argv.append(f"-L{socket_name}")
        if socket_path:
            argv.append(f"-S{socket_path}")
        argv += [*options, TmuxCommand.ATTACH_SESSION.value, "-t", session_name]
        log_tmux_command(argv[1:])
        os.execvp(argv[0], argv)


# Global tmux client instance
_tmux_client: TmuxClient | None = None


def get_tmux_client() -> TmuxClient:
    """Get the global tmux client instance.

    Returns:
        TmuxClient instance
    """
    global _tmux_client
    if _tmux_client is None:
        _tmux_client = TmuxClient()
    return _tmux_client


def reset_tmux_client() -> None:
    """Forget the global tmux client."""
    global _tmux_client
    _tmux_client = None
