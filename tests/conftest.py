"""
Pytest configuration and shared fixtures for tmsession tests.
"""

import sys
from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tmsession.config import TmSettings
from tmsession.tmux.client import TmuxClient, reset_tmux_client


class FakeTmuxServer:
    """Stand-in for ``libtmux.Server`` that records every tmux command.

    Sessions created with ``new-session`` are remembered so ``has-session``
    answers like a real server. ``failures`` maps a tmux command to a list
    of stderr outputs returned by its next calls.
    """

    tmux_bin = "tmux"
    socket_name = None
    socket_path = None

    def __init__(
        self,
        sessions: tuple[str, ...] = (),
        failures: dict[str, list[list[str]]] | None = None,
    ):
        self.sessions = set(sessions)
        self.failures = failures or {}
        self.calls: list[list[str]] = []

    def cmd(self, cmd: str, *args: Any) -> SimpleNamespace:
        self.calls.append([cmd, *args])

        queued = self.failures.get(cmd)
        if queued:
            return SimpleNamespace(stdout=[], stderr=queued.pop(0), returncode=1)

        if cmd == "has-session":
            name = args[-1].lstrip("=")
            if name in self.sessions:
                return SimpleNamespace(stdout=[], stderr=[], returncode=0)
            return SimpleNamespace(
                stdout=[], stderr=[f"can't find session: {name}"], returncode=1
            )
        if cmd == "new-session":
            self.sessions.add(args[list(args).index("-s") + 1])
        if cmd == "kill-session":
            self.sessions.discard(args[-1])
        if cmd == "list-sessions":
            if not self.sessions:
                return SimpleNamespace(
                    stdout=[], stderr=["no server running"], returncode=1
                )
            return SimpleNamespace(
                stdout=[f"{name}: 1 windows" for name in sorted(self.sessions)],
                stderr=[],
                returncode=0,
            )
        return SimpleNamespace(stdout=[], stderr=[], returncode=0)

    def commands(self, name: str) -> list[list[str]]:
        """Recorded calls of tmux command ``name``."""
        return [call for call in self.calls if call[0] == name]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep tests independent of the caller's tmux and tm environment."""
    for variable in (
        "TMUX",
        "TMSORT",
        "TMOPTS",
        "TMDIR",
        "TMSESSHOST",
        "TMSSHCMD",
        "TMDEBUG",
        "TMWIN",
        "TMLAYOUTRETRIES",
        "TMLOGLEVEL",
        "TMLOGFILE",
        "TMLOGFORMAT",
    ):
        monkeypatch.delenv(variable, raising=False)
    reset_tmux_client()
    yield
    reset_tmux_client()


@pytest.fixture
def fake_server() -> FakeTmuxServer:
    """A recording tmux server without sessions."""
    return FakeTmuxServer()


@pytest.fixture
def client(fake_server) -> TmuxClient:
    """TmuxClient talking to the recording server."""
    return TmuxClient(server=fake_server)


@pytest.fixture
def session_dir(tmp_path) -> Path:
    """Empty session file directory."""
    path = tmp_path / "tmux.d"
    path.mkdir()
    return path


@pytest.fixture
def make_settings(tmp_path, session_dir) -> Callable[..., TmSettings]:
    """Factory for settings pointing at temporary directories."""

    def _make(**overrides: Any) -> TmSettings:
        values: dict[str, Any] = {
            "tmpdir": str(tmp_path),
            "session_dir": str(session_dir),
        }
        values.update(overrides)
        return TmSettings(**values)

    return _make


@pytest.fixture
def write_session_file(session_dir) -> Callable[[str, str], Path]:
    """Write a session file into the session directory."""

    def _write(filename: str, content: str) -> Path:
        path = session_dir / filename
        path.write_text(content)
        return path

    return _write
