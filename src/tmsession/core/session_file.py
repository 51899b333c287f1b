"""
Session definition files.

A session file lives in the session directory and describes one session:

    line 1     session name
    line 2     extra options for the attach call, or NONE
    line 3...  hosts (simple file) or tmux commands (free-form ``.cfg`` file,
               line 3 being the command that creates the session)

Directive lines may also be ``LIST <shell command>`` (replaced by the
command's output lines), ``SSHCMD <command>`` (connect command for the
following hosts) or a lone ``$VARIABLE`` (replaced by the variable's value).
"""

import os
import shlex
import subprocess  # nosec B404
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from ..utils.logging import LogContext, SessionFileError, get_logger
from .templating import (
    REPLACE_TOKEN,
    REPLACE_VARIABLE,
    lone_variable,
    replace_token,
    substitute_variables,
)

logger = get_logger(__name__, LogContext.CONFIG)

FREEFORM_SUFFIX = ".cfg"
DEFAULT_OPTIONS = "NONE"
LIST_DIRECTIVE = "LIST"
SSHCMD_DIRECTIVE = "SSHCMD"


@dataclass
class HostEntry:
    """A host from a simple session file and the command used to reach it."""

    host: str
    connect_command: str

    @property
    def command(self) -> str:
        return f"{self.connect_command} {self.host}"


@dataclass
class SessionFile:
    """A loaded session definition file."""

    path: Path
    name: str
    options: list[str] | None
    freeform: bool
    directives: list[str]
    hosts: list[HostEntry] = field(default_factory=list)

    @property
    def create_command(self) -> str | None:
        """tmux command creating a free-form session."""
        if not self.freeform or not self.directives:
            return None
        return self.directives[0]

    @property
    def commands(self) -> list[str]:
        """tmux commands run after the free-form session exists."""
        if not self.freeform:
            return []
        return self.directives[1:]


def find_session_file(session_dir: Path, name: str) -> Path | None:
    """Find the session file for ``name``, simple files first."""
    if not name or "/" in name:
        return None
    for candidate in (session_dir / name, session_dir / f"{name}{FREEFORM_SUFFIX}"):
        if candidate.is_file():
            return candidate
    return None


def read_host_file(path: Path) -> list[str]:
    """Read hosts from ``path``, one per line; blank lines and comments skipped."""
    hosts = []
    for line in path.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            hosts.append(line)
    return hosts


class SessionFileLoader:
    """Reads session files and expands their directives."""

    def __init__(
        self,
        tmpdir: Path,
        ssh_cmd: str = "ssh",
        replacement: str | None = None,
        environ: dict[str, str] | None = None,
    ):
        """Initialize loader.

        Args:
            tmpdir: Directory for the file capturing LIST command output
            ssh_cmd: Default command used to connect to hosts
            replacement: Value for ++TMREPLACETAG++ and ${REPLACE}
            environ: Environment used for variable expansion
        """
        self.tmpdir = tmpdir
        self.ssh_cmd = ssh_cmd
        self.replacement = replacement
        self.environ = dict(os.environ) if environ is None else dict(environ)

    def load(self, path: Path) -> SessionFile:
        """Load and expand the session file at ``path``.

        Raises:
            SessionFileError: If the file is too short or defines nothing to run
        """
        text = path.read_text()
        if REPLACE_TOKEN in text and self.replacement is None:
            logger.warning(
                f"{path} contains {REPLACE_TOKEN} but no replacement was given",
                path=str(path),
            )
        lines = replace_token(text, self.replacement).splitlines()
        if len(lines) < 3:
            raise SessionFileError(
                f"Session file {path} needs a name, an options line and at least one entry",
                {"path": str(path), "lines": len(lines)},
            )

        name = lines[0].strip()
        options_line = lines[1].strip()
        options = (
            None
            if not options_line or options_line == DEFAULT_OPTIONS
            else shlex.split(options_line)
        )
        freeform = path.suffix == FREEFORM_SUFFIX

        directives = self.expand(lines[2:])
        hosts: list[HostEntry] = []
        if freeform:
            directives = self._drop_sshcmd(path, directives)
        else:
            hosts = self._resolve_hosts(directives)
            if not hosts:
                raise SessionFileError(
                    f"Session file {path} lists no hosts", {"path": str(path)}
                )
        if not directives:
            raise SessionFileError(
                f"Session file {path} has no commands", {"path": str(path)}
            )

        session_file = SessionFile(
            path=path,
            name=name,
            options=options,
            freeform=freeform,
            directives=directives,
            hosts=hosts,
        )
        logger.info(
            "Session file loaded",
            path=str(path),
            session=name,
            freeform=freeform,
            directive_count=len(directives),
        )
        return session_file

    def expand(self, lines: list[str]) -> list[str]:
        """Expand LIST and lone variable lines, keeping their position."""
        expanded: list[str] = []
        for raw in lines:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue

            keyword, _, argument = line.partition(" ")
            if keyword == LIST_DIRECTIVE:
                expanded.extend(self.run_list_command(argument.strip()))
                continue

            variable = lone_variable(line)
            if variable is not None and variable in self.environ:
                expanded.extend(_non_empty_lines(self.environ[variable]))
                continue

            expanded.append(line)
        return expanded

    def run_list_command(self, command: str) -> list[str]:
        """Run a LIST command and return its output lines.

        The output is captured in a temporary file which is always removed.
        A failing command is logged; whatever it printed is still used.
        """
        command = substitute_variables(command, self._allowed_variables())
        fd, tmp_name = tempfile.mkstemp(prefix="tm.", dir=self.tmpdir)
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w") as output:
                result = subprocess.run(  # nosec B602
                    command, shell=True, stdout=output, check=False
                )
            if result.returncode != 0:
                logger.warning(
                    f"LIST command exited with {result.returncode}",
                    command=command,
                    returncode=result.returncode,
                )
            lines = _non_empty_lines(tmp_path.read_text())
        finally:
            tmp_path.unlink(missing_ok=True)

        logger.debug("LIST command expanded", command=command, line_count=len(lines))
        return lines

    def _allowed_variables(self) -> dict[str, str]:
        allowed = dict(self.environ)
        if self.replacement is not None:
            allowed[REPLACE_VARIABLE] = self.replacement
        return allowed

    def _resolve_hosts(self, directives: list[str]) -> list[HostEntry]:
        connect_command = self.ssh_cmd
        hosts = []
        for line in directives:
            keyword, _, argument = line.partition(" ")
            if keyword == SSHCMD_DIRECTIVE:
                connect_command = argument.strip() or self.ssh_cmd
                continue
            hosts.append(HostEntry(host=line, connect_command=connect_command))
        return hosts

    def _drop_sshcmd(self, path: Path, directives: list[str]) -> list[str]:
        kept = []
        for line in directives:
            if line.partition(" ")[0] == SSHCMD_DIRECTIVE:
                logger.warning(
                    f"Ignoring {SSHCMD_DIRECTIVE} in free-form session file {path}",
                    path=str(path),
                )
                continue
            kept.append(line)
        return kept


def _non_empty_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]
