"""
Session dispatcher.

Turns a resolved :class:`~tmsession.core.invocation.Invocation` into the
tmux commands that create and populate a session, and finally attaches to
it. Flow: resolve name, load session file if one exists, create and
populate the session unless it already exists, attach.
"""

import os
import shlex
from collections.abc import Callable
from dataclasses import dataclass

from ..config import TmSettings
from ..tmux.client import TmuxClient
from ..tmux.logging_utils import log_layout_retry, log_session_kill
from ..utils.logging import LogContext, PaneTooSmallError, TmuxError, get_logger
from .enums import Mode
from .invocation import Invocation
from .naming import (
    clean_session_name,
    local_hostname,
    session_name_for,
    unique_session_name,
)
from .session_file import (
    HostEntry,
    SessionFile,
    SessionFileLoader,
    find_session_file,
)

logger = get_logger(__name__, LogContext.SESSION)

TILED_LAYOUT = "tiled"
SYNCHRONIZE_PANES = "synchronize-panes"


@dataclass
class AttachPlan:
    """The session to attach to and the tmux options for the attach call."""

    session_name: str
    options: list[str]
    created: bool = False


class SessionDispatcher:
    """Issues the tmux commands for one tm invocation."""

    def __init__(
        self,
        client: TmuxClient,
        settings: TmSettings,
        hostname: str | None = None,
        pid: int | None = None,
        environ: dict[str, str] | None = None,
    ):
        """Initialize dispatcher.

        Args:
            client: tmux client commands are issued through
            settings: Loaded tm settings
            hostname: Local hostname for name prefixes, looked up if omitted
            pid: Process id used to make names unique, ours if omitted
            environ: Environment for session file expansion
        """
        self.client = client
        self.settings = settings
        self._hostname = hostname
        self.pid = pid if pid is not None else os.getpid()
        self.environ = environ

    @property
    def hostname(self) -> str:
        if self._hostname is None:
            self._hostname = local_hostname()
        return self._hostname

    @property
    def default_options(self) -> list[str]:
        return shlex.split(self.settings.opts)

    def list_sessions(self) -> list[str]:
        return self.client.list_sessions()

    def kill(self, session_name: str) -> bool:
        """Kill ``session_name``.

        Returns:
            True if the session existed and was killed, False if there was
            nothing to kill
        """
        if not self.client.has_session(session_name):
            log_session_kill(session_name, existed=False)
            return False
        self.client.kill_session(session_name)
        log_session_kill(session_name, existed=True)
        return True

    def prepare(self, invocation: Invocation) -> AttachPlan:
        """Create and populate the session ``invocation`` asks for.

        Returns:
            The session to attach to

        Raises:
            TmuxError: If a tmux command fails
            SessionFileError: If a session file cannot be used
        """
        if invocation.mode in (Mode.SSH, Mode.MULTI_SSH):
            return self._prepare_ssh(invocation)
        if invocation.mode is Mode.SESSION:
            return self._prepare_named(invocation)
        raise ValueError(f"Mode {invocation.mode.value} does not open a session")

    def attach(self, plan: AttachPlan) -> None:
        self.client.attach(plan.session_name, plan.options)

    def _prepare_ssh(self, invocation: Invocation) -> AttachPlan:
        multi = invocation.mode is Mode.MULTI_SSH
        if multi and len(invocation.args) == 1:
            session_file = self._find_and_load(invocation.args[0], invocation)
            if session_file is not None and not session_file.freeform:
                return self._open_hosts(
                    clean_session_name(session_file.name),
                    session_file.hosts,
                    multi=True,
                    invocation=invocation,
                    options=session_file.options,
                )

        hosts = [
            HostEntry(host=host, connect_command=self.settings.ssh_cmd)
            for host in invocation.args
        ]
        name = session_name_for(
            invocation.seed,
            invocation.args,
            sort=self.settings.sort,
            host_prefix=self.hostname if self.settings.session_host else None,
        )
        return self._open_hosts(name, hosts, multi=multi, invocation=invocation)

    def _prepare_named(self, invocation: Invocation) -> AttachPlan:
        session_file = self._find_and_load(invocation.seed, invocation)
        if session_file is None:
            return self._open_plain(clean_session_name(invocation.seed), invocation)
        name = clean_session_name(session_file.name)
        if session_file.freeform:
            return self._open_freeform(name, session_file, invocation)
        return self._open_hosts(
            name,
            session_file.hosts,
            multi=False,
            invocation=invocation,
            options=session_file.options,
        )

    def _find_and_load(self, name: str, invocation: Invocation) -> SessionFile | None:
        path = find_session_file(self.settings.session_dir_path, name)
        if path is None:
            return None
        loader = SessionFileLoader(
            tmpdir=self.settings.tmpdir_path,
            ssh_cmd=self.settings.ssh_cmd,
            replacement=invocation.replacement,
            environ=self.environ,
        )
        return loader.load(path)

    def _open_hosts(
        self,
        name: str,
        hosts: list[HostEntry],
        multi: bool,
        invocation: Invocation,
        options: list[str] | None = None,
    ) -> AttachPlan:
        options = options if options is not None else self.default_options

        if invocation.existing:
            target = invocation.existing
            if not self.client.has_session(target):
                raise TmuxError(
                    f"Session {target} does not exist",
                    command=["has-session", "-t", target],
                )
            logger.info(
                "Adding hosts to existing session", session=target, hosts=len(hosts)
            )
            self._populate(target, hosts, multi=multi)
            return AttachPlan(session_name=target, options=options)

        if self.client.has_session(name):
            if not invocation.new_session:
                logger.info("Session exists, attaching", session=name)
                return AttachPlan(session_name=name, options=options)
            name = unique_session_name(name, self.client.has_session, self.pid)

        first, rest = hosts[0], hosts[1:]
        self.client.new_session(name, window_name=first.host, command=first.command)
        self._populate(name, rest, multi=multi)
        return AttachPlan(session_name=name, options=options, created=True)

    def _populate(self, session_name: str, hosts: list[HostEntry], multi: bool) -> None:
        if not multi:
            for entry in hosts:
                self._with_layout_retry(
                    session_name,
                    lambda entry=entry: self.client.new_window(
                        session_name, window_name=entry.host, command=entry.command
                    ),
                )
            return

        window = f"{session_name}:{self.settings.window_index}"
        for entry in hosts:
            self._with_layout_retry(
                window,
                lambda entry=entry: self.client.split_window(
                    window, command=entry.command
                ),
            )
        self.client.select_layout(window, TILED_LAYOUT)
        self.client.set_window_option(window, SYNCHRONIZE_PANES, "on")

    def _with_layout_retry(self, target: str, action: Callable[[], None]) -> None:
        """Run ``action``, re-tiling ``target`` whenever tmux has no room left.

        The same action is retried after each re-tile, at most
        ``max_layout_retries`` times.
        """
        max_retries = self.settings.max_layout_retries
        attempt = 0
        while True:
            try:
                action()
                return
            except PaneTooSmallError:
                attempt += 1
                if attempt > max_retries:
                    logger.error(
                        "Giving up after re-tiling", target=target, retries=max_retries
                    )
                    raise
                log_layout_retry(target, attempt, max_retries)
                self.client.select_layout(target, TILED_LAYOUT)

    def _open_freeform(
        self, name: str, session_file: SessionFile, invocation: Invocation
    ) -> AttachPlan:
        options = (
            session_file.options
            if session_file.options is not None
            else self.default_options
        )

        if self.client.has_session(name):
            if not invocation.new_session:
                logger.info("Session exists, attaching", session=name)
                return AttachPlan(session_name=name, options=options)
            grouped = unique_session_name(name, self.client.has_session, self.pid)
            self.client.new_session(grouped, group=name)
            return AttachPlan(session_name=grouped, options=options, created=True)

        for line in [session_file.create_command, *session_file.commands]:
            if line:
                self.client.run_line(line)
        logger.info(
            "Free-form session created",
            session=name,
            path=str(session_file.path),
            commands=len(session_file.directives),
        )
        return AttachPlan(session_name=name, options=options, created=True)

    def _open_plain(self, name: str, invocation: Invocation) -> AttachPlan:
        options = self.default_options
        if not self.client.has_session(name):
            self.client.new_session(name)
            return AttachPlan(session_name=name, options=options, created=True)
        if not invocation.new_session:
            return AttachPlan(session_name=name, options=options)
        grouped = unique_session_name(name, self.client.has_session, self.pid)
        self.client.new_session(grouped, group=name)
        return AttachPlan(session_name=grouped, options=options, created=True)
