"""Main CLI entry point for tm."""

from pathlib import Path

import click

from .. import __version__
from ..config import TmSettings, load_config
from ..core.dispatcher import SessionDispatcher
from ..core.enums import Mode
from ..core.invocation import resolve_invocation
from ..tmux.client import get_tmux_client
from ..utils.logging import LogContext, LogLevel, get_logger, setup_logging
from .utils import CliError, UsageCommand, error_handler, success_message, verbose_echo

logger = get_logger(__name__, LogContext.CLI)


def configure_logging(settings: TmSettings) -> None:
    """Set up logging from the loaded settings."""
    setup_logging(
        log_level=LogLevel.DEBUG if settings.debug else settings.log_level,
        log_file=Path(settings.log_file).expanduser() if settings.log_file else None,
        enable_structured=settings.log_format == "json",
    )


@click.command(
    cls=UsageCommand,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=__version__, prog_name="tm")
@click.option("-l", "list_sessions", is_flag=True, help="List running sessions")
@click.option("-s", "ssh", is_flag=True, help="Open one window per host over SSH")
@click.option(
    "-m",
    "multi",
    is_flag=True,
    help="Open all hosts in one tiled window with synchronized input",
)
@click.option(
    "-n",
    "new_session",
    is_flag=True,
    help="Open a second session even if the session already exists",
)
@click.option("-k", "kill", metavar="SESSION", help="Kill session SESSION")
@click.option(
    "-c",
    "hostfile",
    metavar="HOSTFILE",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read hosts from HOSTFILE, one per line",
)
@click.option(
    "-e",
    "existing",
    metavar="SESSION",
    help="Add the hosts to the existing session SESSION",
)
@click.option(
    "-r",
    "replacement",
    metavar="REPLACE",
    help="Value for ++TMREPLACETAG++ and ${REPLACE} in session files",
)
@click.option("--config", "config_path", metavar="PATH", help="tm settings file (YAML)")
@click.argument("args", nargs=-1)
@click.pass_context
@error_handler
def main(
    ctx: click.Context,
    list_sessions: bool,
    ssh: bool,
    multi: bool,
    new_session: bool,
    kill: str | None,
    hostfile: Path | None,
    existing: str | None,
    replacement: str | None,
    config_path: str | None,
    args: tuple[str, ...],
) -> None:
    """Open, attach to and manage tmux sessions.

    \b
    tm ls                 list running sessions
    tm s HOST...          one window per host, connected over SSH
    tm ms HOST...         all hosts tiled in one window, input synchronized
    tm ms SESSIONFILE     hosts of a session file, tiled and synchronized
    tm k SESSION          kill SESSION
    tm NAME               open the session file NAME from the session
                          directory, or attach to (or create) session NAME

    \b
    Environment: TMPDIR TMSORT TMOPTS TMDIR TMSESSHOST TMSSHCMD TMDEBUG TMWIN
                 TMLAYOUTRETRIES TMLOGLEVEL TMLOGFILE TMLOGFORMAT
    """
    invocation = resolve_invocation(
        args,
        list_sessions=list_sessions,
        ssh=ssh,
        multi=multi,
        kill=kill,
        hostfile=hostfile,
        existing=existing,
        new_session=new_session,
        replacement=replacement,
    )

    settings = load_config(config_path)
    configure_logging(settings)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = settings.debug

    dispatcher = SessionDispatcher(get_tmux_client(), settings)

    if invocation.mode is Mode.LIST:
        for line in dispatcher.list_sessions():
            click.echo(line)
        return

    if invocation.mode is Mode.KILL:
        if not dispatcher.kill(invocation.seed):
            raise CliError(f"No session named '{invocation.seed}'")
        success_message(f"Killed session '{invocation.seed}'")
        return

    plan = dispatcher.prepare(invocation)
    logger.set_session_name(plan.session_name)
    verbose_echo(ctx, f"Attaching to session '{plan.session_name}'")
    logger.debug("Attaching", new_session=plan.created)
    dispatcher.attach(plan)


if __name__ == "__main__":
    main()
