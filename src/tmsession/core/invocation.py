"""Resolution of a tm command line into a canonical invocation."""

from dataclasses import dataclass, field
from pathlib import Path

from ..utils.logging import InvocationError, LogContext, get_logger
from .enums import TRADITIONAL_MODES, Mode
from .session_file import read_host_file

logger = get_logger(__name__, LogContext.CLI)


@dataclass
class Invocation:
    """A normalized tm invocation.

    ``seed`` is what the session name is derived from: the mode tag for
    ``s``/``ms``, the session name for ``k`` and plain sessions.
    """

    mode: Mode
    seed: str
    args: list[str] = field(default_factory=list)
    new_session: bool = False
    existing: str | None = None
    replacement: str | None = None


def resolve_invocation(
    args: list[str] | tuple[str, ...],
    *,
    list_sessions: bool = False,
    ssh: bool = False,
    multi: bool = False,
    kill: str | None = None,
    hostfile: Path | None = None,
    existing: str | None = None,
    new_session: bool = False,
    replacement: str | None = None,
) -> Invocation:
    """Turn positional arguments and option flags into an :class:`Invocation`.

    Raises:
        InvocationError: For missing arguments or conflicting modes
    """
    args = list(args)
    hosts_from_file = read_host_file(hostfile) if hostfile else []

    flag_modes = [
        mode
        for mode, given in (
            (Mode.LIST, list_sessions),
            (Mode.SSH, ssh),
            (Mode.MULTI_SSH, multi),
            (Mode.KILL, kill is not None),
        )
        if given
    ]
    if len(flag_modes) > 1:
        raise InvocationError("Only one of -l, -s, -m and -k can be given")

    if flag_modes:
        if args and args[0] in TRADITIONAL_MODES:
            raise InvocationError(
                f"Mode '{args[0]}' cannot be combined with a mode option"
            )
        mode = flag_modes[0]
        _check_hostfile(mode, hosts_from_file)
        if mode is Mode.KILL:
            if args:
                raise InvocationError("-k takes exactly one session name")
            return _build(Mode.KILL, [kill or ""], new_session, existing, replacement)
        if mode is Mode.LIST:
            return _build(Mode.LIST, args, new_session, existing, replacement)
        return _build(mode, args + hosts_from_file, new_session, existing, replacement)

    if not args:
        if hosts_from_file:
            return _build(Mode.SSH, hosts_from_file, new_session, existing, replacement)
        raise InvocationError("No session or mode given")

    word, rest = args[0], args[1:]
    mode = TRADITIONAL_MODES.get(word, Mode.SESSION)
    _check_hostfile(mode, hosts_from_file)
    if mode is Mode.SESSION:
        if rest:
            raise InvocationError(f"Unexpected arguments after session name: {rest}")
        return _build(Mode.SESSION, [word], new_session, existing, replacement)
    if mode is Mode.KILL:
        if len(rest) != 1:
            raise InvocationError("k takes exactly one session name")
        return _build(Mode.KILL, rest, new_session, existing, replacement)
    if mode is Mode.LIST:
        return _build(Mode.LIST, rest, new_session, existing, replacement)
    return _build(mode, rest + hosts_from_file, new_session, existing, replacement)


def _check_hostfile(mode: Mode, hosts_from_file: list[str]) -> None:
    if hosts_from_file and mode not in (Mode.SSH, Mode.MULTI_SSH):
        raise InvocationError("-c can only be used to open ssh sessions")


def _build(
    mode: Mode,
    args: list[str],
    new_session: bool,
    existing: str | None,
    replacement: str | None,
) -> Invocation:
    if mode is Mode.LIST and args:
        raise InvocationError("ls takes no arguments")
    if mode in (Mode.SSH, Mode.MULTI_SSH) and not args:
        raise InvocationError(f"Mode '{mode.value}' needs at least one host")
    if mode is Mode.KILL and not args[0]:
        raise InvocationError("No session name given to kill")

    seed = mode.value if mode in (Mode.SSH, Mode.MULTI_SSH, Mode.LIST) else args[0]
    invocation = Invocation(
        mode=mode,
        seed=seed,
        args=args,
        new_session=new_session,
        existing=existing,
        replacement=replacement,
    )
    logger.debug(
        "Invocation resolved", mode=mode.value, seed=seed, arg_count=len(args)
    )
    return invocation
