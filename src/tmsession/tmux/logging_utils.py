"""Logging utilities for tmux operations."""

import logging

# Create tmux logger
tmux_logger = logging.getLogger("tmsession.tmux")


def log_tmux_command(args: list[str]) -> None:
    """Log a tmux control command before it runs."""
    tmux_logger.debug(f"tmux {' '.join(args)}")


def log_session_operation(operation: str, session_name: str) -> None:
    """Log a completed session operation."""
    tmux_logger.info(f"Session {operation} done - {session_name}")


def log_layout_retry(target: str, attempt: int, max_attempts: int) -> None:
    """Log a re-tile after tmux refused a pane."""
    tmux_logger.warning(
        f"Pane too small in {target}, re-tiling (attempt {attempt}/{max_attempts})"
    )


def log_session_attach(session_name: str, options: list[str]) -> None:
    """Log session attachment."""
    message = f"Session attached - {session_name}"
    if options:
        message += f" (options: {' '.join(options)})"
    tmux_logger.info(message)


def log_session_kill(session_name: str, existed: bool) -> None:
    """Log session kill."""
    if existed:
        tmux_logger.info(f"Session killed - {session_name}")
    else:
        tmux_logger.info(f"Session kill skipped, no such session - {session_name}")
