"""CLI utilities for output formatting and error handling."""

import sys
from collections.abc import Callable
from functools import wraps
from typing import Any

import click

from ..utils.logging import InvocationError, TmSessionException

# Exit code for an unusable command line
USAGE_EXIT_CODE = 42


class CliError(Exception):
    """Exception for CLI errors."""

    def __init__(self, message: str, exit_code: int = 1):
        """Initialize CLI error.

        Args:
            message: Error message
            exit_code: Exit code for the CLI
        """
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


def show_usage(ctx: click.Context, message: str | None = None) -> None:
    """Print usage text to stdout and the reason to stderr."""
    click.echo(ctx.get_help())
    if message:
        click.echo(click.style(f"Error: {message}", fg="red"), err=True)


def error_handler(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator for handling CLI errors."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except InvocationError as e:
            show_usage(click.get_current_context(), e.message)
            sys.exit(USAGE_EXIT_CODE)
        except CliError as e:
            click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
            sys.exit(e.exit_code)
        except TmSessionException as e:
            click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
            sys.exit(1)
        except Exception as e:
            click.echo(click.style(f"Unexpected error: {e}", fg="red"), err=True)
            sys.exit(1)

    return wrapper


def success_message(message: str) -> None:
    """Display a success message."""
    click.echo(click.style(f"✓ {message}", fg="green"))


def verbose_echo(ctx: click.Context, message: str) -> None:
    """Echo message only if debug mode is enabled."""
    if ctx.obj and ctx.obj.get("debug"):
        click.echo(click.style(f"[DEBUG] {message}", fg="blue"), err=True)


class UsageCommand(click.Command):
    """Command that answers unusable arguments with the usage text.

    Unknown options and bad option values print the full help on stdout and
    exit with :data:`USAGE_EXIT_CODE` instead of click's short usage line.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            show_usage(ctx, e.format_message())
            ctx.exit(USAGE_EXIT_CODE)
