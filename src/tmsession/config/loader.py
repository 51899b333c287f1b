"""Settings loading and management."""

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..utils.logging import ConfigurationError


class TmSettings(BaseModel):
    """Settings model for tm."""

    # Temporary files (LIST expansion)
    tmpdir: str = Field(default="/tmp", description="Directory for temporary files")

    # Session naming
    sort: bool = Field(default=True, description="Sort hosts when deriving session names")
    session_host: bool = Field(
        default=True, description="Prefix generated session names with the local hostname"
    )

    # tmux client
    opts: str = Field(default="-2", description="Extra options given to tmux on attach")
    window_index: int = Field(
        default=1, description="Index of the first window (tmux base-index)"
    )
    max_layout_retries: int = Field(
        default=10,
        ge=0,
        description="How often a pane split is retried after re-tiling the window",
    )

    # Session files
    session_dir: str = Field(
        default="~/.tmux.d", description="Directory holding session definition files"
    )

    # Remote connections
    ssh_cmd: str = Field(default="ssh", description="Command used to connect to hosts")

    # Logging
    debug: bool = Field(default=False, description="Show every tmux command")
    log_level: str = Field(default="WARNING", description="Logging level")
    log_file: str | None = Field(default=None, description="Log file path")
    log_format: Literal["text", "json"] = Field(
        default="text", description="Log record format, plain text or JSON lines"
    )

    @property
    def session_dir_path(self) -> Path:
        """Session file directory with ``~`` expanded."""
        return Path(self.session_dir).expanduser()

    @property
    def tmpdir_path(self) -> Path:
        """Temporary directory with ``~`` expanded."""
        return Path(self.tmpdir).expanduser()


# Map environment variables to settings keys
ENV_MAPPINGS = {
    "TMPDIR": "tmpdir",
    "TMSORT": "sort",
    "TMOPTS": "opts",
    "TMDIR": "session_dir",
    "TMSESSHOST": "session_host",
    "TMSSHCMD": "ssh_cmd",
    "TMDEBUG": "debug",
    "TMWIN": "window_index",
    "TMLAYOUTRETRIES": "max_layout_retries",
    "TMLOGLEVEL": "log_level",
    "TMLOGFILE": "log_file",
    "TMLOGFORMAT": "log_format",
}

BOOLEAN_KEYS = {"sort", "session_host", "debug"}
INTEGER_KEYS = {"window_index", "max_layout_retries"}


def find_config_file(custom_path: str | None = None) -> Path | None:
    """Find settings file in standard locations."""
    if custom_path:
        path = Path(custom_path).expanduser()
        if path.exists():
            return path
        raise ConfigurationError(
            f"Settings file not found: {custom_path}", {"path": custom_path}
        )

    search_paths = [
        Path.cwd() / "tm.yaml",
        Path.home() / ".config" / "tm" / "config.yaml",
        Path.home() / ".tm.yaml",
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None


def load_config_file(config_path: Path) -> dict[str, Any]:
    """Load settings from a YAML file."""
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in settings file {config_path}: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to read settings file {config_path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {config_path} must contain a mapping")
    return data


def load_env_vars(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Load settings from environment variables."""
    if environ is None:
        environ = dict(os.environ)

    config: dict[str, Any] = {}
    for env_var, config_key in ENV_MAPPINGS.items():
        if env_var not in environ:
            continue
        env_value = environ[env_var]
        if config_key in INTEGER_KEYS:
            try:
                config[config_key] = int(env_value)
            except ValueError:
                continue
        elif config_key in BOOLEAN_KEYS:
            config[config_key] = env_value.lower() in ("true", "1", "yes", "on")
        else:
            config[config_key] = env_value

    return config


def load_config(
    config_path: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
    environ: dict[str, str] | None = None,
) -> TmSettings:
    """Load settings from file and environment variables.

    Precedence order (highest to lowest):
    1. CLI flag overrides
    2. Environment variables
    3. Settings file
    4. Default values
    """
    config_data: dict[str, Any] = {}

    config_file = find_config_file(config_path)
    if config_file:
        config_data.update(load_config_file(config_file))

    config_data.update(load_env_vars(environ))

    if cli_overrides:
        config_data.update({k: v for k, v in cli_overrides.items() if v is not None})

    try:
        return TmSettings(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}")
