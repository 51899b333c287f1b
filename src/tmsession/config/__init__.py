"""Settings management module."""

from .loader import TmSettings, find_config_file, load_config

__all__ = ["TmSettings", "load_config", "find_config_file"]
