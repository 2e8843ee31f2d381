"""Utility modules for GDPS Launcher."""

from gdps_launcher.utils.logging import get_logger, setup_from_config, setup_logging
from gdps_launcher.utils.config import Config, get_config
from gdps_launcher.utils.validators import normalize_server_id

__all__ = [
    "get_logger",
    "setup_logging",
    "setup_from_config",
    "Config",
    "get_config",
    "normalize_server_id",
]
