"""Native host implementations."""

from .base import GameHost
from .local import LocalGameHost

__all__ = [
    "GameHost",
    "LocalGameHost",
]
