"""Core GDPS Launcher functionality."""

from gdps_launcher.core.controller import LauncherController
from gdps_launcher.core.exceptions import (
    FetchError,
    HostError,
    LauncherError,
    PatchInProgressError,
    SelectionError,
    ValidationError,
)
from gdps_launcher.core.models import Catalog, CatalogEntry, PatchPhase, PatchSession, ServerMetadata

__all__ = [
    "LauncherController",
    "LauncherError",
    "ValidationError",
    "SelectionError",
    "FetchError",
    "HostError",
    "PatchInProgressError",
    "Catalog",
    "CatalogEntry",
    "PatchPhase",
    "PatchSession",
    "ServerMetadata",
]
