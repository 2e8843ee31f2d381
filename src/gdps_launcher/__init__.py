"""
GDPS Launcher - launcher for private Geometry Dash servers.

Registers private servers by id, patches a local copy of the game for each
of them and launches the game against the selected server.
"""

__version__ = "0.1.0"
__description__ = "Launcher for private Geometry Dash servers"

# Public API
from gdps_launcher.core.exceptions import LauncherError
from gdps_launcher.core.models import Catalog, CatalogEntry, ServerMetadata

__all__ = [
    "__version__",
    "__description__",
    "LauncherError",
    "Catalog",
    "CatalogEntry",
    "ServerMetadata",
]
