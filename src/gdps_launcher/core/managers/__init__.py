"""
Manager modules for GDPS Launcher.

Each manager owns one piece of observable launcher state: the catalog,
the add-server patch session and the current selection.
"""

from .registry_manager import ServerRegistry
from .patch_manager import PatchOrchestrator
from .selection_manager import SelectionManager

__all__ = [
    "ServerRegistry",
    "PatchOrchestrator",
    "SelectionManager",
]
