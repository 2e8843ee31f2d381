"""
Selection & view state.

Tracks the catalog entry the user picked, keeps it in sync with catalog
refreshes and launches the game for it.
"""

from typing import Callable, List, Optional

from gdps_launcher.core.exceptions import HostError, SelectionError
from gdps_launcher.core.host.base import GameHost
from gdps_launcher.core.managers.registry_manager import ServerRegistry
from gdps_launcher.core.models import Catalog, CatalogEntry, ServerView
from gdps_launcher.utils.logging import get_logger

logger = get_logger(__name__)

SelectionListener = Callable[[Optional[CatalogEntry]], None]


class SelectionManager:
    """Current selection over the registry's catalog."""

    def __init__(self, registry: ServerRegistry, host: GameHost):
        self.registry = registry
        self.host = host
        self._selected: Optional[CatalogEntry] = None
        self._listeners: List[SelectionListener] = []
        registry.subscribe(self._on_catalog)

    def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
        """Register a listener for selection changes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def current(self) -> Optional[CatalogEntry]:
        """Selected catalog entry, if any."""
        return self._selected

    @property
    def view(self) -> Optional[ServerView]:
        """Presentation data for the selected server."""
        if self._selected is None:
            return None
        return ServerView.from_entry(self._selected)

    def select(self, server_id: Optional[str]) -> None:
        """
        Select a catalog entry by id, or clear the selection with ``None``.

        Raises:
            SelectionError: If the id is not in the current catalog; the
                selection is left unchanged
        """
        if server_id is None:
            self._set(None)
            return

        entry = self.registry.catalog.get(server_id.strip())
        if entry is None:
            raise SelectionError(
                f"Server '{server_id}' is not in the catalog",
                error_code="unknown_server",
                details={"server_id": server_id},
            )
        self._set(entry)

    async def launch(self) -> None:
        """
        Run the game for the selected server.

        Raises:
            SelectionError: If nothing is selected
            HostError: If the host fails to start the game
        """
        entry = self._selected
        if entry is None:
            raise SelectionError("No server selected", error_code="no_selection")

        logger.info(f"Launching {entry}")
        try:
            await self.host.run_game(entry.server_id)
        except HostError:
            raise
        except Exception as e:
            raise HostError(str(e) or e.__class__.__name__, error_code="launch_failed") from e

    def _on_catalog(self, catalog: Catalog) -> None:
        if self._selected is None:
            return
        # Rebind to the fresh entry so the view never shows stale metadata
        entry = catalog.get(self._selected.server_id)
        if entry is None:
            logger.info(f"Selected server {self._selected.server_id} left the catalog, clearing selection")
        self._set(entry)

    def _set(self, entry: Optional[CatalogEntry]) -> None:
        if entry == self._selected:
            return
        self._selected = entry
        for listener in list(self._listeners):
            try:
                listener(entry)
            except Exception:
                logger.exception("Selection listener failed")
