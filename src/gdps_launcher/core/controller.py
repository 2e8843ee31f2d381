"""
Launcher controller.

Composition root wiring the host, the metadata client and the managers
into a single observable state container for the presentation layer.
Every failure is turned into a status field or a boolean result here.
"""

from typing import Callable, List, Optional

from gdps_launcher.core.exceptions import HostError, LauncherError, PatchInProgressError, SelectionError
from gdps_launcher.core.host.base import GameHost
from gdps_launcher.core.host.local import LocalGameHost
from gdps_launcher.core.managers.patch_manager import PatchOrchestrator
from gdps_launcher.core.managers.registry_manager import ServerRegistry
from gdps_launcher.core.managers.selection_manager import SelectionManager
from gdps_launcher.core.metadata_client import MetadataClient
from gdps_launcher.core.models import LauncherState, PatchPhase, PatchSession
from gdps_launcher.utils.config import Config, get_config
from gdps_launcher.utils.logging import get_logger

logger = get_logger(__name__)

StateListener = Callable[[LauncherState], None]


class LauncherController:
    """Owns the launcher state and exposes the user operations."""
    
    def __init__(
        self,
        config: Optional[Config] = None,
        host: Optional[GameHost] = None,
        client: Optional[MetadataClient] = None,
        patch_lock=None,
    ):
        """
        Initialize the controller.
        
        Args:
            config: Configuration instance
            host: Native host (defaults to ``LocalGameHost``)
            client: Metadata client (created and owned here if omitted)
            patch_lock: Optional patch lock override
        """
        self.config = config or get_config()
        self.host = host or LocalGameHost(self.config)
        self._owns_client = client is None
        self.client = client or MetadataClient(self.config)
        
        self.registry = ServerRegistry(self.host, self.client)
        self.patcher = PatchOrchestrator(
            self.host,
            on_success=self._refresh_after_patch,
            lock=patch_lock,
        )
        # Created before the controller subscribes to the registry so the
        # selection is already reconciled when the new catalog is published
        self.selection = SelectionManager(self.registry, self.host)
        
        self._pending_refreshes = 0
        self._last_error: Optional[str] = None
        self._state = LauncherState()
        self._listeners: List[StateListener] = []
        
        self.registry.subscribe(lambda _catalog: self._publish())
        self.patcher.subscribe(lambda _session: self._publish())
        self.selection.subscribe(lambda _entry: self._publish())
        logger.debug("LauncherController initialized")
    
    @property
    def state(self) -> LauncherState:
        """Latest published state snapshot."""
        return self._state
    
    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called with every new state snapshot."""
        self._listeners.append(listener)
        
        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
                
        return unsubscribe
    
    async def start(self) -> bool:
        """Build the initial catalog."""
        return await self.refresh()
    
    async def refresh(self) -> bool:
        """
        Rebuild the catalog.
        
        Returns:
            False if the host could not enumerate servers; the previous
            catalog stays visible and ``last_error`` is set
        """
        self._pending_refreshes += 1
        self._publish()
        try:
            await self.registry.refresh()
        except HostError as e:
            self._set_error(f"Failed to scan servers: {e.message}")
            return False
        else:
            return True
        finally:
            self._pending_refreshes -= 1
            self._publish()
    
    def open_add_dialog(self) -> PatchSession:
        return self.patcher.open_dialog()
    
    def set_add_input(self, text: str) -> PatchSession:
        return self.patcher.set_input(text)
    
    def cancel_add_dialog(self) -> bool:
        return self.patcher.cancel()
    
    async def add_server(self, raw_input: Optional[str] = None) -> PatchSession:
        """
        Validate, patch and register a server.
        
        Returns:
            The finished session. A rejected request (another patch is
            running) yields a detached failed session and leaves the
            running one alone.
        """
        self._last_error = None
        self._publish()
        try:
            session = await self.patcher.begin_patch(raw_input)
        except PatchInProgressError as e:
            self._set_error(e.message)
            return PatchSession(
                input_id=raw_input or "",
                phase=PatchPhase.FAILED,
                status_message=e.message,
                dialog_open=True,
                error_code=e.error_code,
            )
        
        if session.phase == PatchPhase.FAILED:
            self._set_error(session.status_message)
        return session
    
    def select(self, server_id: Optional[str]) -> bool:
        """
        Select a server by id (``None`` clears the selection).
        
        Returns:
            False if the id is not in the catalog
        """
        try:
            self.selection.select(server_id)
        except SelectionError as e:
            self._set_error(e.message)
            return False
        self._last_error = None
        self._publish()
        return True
    
    async def launch(self) -> bool:
        """
        Launch the game for the selected server.
        
        Returns:
            False if nothing is selected or the host failed to start the game
        """
        try:
            await self.selection.launch()
        except LauncherError as e:
            self._set_error(f"Launch failed: {e.message}")
            return False
        self._last_error = None
        self._publish()
        return True
    
    async def aclose(self) -> None:
        """Release network resources."""
        if self._owns_client:
            await self.client.aclose()
            
    async def __aenter__(self) -> "LauncherController":
        return self
    
    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
    
    async def _refresh_after_patch(self, server_id: str) -> None:
        logger.debug(f"Refreshing catalog after patching {server_id}")
        await self.refresh()
    
    def _set_error(self, message: str) -> None:
        logger.warning(message)
        self._last_error = message
        self._publish()
    
    def _publish(self) -> None:
        state = LauncherState(
            catalog=self.registry.catalog,
            selected=self.selection.current(),
            patch_session=self.patcher.session,
            refreshing=self._pending_refreshes > 0,
            last_error=self._last_error,
        )
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener failed")
