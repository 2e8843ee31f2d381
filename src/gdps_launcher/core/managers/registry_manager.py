"""
Server Registry.

Builds the catalog of registered servers: asks the host which ids exist,
fetches metadata for all of them concurrently and publishes the servers
that resolved, in host order.
"""

import asyncio
from typing import Callable, List, Sequence

from gdps_launcher.core.exceptions import HostError
from gdps_launcher.core.host.base import GameHost
from gdps_launcher.core.metadata_client import MetadataClient
from gdps_launcher.core.models import Catalog, CatalogEntry, FetchResult
from gdps_launcher.utils.logging import get_logger

logger = get_logger(__name__)

CatalogListener = Callable[[Catalog], None]


class ServerRegistry:
    """Owns the catalog and rebuilds it on demand."""
    
    def __init__(self, host: GameHost, client: MetadataClient):
        """
        Initialize the registry.
        
        Args:
            host: Native host used for enumeration
            client: Metadata client used for enrichment
        """
        self.host = host
        self.client = client
        self._catalog = Catalog()
        # Refreshes run one after another so the last one started publishes last
        self._refresh_lock = asyncio.Lock()
        self._listeners: List[CatalogListener] = []
        
    @property
    def catalog(self) -> Catalog:
        """The last published catalog."""
        return self._catalog
    
    @property
    def is_refreshing(self) -> bool:
        return self._refresh_lock.locked()
    
    def subscribe(self, listener: CatalogListener) -> Callable[[], None]:
        """
        Register a listener called with every newly published catalog.
        
        Returns:
            Function removing the listener
        """
        self._listeners.append(listener)
        
        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
                
        return unsubscribe
    
    async def refresh(self) -> Catalog:
        """
        Rebuild the catalog from the host and the directory API.
        
        Returns:
            The newly published catalog
            
        Raises:
            HostError: If the host cannot enumerate servers; the previous
                catalog is kept
        """
        async with self._refresh_lock:
            server_ids = await self._scan()
            logger.debug(f"Host reported {len(server_ids)} servers: {server_ids}")
            
            results = await asyncio.gather(
                *(self.client.fetch_metadata(server_id) for server_id in server_ids),
                return_exceptions=True,
            )
            
            catalog = self._build_catalog(server_ids, results)
            self._catalog = catalog
            logger.info(
                f"Catalog refreshed: {len(catalog)} servers"
                + (f", {len(catalog.unresolved)} unresolved" if catalog.unresolved else "")
            )
            self._notify(catalog)
            return catalog
    
    async def _scan(self) -> List[str]:
        try:
            raw_ids = await self.host.scan_servers()
        except HostError as e:
            logger.error(f"Server scan failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Server scan failed: {e}")
            raise HostError(str(e) or e.__class__.__name__, error_code="scan_failed") from e
        
        server_ids: List[str] = []
        for raw_id in raw_ids:
            server_id = str(raw_id)
            if server_id != server_id.strip() or not server_id:
                # Not an id the launcher creates; it could never be selected or run
                logger.warning(f"Ignoring server directory with unusable id {server_id!r}")
                continue
            if server_id not in server_ids:
                server_ids.append(server_id)
        return server_ids
    
    def _build_catalog(self, server_ids: Sequence[str], results: Sequence[object]) -> Catalog:
        entries = []
        unresolved = []
        for server_id, result in zip(server_ids, results):
            if isinstance(result, FetchResult) and result.success:
                entries.append(CatalogEntry(server_id=server_id, metadata=result.metadata))
                continue
            
            cause = result.error if isinstance(result, FetchResult) else result
            logger.info(f"Dropping {server_id} from catalog: {cause}")
            unresolved.append(server_id)
            
        return Catalog(entries=tuple(entries), unresolved=tuple(unresolved))
    
    def _notify(self, catalog: Catalog) -> None:
        for listener in list(self._listeners):
            try:
                listener(catalog)
            except Exception:
                logger.exception("Catalog listener failed")
