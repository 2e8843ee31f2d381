"""
Native host interface.

The host owns everything that touches the installed game: listing the
servers registered on this machine, patching a copy of the game for a
server and launching it.
"""

from abc import ABC, abstractmethod
from typing import List


class GameHost(ABC):
    """Abstract native host.
    
    Implementations raise ``HostError`` for every failure.
    """
    
    @abstractmethod
    async def scan_servers(self) -> List[str]:
        """Return the ids of the locally registered servers."""
        
    @abstractmethod
    async def patch_game(self, server_id: str) -> str:
        """Prepare a patched game copy for ``server_id`` and return the id."""
        
    @abstractmethod
    async def run_game(self, server_id: str) -> None:
        """Launch the game bound to ``server_id`` without waiting for it."""
