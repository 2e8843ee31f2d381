"""
Test selection and launch.
"""

import pytest

from gdps_launcher.core.exceptions import HostError, SelectionError
from gdps_launcher.core.managers.registry_manager import ServerRegistry
from gdps_launcher.core.managers.selection_manager import SelectionManager


class TestSelectionManager:
    """Test SelectionManager."""
    
    @pytest.fixture
    def registry(self, fake_host, metadata_client):
        return ServerRegistry(fake_host, metadata_client)
    
    @pytest.fixture
    def selection(self, registry, fake_host):
        return SelectionManager(registry, fake_host)
    
    @pytest.mark.asyncio
    async def test_select_known_server(self, selection, registry, fake_host, directory):
        """Test selecting a catalog entry exposes its view."""
        fake_host.server_ids = ["1"]
        directory.add("1", "Alpha", textAlign="right")
        await registry.refresh()
        
        selection.select("1")
        
        assert selection.current().server_id == "1"
        assert selection.view.display_name == "Alpha"
        assert selection.view.text_alignment.value == "right"
        
    def test_select_unknown_server(self, selection):
        """Test unknown ids are rejected and the selection is unchanged."""
        with pytest.raises(SelectionError) as exc_info:
            selection.select("404")
            
        assert exc_info.value.error_code == "unknown_server"
        assert selection.current() is None
        assert selection.view is None
        
    @pytest.mark.asyncio
    async def test_clear_selection(self, selection, registry, fake_host, directory):
        """Test None clears the selection."""
        fake_host.server_ids = ["1"]
        directory.add("1", "Alpha")
        await registry.refresh()
        selection.select("1")
        
        selection.select(None)
        
        assert selection.current() is None
        
    @pytest.mark.asyncio
    async def test_refresh_rebinds_selection(self, selection, registry, fake_host, directory):
        """Test the selection follows updated metadata."""
        fake_host.server_ids = ["1"]
        directory.add("1", "Alpha")
        await registry.refresh()
        selection.select("1")
        
        directory.add("1", "Alpha Renamed")
        await registry.refresh()
        
        assert selection.current().display_name == "Alpha Renamed"
        
    @pytest.mark.asyncio
    async def test_refresh_clears_missing_selection(self, selection, registry, fake_host, directory):
        """Test a server leaving the catalog clears the selection."""
        fake_host.server_ids = ["1", "2"]
        directory.add("1", "Alpha")
        directory.add("2", "Beta")
        await registry.refresh()
        selection.select("2")
        
        directory.answers["2"] = 500
        await registry.refresh()
        
        assert selection.current() is None
        
    @pytest.mark.asyncio
    async def test_launch_selected(self, selection, registry, fake_host, directory):
        """Test launch runs the game for the selected id."""
        fake_host.server_ids = ["1"]
        directory.add("1", "Alpha")
        await registry.refresh()
        selection.select("1")
        
        await selection.launch()
        
        assert fake_host.run_calls == ["1"]
        
    @pytest.mark.asyncio
    async def test_launch_without_selection(self, selection, fake_host):
        """Test launch requires a selection."""
        with pytest.raises(SelectionError) as exc_info:
            await selection.launch()
            
        assert exc_info.value.error_code == "no_selection"
        assert fake_host.run_calls == []
        
    @pytest.mark.asyncio
    async def test_launch_host_error_propagates(self, selection, registry, fake_host, directory):
        """Test host failures surface to the caller."""
        fake_host.server_ids = ["1"]
        directory.add("1", "Alpha")
        await registry.refresh()
        selection.select("1")
        fake_host.run_error = HostError("Game executable not found")
        
        with pytest.raises(HostError):
            await selection.launch()
            
    @pytest.mark.asyncio
    async def test_launch_wraps_unexpected_exception(self, selection, registry, fake_host, directory):
        """Test any host exception surfaces as HostError."""
        fake_host.server_ids = ["1"]
        directory.add("1", "Alpha")
        await registry.refresh()
        selection.select("1")
        fake_host.run_error = OSError("exec format error")
        
        with pytest.raises(HostError) as exc_info:
            await selection.launch()
            
        assert exc_info.value.error_code == "launch_failed"
        assert "exec format error" in exc_info.value.message
        
    @pytest.mark.asyncio
    async def test_listener_only_on_change(self, selection, registry, fake_host, directory):
        """Test reselecting the same entry does not notify."""
        fake_host.server_ids = ["1"]
        directory.add("1", "Alpha")
        await registry.refresh()
        changes = []
        selection.subscribe(changes.append)
        
        selection.select("1")
        selection.select("1")
        
        assert len(changes) == 1
