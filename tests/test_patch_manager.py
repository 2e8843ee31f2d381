"""
Test the add-server patch workflow.
"""

import asyncio

import pytest

from gdps_launcher.core.exceptions import HostError, PatchInProgressError
from gdps_launcher.core.managers.patch_manager import (
    STATUS_DONE,
    STATUS_PATCHING,
    PatchOrchestrator,
    _get_patch_lock,
)
from gdps_launcher.core.models import PatchPhase


class TestPatchOrchestrator:
    """Test PatchOrchestrator state machine."""
    
    def setup_method(self):
        """Setup test fixtures."""
        self.refreshed = []
        
    async def on_success(self, server_id):
        self.refreshed.append(server_id)
        
    @pytest.fixture
    def orchestrator(self, fake_host):
        return PatchOrchestrator(fake_host, on_success=self.on_success, lock=asyncio.Lock())
    
    def test_dialog_lifecycle(self, orchestrator):
        """Test open, type and cancel."""
        session = orchestrator.open_dialog()
        assert session.dialog_open is True
        assert session.phase == PatchPhase.IDLE
        
        assert orchestrator.set_input("7650").input_id == "7650"
        
        assert orchestrator.cancel() is True
        assert orchestrator.session.dialog_open is False
        assert orchestrator.session.input_id == ""
        
    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["", "   ", "../etc", "a b"])
    async def test_invalid_input_never_reaches_host(self, orchestrator, fake_host, raw):
        """Test validation failures stop before the host."""
        orchestrator.open_dialog()
        
        session = await orchestrator.begin_patch(raw)
        
        assert session.phase == PatchPhase.FAILED
        assert session.status_message.startswith("Invalid server ID")
        assert session.dialog_open is True
        assert fake_host.patch_calls == []
        assert self.refreshed == []
        assert orchestrator.is_patching is False
        
    @pytest.mark.asyncio
    async def test_success(self, orchestrator, fake_host):
        """Test a successful patch closes the dialog and refreshes once."""
        orchestrator.open_dialog()
        orchestrator.set_input("  7650 ")
        
        session = await orchestrator.begin_patch()
        
        assert fake_host.patch_calls == ["7650"]
        assert session.phase == PatchPhase.SUCCEEDED
        assert session.status_message == STATUS_DONE
        assert session.dialog_open is False
        assert session.input_id == ""
        assert self.refreshed == ["7650"]
        assert orchestrator.is_patching is False
        
    @pytest.mark.asyncio
    async def test_host_failure(self, orchestrator, fake_host):
        """Test a host failure keeps the dialog open and skips the refresh."""
        fake_host.patch_error = HostError("URL too long! Max: 33, Got: 40", error_code="url_too_long")
        orchestrator.open_dialog()
        
        session = await orchestrator.begin_patch("7650")
        
        assert session.phase == PatchPhase.FAILED
        assert session.status_message == "Error: URL too long! Max: 33, Got: 40"
        assert session.error_code == "url_too_long"
        assert session.dialog_open is True
        assert session.input_id == "7650"
        assert self.refreshed == []
        assert orchestrator.is_patching is False
        
    @pytest.mark.asyncio
    async def test_unexpected_host_exception(self, orchestrator, fake_host):
        """Test arbitrary exceptions are reported as failures."""
        fake_host.patch_error = OSError("disk full")
        
        session = await orchestrator.begin_patch("7650")
        
        assert session.phase == PatchPhase.FAILED
        assert session.status_message == "Error: disk full"
        assert session.error_code == "patch_failed"
        
    @pytest.mark.asyncio
    async def test_retry_after_failure(self, orchestrator, fake_host):
        """Test the lock is released after a failure."""
        fake_host.patch_error = HostError("boom")
        await orchestrator.begin_patch("1")
        
        fake_host.patch_error = None
        session = await orchestrator.begin_patch("1")
        
        assert session.phase == PatchPhase.SUCCEEDED
        assert fake_host.patch_calls == ["1", "1"]
        
    @pytest.mark.asyncio
    async def test_concurrent_patch_rejected(self, orchestrator, fake_host):
        """Test a second patch is rejected without touching the first."""
        fake_host.patch_gate = asyncio.Event()
        first = asyncio.create_task(orchestrator.begin_patch("1"))
        await fake_host.patch_started.wait()
        
        assert orchestrator.session.phase == PatchPhase.PATCHING
        assert orchestrator.session.status_message == STATUS_PATCHING
        
        with pytest.raises(PatchInProgressError):
            await orchestrator.begin_patch("2")
            
        assert orchestrator.session.phase == PatchPhase.PATCHING
        assert orchestrator.session.input_id == "1"
        
        fake_host.patch_gate.set()
        session = await first
        
        assert session.phase == PatchPhase.SUCCEEDED
        assert fake_host.patch_calls == ["1"]
        assert self.refreshed == ["1"]
        
    @pytest.mark.asyncio
    async def test_cancel_ignored_while_patching(self, orchestrator, fake_host):
        """Test the dialog cannot be dismissed mid-patch."""
        fake_host.patch_gate = asyncio.Event()
        orchestrator.open_dialog()
        task = asyncio.create_task(orchestrator.begin_patch("1"))
        await fake_host.patch_started.wait()
        
        assert orchestrator.cancel() is False
        assert orchestrator.set_input("other").input_id == "1"
        assert orchestrator.session.dialog_open is True
        
        fake_host.patch_gate.set()
        await task
        
    @pytest.mark.asyncio
    async def test_listeners_see_phases(self, orchestrator):
        """Test listeners observe validating, patching and succeeded."""
        phases = []
        orchestrator.subscribe(lambda session: phases.append(session.phase))
        
        await orchestrator.begin_patch("1")
        
        assert phases == [PatchPhase.VALIDATING, PatchPhase.PATCHING, PatchPhase.SUCCEEDED]
        
    @pytest.mark.asyncio
    async def test_shared_lock_across_orchestrators(self, fake_host):
        """Test two orchestrators on the same lock are single-flight."""
        lock = asyncio.Lock()
        first = PatchOrchestrator(fake_host, lock=lock)
        second = PatchOrchestrator(fake_host, lock=lock)
        fake_host.patch_gate = asyncio.Event()
        
        task = asyncio.create_task(first.begin_patch("1"))
        await fake_host.patch_started.wait()
        
        assert second.is_patching is True
        with pytest.raises(PatchInProgressError):
            await second.begin_patch("2")
            
        fake_host.patch_gate.set()
        await task
        
    def test_default_lock_is_process_wide(self, fake_host):
        """Test orchestrators without an explicit lock share one."""
        first = PatchOrchestrator(fake_host)
        second = PatchOrchestrator(fake_host)
        
        assert first._lock is second._lock is _get_patch_lock()
