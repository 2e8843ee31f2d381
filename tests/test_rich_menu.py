"""
Tests for the interactive menu.
"""

import pytest

from gdps_launcher.core.models import PatchPhase
from gdps_launcher.tui import rich_menu
from gdps_launcher.tui.rich_menu import RichMenuApp


class ScriptedPrompt:
    """Answers ``Prompt.ask`` calls from a list."""
    
    def __init__(self, answers):
        self.answers = list(answers)
        self.questions = []
        
    def ask(self, question, **kwargs):
        self.questions.append(question)
        return self.answers.pop(0)


@pytest.mark.integration
class TestRichMenuApp:
    """Test menu actions against the controller."""
    
    @pytest.fixture
    def app(self, controller):
        return RichMenuApp(controller)
    
    def script(self, monkeypatch, answers) -> ScriptedPrompt:
        prompt = ScriptedPrompt(answers)
        monkeypatch.setattr(rich_menu, "Prompt", prompt)
        return prompt
    
    @pytest.mark.asyncio
    async def test_select_by_number(self, app, controller, fake_host, directory, monkeypatch):
        """Test list numbers map to catalog entries."""
        fake_host.server_ids = ["10", "20"]
        directory.add("10", "Alpha")
        directory.add("20", "Beta")
        await controller.start()
        self.script(monkeypatch, ["2"])
        
        app.select_server()
        
        assert controller.state.selected.server_id == "20"
        
    @pytest.mark.asyncio
    async def test_select_by_id(self, app, controller, fake_host, directory, monkeypatch):
        """Test a numeric id that is also in the catalog wins over its position."""
        fake_host.server_ids = ["1", "2"]
        directory.add("1", "Alpha")
        directory.add("2", "Beta")
        await controller.start()
        self.script(monkeypatch, ["1"])
        
        app.select_server()
        
        assert controller.state.selected.server_id == "1"
        
    @pytest.mark.asyncio
    async def test_add_server_dialog_retries_until_success(self, app, controller, fake_host, directory, monkeypatch):
        """Test an invalid id keeps the dialog open for another try."""
        directory.add("7650", "Alpha")
        prompt = self.script(monkeypatch, ["bad id", "7650"])
        
        await app.add_server()
        
        assert len(prompt.questions) == 2
        assert fake_host.patch_calls == ["7650"]
        assert controller.state.patch_session.phase == PatchPhase.SUCCEEDED
        assert controller.state.catalog.ids() == ("7650",)
        
    @pytest.mark.asyncio
    async def test_add_server_cancel(self, app, controller, fake_host, monkeypatch):
        self.script(monkeypatch, [""])
        
        await app.add_server()
        
        assert controller.state.patch_session.dialog_open is False
        assert fake_host.patch_calls == []
        
    @pytest.mark.asyncio
    async def test_launch_selected(self, app, controller, fake_host, directory, monkeypatch):
        fake_host.server_ids = ["1"]
        directory.add("1", "Alpha")
        await controller.start()
        controller.select("1")
        self.script(monkeypatch, [""])
        
        await app.launch()
        
        assert fake_host.run_calls == ["1"]
        
    @pytest.mark.asyncio
    async def test_show_state_renders(self, app, controller, fake_host, directory):
        """Test rendering the state does not fail with or without a selection."""
        fake_host.server_ids = ["1"]
        directory.add("1", "Alpha", description=None)
        await controller.start()
        
        app.show_state(controller.state)
        controller.select("1")
        app.show_state(controller.state)
