"""
Pytest configuration and fixtures for GDPS Launcher testing.

Provides an in-memory game host, a fake directory API served through
``httpx.MockTransport`` and an isolated configuration per test.
"""

import asyncio
from typing import Any, Dict, List, Optional, Union

import httpx
import pytest

from gdps_launcher.core.controller import LauncherController
from gdps_launcher.core.exceptions import HostError
from gdps_launcher.core.host.base import GameHost
from gdps_launcher.core.metadata_client import MetadataClient
from gdps_launcher.utils.config import reload_config


def server_payload(server_id: str, name: str, **overrides: Any) -> Dict[str, Any]:
    """Directory response body for a server."""
    server = {
        "srvid": server_id,
        "srvName": name,
        "description": f"{name} description",
        "icon": f"https://cdn.example.com/{server_id}/icon.png",
        "userCount": 10,
        "levelCount": 20,
        "textAlign": "center",
        "backgroundImage": f"https://cdn.example.com/{server_id}/bg.png",
    }
    server.update(overrides)
    return {"success": True, "server": server}


class FakeHost(GameHost):
    """In-memory host recording every call."""

    def __init__(self, server_ids: Optional[List[str]] = None):
        self.server_ids: List[str] = list(server_ids or [])
        self.scan_error: Optional[Exception] = None
        self.patch_error: Optional[Exception] = None
        self.run_error: Optional[Exception] = None
        # When set, patch_game waits for it before finishing
        self.patch_gate: Optional[asyncio.Event] = None
        self.patch_started = asyncio.Event()
        self.scan_calls = 0
        self.patch_calls: List[str] = []
        self.run_calls: List[str] = []

    async def scan_servers(self) -> List[str]:
        self.scan_calls += 1
        if self.scan_error is not None:
            raise self.scan_error
        return list(self.server_ids)

    async def patch_game(self, server_id: str) -> str:
        self.patch_calls.append(server_id)
        self.patch_started.set()
        if self.patch_gate is not None:
            await self.patch_gate.wait()
        if self.patch_error is not None:
            raise self.patch_error
        if server_id not in self.server_ids:
            self.server_ids.append(server_id)
        return server_id

    async def run_game(self, server_id: str) -> None:
        self.run_calls.append(server_id)
        if self.run_error is not None:
            raise self.run_error


DirectoryAnswer = Union[Dict[str, Any], int, str, Exception]


class FakeDirectory:
    """
    Fake directory API.

    ``answers`` maps a server id to a JSON body, a raw text body, an HTTP
    status code or an exception to raise. ``delays`` maps ids to seconds
    slept before answering.
    """

    def __init__(self):
        self.answers: Dict[str, DirectoryAnswer] = {}
        self.delays: Dict[str, float] = {}
        self.requests: List[str] = []

    def add(self, server_id: str, name: str, **overrides: Any) -> None:
        self.answers[server_id] = server_payload(server_id, name, **overrides)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        # /gdps/{id}/fetch
        parts = request.url.path.strip("/").split("/")
        server_id = parts[1] if len(parts) == 3 else ""
        self.requests.append(server_id)

        delay = self.delays.get(server_id)
        if delay:
            await asyncio.sleep(delay)

        answer = self.answers.get(server_id, 404)
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, int):
            return httpx.Response(answer, json={"success": False})
        if isinstance(answer, str):
            return httpx.Response(200, text=answer)
        return httpx.Response(200, json=answer)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture(autouse=True)
def config(tmp_path):
    """Isolated configuration: no config files, no log file, temp dirs."""
    return reload_config(
        config_files=[],
        logging={"file": None},
        directory={"api_base_url": "https://directory.test", "timeout": 5},
        host={
            "data_dir": str(tmp_path / "data"),
            "cache_dir": str(tmp_path / "cache"),
        },
    )


@pytest.fixture
def fake_host():
    return FakeHost()


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def metadata_client(config, directory):
    return MetadataClient(config, transport=directory.transport())


@pytest.fixture
def controller(config, fake_host, metadata_client):
    return LauncherController(
        config,
        host=fake_host,
        client=metadata_client,
        patch_lock=asyncio.Lock(),
    )


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
