"""
Local filesystem game host.

Keeps one patched copy of Geometry Dash per registered server under
``<data_dir>/servers/<id>``. The unpatched base game is downloaded once
into ``<cache_dir>/GeometryDash`` and reused for every patch.
"""

import asyncio
import os
import shutil
import subprocess
import sys
import zipfile
from pathlib import Path
from typing import List, Optional

import httpx

from gdps_launcher.core.exceptions import HostError
from gdps_launcher.core.host.base import GameHost
from gdps_launcher.core.host.patcher import build_replacement, patch_binary
from gdps_launcher.utils.config import Config, get_config
from gdps_launcher.utils.logging import get_logger

logger = get_logger(__name__)

WINDOWS_EXECUTABLE = "GeometryDash.exe"
MACOS_BUNDLE = "GeometryDash.app"
MACOS_BINARY = Path("Contents") / "MacOS" / "Geometry Dash"


class LocalGameHost(GameHost):
    """Game host backed by the local filesystem."""

    def __init__(self, config: Optional[Config] = None, platform: Optional[str] = None):
        """
        Initialize the local host.

        Args:
            config: Configuration instance
            platform: Platform override (``sys.platform`` values)
        """
        self.config = config or get_config()
        self.host_config = self.config.host
        self.platform = platform or sys.platform
        self.servers_dir = self.host_config.get_servers_dir()
        self.game_cache_dir = self.host_config.get_cache_dir() / "GeometryDash"

    @property
    def is_macos(self) -> bool:
        return self.platform == "darwin"

    async def scan_servers(self) -> List[str]:
        return await asyncio.to_thread(self._scan_servers)

    async def patch_game(self, server_id: str) -> str:
        return await asyncio.to_thread(self._patch_game, server_id)

    async def run_game(self, server_id: str) -> None:
        await asyncio.to_thread(self._run_game, server_id)

    def server_dir(self, server_id: str) -> Path:
        """Directory holding the patched copy for a server."""
        return self.servers_dir / server_id

    def _scan_servers(self) -> List[str]:
        if not self.servers_dir.exists():
            return []
        try:
            return sorted(entry.name for entry in self.servers_dir.iterdir() if entry.is_dir())
        except OSError as e:
            raise HostError(f"Failed to scan {self.servers_dir}: {e}", error_code="scan_failed") from e

    def _patch_game(self, server_id: str) -> str:
        server_url = self.host_config.gdps_url_template.format(id=server_id)
        replacement = build_replacement(server_url, self.host_config.original_url)

        logger.info(f"Patching game for server {server_id}")
        try:
            base_path = self._find_or_download_game()
        except (OSError, httpx.HTTPError, zipfile.BadZipFile) as e:
            raise HostError(f"Failed to fetch base game: {e}", error_code="download_failed") from e

        target_dir = self.server_dir(server_id)
        try:
            if target_dir.exists():
                shutil.rmtree(target_dir)
            target_dir.mkdir(parents=True)

            if self.is_macos:
                bundle = target_dir / base_path.name
                shutil.copytree(base_path, bundle, symlinks=True)
                binary_path = bundle / MACOS_BINARY
            else:
                shutil.copytree(base_path, target_dir, dirs_exist_ok=True)
                binary_path = target_dir / WINDOWS_EXECUTABLE

            data = binary_path.read_bytes()
            binary_path.write_bytes(patch_binary(data, self.host_config.original_url, replacement))

            if self.is_macos:
                self._resign_app(bundle)
        except Exception as e:
            # A leftover directory would be scanned as a registered server
            shutil.rmtree(target_dir, ignore_errors=True)
            if isinstance(e, HostError):
                raise
            raise HostError(f"Failed to patch game for {server_id}: {e}", error_code="patch_failed") from e

        logger.info(f"Server {server_id} patched at {target_dir}")
        return server_id

    def _run_game(self, server_id: str) -> None:
        server_dir = self.server_dir(server_id)
        if not server_dir.exists():
            raise HostError("Server not installed", error_code="not_installed")

        if self.is_macos:
            bundle = server_dir / MACOS_BUNDLE
            if not bundle.exists():
                raise HostError("Game bundle not found", error_code="missing_game")
            command = ["open", str(bundle)]
        else:
            executable = server_dir / WINDOWS_EXECUTABLE
            if not executable.exists():
                raise HostError("Game executable not found", error_code="missing_game")
            command = [str(executable)]

        try:
            process = subprocess.Popen(
                command,
                cwd=str(server_dir),
                creationflags=(subprocess.CREATE_NEW_PROCESS_GROUP if sys.platform == "win32" else 0),
            )
        except OSError as e:
            raise HostError(f"Failed to start game: {e}", error_code="launch_failed") from e
        logger.info(f"Started game for {server_id} (PID {process.pid})")

    def _find_or_download_game(self) -> Path:
        """Locate the cached base game, downloading it on first use."""
        if self.is_macos:
            bundle = self.game_cache_dir / MACOS_BUNDLE
            if bundle.exists():
                return bundle
        else:
            root = find_windows_game_root(self.game_cache_dir)
            if root is not None:
                return root

        url = self.host_config.macos_game_url if self.is_macos else self.host_config.windows_game_url
        self._download_and_extract(url)

        if self.is_macos:
            binary = self.game_cache_dir / MACOS_BUNDLE / MACOS_BINARY
            if binary.exists():
                binary.chmod(binary.stat().st_mode | 0o111)
            return self.game_cache_dir / MACOS_BUNDLE

        root = find_windows_game_root(self.game_cache_dir)
        if root is None:
            raise HostError(f"{WINDOWS_EXECUTABLE} not found in cache", error_code="missing_game")
        return root

    def _download_and_extract(self, url: str) -> None:
        self.game_cache_dir.mkdir(parents=True, exist_ok=True)
        zip_path = self.game_cache_dir / "temp_gd.zip"

        logger.info(f"Downloading base game from {url}")
        with httpx.Client(timeout=self.host_config.download_timeout, follow_redirects=True) as client:
            with client.stream("GET", url) as response:
                response.raise_for_status()
                with open(zip_path, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)

        try:
            extract_archive(zip_path, self.game_cache_dir)
        finally:
            zip_path.unlink(missing_ok=True)

    def _resign_app(self, bundle: Path) -> None:
        """Drop quarantine and re-sign the modified bundle ad hoc."""
        commands = [
            ["xattr", "-rd", "com.apple.quarantine", str(bundle)],
            ["codesign", "--remove-signature", str(bundle)],
            ["codesign", "--force", "--deep", "--sign", "-", str(bundle)],
        ]
        for command in commands:
            try:
                subprocess.run(command, capture_output=True, check=False)
            except OSError as e:
                raise HostError(f"Failed to re-sign app: {e}", error_code="resign_failed") from e


def find_windows_game_root(cache_dir: Path) -> Optional[Path]:
    """Directory containing ``GeometryDash.exe`` inside the cache, if any."""
    if not cache_dir.exists():
        return None

    if (cache_dir / WINDOWS_EXECUTABLE).is_file():
        return cache_dir

    nested = cache_dir / "GeometryDash"
    if (nested / WINDOWS_EXECUTABLE).is_file():
        return nested

    for root, _dirs, files in os.walk(cache_dir):
        for name in files:
            if name.lower() == WINDOWS_EXECUTABLE.lower():
                return Path(root)
    return None


def extract_archive(zip_path: Path, destination: Path) -> None:
    """Extract a zip archive, restoring unix permission bits."""
    with zipfile.ZipFile(zip_path) as archive:
        for info in archive.infolist():
            extracted = Path(archive.extract(info, destination))
            mode = (info.external_attr >> 16) & 0o7777
            if mode and not info.is_dir():
                extracted.chmod(mode)
