"""Installing, verifying, launching and watching the game client."""

from __future__ import annotations

import io
import json
import os
import re
import subprocess
import threading
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable

import psutil

from yarb import http, log
from yarb.config import Config
from yarb.crypto import compute_sha256
from yarb.modmanager import ModManager
from yarb.paths import Paths

CDN_URL = "https://setup.rbxcdn.com"
VERSION_URL = "https://clientsettingscdn.roblox.com/v2/client-version/WindowsPlayer/channel/live"
GAME_EXECUTABLE = "RobloxPlayerBeta.exe"
LAUNCHER_EXECUTABLE = "RobloxPlayerLauncher.exe"

PACKAGE_MAP: dict[str, str] = {
    "Libraries.zip": "",
    "shaders.zip": "shaders",
    "redist.zip": "",
    "ssl.zip": "ssl",
    "WebView2.zip": "",
    "WebView2RuntimeInstaller.zip": "WebView2RuntimeInstaller",
    "content-avatar.zip": "content/avatar",
    "content-configs.zip": "content/configs",
    "content-fonts.zip": "content/fonts",
    "content-sky.zip": "content/sky",
    "content-sounds.zip": "content/sounds",
    "content-textures2.zip": "content/textures",
    "content-models.zip": "content/models",
    "content-textures3.zip": "PlatformContent/pc/textures",
    "content-terrain.zip": "PlatformContent/pc/terrain",
    "content-platform-fonts.zip": "PlatformContent/pc/fonts",
    "content-platform-dictionaries.zip": "PlatformContent/pc/shared_compression_dictionaries",
    "extracontent-luapackages.zip": "ExtraContent/LuaPackages",
    "extracontent-translations.zip": "ExtraContent/translations",
    "extracontent-models.zip": "ExtraContent/models",
    "extracontent-textures.zip": "ExtraContent/textures",
    "extracontent-places.zip": "ExtraContent/places",
    "RobloxApp.zip": "",
}

APP_SETTINGS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Settings>
\t<ContentFolder>content</ContentFolder>
\t<BaseUrl>http://www.roblox.com</BaseUrl>
</Settings>
"""

_SERVER_IP_RE = re.compile(r"serverId: ([\d.]+)")
_UNIVERSE_ID_RE = re.compile(r"universeid:(\d+)")


class GameError(Exception):
    """Raised when installing or querying the game fails."""


@dataclass(frozen=True)
class ManifestEntry:
    """One package listed in a version manifest."""

    name: str
    signature: str
    packed_size: int
    size: int


@dataclass(frozen=True)
class FileSignature:
    """Expected hash of an installed file and the package it came from."""

    sha256: str
    origin_package: str


@dataclass(frozen=True)
class UniverseDetails:
    """Display information about a game universe."""

    name: str
    creator: str
    cover_url: str = ""


class BootstrapStatus(Enum):
    """Stages of bringing the installation up to date."""

    GETTING_VERSION = "getting_version"
    GETTING_MANIFEST = "getting_manifest"
    DOWNLOADING_PACKAGES = "downloading_packages"
    VERIFYING_FILE_INTEGRITY = "verifying_file_integrity"
    COMPLETE = "complete"


@dataclass(frozen=True)
class BootstrapStatusUpdate:
    """Progress report sent while bootstrapping."""

    status: BootstrapStatus = BootstrapStatus.GETTING_VERSION
    progress_current: int = 0
    progress_max: int = 100


@dataclass
class Signatures:
    """Known package signatures and hashes of installed files."""

    packages: dict[str, str] = field(default_factory=dict)
    files: dict[str, FileSignature] = field(default_factory=dict)

    def load(self, path: str | os.PathLike[str]) -> None:
        """Replace the contents with those stored at ``path``."""
        self.packages.clear()
        self.files.clear()
        with open(path, encoding="utf-8") as stream:
            try:
                data = json.load(stream)
            except ValueError as exc:
                raise GameError(f"Invalid signatures file: {exc}") from exc
        if not isinstance(data, dict):
            return
        try:
            packages = data.get("package_signatures")
            if isinstance(packages, dict):
                for name, signature in packages.items():
                    self.packages[name] = str(signature)
            files = data.get("file_signatures")
            if isinstance(files, dict):
                for name, entry in files.items():
                    self.files[name] = FileSignature(
                        sha256=entry["sha256"], origin_package=entry["origin_package"]
                    )
        except (KeyError, TypeError) as exc:
            raise GameError(f"Invalid signatures file: {exc}") from exc

    def save(self, path: str | os.PathLike[str]) -> None:
        """Write the signatures to ``path`` as indented JSON."""
        data = {
            "package_signatures": dict(self.packages),
            "file_signatures": {
                name: {"sha256": sig.sha256, "origin_package": sig.origin_package}
                for name, sig in self.files.items()
            },
        }
        with open(path, "w", encoding="utf-8") as stream:
            stream.write(json.dumps(data, indent=4, sort_keys=True, ensure_ascii=False))


def _get_json(url: str, failure: str) -> Any:
    response = http.get(url)
    if response.status_code != 200:
        raise GameError(failure)
    try:
        return json.loads(response.text)
    except ValueError as exc:
        raise GameError(f"{failure}: invalid JSON") from exc


def get_latest_version() -> str:
    """Return the newest published client version."""
    data = _get_json(VERSION_URL, "Failed to get latest roblox version")
    try:
        return str(data["clientVersionUpload"])
    except (KeyError, TypeError) as exc:
        raise GameError("Failed to get latest roblox version") from exc


def parse_manifest(text: str) -> list[ManifestEntry]:
    """Parse a package manifest: a ``v0`` header then four lines per package."""
    lines = text.splitlines()
    if not lines or lines[0] != "v0":
        raise GameError("Unsupported manifest version")
    body = lines[1:]
    if len(body) % 4:
        raise GameError("Truncated manifest entry")
    entries = []
    for start in range(0, len(body), 4):
        name, signature, packed_size, size = body[start:start + 4]
        try:
            entries.append(ManifestEntry(name, signature, int(packed_size), int(size)))
        except ValueError as exc:
            raise GameError(f"Invalid size in manifest entry {name!r}") from exc
    return entries


def get_manifest(version: str) -> list[ManifestEntry]:
    """Download and parse the package manifest of ``version``."""
    response = http.get(f"{CDN_URL}/{version}-rbxPkgManifest.txt")
    if response.status_code != 200:
        raise GameError("Failed to get manifest")
    return parse_manifest(response.text)


def extract_package(
    data: bytes, destination: str | os.PathLike[str], package_name: str, signatures: Signatures
) -> list[Path]:
    """Unpack a package archive into ``destination`` and record file hashes."""
    destination = Path(destination)
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise GameError(f"Error opening zip: {exc}") from exc
    written = []
    with archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            name = info.filename.replace("\\", "/").lstrip("/")
            if not name or name.endswith("/"):
                continue
            content = archive.read(info)
            file_path = destination / name
            file_path.parent.mkdir(parents=True, exist_ok=True)
            signatures.files[str(file_path)] = FileSignature(
                sha256=compute_sha256(content), origin_package=package_name
            )
            file_path.write_bytes(content)
            written.append(file_path)
    return written


def is_process_running(name: str) -> bool:
    """Tell whether any process with the executable name ``name`` is running."""
    for process in psutil.process_iter(["name"]):
        if process.info.get("name") == name:
            return True
    return False


def find_server_ip(line: str) -> str | None:
    """Extract the server address from a game log line."""
    match = _SERVER_IP_RE.search(line)
    return match.group(1) if match else None


def find_universe_id(line: str) -> int | None:
    """Extract the universe id from a game log line."""
    match = _UNIVERSE_ID_RE.search(line)
    return int(match.group(1)) if match else None


def query_server_location(ip: str) -> str:
    """Return "city, region, country" for an IP address."""
    data = _get_json(f"https://ipinfo.io/{ip}/json", "Failed to get server location")
    try:
        return f"{data['city']}, {data['region']}, {data['country']}"
    except (KeyError, TypeError) as exc:
        raise GameError("Failed to get server location") from exc


def get_universe_details(universe_id: int) -> UniverseDetails:
    """Look up the name, creator and icon of a universe."""
    data = _get_json(
        f"https://games.roblox.com/v1/games?universeIds={universe_id}",
        "Failed to get universe details",
    )
    try:
        entry = data["data"][0]
        name = entry["name"]
        creator = entry["creator"]["name"]
    except (KeyError, IndexError, TypeError) as exc:
        raise GameError("Failed to get universe details") from exc

    thumbnail = http.get(
        "https://thumbnails.roblox.com/v1/games/icons"
        f"?universeIds={universe_id}&returnPolicy=PlaceHolder&size=128x128&format=Png&isCircular=false"
    )
    if thumbnail.status_code != 200:
        log.error(
            "Game.get_universe_details",
            f"Failed to get thumbnail (status code: {thumbnail.status_code})",
        )
        return UniverseDetails(name=name, creator=creator)
    try:
        cover_url = json.loads(thumbnail.text)["data"][0]["imageUrl"]
    except (ValueError, KeyError, IndexError, TypeError):
        log.error("Game.get_universe_details", "Failed to read thumbnail response")
        return UniverseDetails(name=name, creator=creator)
    return UniverseDetails(name=name, creator=creator, cover_url=cover_url)


def _regular_files(directory: Path) -> set[Path]:
    try:
        return {p for p in directory.iterdir() if p.is_file()}
    except FileNotFoundError:
        return set()


class Bootstrapper:
    """Keeps the installation current, launches the game and follows its log."""

    log_poll_interval = 0.1
    log_wait_iterations = 600
    tail_interval = 0.02

    def __init__(
        self, paths: Paths, config: Config, signatures: Signatures, mod_manager: ModManager
    ) -> None:
        self.paths = paths
        self.config = config
        self.signatures = signatures
        self.mod_manager = mod_manager
        self.cdn_url = CDN_URL
        self.server_location = ""
        self.stop_event = threading.Event()

    def download_package(self, version: str, package: ManifestEntry) -> None:
        """Fetch one package and unpack it to its place in the game directory."""
        target = PACKAGE_MAP.get(package.name)
        if target is None:
            return
        response = http.get(f"{self.cdn_url}/{version}-{package.name}")
        if response.status_code != 200:
            raise GameError(f"Failed to download {package.name} (status {response.status_code})")
        extract_package(
            response.content, self.paths.game_directory / target, package.name, self.signatures
        )
        self.signatures.packages[package.name] = package.signature
        log.debug("Game.download", f"Downloaded package {package.name}")

    def download(
        self,
        version: str,
        manifest: Iterable[ManifestEntry],
        efficient_download: bool,
        progress_callback: Callable[[int], None] | None,
    ) -> None:
        """Install all packages of ``version`` concurrently."""
        pending = []
        for entry in manifest:
            if entry.name == LAUNCHER_EXECUTABLE:
                continue
            if efficient_download and self.signatures.packages.get(entry.name) == entry.signature:
                log.debug("Game.download", f"Skipped {entry.name} - Signatures are identical")
                continue
            pending.append(entry)

        lock = threading.Lock()
        installed = 0

        def install(entry: ManifestEntry) -> None:
            nonlocal installed
            try:
                self.download_package(version, entry)
            except (GameError, http.HttpError, OSError) as exc:
                log.error("Game.download", f"Failed to install package {entry.name} ({exc})")
            with lock:
                installed += 1
                if progress_callback is not None:
                    progress_callback(installed)

        if pending:
            with ThreadPoolExecutor(max_workers=len(pending)) as pool:
                list(pool.map(install, pending))

        self.signatures.save(self.paths.signatures_file)
        self.paths.game_directory.mkdir(parents=True, exist_ok=True)
        (self.paths.game_directory / "AppSettings.xml").write_text(APP_SETTINGS_XML, encoding="utf-8")
        self.config.installed_version = version
        log.info("Game.download", f"Downloaded Roblox {version}")

    def verify_file_integrity(self, progress_callback: Callable[[int, int], None]) -> None:
        """Re-download the package of every installed file whose hash changed."""
        log.info("Game.verify_file_integrity", "Indexing game files...")
        game_dir = self.paths.game_directory
        files = sorted(p for p in game_dir.rglob("*") if p.is_file())
        total = len(files)

        log.info("Game.verify_file_integrity", f"Verifying {total} files...")
        progress_callback(0, total)
        progress = 0
        for path in files:
            expected = self.signatures.files.get(str(path))
            if expected is None:
                continue
            if compute_sha256(path.read_bytes()) != expected.sha256:
                log.warning(
                    "Game.verify_file_integrity",
                    f"File {path.relative_to(game_dir)} is corrupt. Reinstalling source package",
                )
                self.download_package(
                    self.config.installed_version,
                    ManifestEntry(
                        name=expected.origin_package,
                        signature=self.signatures.packages.get(expected.origin_package, ""),
                        packed_size=0,
                        size=0,
                    ),
                )
            progress += 1
            progress_callback(progress, total)
        log.info("Game.verify_file_integrity", "Verification complete")

    def bootstrap(
        self, efficient_download: bool, callback: Callable[[BootstrapStatusUpdate], None]
    ) -> None:
        """Bring the installation up to the latest version, reporting progress."""
        callback(BootstrapStatusUpdate(BootstrapStatus.GETTING_VERSION))
        version = get_latest_version()
        if version == self.config.installed_version:
            log.info("Game.bootstrap", "Roblox is up to date")
            if self.config.verify_integrity_on_launch:
                self.verify_file_integrity(
                    lambda current, total: callback(
                        BootstrapStatusUpdate(BootstrapStatus.VERIFYING_FILE_INTEGRITY, current, total)
                    )
                )
        else:
            callback(BootstrapStatusUpdate(BootstrapStatus.GETTING_MANIFEST))
            manifest = get_manifest(version)
            total = len(manifest)
            callback(BootstrapStatusUpdate(BootstrapStatus.DOWNLOADING_PACKAGES, 0, total))
            self.download(
                version,
                manifest,
                efficient_download,
                lambda done: callback(
                    BootstrapStatusUpdate(BootstrapStatus.DOWNLOADING_PACKAGES, done, total)
                ),
            )
        callback(BootstrapStatusUpdate(BootstrapStatus.COMPLETE))

    def start(self, args: str, safe_mode: bool = False) -> bool:
        """Run the game and wait for it to exit; returns False if it was not started."""
        log.info("Game.start", "Starting Roblox...")
        if self.config.prevent_multi_launch and is_process_running(GAME_EXECUTABLE):
            log.info("Game.start", "Roblox is already running. Aborting")
            return False

        if safe_mode:
            self.mod_manager.remove_fast_flags()
        else:
            self.mod_manager.apply_modifications()
            self.mod_manager.apply_fast_flags()

        executable = self.paths.game_directory / GAME_EXECUTABLE
        try:
            process = subprocess.Popen(
                [str(executable), *args.split()], cwd=self.paths.game_directory
            )
        except OSError as exc:
            log.error("Game.start", f"Failed to start process: {exc}")
            return False

        exit_code = process.wait()
        log.info("Game.start", f"Roblox exited with code {exit_code}")

        if not safe_mode:
            self.mod_manager.restore_original_files()
            self.mod_manager.remove_fast_flags()
        return True

    def _handle_log_line(
        self,
        line: str,
        on_server_location: Callable[[str], None] | None,
        on_universe_join: Callable[[UniverseDetails], None] | None,
        on_leave: Callable[[], None] | None,
    ) -> None:
        if " serverId: " in line and self.config.query_server_location:
            ip = find_server_ip(line)
            if ip is None:
                log.error("Game.watch_roblox_log", "Failed to get server ip address")
                return
            log.debug("Game.watch_roblox_log", f"Getting location of {ip}")
            try:
                location = query_server_location(ip)
            except (GameError, http.HttpError):
                log.error("Game.watch_roblox_log", "Failed to get server location")
                return
            self.server_location = location
            log.info("Game.watch_roblox_log", f"Server location: {location}")
            if on_server_location is not None:
                on_server_location(location)
        elif "FLog::GameJoinLoadTime" in line and self.config.discord_rpc:
            universe_id = find_universe_id(line)
            if universe_id is None:
                log.warning("Game.watch_roblox_log", "Failed to get current universe id")
                return
            log.debug("Game.watch_roblox_log", f"Getting universe details for {universe_id}")
            try:
                details = get_universe_details(universe_id)
            except (GameError, http.HttpError) as exc:
                log.error("Game.watch_roblox_log", f"Failed to get universe details ({exc})")
                return
            log.info("Game.watch_roblox_log", f"Joined universe {details.name}")
            if on_universe_join is not None:
                on_universe_join(details)
        elif "NetworkClient:Remove" in line and self.config.discord_rpc:
            if on_leave is not None:
                on_leave()

    def watch_roblox_log(
        self,
        on_server_location: Callable[[str], None] | None = None,
        on_universe_join: Callable[[UniverseDetails], None] | None = None,
        on_leave: Callable[[], None] | None = None,
    ) -> None:
        """Wait for a new game log file and react to its lines until ``stop_event`` is set.

        Must be called before the game starts so the new log file can be told apart.
        """
        log_dir = self.paths.roblox_log_directory
        existing = _regular_files(log_dir)

        log_path: Path | None = None
        for _ in range(self.log_wait_iterations):
            fresh = sorted(_regular_files(log_dir) - existing)
            if fresh:
                log_path = fresh[0]
                break
            if self.stop_event.wait(self.log_poll_interval):
                return
        if log_path is None:
            log.error("Game.watch_roblox_log", "No new log file appeared")
            return

        log.debug("Game.watch_roblox_log", f"Found latest log file: {log_path}")
        buffer = b""
        with open(log_path, "rb") as stream:
            while not self.stop_event.is_set():
                chunk = stream.read()
                if not chunk:
                    self.stop_event.wait(self.tail_interval)
                    continue
                buffer += chunk
                *lines, buffer = buffer.split(b"\n")
                for raw in lines:
                    line = raw.decode("utf-8", errors="replace").rstrip("\r")
                    self._handle_log_line(line, on_server_location, on_universe_join, on_leave)