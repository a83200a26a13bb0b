"""Locations of the bootstrapper's data, game and log directories."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Paths:
    """All filesystem locations used by the bootstrapper."""

    root_directory: Path
    game_directory: Path
    mods_directory: Path
    log_file: Path
    config_file: Path
    signatures_file: Path
    roblox_log_directory: Path

    @classmethod
    def from_local_app_data(cls, base: str | os.PathLike[str]) -> "Paths":
        """Derive every location from the local application-data directory."""
        base_path = Path(base)
        root = base_path / "yarb"
        return cls(
            root_directory=root,
            game_directory=root / "Game",
            mods_directory=root / "Mods",
            log_file=root / "latest.log",
            config_file=root / "config.json",
            signatures_file=root / "hashes.json",
            roblox_log_directory=base_path / "Roblox" / "logs",
        )

    def create_directories(self) -> None:
        """Make sure the game and mods directories exist."""
        self.game_directory.mkdir(parents=True, exist_ok=True)
        self.mods_directory.mkdir(parents=True, exist_ok=True)


def default_local_app_data() -> Path:
    """Return the user's local application-data directory."""
    value = os.environ.get("LOCALAPPDATA")
    if not value:
        raise RuntimeError("Failed to find local appdata path")
    return Path(value)


def init_paths(local_app_data: str | os.PathLike[str] | None = None) -> Paths:
    """Resolve all paths and create the directories that must exist."""
    base = default_local_app_data() if local_app_data is None else Path(local_app_data)
    paths = Paths.from_local_app_data(base)
    paths.create_directories()
    return paths