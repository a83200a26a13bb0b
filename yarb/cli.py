"""Command-line entry point: update, launch or configure the game client."""

from __future__ import annotations

import sys
import threading
import time
from typing import Sequence

from yarb import log
from yarb.config import get_config
from yarb.game import (
    Bootstrapper,
    BootstrapStatus,
    BootstrapStatusUpdate,
    GameError,
    Signatures,
    get_latest_version,
    get_manifest,
)
from yarb.http import HttpError
from yarb.modmanager import ModManager
from yarb.paths import init_paths

_STATUS_TEXT = {
    BootstrapStatus.GETTING_VERSION: "Getting latest version",
    BootstrapStatus.GETTING_MANIFEST: "Getting manifest",
    BootstrapStatus.DOWNLOADING_PACKAGES: "Downloading packages",
    BootstrapStatus.VERIFYING_FILE_INTEGRITY: "Verifying file integrity",
    BootstrapStatus.COMPLETE: "Complete",
}


def split(string: str, delimiter: str) -> list[str]:
    """Split ``string`` at every occurrence of ``delimiter``, keeping empty parts."""
    if not delimiter:
        raise ValueError("delimiter must not be empty")
    return string.split(delimiter)


def rewrite_payload(payload: str, now_ms: int | None = None) -> str:
    """Refresh the launch time of a ``roblox-player:`` payload and drop its channel.

    Every ``key:value`` field is re-emitted followed by ``+``.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    pieces = []
    for segment in split(payload, "+"):
        parts = split(segment, ":")
        if len(parts) < 2:
            raise ValueError(f"Malformed payload field: {segment!r}")
        key, value = parts[0], parts[1]
        if key == "launchtime":
            value = str(now_ms)
        elif key == "channel":
            continue
        pieces.append(f"{key}:{value}+")
    return "".join(pieces)


def _report(update: BootstrapStatusUpdate) -> None:
    text = f"Status: {_STATUS_TEXT[update.status]}"
    if update.status in (
        BootstrapStatus.DOWNLOADING_PACKAGES,
        BootstrapStatus.VERIFYING_FILE_INTEGRITY,
    ):
        text += f" ({update.progress_current}/{update.progress_max})"
    print(text)


def _run_update(bootstrapper: Bootstrapper) -> None:
    config = bootstrapper.config
    version = get_latest_version()
    if config.installed_version == version:
        print("Roblox is up to date!")
        return
    log.info("MAIN", f"Roblox update found. Installing Roblox {version}")
    manifest = get_manifest(version)
    bootstrapper.download(version, manifest, config.efficient_download, None)


def _run_launch(bootstrapper: Bootstrapper, payload: str) -> None:
    config = bootstrapper.config
    bootstrapper.bootstrap(config.efficient_download, _report)

    watcher = None
    if config.query_server_location or config.discord_rpc:
        watcher = threading.Thread(target=bootstrapper.watch_roblox_log, daemon=True)
        watcher.start()

    try:
        if payload != "--app":
            if payload.startswith("roblox-player:"):
                payload = rewrite_payload(payload)
            elif not payload.startswith("roblox:"):
                log.error("MAIN", "Payload is invalid")
                return
        bootstrapper.start(payload)
    finally:
        bootstrapper.stop_event.set()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the bootstrapper with the given command-line arguments."""
    args = list(sys.argv[1:] if argv is None else argv)

    try:
        paths = init_paths()
    except (RuntimeError, OSError) as exc:
        print(f"yarb error: {exc}", file=sys.stderr)
        return 1

    log.open_log_file(paths.log_file)
    log.set_level(log.Level.DEBUG)

    config = get_config()
    config.load(paths.config_file)
    if config.debug_mode:
        log.set_level(log.Level.DEBUG)
        log.info("MAIN", "Started in debug mode")
    else:
        log.set_level(log.Level.ERROR)

    signatures = Signatures()
    try:
        if paths.signatures_file.exists():
            signatures.load(paths.signatures_file)
    except (OSError, GameError) as exc:
        log.error("MAIN", f"Failed to load signatures from file ({exc})")

    bootstrapper = Bootstrapper(paths, config, signatures, ModManager(paths, config))
    command = (args[0] if args else "gui").lower()
    status = 0

    try:
        if command == "update":
            _run_update(bootstrapper)
        elif command == "launch":
            _run_launch(bootstrapper, args[1] if len(args) >= 2 else "--app")
        elif command == "gui":
            log.error("MAIN", "The settings window is not available; edit the config file instead")
            status = 1
    except (GameError, HttpError, OSError) as exc:
        log.error("MAIN", f"{command} failed: {exc}")
        status = 1
    finally:
        config.save(paths.config_file)
        log.close_log_file()

    return status


if __name__ == "__main__":
    sys.exit(main())