"""File modifications and FastFlag management for the game installation."""

from __future__ import annotations

import json
import shutil
from pathlib import Path

from yarb import log
from yarb.config import Config
from yarb.paths import Paths

_TELEMETRY_FLAGS = (
    "FFlagDebugDisableTelemetryEphemeralCounter",
    "FFlagDebugDisableTelemetryEphemeralStat",
    "FFlagDebugDisableTelemetryEventIngest",
    "FFlagDebugDisableTelemetryPoint",
    "FFlagDebugDisableTelemetryV2Counter",
    "FFlagDebugDisableTelemetryV2Event",
    "FFlagDebugDisableTelemetryV2Stat",
)

_RENDER_API_FLAGS: dict[str, dict[str, str]] = {
    "Vulkan": {
        "FFlagDebugGraphicsDisableDirect3D11": "True",
        "FFlagDebugGraphicsPreferVulkan": "True",
    },
    "OpenGL": {
        "FFlagDebugGraphicsDisableDirect3D11": "True",
        "FFlagDebugGraphicsPreferOpenGL": "True",
    },
    "D3D10": {"FFlagDebugGraphicsPreferD3D11FL10": "True"},
    "D3D11": {"FFlagDebugGraphicsPreferD3D11": "True"},
}

_LIGHTING_FLAGS: dict[str, dict[str, str]] = {
    "Voxel": {"DFFlagDebugRenderForceTechnologyVoxel": "True"},
    "ShadowMap": {"FFlagDebugForceFutureIsBrightPhase2": "True"},
    "Future": {"FFlagDebugForceFutureIsBrightPhase3": "True"},
}


def _bool_flag(value: bool) -> str:
    return "True" if value else "False"


def build_fast_flags(config: Config) -> dict[str, str]:
    """Combine user-defined FastFlags with those implied by the easy flags."""
    easy = config.easy_flags
    flags: dict[str, str] = dict(config.fast_flags)

    if easy.disable_telemetry:
        flags.update(dict.fromkeys(_TELEMETRY_FLAGS, "True"))

    flags.update(_RENDER_API_FLAGS.get(easy.render_api, {}))

    if easy.fps_limit > 0:
        flags["DFIntTaskSchedulerTargetFps"] = str(easy.fps_limit)
        flags["FFlagTaskSchedulerLimitTargetFpsTo2402"] = "False"

    flags.update(_LIGHTING_FLAGS.get(easy.lighting_technology, {}))

    flags["DFFlagDisableDPIScale"] = _bool_flag(not easy.dpi_scaling)

    if not easy.shadows:
        flags["FIntRenderShadowIntensity"] = "0"

    if easy.render_distance > 0:
        flags["DFIntDebugRestrictGCDistance"] = str(easy.render_distance)

    if easy.limit_light_updates:
        flags["FIntRenderLocalLightUpdatesMax"] = "8"
        flags["FIntRenderLocalLightUpdatesMin"] = "6"

    if not easy.light_fades:
        flags["FIntRenderLocalLightFadeInMs"] = "0"

    flags["FFlagRenderFixFog"] = _bool_flag(easy.fix_fog)
    flags["FFlagDisablePostFx"] = _bool_flag(not easy.post_fx)

    if easy.better_vision:
        flags["FFlagFastGPULightCulling3"] = "True"
        flags["FFlagNewLightAttenuation"] = "True"

    if easy.disable_ads:
        flags["FFlagAdServiceEnabled"] = "False"

    if easy.disable_fullscreen_titlebar:
        flags["FIntFullscreenTitleBarTriggerDelayMillis"] = "10000000"

    return flags


class ModManager:
    """Overlays mod files onto the game and writes the FastFlag settings file."""

    def __init__(self, paths: Paths, config: Config) -> None:
        self.paths = paths
        self.config = config
        self.original_files: dict[Path, bytes] = {}

    @property
    def client_settings_path(self) -> Path:
        """Location of the FastFlag settings file inside the game directory."""
        return self.paths.game_directory / "ClientSettings" / "ClientAppSettings.json"

    def apply_modifications(self) -> None:
        """Replace every game file that has a counterpart in the mods directory.

        The original contents are kept so they can be restored later; a file
        already backed up keeps its first backup.
        """
        game_dir = self.paths.game_directory
        game_files = sorted(p for p in game_dir.rglob("*") if p.is_file())
        for game_file in game_files:
            rel_path = game_file.relative_to(game_dir)
            mod_path = self.paths.mods_directory / rel_path
            if not mod_path.is_file():
                continue
            self.original_files.setdefault(game_file, game_file.read_bytes())
            shutil.copyfile(mod_path, game_file)
            log.debug("ModManager.apply_modifications", f"Applied modification for {rel_path}")

    def restore_original_files(self) -> None:
        """Write back every backed-up original file and forget the backups."""
        for path, content in self.original_files.items():
            path.write_bytes(content)
            try:
                shown = path.relative_to(self.paths.game_directory)
            except ValueError:
                shown = path
            log.debug("ModManager.restore_original_files", f"Restored file for {shown}")
        self.original_files.clear()

    def apply_fast_flags(self) -> None:
        """Write the combined FastFlags to the client settings file."""
        path = self.client_settings_path
        path.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps(build_fast_flags(self.config), indent=4, sort_keys=True, ensure_ascii=False)
        path.write_text(text, encoding="utf-8")

    def remove_fast_flags(self) -> None:
        """Delete the client settings file if it exists."""
        self.client_settings_path.unlink(missing_ok=True)