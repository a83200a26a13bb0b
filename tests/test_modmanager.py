import json

import pytest

from yarb.config import Config, EasyFlags
from yarb.modmanager import ModManager, build_fast_flags
from yarb.paths import Paths


@pytest.fixture
def paths(tmp_path):
    p = Paths.from_local_app_data(tmp_path)
    p.create_directories()
    return p


@pytest.fixture
def manager(paths):
    return ModManager(paths, Config())


def test_default_easy_flags():
    flags = build_fast_flags(Config())
    assert flags["FFlagDebugDisableTelemetryPoint"] == "True"
    assert flags["DFFlagDisableDPIScale"] == "False"
    assert flags["FFlagRenderFixFog"] == "False"
    assert flags["FFlagDisablePostFx"] == "False"
    assert flags["FFlagAdServiceEnabled"] == "False"
    assert "DFIntTaskSchedulerTargetFps" not in flags
    assert "FIntRenderShadowIntensity" not in flags


def test_user_flags_kept_and_overridden():
    config = Config(fast_flags={"FFlagCustom": "abc", "FFlagRenderFixFog": "True"})
    flags = build_fast_flags(config)
    assert flags["FFlagCustom"] == "abc"
    assert flags["FFlagRenderFixFog"] == "False"


def test_render_api_vulkan():
    config = Config(easy_flags=EasyFlags(render_api="Vulkan"))
    flags = build_fast_flags(config)
    assert flags["FFlagDebugGraphicsPreferVulkan"] == "True"
    assert flags["FFlagDebugGraphicsDisableDirect3D11"] == "True"
    assert "FFlagDebugGraphicsPreferOpenGL" not in flags


def test_numeric_easy_flags():
    config = Config(easy_flags=EasyFlags(fps_limit=144, render_distance=5, shadows=False))
    flags = build_fast_flags(config)
    assert flags["DFIntTaskSchedulerTargetFps"] == "144"
    assert flags["FFlagTaskSchedulerLimitTargetFpsTo2402"] == "False"
    assert flags["DFIntDebugRestrictGCDistance"] == "5"
    assert flags["FIntRenderShadowIntensity"] == "0"


def test_disabled_telemetry_off():
    config = Config(easy_flags=EasyFlags(disable_telemetry=False, disable_ads=False))
    flags = build_fast_flags(config)
    assert not any(k.startswith("FFlagDebugDisableTelemetry") for k in flags)
    assert "FFlagAdServiceEnabled" not in flags


def test_apply_and_remove_fast_flags(paths):
    config = Config(fast_flags={"FFlagX": "1"})
    mm = ModManager(paths, config)
    mm.apply_fast_flags()
    target = paths.game_directory / "ClientSettings" / "ClientAppSettings.json"
    assert json.loads(target.read_text(encoding="utf-8")) == build_fast_flags(config)
    mm.remove_fast_flags()
    assert not target.exists()
    mm.remove_fast_flags()
    assert not target.exists()


def test_modifications_round_trip(paths, manager):
    game_file = paths.game_directory / "content" / "sounds" / "ouch.ogg"
    game_file.parent.mkdir(parents=True)
    game_file.write_bytes(b"original")
    untouched = paths.game_directory / "other.txt"
    untouched.write_bytes(b"keep")
    mod_file = paths.mods_directory / "content" / "sounds" / "ouch.ogg"
    mod_file.parent.mkdir(parents=True)
    mod_file.write_bytes(b"modded")

    manager.apply_modifications()
    assert game_file.read_bytes() == b"modded"
    assert untouched.read_bytes() == b"keep"

    manager.restore_original_files()
    assert game_file.read_bytes() == b"original"
    assert manager.original_files == {}


def test_double_apply_keeps_first_backup(paths, manager):
    game_file = paths.game_directory / "a.bin"
    game_file.write_bytes(b"original")
    (paths.mods_directory / "a.bin").write_bytes(b"modded")

    manager.apply_modifications()
    manager.apply_modifications()
    manager.restore_original_files()
    assert game_file.read_bytes() == b"original"


def test_mod_directory_not_applied_as_file(paths, manager):
    game_file = paths.game_directory / "b.bin"
    game_file.write_bytes(b"original")
    (paths.mods_directory / "b.bin").mkdir()
    manager.apply_modifications()
    assert game_file.read_bytes() == b"original"
    assert manager.original_files == {}