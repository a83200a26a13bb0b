import json

from yarb.config import Config, EasyFlags, get_config


def test_defaults():
    config = Config()
    assert config.installed_version == ""
    assert config.prevent_multi_launch is True
    assert config.efficient_download is True
    assert config.verify_integrity_on_launch is False
    assert config.easy_flags.render_api == "Default"
    assert config.easy_flags.lighting_technology == "Automatic"


def test_round_trip(tmp_path):
    path = tmp_path / "config.json"
    original = Config(
        installed_version="version-abc",
        fast_flags={"FFlagSomething": "True", "DFIntValue": "42"},
        debug_mode=True,
        discord_rpc=True,
        prevent_multi_launch=False,
        easy_flags=EasyFlags(render_api="Vulkan", fps_limit=144, render_distance=5, shadows=False),
    )
    original.save(path)
    loaded = Config()
    loaded.load(path)
    assert loaded == original


def test_saved_file_is_sorted_and_nested(tmp_path):
    path = tmp_path / "config.json"
    Config().save(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert list(data) == sorted(data)
    assert list(data["easy_flags"]) == sorted(data["easy_flags"])
    assert data["easy_flags"]["render_api"] == "Default"
    assert data["fast_flags"] == {}


def test_saved_file_is_indented(tmp_path):
    path = tmp_path / "config.json"
    Config().save(path)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "{"
    assert lines[1].startswith('    "')


def test_missing_file_keeps_defaults(tmp_path, capsys):
    config = Config()
    config.load(tmp_path / "absent.json")
    assert config == Config()
    assert "Failed to load config" in capsys.readouterr().out


def test_invalid_json_keeps_defaults(tmp_path, capsys):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    config = Config()
    config.load(path)
    assert config == Config()


def test_fields_before_failure_are_kept(tmp_path, capsys):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"installed_version": "version-x"}), encoding="utf-8")
    config = Config()
    config.load(path)
    assert config.installed_version == "version-x"
    assert config.verify_integrity_on_launch is False
    assert config.fast_flags == {}


def test_incomplete_easy_flags_are_ignored(tmp_path, capsys):
    path = tmp_path / "config.json"
    data = Config(discord_rpc=True).to_dict()
    data["easy_flags"] = {"render_api": "OpenGL"}
    path.write_text(json.dumps(data), encoding="utf-8")
    config = Config()
    config.load(path)
    assert config.discord_rpc is True
    assert config.easy_flags == EasyFlags()


def test_mistyped_field_stops_loading(tmp_path, capsys):
    path = tmp_path / "config.json"
    data = Config(installed_version="v1", debug_mode=True).to_dict()
    data["prevent_multi_launch"] = "yes"
    path.write_text(json.dumps(data), encoding="utf-8")
    config = Config()
    config.load(path)
    assert config.installed_version == "v1"
    assert config.prevent_multi_launch is True
    assert config.debug_mode is False


def test_non_string_fast_flag_rejected(tmp_path, capsys):
    path = tmp_path / "config.json"
    data = Config().to_dict()
    data["fast_flags"] = {"FFlagX": 1}
    path.write_text(json.dumps(data), encoding="utf-8")
    config = Config(efficient_download=False)
    config.load(path)
    assert config.fast_flags == {}
    assert config.efficient_download is False


def test_get_config_changes_are_shared():
    config = get_config()
    previous = config.installed_version
    try:
        config.installed_version = "version-shared"
        assert get_config().installed_version == "version-shared"
    finally:
        config.installed_version = previous
    assert get_config().installed_version == previous