import re

import pytest

from yarb import log


@pytest.fixture(autouse=True)
def _reset_log():
    log.set_level(log.Level.ERROR)
    yield
    log.close_log_file()
    log.set_level(log.Level.ERROR)


LINE = re.compile(r"^\[\d{2}:\d{2}:\d{2}\] \[(?P<ident>[^\]]*)\] \[(?P<mode>[A-Z]+)\] (?P<msg>.*)$")


def test_info_line_format(capsys):
    log.info("MAIN", "hello world")
    out = capsys.readouterr().out.strip()
    match = LINE.match(out)
    assert match is not None
    assert match.group("ident") == "MAIN"
    assert match.group("mode") == "INFO"
    assert match.group("msg") == "hello world"


def test_info_shown_at_lowest_level(capsys):
    log.set_level(log.Level.INFO)
    log.info("x", "visible")
    log.warning("x", "hidden")
    out = capsys.readouterr().out
    assert "visible" in out
    assert "hidden" not in out


def test_debug_hidden_at_default_level(capsys):
    log.debug("x", "secret detail")
    log.error("x", "bad thing")
    out = capsys.readouterr().out
    assert "secret detail" not in out
    assert "[ERROR] bad thing" in out


def test_debug_shown_at_debug_level(capsys):
    log.set_level(log.Level.DEBUG)
    log.debug("x", "detail")
    log.warning("x", "careful")
    out = capsys.readouterr().out
    assert "[DEBUG] detail" in out
    assert "[WARNING] careful" in out


@pytest.mark.parametrize("bad", [-1, 4, 10])
def test_set_level_rejects_unknown(bad):
    with pytest.raises(ValueError):
        log.set_level(bad)


def test_warning_level_shows_warnings_only(capsys):
    log.set_level(log.Level.WARNING)
    log.info("x", "plain note")
    log.warning("x", "careful now")
    log.error("x", "broken thing")
    log.debug("x", "fine detail")
    out = capsys.readouterr().out
    assert "[INFO] plain note" in out
    assert "[WARNING] careful now" in out
    assert "broken thing" not in out
    assert "fine detail" not in out


def test_log_file_receives_lines(tmp_path, capsys):
    path = tmp_path / "latest.log"
    log.open_log_file(path)
    log.info("FILE", "first")
    log.error("FILE", "second")
    log.close_log_file()
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert lines[0].endswith("[FILE] [INFO] first")
    assert lines[1].endswith("[FILE] [ERROR] second")


def test_log_file_is_truncated_on_open(tmp_path, capsys):
    path = tmp_path / "latest.log"
    path.write_text("old content\n", encoding="utf-8")
    log.open_log_file(path)
    log.info("A", "new")
    log.close_log_file()
    content = path.read_text(encoding="utf-8")
    assert "old content" not in content
    assert "new" in content


def test_no_file_writes_after_close(tmp_path, capsys):
    path = tmp_path / "latest.log"
    log.open_log_file(path)
    log.close_log_file()
    log.info("A", "after close")
    assert path.read_text(encoding="utf-8") == ""