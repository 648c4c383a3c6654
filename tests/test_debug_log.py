"""Tests for the extraction debug log."""

from menu_import.services.debug_log import DebugSession


def test_disabled_session_writes_nothing(tmp_path):
    session = DebugSession.start(tmp_path, enabled=False)

    session.write("RAW_RESPONSE", "hello")

    assert list(tmp_path.iterdir()) == []


def test_session_without_directory_is_disabled():
    session = DebugSession.start(None, enabled=True)

    assert session.enabled is False
    assert session.path is None
    session.write("RAW_RESPONSE", "hello")


def test_enabled_session_appends_stage_blocks(tmp_path):
    log_dir = tmp_path / "ai-import-logs"
    session = DebugSession.start(log_dir, enabled=True)

    session.write("INPUT", "Cola 2.50")
    session.write("RAW_RESPONSE", '{"categories": []}')

    content = session.path.read_text(encoding="utf-8")
    assert session.path.parent == log_dir
    assert "] INPUT\n" in content
    assert "Cola 2.50" in content
    assert content.index("INPUT") < content.index("RAW_RESPONSE")


def test_write_failures_are_logged_not_raised(tmp_path, caplog):
    blocker = tmp_path / "blocked"
    blocker.write_text("not a directory")
    session = DebugSession("s1", blocker, enabled=True)

    session.write("INPUT", "x")

    assert "Failed to write debug log" in caplog.text
