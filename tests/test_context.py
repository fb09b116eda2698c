from __future__ import annotations

from pathlib import Path

import pytest

from splitterm.config import AppConfig
from splitterm.context import AppContext, settings_from_config
from splitterm.errors import ExitCode, SplitTermError
from splitterm.layout import Orientation


def _context(backend, tmp_path: Path, **kwargs) -> AppContext:
    kwargs.setdefault("environ", {"SHELL": "/bin/bash"})
    return AppContext(backend, config_path=tmp_path / "splitterm.conf", **kwargs)


def test_start_spawns_login_shell_in_working_dir(backend, tmp_path: Path) -> None:
    ctx = _context(backend, tmp_path, working_dir=str(tmp_path))

    session = ctx.start()

    assert session.session_id == "t1"
    spec = backend.spawned[0][1]
    assert spec.argv == ("/bin/bash",)
    assert spec.working_dir == str(tmp_path)
    assert spec.env["TERM"]
    assert spec.env["LANG"] == "en_US.UTF-8"


def test_command_runs_through_shell(backend, tmp_path: Path) -> None:
    ctx = _context(backend, tmp_path, command="htop -d 5")
    ctx.start()

    assert backend.spawned[0][1].argv == ("/bin/bash", "-c", "htop -d 5")


def test_window_title_prefers_fixed_title(backend, tmp_path: Path) -> None:
    ctx = _context(backend, tmp_path, title="  build box  ")
    ctx.start()

    assert ctx.session_title_changed("t1", "vim") == "build box"


def test_window_title_follows_focused_session(backend, tmp_path: Path) -> None:
    ctx = _context(backend, tmp_path)
    assert ctx.window_title == "splitterm"
    ctx.start()

    assert ctx.window_title == "splitterm"
    assert ctx.session_title_changed("t1", "~/src") == "~/src"
    ctx.tree.split(ctx.focused, Orientation.VERTICAL)
    assert ctx.window_title == "splitterm"
    ctx.session_focus_gained("t1")
    assert ctx.window_title == "~/src"


def test_selection_copies_when_enabled(backend, tmp_path: Path) -> None:
    ctx = _context(backend, tmp_path)
    ctx.start()

    assert ctx.session_selection_changed("t1", True) is True
    assert ctx.session_selection_changed("t1", False) is False
    assert ctx.session_selection_changed("t9", True) is False
    assert backend.copies == ["t1"]


def test_selection_ignored_when_disabled(backend, tmp_path: Path) -> None:
    ctx = _context(backend, tmp_path, config=AppConfig(copy_on_selection=False))
    ctx.start()

    assert ctx.session_selection_changed("t1", True) is False
    assert backend.copies == []


def test_hover_moves_focus_only_when_configured(backend, tmp_path: Path) -> None:
    ctx = _context(backend, tmp_path)
    first = ctx.start()
    ctx.tree.split(first, Orientation.HORIZONTAL)

    assert ctx.session_hovered("t1") is False
    assert ctx.focused is ctx.tree.find_session("t2")

    ctx.config = AppConfig(focus_follow_mouse=True)
    assert ctx.session_hovered("t1") is True
    assert ctx.focused is first
    assert ctx.session_hovered("t1") is False


def test_submit_command_hides_commander_and_refocuses(backend, tmp_path: Path) -> None:
    shown: list[bool] = []
    ctx = _context(backend, tmp_path, on_commander=shown.append)
    ctx.start()
    ctx.toggle_commander()
    backend.focus_requests.clear()

    assert ctx.submit_command("split_right") is True

    assert shown == [True, False]
    assert ctx.command_visible is False
    assert backend.focus_requests[-1] == "t2"


def test_submit_unknown_command_still_hides_commander(backend, tmp_path: Path) -> None:
    ctx = _context(backend, tmp_path)
    ctx.start()
    ctx.toggle_commander()

    assert ctx.submit_command("teleport") is False
    assert ctx.command_visible is False


def test_last_session_exit_requests_quit(backend, tmp_path: Path) -> None:
    quits: list[bool] = []
    ctx = _context(backend, tmp_path, on_quit=lambda: quits.append(True))
    ctx.start()

    assert ctx.session_exited("t1", 0) is True

    assert ctx.quit_requested
    assert quits == [True]
    ctx.request_quit()
    assert quits == [True]


def test_reload_returns_false_for_missing_file(backend, tmp_path: Path) -> None:
    ctx = _context(backend, tmp_path)
    ctx.start()

    assert ctx.reload_config() is False


def test_reload_keeps_other_sessions_until_refocused(backend, tmp_path: Path) -> None:
    ctx = _context(backend, tmp_path)
    first = ctx.start()
    ctx.tree.split(first, Orientation.VERTICAL)
    ctx.config_path.write_text("font Mono 20\n", encoding="utf-8")

    assert ctx.reload_config() is True

    assert ctx.focused.font_size == 20
    assert first.font_size == 9
    assert ctx.service.settings.font_size == 20


def test_settings_from_config_applies_palette_overrides() -> None:
    config = AppConfig(font_size=12, palette={1: 0x123456}, background=0x101010)

    settings = settings_from_config(config)

    assert settings.font_size == 12
    assert settings.colors.background == 0x101010
    assert settings.colors.palette[1] == 0x123456


def test_start_requires_a_focused_session(backend, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = _context(backend, tmp_path)
    monkeypatch.setattr(ctx.tree, "add_tab", lambda: None)

    with pytest.raises(SplitTermError) as exc_info:
        ctx.start()
    assert exc_info.value.code == ExitCode.LAYOUT_ERROR
