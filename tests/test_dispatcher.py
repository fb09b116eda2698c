from __future__ import annotations

from pathlib import Path

import pytest

from splitterm.actions import Action, ActionVerb, Modifier
from splitterm.config import AppConfig
from splitterm.context import AppContext

_CHORD = [Modifier.CONTROL, Modifier.SHIFT]


@pytest.fixture
def context(backend, tmp_path: Path) -> AppContext:
    ctx = AppContext(
        backend,
        config_path=tmp_path / "splitterm.conf",
        environ={"SHELL": "/bin/bash"},
    )
    ctx.start()
    return ctx


def test_quit_chord_terminates(backend, tmp_path: Path) -> None:
    quits: list[bool] = []
    ctx = AppContext(
        backend,
        config_path=tmp_path / "splitterm.conf",
        environ={"SHELL": "/bin/bash"},
        on_quit=lambda: quits.append(True),
    )
    ctx.start()

    assert ctx.dispatcher.handle_key(_CHORD, "q") is True

    assert ctx.quit_requested
    assert ctx.tree.terminated
    assert quits == [True]
    assert backend.destroyed == ["t1"]


def test_unmapped_chord_passes_through(context: AppContext) -> None:
    before = (context.tree.describe(), len(context.tree.list_events()))

    assert context.dispatcher.handle_key(_CHORD, "z") is False
    assert context.dispatcher.handle_key([], "Shift_L") is False

    assert (context.tree.describe(), len(context.tree.list_events())) == before


def test_exec_feeds_tokens_spaces_and_newline(context: AppContext, backend) -> None:
    assert context.dispatcher.dispatch_text("exec ls -la") is True

    assert backend.feeds["t1"] == ["ls", " ", "-la", " ", "\n"]


def test_exec_without_arguments_fails_without_feeding(context: AppContext, backend) -> None:
    assert context.dispatcher.dispatch_text("exec") is False
    assert context.dispatcher.dispatch(Action(verb=ActionVerb.EXEC)) is False

    assert backend.feeds == {}


def test_unknown_verbs_are_not_handled(context: AppContext) -> None:
    assert context.dispatcher.dispatch_text("frobnicate") is False
    assert context.dispatcher.dispatch_text("") is False
    assert context.dispatcher.dispatch(None) is False


def test_goto_reports_out_of_range(context: AppContext) -> None:
    context.dispatcher.dispatch_text("new_tab")

    assert context.dispatcher.dispatch_text("goto 5") is False
    assert context.tree.active_index == 1
    assert context.dispatcher.dispatch_text("goto 1") is True
    assert context.tree.active_index == 0
    assert context.dispatcher.dispatch_text("goto x") is False


def test_font_actions_adjust_focused_session(context: AppContext, backend) -> None:
    session = context.focused
    assert session is not None

    context.dispatcher.dispatch_text("font_inc")
    assert session.font_size == 10
    context.dispatcher.dispatch_text("font_dec")
    context.dispatcher.dispatch_text("font_dec")
    assert session.font_size == 8
    context.dispatcher.dispatch_text("font_reset")

    assert session.font_size == 9
    assert backend.fonts[-1] == ("t1", "Monospace", 9)


@pytest.mark.parametrize(
    ("verb", "shape"),
    [
        ("split_v", ("vertical", "t2", "t1")),
        ("split_h", ("horizontal", "t2", "t1")),
        ("split_up", ("vertical", "t2", "t1")),
        ("split_down", ("vertical", "t1", "t2")),
        ("split_left", ("horizontal", "t2", "t1")),
        ("split_right", ("horizontal", "t1", "t2")),
    ],
)
def test_split_verbs(context: AppContext, verb: str, shape: tuple[str, str, str]) -> None:
    assert context.dispatcher.dispatch_text(verb) is True

    assert context.tree.describe() == (shape,)
    assert context.focused is context.tree.find_session("t2")


def test_tab_verbs(context: AppContext) -> None:
    dispatch = context.dispatcher.dispatch_text

    assert dispatch("new_tab") is True
    assert dispatch("next") is True
    assert context.tree.active_index == 1
    assert dispatch("prev") is True
    assert context.tree.active_index == 0
    assert dispatch("close") is True
    assert context.tree.count == 1
    assert dispatch("close") is True
    assert context.tree.count == 1


def test_copy_paste_target_focused_session(context: AppContext, backend) -> None:
    context.dispatcher.handle_key(_CHORD, "c")
    context.dispatcher.handle_key(_CHORD, "v")

    assert backend.copies == ["t1"]
    assert backend.pastes == ["t1"]


def test_cmd_toggles_command_line(context: AppContext) -> None:
    assert context.dispatcher.handle_key(_CHORD, "colon") is True
    assert context.command_visible is True
    context.dispatcher.dispatch_text("cmd")
    assert context.command_visible is False


def test_reload_rebuilds_hotkeys_and_restyles_focused_session(context: AppContext, backend) -> None:
    context.config_path.write_text(
        "font Monospace 14\nbackground #202020\nhotkey Mod1+1 goto 1\n",
        encoding="utf-8",
    )

    assert context.dispatcher.handle_key(_CHORD, "r") is True

    assert context.config.font_size == 14
    assert context.hotkeys.lookup("Mod1+1") == "goto 1"
    assert backend.fonts[-1] == ("t1", "Monospace", 14)
    assert backend.colors[-1][1].background == 0x202020
    assert context.dispatcher.handle_key([Modifier.MOD1], "1") is True


def test_reload_with_missing_file_keeps_settings(context: AppContext, backend) -> None:
    config = context.config
    font_calls = len(backend.fonts)

    assert context.dispatcher.dispatch_text("reload") is True

    assert context.config is config
    assert len(backend.fonts) == font_calls


def test_configured_hotkey_with_arguments(backend, tmp_path: Path) -> None:
    config = AppConfig(hotkeys={"Control+Shift+E": "exec make test"})
    ctx = AppContext(backend, config=config, config_path=tmp_path / "none.conf", environ={"SHELL": "/bin/sh"})
    ctx.start()

    assert ctx.dispatcher.handle_key(_CHORD, "e") is True

    assert backend.feeds["t1"] == ["make", " ", "test", " ", "\n"]


def test_dispatch_after_termination_is_not_handled(context: AppContext) -> None:
    context.dispatcher.dispatch_text("quit")

    assert context.dispatcher.dispatch_text("new_tab") is False
    assert context.tree.count == 0


def test_reload_with_undecodable_file_keeps_settings(context: AppContext, backend) -> None:
    context.config_path.write_text("font Monospace 14\nhotkey Mod1+1 goto 1\n", encoding="utf-8")
    context.dispatcher.dispatch_text("reload")
    context.config_path.write_bytes(b"font Monospace 30\n\xff\xfe\n")

    assert context.dispatcher.dispatch_text("reload") is True

    assert context.config.font_size == 14
    assert context.hotkeys.lookup("Mod1+1") == "goto 1"
    assert backend.fonts[-1] == ("t1", "Monospace", 14)
