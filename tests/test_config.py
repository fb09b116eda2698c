from __future__ import annotations

from pathlib import Path

from splitterm.config import AppConfig, load_config, parse_config_file, parse_config_text, reload_config


def test_load_defaults_when_config_missing(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "splitterm.conf")

    assert cfg.font_family == "Monospace"
    assert cfg.font_size == 9
    assert cfg.locale == "en_US.UTF-8"
    assert cfg.word_chars == "-./?%&#_=+@~"
    assert cfg.opacity == 1.0
    assert cfg.background == 0x000000
    assert cfg.foreground == 0xFFFFFF
    assert cfg.tab_position == "bottom"
    assert cfg.copy_on_selection is True
    assert cfg.focus_follow_mouse is False
    assert cfg.hotkeys == {}


def test_missing_file_is_reported_as_issue(tmp_path: Path) -> None:
    _cfg, issues = parse_config_file(tmp_path / "absent.conf")

    assert len(issues) == 1
    assert issues[0]["message"] == "Config file not found"


def test_parse_all_directives() -> None:
    text = "\n".join(
        [
            "# comment",
            "",
            "locale de_DE.UTF-8",
            "word_chars -._",
            "tab_position top",
            "commander top",
            "font DejaVu Sans Mono 12",
            "opacity 0.85",
            "cursor #00ff00",
            "cursor_foreground 0x000000",
            "cursor_shape ibeam",
            "foreground #dddddd",
            "foreground_bold #ffffff",
            "background 1e1e1e",
            "focus_follow_mouse true",
            "copy_on_selection off",
            "color1 #ff0000",
            "color255 #eeeeee",
            "hotkey Ctrl+Shift+N new_tab",
            "hotkey Control+Shift+E exec ls -la",
        ]
    )

    cfg, issues = parse_config_text(text)

    assert issues == []
    assert cfg.locale == "de_DE.UTF-8"
    assert cfg.word_chars == "-._"
    assert cfg.tab_position == "top"
    assert cfg.commander_position == "top"
    assert cfg.font_family == "DejaVu Sans Mono"
    assert cfg.font_size == 12
    assert cfg.opacity == 0.85
    assert cfg.cursor_color == 0x00FF00
    assert cfg.cursor_foreground == 0x000000
    assert cfg.cursor_shape == "ibeam"
    assert cfg.foreground == 0xDDDDDD
    assert cfg.bold_color == 0xFFFFFF
    assert cfg.background == 0x1E1E1E
    assert cfg.focus_follow_mouse is True
    assert cfg.copy_on_selection is False
    assert cfg.palette == {1: 0xFF0000, 255: 0xEEEEEE}
    assert cfg.hotkeys == {
        "Control+Shift+N": "new_tab",
        "Control+Shift+E": "exec ls -la",
    }


def test_include_is_resolved_relative_to_including_file(tmp_path: Path) -> None:
    (tmp_path / "colors.conf").write_text("background #101010\n", encoding="utf-8")
    main = tmp_path / "splitterm.conf"
    main.write_text("include colors.conf\nfont Monospace 14\n", encoding="utf-8")

    cfg, issues = parse_config_file(main)

    assert issues == []
    assert cfg.background == 0x101010
    assert cfg.font_size == 14


def test_reload_keeps_current_settings_when_file_missing(tmp_path: Path) -> None:
    current = AppConfig(font_size=20)

    assert reload_config(tmp_path / "missing.conf", current) is current


def test_reload_keeps_current_settings_when_file_unreadable(tmp_path: Path) -> None:
    current = AppConfig(font_size=20, hotkeys={"Control+Shift+X": "quit"})
    directory = tmp_path / "splitterm.conf"
    directory.mkdir()
    undecodable = tmp_path / "latin1.conf"
    undecodable.write_bytes(b"font Monospace 12\n\xff\xfe\n")

    assert reload_config(directory, current) is current
    assert reload_config(undecodable, current) is current


def test_reload_applies_file_with_broken_include(tmp_path: Path) -> None:
    path = tmp_path / "splitterm.conf"
    path.write_text("include gone.conf\nfont Monospace 16\n", encoding="utf-8")

    updated = reload_config(path, AppConfig(font_size=20))

    assert updated.font_size == 16


def test_reload_reads_updated_file(tmp_path: Path) -> None:
    path = tmp_path / "splitterm.conf"
    path.write_text("font Monospace 16\n", encoding="utf-8")

    updated = reload_config(path, AppConfig())

    assert updated.font_size == 16
