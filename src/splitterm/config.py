"""Directive-file config loading."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from typing_extensions import TypedDict

from splitterm.actions.hotkeys import canonical_chord
from splitterm.actions.parser import ActionVerb
from splitterm.errors import ExitCode, SplitTermError
from splitterm.terminal.palette import PALETTE_SIZE, parse_color

logger = py_logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/splitterm/splitterm.conf").expanduser()
DEFAULT_FONT_FAMILY = "Monospace"
DEFAULT_FONT_SIZE = 9
DEFAULT_LOCALE = "en_US.UTF-8"
DEFAULT_WORD_CHARS = "-./?%&#_=+@~"

_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0"}
_VALID_POSITIONS = {"top", "bottom"}
_VALID_CURSOR_SHAPES = {"block", "ibeam", "underline"}


class ConfigIssue(TypedDict):
    path: str
    line: int
    message: str


class AppConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    locale: str = DEFAULT_LOCALE
    word_chars: str = DEFAULT_WORD_CHARS
    tab_position: Literal["top", "bottom"] = "bottom"
    commander_position: Literal["top", "bottom"] = "bottom"
    font_family: str = DEFAULT_FONT_FAMILY
    font_size: int = Field(default=DEFAULT_FONT_SIZE, ge=1, le=200)
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)
    foreground: int = 0xFFFFFF
    background: int = 0x000000
    bold_color: int = 0xFFFFFF
    cursor_color: int = 0xFFFFFF
    cursor_foreground: int = 0xFFFFFF
    cursor_shape: Literal["block", "ibeam", "underline"] = "block"
    focus_follow_mouse: bool = False
    copy_on_selection: bool = True
    palette: dict[int, int] = Field(default_factory=dict)
    hotkeys: dict[str, str] = Field(default_factory=dict)

    @field_validator("foreground", "background", "bold_color", "cursor_color", "cursor_foreground")
    @classmethod
    def _validate_color(cls, value: int) -> int:
        if value < 0 or value > 0xFFFFFF:
            raise ValueError(f"Invalid color: {value}")
        return value

    @field_validator("palette")
    @classmethod
    def _validate_palette(cls, value: dict[int, int]) -> dict[int, int]:
        for index, color in value.items():
            if index < 0 or index >= PALETTE_SIZE:
                raise ValueError(f"Invalid palette index: {index}")
            if color < 0 or color > 0xFFFFFF:
                raise ValueError(f"Invalid palette color: {color}")
        return value


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"Expected a boolean, got {value!r}")


def _parse_choice(value: str, choices: set[str]) -> str:
    normalized = value.strip().lower()
    if normalized not in choices:
        raise ValueError(f"Expected one of {sorted(choices)}, got {value!r}")
    return normalized


def _unquote(value: str) -> str:
    text = value.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        return text[1:-1]
    return text


def _set_font(cfg: AppConfig, value: str) -> None:
    parts = value.split()
    if len(parts) > 1 and parts[-1].isdigit():
        cfg.font_family = " ".join(parts[:-1])
        cfg.font_size = int(parts[-1])
        return
    cfg.font_family = _unquote(value)


def _set_hotkey(cfg: AppConfig, value: str) -> None:
    parts = value.split(None, 1)
    if len(parts) != 2:
        raise ValueError("hotkey expects a chord and an action")
    chord = canonical_chord(parts[0])
    action = parts[1].strip()
    verb = action.split(None, 1)[0].lower()
    if verb not in {item.value for item in ActionVerb}:
        raise ValueError(f"Unknown action verb: {verb}")
    hotkeys = dict(cfg.hotkeys)
    hotkeys[chord] = action
    cfg.hotkeys = hotkeys


def _set_palette_entry(cfg: AppConfig, index: int, value: str) -> None:
    palette = dict(cfg.palette)
    palette[index] = parse_color(value)
    cfg.palette = palette


def _attr_setter(field: str, convert: Callable[[str], object]) -> Callable[[AppConfig, str], None]:
    def apply(cfg: AppConfig, value: str) -> None:
        setattr(cfg, field, convert(value))

    return apply


_DIRECTIVES: dict[str, Callable[[AppConfig, str], None]] = {
    "locale": _attr_setter("locale", str.strip),
    "word_chars": _attr_setter("word_chars", _unquote),
    "char": _attr_setter("word_chars", _unquote),
    "tab_position": _attr_setter("tab_position", lambda v: _parse_choice(v, _VALID_POSITIONS)),
    "tab": _attr_setter("tab_position", lambda v: _parse_choice(v, _VALID_POSITIONS)),
    "commander_position": _attr_setter(
        "commander_position", lambda v: _parse_choice(v, _VALID_POSITIONS)
    ),
    "commander": _attr_setter("commander_position", lambda v: _parse_choice(v, _VALID_POSITIONS)),
    "font": _set_font,
    "opacity": _attr_setter("opacity", float),
    "cursor": _attr_setter("cursor_color", parse_color),
    "cursor_color": _attr_setter("cursor_color", parse_color),
    "cursor_foreground": _attr_setter("cursor_foreground", parse_color),
    "cursor_shape": _attr_setter("cursor_shape", lambda v: _parse_choice(v, _VALID_CURSOR_SHAPES)),
    "foreground": _attr_setter("foreground", parse_color),
    "foreground_bold": _attr_setter("bold_color", parse_color),
    "bold": _attr_setter("bold_color", parse_color),
    "background": _attr_setter("background", parse_color),
    "focus_follow_mouse": _attr_setter("focus_follow_mouse", _parse_bool),
    "copy_on_selection": _attr_setter("copy_on_selection", _parse_bool),
    "hotkey": _set_hotkey,
}


def _palette_index(option: str) -> int | None:
    if not option.startswith("color"):
        return None
    suffix = option[len("color") :]
    if not suffix.isdigit():
        return None
    return int(suffix)


def _resolve_include(value: str, base_dir: Path) -> Path:
    target = Path(_unquote(value)).expanduser()
    if not target.is_absolute():
        target = base_dir / target
    return target


def _report(issues: list[ConfigIssue], source: Path, line: int, message: str) -> None:
    issues.append(ConfigIssue(path=str(source), line=line, message=message))
    logger.warning("config-issue path=%s line=%s message=%s", source, line, message)


def _apply_lines(
    cfg: AppConfig,
    lines: Iterable[str],
    *,
    source: Path,
    seen: set[Path],
    issues: list[ConfigIssue],
) -> None:
    for number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split(None, 1)
        option = parts[0].lower()
        value = parts[1].strip() if len(parts) > 1 else ""
        if not value:
            _report(issues, source, number, f"Missing value for '{option}'")
            continue

        if option == "include":
            _include(cfg, _resolve_include(value, source.parent), seen=seen, issues=issues)
            continue

        palette_index = _palette_index(option)
        if palette_index is None and option not in _DIRECTIVES:
            _report(issues, source, number, f"Unknown option '{option}'")
            continue
        try:
            if palette_index is not None:
                _set_palette_entry(cfg, palette_index, value)
            else:
                _DIRECTIVES[option](cfg, value)
        except SplitTermError as exc:
            _report(issues, source, number, exc.message)
        except ValidationError as exc:
            errors = exc.errors()
            message = str(errors[0].get("msg", "")) if errors else ""
            _report(issues, source, number, message or f"Invalid value for '{option}'")
        except ValueError as exc:
            _report(issues, source, number, str(exc) or f"Invalid value for '{option}'")


def _include(
    cfg: AppConfig,
    path: Path,
    *,
    seen: set[Path],
    issues: list[ConfigIssue],
) -> None:
    try:
        resolved = path.resolve()
    except OSError:
        resolved = path
    if resolved in seen:
        logger.warning("config-include-cycle path=%s", resolved)
        return
    seen.add(resolved)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        issues.append(ConfigIssue(path=str(path), line=0, message=f"Cannot read config: {exc}"))
        logger.warning("config-unreadable path=%s error=%s", path, exc)
        return
    logger.debug("config-parse path=%s", path)
    _apply_lines(cfg, text.splitlines(), source=path, seen=seen, issues=issues)


def parse_config_text(
    text: str,
    *,
    source: str | Path = "<string>",
    base: AppConfig | None = None,
) -> tuple[AppConfig, list[ConfigIssue]]:
    cfg = base.model_copy(deep=True) if base is not None else AppConfig()
    issues: list[ConfigIssue] = []
    source_path = Path(source)
    _apply_lines(cfg, text.splitlines(), source=source_path, seen=set(), issues=issues)
    return cfg, issues


def parse_config_file(path: str | Path | None = None) -> tuple[AppConfig, list[ConfigIssue]]:
    resolved = get_config_path(path)
    cfg = AppConfig()
    issues: list[ConfigIssue] = []
    if not resolved.exists():
        logger.warning("config-missing path=%s using-defaults", resolved)
        issues.append(ConfigIssue(path=str(resolved), line=0, message="Config file not found"))
        return cfg, issues
    _include(cfg, resolved, seen=set(), issues=issues)
    return cfg, issues


def load_config(path: str | Path | None = None) -> AppConfig:
    cfg, _issues = parse_config_file(path)
    return cfg


def reload_config(path: str | Path | None, current: AppConfig) -> AppConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        logger.warning("config-reload-skipped path=%s reason=missing", resolved)
        return current
    cfg, issues = parse_config_file(resolved)
    if any(issue["line"] == 0 and issue["path"] == str(resolved) for issue in issues):
        logger.warning("config-reload-skipped path=%s reason=unreadable", resolved)
        return current
    return cfg

