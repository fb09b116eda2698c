"""Keyboard chord encoding and the chord-to-action table."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Iterable, Iterator, Mapping
from enum import Enum
from types import MappingProxyType

from splitterm.errors import ExitCode, SplitTermError

logger = py_logging.getLogger(__name__)


class Modifier(str, Enum):
    CONTROL = "Control"
    SHIFT = "Shift"
    MOD1 = "Mod1"
    META = "Meta"


MODIFIER_ORDER: tuple[Modifier, ...] = (
    Modifier.CONTROL,
    Modifier.SHIFT,
    Modifier.MOD1,
    Modifier.META,
)

_MODIFIER_ALIASES: dict[str, Modifier] = {
    "control": Modifier.CONTROL,
    "ctrl": Modifier.CONTROL,
    "shift": Modifier.SHIFT,
    "mod1": Modifier.MOD1,
    "alt": Modifier.MOD1,
    "meta": Modifier.META,
    "super": Modifier.META,
}

# Key names that only ever act as modifiers; pressing them alone is not a chord.
MODIFIER_KEY_NAMES = frozenset(
    {
        "Shift_L",
        "Shift_R",
        "Control_L",
        "Control_R",
        "Alt_L",
        "Alt_R",
        "Meta_L",
        "Meta_R",
        "Super_L",
        "Super_R",
        "Hyper_L",
        "Hyper_R",
        "ISO_Level3_Shift",
        "Caps_Lock",
    }
)

DEFAULT_HOTKEYS: dict[str, str] = {
    "Control+Shift+C": "copy",
    "Control+Shift+V": "paste",
    "Control+Shift+KP_Insert": "paste",
    "Control+Shift+R": "reload",
    "Control+Shift+Q": "quit",
    "Control+Shift+asterisk": "font_inc",
    "Control+Shift+KP_Add": "font_inc",
    "Control+Shift+underscore": "font_dec",
    "Control+Shift+KP_Subtract": "font_dec",
    "Control+Shift+equal": "font_reset",
    "Control+Shift+KP_Enter": "font_reset",
    "Control+Shift+Up": "split_up",
    "Control+Shift+Down": "split_down",
    "Control+Shift+Left": "split_left",
    "Control+Shift+Right": "split_right",
    "Control+Shift+T": "new_tab",
    "Control+Shift+Return": "new_tab",
    "Control+Shift+KP_Page_Up": "prev",
    "Control+Shift+KP_Page_Down": "next",
    "Control+Shift+BackSpace": "close",
    "Control+Shift+colon": "cmd",
}


def _normalize_key(key: str) -> str:
    if len(key) == 1 and key.isalpha():
        return key.upper()
    return key


def build_chord(modifiers: Iterable[Modifier | str], key: str) -> str | None:
    """Build the canonical chord string, or ``None`` for a modifier-only press."""
    if not key or key in MODIFIER_KEY_NAMES:
        return None
    active: set[Modifier] = set()
    for item in modifiers:
        if isinstance(item, Modifier):
            active.add(item)
            continue
        resolved = _MODIFIER_ALIASES.get(str(item).strip().lower())
        if resolved is None:
            raise SplitTermError(
                f"Unknown modifier: {item}",
                code=ExitCode.VALIDATION_ERROR,
                hint="Use Control, Shift, Mod1 or Meta.",
            )
        active.add(resolved)
    prefix = "".join(f"{modifier.value}+" for modifier in MODIFIER_ORDER if modifier in active)
    return prefix + _normalize_key(key)


def canonical_chord(text: str) -> str:
    """Canonicalize a chord written in configuration (any modifier order, aliases)."""
    raw = text.strip()
    if not raw:
        raise SplitTermError(
            "Empty hotkey chord.",
            code=ExitCode.CONFIG_ERROR,
            hint="Write chords like Control+Shift+R.",
        )
    if raw.endswith("++"):
        parts = raw[:-2].split("+") + ["+"]
    else:
        parts = raw.split("+")
    *modifier_names, key = parts
    if any(not name.strip() for name in modifier_names) or not key:
        raise SplitTermError(
            f"Malformed hotkey chord: {text}",
            code=ExitCode.CONFIG_ERROR,
            hint="Write chords like Control+Shift+R.",
        )
    chord = build_chord(modifier_names, key)
    if chord is None:
        raise SplitTermError(
            f"Hotkey chord has no key: {text}",
            code=ExitCode.CONFIG_ERROR,
            hint="A chord must end with a non-modifier key.",
        )
    return chord


class HotkeyTable(Mapping[str, str]):
    """Read-only chord to action mapping; rebuilt wholesale on reload."""

    def __init__(self, bindings: Mapping[str, str] | None = None) -> None:
        normalized: dict[str, str] = {}
        for chord, action in (bindings or {}).items():
            normalized[canonical_chord(chord)] = action.strip()
        self._bindings = MappingProxyType(normalized)

    @classmethod
    def from_config(
        cls,
        overrides: Mapping[str, str] | None = None,
        *,
        defaults: Mapping[str, str] | None = None,
    ) -> HotkeyTable:
        merged = dict(DEFAULT_HOTKEYS if defaults is None else defaults)
        merged.update(overrides or {})
        table = cls(merged)
        logger.debug("hotkey-table built bindings=%s", len(table))
        return table

    def __getitem__(self, chord: str) -> str:
        return self._bindings[chord]

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def lookup(self, chord: str | None) -> str | None:
        if chord is None:
            return None
        return self._bindings.get(chord)
