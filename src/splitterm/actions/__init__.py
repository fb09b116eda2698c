"""Action vocabulary, hotkey chords and dispatch."""

from .dispatcher import ActionDispatcher
from .hotkeys import DEFAULT_HOTKEYS, HotkeyTable, Modifier, build_chord, canonical_chord
from .parser import Action, ActionVerb, parse_action

__all__ = [
    "Action",
    "ActionDispatcher",
    "ActionVerb",
    "build_chord",
    "canonical_chord",
    "DEFAULT_HOTKEYS",
    "HotkeyTable",
    "Modifier",
    "parse_action",
]
