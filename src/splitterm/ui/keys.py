"""Toolkit key names to chord key names and terminal input sequences."""

from __future__ import annotations

from splitterm.actions.hotkeys import Modifier

# Qt ``Key_*`` suffixes whose chord name differs from the suffix itself.
_QT_TO_CHORD = {
    "Backspace": "BackSpace",
    "Enter": "KP_Enter",
    "Asterisk": "asterisk",
    "Underscore": "underscore",
    "Equal": "equal",
    "Colon": "colon",
    "Semicolon": "semicolon",
    "Plus": "plus",
    "Minus": "minus",
    "Slash": "slash",
    "Space": "space",
    "Period": "period",
    "Comma": "comma",
    "PageUp": "Page_Up",
    "PageDown": "Page_Down",
    "Backtab": "ISO_Left_Tab",
    "Control": "Control_L",
    "Shift": "Shift_L",
    "Alt": "Alt_L",
    "Meta": "Meta_L",
    "Super_L": "Super_L",
    "Super_R": "Super_R",
    "CapsLock": "Caps_Lock",
    "AltGr": "ISO_Level3_Shift",
}

_KEYPAD = {
    "Plus": "KP_Add",
    "Minus": "KP_Subtract",
    "Asterisk": "KP_Multiply",
    "Slash": "KP_Divide",
    "Enter": "KP_Enter",
    "Insert": "KP_Insert",
    "PageUp": "KP_Page_Up",
    "PageDown": "KP_Page_Down",
    "Home": "KP_Home",
    "End": "KP_End",
    "Delete": "KP_Delete",
}

_SEQUENCES = {
    "Return": "\r",
    "KP_Enter": "\r",
    "BackSpace": "\x7f",
    "Tab": "\t",
    "ISO_Left_Tab": "\x1b[Z",
    "Escape": "\x1b",
    "Up": "\x1b[A",
    "Down": "\x1b[B",
    "Right": "\x1b[C",
    "Left": "\x1b[D",
    "Home": "\x1b[H",
    "End": "\x1b[F",
    "Insert": "\x1b[2~",
    "Delete": "\x1b[3~",
    "Page_Up": "\x1b[5~",
    "Page_Down": "\x1b[6~",
    "F1": "\x1bOP",
    "F2": "\x1bOQ",
    "F3": "\x1bOR",
    "F4": "\x1bOS",
}


def chord_key_name(qt_name: str, *, keypad: bool = False) -> str:
    """Translate a Qt key enum name (``Key_Up``) to a chord key name (``Up``)."""
    name = qt_name[4:] if qt_name.startswith("Key_") else qt_name
    if keypad and name in _KEYPAD:
        return _KEYPAD[name]
    return _QT_TO_CHORD.get(name, name)


def active_modifiers(*, control: bool, shift: bool, alt: bool, meta: bool) -> list[Modifier]:
    flags = (
        (control, Modifier.CONTROL),
        (shift, Modifier.SHIFT),
        (alt, Modifier.MOD1),
        (meta, Modifier.META),
    )
    return [modifier for enabled, modifier in flags if enabled]


def input_sequence(key_name: str, text: str, *, control: bool = False, alt: bool = False) -> str:
    """Bytes a key press sends to the shell; empty when the key produces nothing."""
    sequence = _SEQUENCES.get(key_name)
    if sequence is None:
        sequence = text
    if not sequence:
        return ""
    if control and len(sequence) == 1 and sequence.isalpha():
        sequence = chr(ord(sequence.upper()) - 64)
    if alt:
        sequence = "\x1b" + sequence
    return sequence
