"""Action vocabulary and the single text-to-action parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ActionVerb(str, Enum):
    COPY = "copy"
    PASTE = "paste"
    RELOAD = "reload"
    QUIT = "quit"
    FONT_INC = "font_inc"
    FONT_DEC = "font_dec"
    FONT_RESET = "font_reset"
    SPLIT_V = "split_v"
    SPLIT_H = "split_h"
    SPLIT_UP = "split_up"
    SPLIT_DOWN = "split_down"
    SPLIT_LEFT = "split_left"
    SPLIT_RIGHT = "split_right"
    NEW_TAB = "new_tab"
    NEXT = "next"
    PREV = "prev"
    CLOSE = "close"
    EXEC = "exec"
    GOTO = "goto"
    CMD = "cmd"


@dataclass(frozen=True)
class Action:
    verb: ActionVerb
    tokens: tuple[str, ...] = ()
    index: int | None = None

    def __str__(self) -> str:
        if self.verb == ActionVerb.EXEC:
            return " ".join((self.verb.value, *self.tokens))
        if self.verb == ActionVerb.GOTO:
            return f"{self.verb.value} {self.index}"
        return self.verb.value


_VERBS = {verb.value: verb for verb in ActionVerb}


def parse_action(text: str) -> Action | None:
    """Parse ``verb [args...]``; ``None`` means the text cannot be dispatched."""
    parts = text.split()
    if not parts:
        return None
    verb = _VERBS.get(parts[0].lower())
    if verb is None:
        return None
    args = parts[1:]

    if verb == ActionVerb.EXEC:
        if not args:
            return None
        return Action(verb=verb, tokens=tuple(args))

    if verb == ActionVerb.GOTO:
        if len(args) != 1:
            return None
        try:
            index = int(args[0])
        except ValueError:
            return None
        return Action(verb=verb, index=index)

    return Action(verb=verb)
