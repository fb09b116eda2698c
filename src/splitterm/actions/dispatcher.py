"""Apply parsed actions to the layout and the focused session."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from splitterm.actions.hotkeys import Modifier, build_chord
from splitterm.actions.parser import Action, ActionVerb, parse_action
from splitterm.layout.nodes import Orientation
from splitterm.terminal.session import TerminalSession

if TYPE_CHECKING:
    from splitterm.context import AppContext

logger = py_logging.getLogger(__name__)

_SPLITS: dict[ActionVerb, tuple[Orientation, bool]] = {
    ActionVerb.SPLIT_V: (Orientation.VERTICAL, True),
    ActionVerb.SPLIT_H: (Orientation.HORIZONTAL, True),
    ActionVerb.SPLIT_UP: (Orientation.VERTICAL, True),
    ActionVerb.SPLIT_DOWN: (Orientation.VERTICAL, False),
    ActionVerb.SPLIT_LEFT: (Orientation.HORIZONTAL, True),
    ActionVerb.SPLIT_RIGHT: (Orientation.HORIZONTAL, False),
}


class ActionDispatcher:
    """Single entry point for hotkey chords and command-line text.

    ``dispatch`` returns ``False`` when the action is not handled: the chord
    or command is then treated as unmatched and no state has changed.
    """

    def __init__(self, context: AppContext) -> None:
        self._context = context
        self._handlers: dict[ActionVerb, Callable[[Action], bool]] = {
            ActionVerb.COPY: self._copy,
            ActionVerb.PASTE: self._paste,
            ActionVerb.RELOAD: self._reload,
            ActionVerb.QUIT: self._quit,
            ActionVerb.FONT_INC: self._font_inc,
            ActionVerb.FONT_DEC: self._font_dec,
            ActionVerb.FONT_RESET: self._font_reset,
            ActionVerb.NEW_TAB: self._new_tab,
            ActionVerb.NEXT: self._next,
            ActionVerb.PREV: self._prev,
            ActionVerb.CLOSE: self._close,
            ActionVerb.EXEC: self._exec,
            ActionVerb.GOTO: self._goto,
            ActionVerb.CMD: self._cmd,
        }
        for verb in _SPLITS:
            self._handlers[verb] = self._split

    def dispatch(self, action: Action | None) -> bool:
        if action is None:
            return False
        if self._context.tree.terminated:
            logger.debug("dispatch-ignored action=%s reason=terminated", action)
            return False
        handled = self._handlers[action.verb](action)
        logger.info("dispatch action=%s handled=%s", action, handled)
        return handled

    def dispatch_text(self, line: str) -> bool:
        action = parse_action(line)
        if action is None:
            logger.debug("dispatch-unparsed text=%r", line)
            return False
        return self.dispatch(action)

    def dispatch_chord(self, chord: str | None) -> bool:
        bound = self._context.hotkeys.lookup(chord)
        if bound is None:
            return False
        logger.debug("dispatch-chord chord=%s action=%s", chord, bound)
        return self.dispatch_text(bound)

    def handle_key(self, modifiers: Iterable[Modifier | str], key: str) -> bool:
        """Returns ``True`` when the key was consumed; otherwise it goes to the session."""
        return self.dispatch_chord(build_chord(modifiers, key))

    @property
    def _focused(self) -> TerminalSession | None:
        return self._context.tree.focused

    def _copy(self, _action: Action) -> bool:
        session = self._focused
        if session is not None:
            session.copy_selection()
        return True

    def _paste(self, _action: Action) -> bool:
        session = self._focused
        if session is not None:
            session.paste()
        return True

    def _reload(self, _action: Action) -> bool:
        self._context.reload_config()
        return True

    def _quit(self, _action: Action) -> bool:
        self._context.request_quit()
        return True

    def _font_inc(self, _action: Action) -> bool:
        session = self._focused
        if session is not None:
            session.set_font_size(session.font_size + 1)
        return True

    def _font_dec(self, _action: Action) -> bool:
        session = self._focused
        if session is not None:
            session.set_font_size(session.font_size - 1)
        return True

    def _font_reset(self, _action: Action) -> bool:
        session = self._focused
        if session is not None:
            session.set_font_size(self._context.config.font_size)
        return True

    def _split(self, action: Action) -> bool:
        session = self._focused
        if session is None:
            return True
        orientation, new_first = _SPLITS[action.verb]
        self._context.tree.split(session, orientation, new_first=new_first)
        return True

    def _new_tab(self, _action: Action) -> bool:
        self._context.tree.add_tab()
        return True

    def _next(self, _action: Action) -> bool:
        self._context.tree.next_tab()
        return True

    def _prev(self, _action: Action) -> bool:
        self._context.tree.prev_tab()
        return True

    def _close(self, _action: Action) -> bool:
        self._context.tree.close_active_tab()
        return True

    def _exec(self, action: Action) -> bool:
        if not action.tokens:
            return False
        session = self._focused
        if session is None:
            return True
        for token in action.tokens:
            session.feed_text(token)
            session.feed_text(" ")
        session.feed_text("\n")
        return True

    def _goto(self, action: Action) -> bool:
        if action.index is None:
            return False
        return self._context.tree.goto_tab(action.index)

    def _cmd(self, _action: Action) -> bool:
        self._context.toggle_commander()
        return True
