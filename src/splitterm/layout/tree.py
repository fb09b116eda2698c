"""Tab sequence, split mutations and focus tracking."""

from __future__ import annotations

import itertools
import logging as py_logging
import weakref
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from splitterm.errors import ExitCode, SplitTermError
from splitterm.layout.focus import detach_leaf, reasonable_leaf
from splitterm.layout.nodes import (
    Orientation,
    SplitNode,
    TabGroup,
    describe,
    iter_sessions,
    iter_splits,
    owning_tab,
    place_in_slot,
    slot_of,
)
from splitterm.terminal.service import SessionService
from splitterm.terminal.session import TerminalSession

logger = py_logging.getLogger(__name__)


class LayoutEventKind(str, Enum):
    TAB_ADDED = "tab-added"
    TAB_REMOVED = "tab-removed"
    TAB_ACTIVATED = "tab-activated"
    SPLIT = "split"
    COLLAPSE = "collapse"
    RESIZE = "resize"
    FOCUS = "focus"
    QUIT = "quit"


@dataclass(frozen=True)
class LayoutEvent:
    kind: LayoutEventKind
    tab_id: str = ""
    session_id: str = ""
    message: str = ""


LayoutListener = Callable[[LayoutEvent], None]


class LayoutTree:
    def __init__(self, service: SessionService) -> None:
        self._service = service
        self._tabs: list[TabGroup] = []
        self._active = -1
        self._focused: weakref.ReferenceType[TerminalSession] | None = None
        self._listeners: list[LayoutListener] = []
        self._events: list[LayoutEvent] = []
        self._pending: list[LayoutEvent] = []
        self._depth = 0
        self._flushing = False
        self._terminated = False
        self._tab_ids = itertools.count(1)
        self._split_ids = itertools.count(1)

    @property
    def tabs(self) -> tuple[TabGroup, ...]:
        return tuple(self._tabs)

    @property
    def count(self) -> int:
        return len(self._tabs)

    @property
    def active_index(self) -> int:
        return self._active

    @property
    def active_tab(self) -> TabGroup | None:
        if 0 <= self._active < len(self._tabs):
            return self._tabs[self._active]
        return None

    @property
    def focused(self) -> TerminalSession | None:
        if self._focused is None:
            return None
        return self._focused()

    @property
    def tabs_visible(self) -> bool:
        return len(self._tabs) > 1

    @property
    def terminated(self) -> bool:
        return self._terminated

    @property
    def service(self) -> SessionService:
        return self._service

    def subscribe(self, listener: LayoutListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def list_events(self) -> list[LayoutEvent]:
        return list(self._events)

    def clear_events(self) -> None:
        self._events.clear()

    def sessions(self) -> Iterator[TerminalSession]:
        for tab in self._tabs:
            yield from iter_sessions(tab.root)

    def find_session(self, session_id: str) -> TerminalSession | None:
        for session in self.sessions():
            if session.session_id == session_id:
                return session
        return None

    def tab_of(self, session: TerminalSession) -> TabGroup | None:
        tab = owning_tab(session)
        if tab is None or not any(candidate is tab for candidate in self._tabs):
            return None
        return tab

    def describe(self) -> tuple[object, ...]:
        return tuple(describe(tab.root) for tab in self._tabs)

    def add_tab(self) -> TabGroup:
        self._ensure_running()
        with self._mutation():
            session = self._service.create()
            tab = TabGroup(f"tab{next(self._tab_ids)}", session)
            self._tabs.append(tab)
            self._renumber()
            self._active = len(self._tabs) - 1
            self._emit(LayoutEventKind.TAB_ADDED, tab=tab, session=session)
            self._set_focus(session)
        return tab

    def close_active_tab(self) -> bool:
        if self._terminated or len(self._tabs) <= 1:
            return False
        with self._mutation():
            self._remove_tab(self._active)
        return True

    def goto_tab(self, number: int) -> bool:
        if self._terminated or not 1 <= number <= len(self._tabs):
            logger.debug("layout-goto-rejected number=%s count=%s", number, len(self._tabs))
            return False
        with self._mutation():
            self._activate(number - 1)
        return True

    def next_tab(self) -> bool:
        if self._terminated or self._active >= len(self._tabs) - 1:
            return False
        with self._mutation():
            self._activate(self._active + 1)
        return True

    def prev_tab(self) -> bool:
        if self._terminated or self._active <= 0:
            return False
        with self._mutation():
            self._activate(self._active - 1)
        return True

    def split(
        self,
        session: TerminalSession,
        orientation: Orientation,
        *,
        new_first: bool = True,
    ) -> TerminalSession:
        self._ensure_running()
        tab = self._require_tab(session)
        with self._mutation():
            created = self._service.create()
            parent, index = slot_of(session)
            first, second = (created, session) if new_first else (session, created)
            split = SplitNode(f"s{next(self._split_ids)}", orientation, first, second)
            place_in_slot(parent, index, split)
            self._emit(
                LayoutEventKind.SPLIT,
                tab=tab,
                session=created,
                message=f"{split.node_id} {orientation.value} around {session.session_id}",
            )
            self._set_focus(created)
        return created

    def remove_session(self, session: TerminalSession) -> bool:
        tab = self.tab_of(session)
        if tab is None:
            return False
        tab_index = self._index_of(tab)
        was_focused = self.focused is session
        with self._mutation():
            result = detach_leaf(session)
            if was_focused:
                self._focused = None
            self._service.remove(session)
            if result.tab_emptied:
                self._remove_tab(tab_index)
                return True
            if result.collapsed:
                self._emit(
                    LayoutEventKind.COLLAPSE,
                    tab=tab,
                    session=session,
                    message=",".join(result.collapsed),
                )
            if tab_index == self._active and result.target is not None:
                self._set_focus(result.target)
            elif self.focused is None:
                self._focus_active()
        return True

    def session_exited(self, session_id: str, status: int | None = None) -> bool:
        session = self._service.exited(session_id, status)
        if session is None:
            logger.debug("layout-exit-ignored session=%s", session_id)
            return False
        if self.tab_of(session) is None:
            self._service.remove(session)
            return False
        return self.remove_session(session)

    def focus(self, session: TerminalSession) -> None:
        self._require_tab(session)
        with self._mutation():
            self._set_focus(session)

    def focus_gained(self, session: TerminalSession) -> bool:
        if self.tab_of(session) is None:
            return False
        with self._mutation():
            self._set_focus(session, request=False)
        return True

    def resize_split(self, split: SplitNode, ratio: float) -> None:
        if not 0.0 < ratio < 1.0:
            raise SplitTermError(
                f"Invalid split ratio: {ratio}",
                code=ExitCode.VALIDATION_ERROR,
                hint="Use a ratio strictly between 0 and 1.",
            )
        tab = owning_tab(split)
        if tab is None or not any(candidate is tab for candidate in self._tabs):
            raise SplitTermError(
                f"{split!r} is not part of this layout",
                code=ExitCode.VALIDATION_ERROR,
            )
        with self._mutation():
            split.ratio = ratio
            self._emit(LayoutEventKind.RESIZE, tab=tab, message=f"{split.node_id} {ratio:.3f}")

    def shutdown(self) -> None:
        if self._terminated:
            return
        with self._mutation():
            while self._tabs:
                self._remove_tab(len(self._tabs) - 1)

    def _ensure_running(self) -> None:
        if self._terminated:
            raise SplitTermError(
                "Layout has terminated.",
                code=ExitCode.LAYOUT_ERROR,
                hint="No further tabs can be created after the last tab closed.",
            )

    def _require_tab(self, session: TerminalSession) -> TabGroup:
        tab = self.tab_of(session)
        if tab is None:
            raise SplitTermError(
                f"Session not in layout: {session.session_id}",
                code=ExitCode.VALIDATION_ERROR,
                hint="Select a session from an open tab.",
            )
        return tab

    def _index_of(self, tab: TabGroup) -> int:
        for index, candidate in enumerate(self._tabs):
            if candidate is tab:
                return index
        raise SplitTermError(f"{tab!r} is not part of this layout", code=ExitCode.LAYOUT_ERROR)

    def _renumber(self) -> None:
        for position, tab in enumerate(self._tabs, start=1):
            tab.label = str(position)

    def _activate(self, index: int) -> None:
        self._active = index
        tab = self._tabs[index]
        self._emit(LayoutEventKind.TAB_ACTIVATED, tab=tab)
        leaf = reasonable_leaf(tab)
        if leaf is not None:
            self._set_focus(leaf)

    def _focus_active(self) -> None:
        tab = self.active_tab
        leaf = reasonable_leaf(tab) if tab is not None else None
        if leaf is not None:
            self._set_focus(leaf)

    def _remove_tab(self, index: int) -> None:
        tab = self._tabs.pop(index)
        doomed = list(iter_sessions(tab.root))
        tab.root = None
        focused = self.focused
        if focused is not None and any(session is focused for session in doomed):
            self._focused = None
        for session in doomed:
            session.parent = None
            self._service.remove(session)
        self._renumber()
        self._emit(LayoutEventKind.TAB_REMOVED, tab=tab, message=f"{len(doomed)} session(s) released")

        if not self._tabs:
            self._active = -1
            self._focused = None
            self._terminated = True
            self._emit(LayoutEventKind.QUIT, message="Last tab closed.")
            return

        if index < self._active:
            self._active -= 1
        elif index == self._active:
            self._activate(min(index, len(self._tabs) - 1))
            return
        if self.focused is None:
            self._focus_active()

    def _set_focus(self, session: TerminalSession, *, request: bool = True) -> None:
        previous = self.focused
        tab = owning_tab(session)
        if tab is not None and self.active_tab is not tab:
            self._active = self._index_of(tab)
            self._emit(LayoutEventKind.TAB_ACTIVATED, tab=tab)
        if previous is session and session.has_focus:
            return
        if previous is not None:
            previous.set_focus_flag(False)
        session.set_focus_flag(True)
        self._focused = weakref.ref(session)
        self._emit(LayoutEventKind.FOCUS, tab=tab, session=session)
        if request:
            session.request_focus()

    def _emit(
        self,
        kind: LayoutEventKind,
        *,
        tab: TabGroup | None = None,
        session: TerminalSession | None = None,
        message: str = "",
    ) -> None:
        event = LayoutEvent(
            kind=kind,
            tab_id=tab.tab_id if tab is not None else "",
            session_id=session.session_id if session is not None else "",
            message=message,
        )
        self._events.append(event)
        self._pending.append(event)
        logger.info(
            "layout-event kind=%s tab=%s session=%s message=%s",
            kind.value,
            event.tab_id or "-",
            event.session_id or "-",
            message,
        )

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
        if self._depth == 0:
            if __debug__:
                validate_tree(self)
            self._flush()

    def _flush(self) -> None:
        # Listeners may mutate the tree; their events join the same queue.
        if self._flushing:
            return
        self._flushing = True
        try:
            while self._pending:
                event = self._pending.pop(0)
                for listener in list(self._listeners):
                    listener(event)
        finally:
            self._flushing = False


def validate_tree(tree: LayoutTree) -> None:
    """Raise ``SplitTermError`` when a structural invariant does not hold."""

    def fail(message: str) -> None:
        raise SplitTermError(message, code=ExitCode.LAYOUT_ERROR)

    tabs = tree.tabs
    if tree.terminated:
        if tabs:
            fail("Terminated layout still holds tabs.")
        return
    if not tabs:
        if tree.active_index != -1:
            fail("Active index set without tabs.")
        return
    if not 0 <= tree.active_index < len(tabs):
        fail(f"Active index {tree.active_index} out of range for {len(tabs)} tab(s).")

    seen: set[int] = set()
    focused_count = 0
    for position, tab in enumerate(tabs, start=1):
        if tab.label != str(position):
            fail(f"{tab!r} labelled {tab.label!r}, expected {position}.")
        if tab.root is None:
            fail(f"{tab!r} has no root.")
        if tab.root.parent is not tab:
            fail(f"Root of {tab!r} has a stale parent link.")
        for split in iter_splits(tab.root):
            if len(split.children) != 2:
                fail(f"{split!r} has {len(split.children)} child(ren).")
            for child in split.children:
                if child.parent is not split:
                    fail(f"Child {child!r} of {split!r} has a stale parent link.")
        for session in iter_sessions(tab.root):
            if id(session) in seen:
                fail(f"{session!r} appears twice in the layout.")
            seen.add(id(session))
            if session.has_focus:
                focused_count += 1

    if focused_count > 1:
        fail(f"{focused_count} sessions hold focus.")
    focused = tree.focused
    if focused is not None and not focused.has_focus:
        fail(f"Focused {focused!r} lacks the focus flag.")
    if focused is not None and id(focused) not in seen:
        fail(f"Focused {focused!r} is not in the layout.")
