"""Terminal session leaf: one running shell and its rendering surface."""

from __future__ import annotations

import logging as py_logging
from typing import TYPE_CHECKING

from splitterm.errors import ExitCode, SplitTermError
from splitterm.terminal.models import (
    SessionBackend,
    SessionHandle,
    SessionSettings,
    SessionSpec,
    SessionState,
)

if TYPE_CHECKING:
    from splitterm.layout.nodes import SplitNode, TabGroup

logger = py_logging.getLogger(__name__)

MIN_FONT_SIZE = 1
_LIVE_STATES = {SessionState.CREATED, SessionState.SPAWNING, SessionState.RUNNING}


class TerminalSession:
    """Leaf of the layout tree.

    The session owns its backend handle. ``parent`` is a lookup link to the
    containing split or tab and confers no ownership.
    """

    def __init__(
        self,
        session_id: str,
        backend: SessionBackend,
        *,
        settings: SessionSettings | None = None,
    ) -> None:
        self.session_id = session_id
        self.parent: SplitNode | TabGroup | None = None
        self.state = SessionState.CREATED
        self.handle: SessionHandle | None = None
        self.pid: int | None = None
        self.title = ""
        self.failure_reason = ""
        self.exit_status: int | None = None
        self.font_family = settings.font_family if settings else ""
        self.font_size = settings.font_size if settings else 0
        self._backend = backend
        self._has_focus = False

    def __repr__(self) -> str:
        return f"TerminalSession({self.session_id!r}, state={self.state.value})"

    @property
    def has_focus(self) -> bool:
        return self._has_focus

    @property
    def is_alive(self) -> bool:
        return self.state in _LIVE_STATES

    def spawn(self, spec: SessionSpec) -> SessionHandle:
        if self.state != SessionState.CREATED:
            raise SplitTermError(
                f"Session already spawned: {self.session_id}",
                code=ExitCode.VALIDATION_ERROR,
                hint="Create a new session instead of respawning.",
            )
        if not spec.argv:
            raise SplitTermError(
                "Spawn command cannot be empty.",
                code=ExitCode.SPAWN_ERROR,
                hint="Set $SHELL or pass --command.",
            )
        self.state = SessionState.SPAWNING
        self.handle = self._backend.spawn(self.session_id, spec=spec, on_spawned=self._on_spawned)
        logger.debug("session-spawn session=%s argv=%s cwd=%s", self.session_id, spec.argv, spec.working_dir)
        return self.handle

    def _on_spawned(self, handle: SessionHandle, pid: int | None, error: Exception | None) -> None:
        if self.state != SessionState.SPAWNING:
            logger.debug("session-spawn-late session=%s state=%s", self.session_id, self.state.value)
            return
        if error is not None:
            self.state = SessionState.FAILED
            self.failure_reason = str(error) or type(error).__name__
            logger.error("session-spawn-failed session=%s error=%s", handle.session_id, self.failure_reason)
            return
        self.state = SessionState.RUNNING
        self.pid = pid
        logger.info("session-started session=%s pid=%s", handle.session_id, pid)

    def mark_exited(self, status: int | None) -> None:
        if self.state == SessionState.CLOSED:
            return
        self.state = SessionState.EXITED
        self.exit_status = status

    def set_focus_flag(self, value: bool) -> None:
        self._has_focus = value

    def feed_text(self, payload: str) -> bool:
        if self.handle is None or not self.is_alive:
            logger.debug("session-feed-skipped session=%s state=%s", self.session_id, self.state.value)
            return False
        self._backend.feed_text(self.handle, payload)
        return True

    def copy_selection(self) -> None:
        if self.handle is not None:
            self._backend.copy_selection(self.handle)

    def paste(self) -> None:
        if self.handle is not None and self.is_alive:
            self._backend.paste(self.handle)

    def set_font_size(self, size: int) -> int:
        self.font_size = max(MIN_FONT_SIZE, size)
        if self.handle is not None:
            self._backend.set_font(self.handle, self.font_family, self.font_size)
        return self.font_size

    def apply_settings(self, settings: SessionSettings) -> None:
        self.font_family = settings.font_family
        self.font_size = max(MIN_FONT_SIZE, settings.font_size)
        if self.handle is None:
            return
        self._backend.set_word_chars(self.handle, settings.word_chars)
        self._backend.set_colors(self.handle, settings.colors)
        self._backend.set_font(self.handle, self.font_family, self.font_size)

    def request_focus(self) -> None:
        if self.handle is not None:
            self._backend.request_focus(self.handle)

    def destroy(self) -> None:
        if self.state == SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        self._has_focus = False
        self.parent = None
        if self.handle is not None:
            self._backend.destroy(self.handle)
        logger.debug("session-destroyed session=%s", self.session_id)
