"""In-memory terminal session lifecycle registry."""

from __future__ import annotations

import itertools
import logging as py_logging
from collections.abc import Callable
from dataclasses import dataclass

from splitterm.errors import ExitCode, SplitTermError
from splitterm.terminal.models import SessionBackend, SessionSettings, SessionSpec
from splitterm.terminal.session import TerminalSession

logger = py_logging.getLogger(__name__)

SpecFactory = Callable[[], SessionSpec]


@dataclass(frozen=True)
class SessionEvent:
    session_id: str
    step: str
    message: str


class SessionService:
    def __init__(
        self,
        backend: SessionBackend,
        *,
        spec_factory: SpecFactory,
        settings: SessionSettings | None = None,
    ) -> None:
        self._backend = backend
        self._spec_factory = spec_factory
        self._settings = settings
        self._sessions: dict[str, TerminalSession] = {}
        self._events: list[SessionEvent] = []
        self._ids = itertools.count(1)

    @property
    def settings(self) -> SessionSettings | None:
        return self._settings

    def update_settings(self, settings: SessionSettings) -> None:
        self._settings = settings
        self._record("*", "settings", f"Settings updated (font {settings.font_family} {settings.font_size}).")

    def list_sessions(self) -> list[TerminalSession]:
        return list(self._sessions.values())

    def list_events(self) -> list[SessionEvent]:
        return list(self._events)

    def clear_events(self) -> None:
        self._events.clear()
        logger.info("session-event session=* step=clear-events message=Session events cleared.")

    def get(self, session_id: str) -> TerminalSession | None:
        return self._sessions.get(session_id)

    def create(self) -> TerminalSession:
        session_id = f"t{next(self._ids)}"
        session = TerminalSession(session_id, self._backend, settings=self._settings)
        self._sessions[session_id] = session
        spec = self._spec_factory()
        try:
            session.spawn(spec)
        except SplitTermError:
            del self._sessions[session_id]
            raise
        except Exception as exc:
            del self._sessions[session_id]
            raise SplitTermError(
                "Failed to spawn terminal session.",
                code=ExitCode.SPAWN_ERROR,
                hint=str(exc) or "Check the shell command.",
            ) from exc
        if self._settings is not None:
            session.apply_settings(self._settings)
        self._record(session_id, "create", f"Spawning {' '.join(spec.argv)}.")
        return session

    def exited(self, session_id: str, status: int | None) -> TerminalSession | None:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        session.mark_exited(status)
        self._record(session_id, "exit", f"Process exited with status {status}.")
        return session

    def remove(self, session: TerminalSession) -> None:
        if self._sessions.get(session.session_id) is not session:
            return
        del self._sessions[session.session_id]
        was_alive = session.is_alive
        session.destroy()
        self._record(session.session_id, "remove", "Session destroyed." if was_alive else "Session released.")

    def _record(self, session_id: str, step: str, message: str) -> None:
        self._events.append(SessionEvent(session_id=session_id, step=step, message=message))
        logger.info("session-event session=%s step=%s message=%s", session_id, step, message)
