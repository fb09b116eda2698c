from __future__ import annotations

from pathlib import Path

import pytest

from splitterm.layout import LayoutTree
from splitterm.terminal import ColorScheme, SessionHandle, SessionService, SessionSpec
from splitterm.terminal.models import SpawnCallback


class RecordingBackend:
    """Session capability set that records every call instead of running shells."""

    def __init__(self) -> None:
        self.spawned: list[tuple[str, SessionSpec]] = []
        self.pending: dict[str, tuple[SessionHandle, SpawnCallback]] = {}
        self.feeds: dict[str, list[str]] = {}
        self.copies: list[str] = []
        self.pastes: list[str] = []
        self.fonts: list[tuple[str, str, int]] = []
        self.colors: list[tuple[str, ColorScheme]] = []
        self.word_chars: list[tuple[str, str]] = []
        self.focus_requests: list[str] = []
        self.destroyed: list[str] = []

    def spawn(self, session_id: str, *, spec: SessionSpec, on_spawned: SpawnCallback) -> SessionHandle:
        handle = SessionHandle(session_id=session_id, argv=spec.argv, working_dir=spec.working_dir)
        self.spawned.append((session_id, spec))
        self.pending[session_id] = (handle, on_spawned)
        return handle

    def complete(self, session_id: str, *, pid: int | None = 100, error: Exception | None = None) -> None:
        handle, callback = self.pending.pop(session_id)
        callback(handle, pid, error)

    def feed_text(self, handle: SessionHandle, payload: str) -> None:
        self.feeds.setdefault(handle.session_id, []).append(payload)

    def copy_selection(self, handle: SessionHandle) -> None:
        self.copies.append(handle.session_id)

    def paste(self, handle: SessionHandle) -> None:
        self.pastes.append(handle.session_id)

    def set_font(self, handle: SessionHandle, family: str, size: int) -> None:
        self.fonts.append((handle.session_id, family, size))

    def set_colors(self, handle: SessionHandle, colors: ColorScheme) -> None:
        self.colors.append((handle.session_id, colors))

    def set_word_chars(self, handle: SessionHandle, word_chars: str) -> None:
        self.word_chars.append((handle.session_id, word_chars))

    def request_focus(self, handle: SessionHandle) -> None:
        self.focus_requests.append(handle.session_id)

    def destroy(self, handle: SessionHandle) -> None:
        self.destroyed.append(handle.session_id)


def _shell_spec() -> SessionSpec:
    return SessionSpec(argv=("/bin/sh",), working_dir="/tmp")


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def service(backend: RecordingBackend) -> SessionService:
    return SessionService(backend, spec_factory=_shell_spec)


@pytest.fixture
def tree(service: SessionService) -> LayoutTree:
    return LayoutTree(service)


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    del config
    for item in items:
        path = Path(str(getattr(item, "path", item.fspath)))

        if "integration" in path.parts:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)

        if "property" in path.parts:
            item.add_marker(pytest.mark.property)
