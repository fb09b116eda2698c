"""Terminal session domain models."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol


class SessionState(str, Enum):
    CREATED = "created"
    SPAWNING = "spawning"
    RUNNING = "running"
    FAILED = "failed"
    EXITED = "exited"
    CLOSED = "closed"


@dataclass(frozen=True)
class SessionSpec:
    argv: tuple[str, ...]
    working_dir: str = ""
    env: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SessionHandle:
    session_id: str
    argv: tuple[str, ...]
    working_dir: str = ""


@dataclass(frozen=True)
class ColorScheme:
    foreground: int
    background: int
    bold: int
    cursor: int
    cursor_foreground: int
    cursor_shape: str
    opacity: float
    palette: tuple[int, ...]


@dataclass(frozen=True)
class SessionSettings:
    font_family: str
    font_size: int
    word_chars: str
    colors: ColorScheme


SpawnCallback = Callable[[SessionHandle, int | None, Exception | None], None]


class SessionBackend(Protocol):
    """Terminal capability set provided by the rendering toolkit."""

    def spawn(
        self,
        session_id: str,
        *,
        spec: SessionSpec,
        on_spawned: SpawnCallback,
    ) -> SessionHandle: ...

    def feed_text(self, handle: SessionHandle, payload: str) -> None: ...

    def copy_selection(self, handle: SessionHandle) -> None: ...

    def paste(self, handle: SessionHandle) -> None: ...

    def set_font(self, handle: SessionHandle, family: str, size: int) -> None: ...

    def set_colors(self, handle: SessionHandle, colors: ColorScheme) -> None: ...

    def set_word_chars(self, handle: SessionHandle, word_chars: str) -> None: ...

    def request_focus(self, handle: SessionHandle) -> None: ...

    def destroy(self, handle: SessionHandle) -> None: ...
