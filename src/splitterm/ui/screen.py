"""pyte-backed screen model rendered by each terminal view."""

from __future__ import annotations

import pyte

DEFAULT_HISTORY = 5000


class ScreenBuffer:
    def __init__(self, columns: int = 80, rows: int = 24, *, history: int = DEFAULT_HISTORY) -> None:
        self._screen = pyte.HistoryScreen(columns, rows, history=history)
        self._screen.set_mode(pyte.modes.LNM)
        self._stream = pyte.Stream(self._screen)
        self._rendered = ""

    @property
    def columns(self) -> int:
        return self._screen.columns

    @property
    def rows(self) -> int:
        return self._screen.lines

    @property
    def title(self) -> str:
        return self._screen.title

    @property
    def cursor(self) -> tuple[int, int]:
        return self._screen.cursor.x, self._screen.cursor.y

    def feed(self, data: str) -> None:
        if data:
            self._stream.feed(data)

    def resize(self, columns: int, rows: int) -> bool:
        columns = max(1, columns)
        rows = max(1, rows)
        if columns == self._screen.columns and rows == self._screen.lines:
            return False
        self._screen.resize(lines=rows, columns=columns)
        return True

    def render(self) -> str:
        lines = [line.rstrip() for line in self._screen.display]
        while lines and not lines[-1]:
            lines.pop()
        return "\n".join(lines)

    def take_changes(self) -> str | None:
        """Rendered text when it differs from the previous call, else ``None``."""
        text = self.render()
        if text == self._rendered:
            return None
        self._rendered = text
        return text
