"""Qt main window, terminal views and the Qt-backed session capability set.

Imported only after PySide6 availability has been checked by
``splitterm.ui.app.launch_app``.
"""

from __future__ import annotations

import logging as py_logging
import sys
import threading
from collections.abc import Iterable
from pathlib import Path
from queue import Empty, Queue

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QFont, QFontMetrics, QGuiApplication, QTextCursor
from PySide6.QtWidgets import (
    QApplication,
    QLineEdit,
    QMainWindow,
    QPlainTextEdit,
    QSplitter,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from splitterm.actions.hotkeys import Modifier
from splitterm.config import AppConfig
from splitterm.context import AppContext
from splitterm.errors import ExitCode, SplitTermError
from splitterm.layout.nodes import Node, Orientation, SplitNode
from splitterm.layout.tree import LayoutEvent, LayoutEventKind
from splitterm.terminal.models import ColorScheme, SessionHandle, SessionSpec, SpawnCallback
from splitterm.terminal.palette import format_color
from splitterm.terminal.pty_backend import PtyBackend
from splitterm.terminal.session import TerminalSession
from splitterm.ui.keys import active_modifiers, chord_key_name, input_sequence
from splitterm.ui.screen import ScreenBuffer

logger = py_logging.getLogger(__name__)

POLL_INTERVAL_MS = 20
_SPLITTER_SCALE = 10000
_REBUILD_KINDS = {
    LayoutEventKind.TAB_ADDED,
    LayoutEventKind.TAB_REMOVED,
    LayoutEventKind.SPLIT,
    LayoutEventKind.COLLAPSE,
}


def _qt_key_name(key: int) -> str:
    try:
        return Qt.Key(key).name
    except ValueError:
        return ""


class TerminalView(QPlainTextEdit):  # pragma: no cover
    def __init__(self, backend: QtSessionBackend, session_id: str) -> None:
        super().__init__()
        self.session_id = session_id
        self.word_chars = ""
        self._backend = backend
        self._screen = ScreenBuffer()
        self.setReadOnly(True)
        self.setUndoRedoEnabled(False)
        self.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.selectionChanged.connect(self._on_selection_changed)

    @property
    def title(self) -> str:
        return self._screen.title

    def feed(self, data: str) -> None:
        self._screen.feed(data)
        text = self._screen.take_changes()
        if text is None:
            return
        self.setPlainText(text)
        column, row = self._screen.cursor
        cursor = self.textCursor()
        cursor.movePosition(QTextCursor.MoveOperation.Start)
        cursor.movePosition(QTextCursor.MoveOperation.NextBlock, QTextCursor.MoveMode.MoveAnchor, row)
        cursor.movePosition(QTextCursor.MoveOperation.Right, QTextCursor.MoveMode.MoveAnchor, column)
        self.setTextCursor(cursor)

    def show_message(self, message: str) -> None:
        self.setPlainText(message)

    def apply_colors(self, colors: ColorScheme) -> None:
        self.setStyleSheet(
            "QPlainTextEdit {"
            f" background-color: {format_color(colors.background)};"
            f" color: {format_color(colors.foreground)};"
            f" selection-background-color: {format_color(colors.cursor)};"
            f" selection-color: {format_color(colors.cursor_foreground)};"
            " }"
        )
        self.setCursorWidth(1 if colors.cursor_shape == "ibeam" else QFontMetrics(self.font()).horizontalAdvance("M"))

    def focusNextPrevChild(self, next: bool) -> bool:  # noqa: A002
        return False

    def keyPressEvent(self, event) -> None:
        modifiers = event.modifiers()
        control = bool(modifiers & Qt.KeyboardModifier.ControlModifier)
        shift = bool(modifiers & Qt.KeyboardModifier.ShiftModifier)
        alt = bool(modifiers & Qt.KeyboardModifier.AltModifier)
        meta = bool(modifiers & Qt.KeyboardModifier.MetaModifier)
        keypad = bool(modifiers & Qt.KeyboardModifier.KeypadModifier)
        name = chord_key_name(_qt_key_name(event.key()), keypad=keypad)
        chord_modifiers = active_modifiers(control=control, shift=shift, alt=alt, meta=meta)
        if name and self._backend.handle_key(chord_modifiers, name):
            event.accept()
            return
        sequence = input_sequence(name, event.text(), control=control, alt=alt)
        if sequence:
            self._backend.write(self.session_id, sequence)
        event.accept()

    def mouseDoubleClickEvent(self, event) -> None:
        cursor = self.cursorForPosition(event.position().toPoint())
        line = cursor.block().text()
        start = end = cursor.positionInBlock()
        while start > 0 and self._is_word_char(line[start - 1]):
            start -= 1
        while end < len(line) and self._is_word_char(line[end]):
            end += 1
        cursor.movePosition(QTextCursor.MoveOperation.StartOfBlock)
        cursor.movePosition(QTextCursor.MoveOperation.Right, QTextCursor.MoveMode.MoveAnchor, start)
        cursor.movePosition(QTextCursor.MoveOperation.Right, QTextCursor.MoveMode.KeepAnchor, end - start)
        self.setTextCursor(cursor)

    def focusInEvent(self, event) -> None:
        super().focusInEvent(event)
        self._backend.focus_gained(self.session_id)

    def enterEvent(self, event) -> None:
        super().enterEvent(event)
        self._backend.hovered(self.session_id)

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        metrics = QFontMetrics(self.font())
        columns = self.viewport().width() // max(1, metrics.horizontalAdvance("M"))
        rows = self.viewport().height() // max(1, metrics.lineSpacing())
        if self._screen.resize(columns, rows):
            self._backend.resize(self.session_id, columns=self._screen.columns, rows=self._screen.rows)

    def _is_word_char(self, char: str) -> bool:
        return char.isalnum() or char in self.word_chars

    def _on_selection_changed(self) -> None:
        self._backend.selection_changed(self.session_id, self.textCursor().hasSelection())


class QtSessionBackend:  # pragma: no cover
    """Session capability set: one TerminalView plus one PTY per session."""

    def __init__(self, pty: PtyBackend | None = None) -> None:
        self._pty = pty or PtyBackend()
        self._context: AppContext | None = None
        self._window: QMainWindow | None = None
        self._views: dict[str, TerminalView] = {}
        self._queues: dict[str, Queue[str]] = {}
        self._stops: dict[str, threading.Event] = {}
        self._running: set[str] = set()
        self._titles: dict[str, str] = {}
        self._timer = QTimer()
        self._timer.timeout.connect(self._poll)
        self._timer.start(POLL_INTERVAL_MS)

    def bind(self, context: AppContext, window: QMainWindow) -> None:
        self._context = context
        self._window = window

    def view(self, session_id: str) -> TerminalView | None:
        return self._views.get(session_id)

    def views(self) -> list[TerminalView]:
        return list(self._views.values())

    def spawn(self, session_id: str, *, spec: SessionSpec, on_spawned: SpawnCallback) -> SessionHandle:
        handle = SessionHandle(session_id=session_id, argv=spec.argv, working_dir=spec.working_dir)
        self._views[session_id] = TerminalView(self, session_id)
        QTimer.singleShot(0, lambda: self._start(handle, spec, on_spawned))
        return handle

    def feed_text(self, handle: SessionHandle, payload: str) -> None:
        self.write(handle.session_id, payload)

    def copy_selection(self, handle: SessionHandle) -> None:
        view = self._views.get(handle.session_id)
        if view is not None and view.textCursor().hasSelection():
            view.copy()

    def paste(self, handle: SessionHandle) -> None:
        text = QGuiApplication.clipboard().text()
        if text:
            self.write(handle.session_id, text)

    def set_font(self, handle: SessionHandle, family: str, size: int) -> None:
        view = self._views.get(handle.session_id)
        if view is None:
            return
        font = QFont(family, size)
        font.setStyleHint(QFont.StyleHint.Monospace)
        view.setFont(font)

    def set_colors(self, handle: SessionHandle, colors: ColorScheme) -> None:
        view = self._views.get(handle.session_id)
        if view is not None:
            view.apply_colors(colors)
        if self._window is not None:
            self._window.setWindowOpacity(colors.opacity)

    def set_word_chars(self, handle: SessionHandle, word_chars: str) -> None:
        view = self._views.get(handle.session_id)
        if view is not None:
            view.word_chars = word_chars

    def request_focus(self, handle: SessionHandle) -> None:
        view = self._views.get(handle.session_id)
        if view is not None and view.isVisible():
            view.setFocus(Qt.FocusReason.OtherFocusReason)

    def destroy(self, handle: SessionHandle) -> None:
        session_id = handle.session_id
        view = self._views.pop(session_id, None)
        stop = self._stops.pop(session_id, None)
        if stop is not None:
            stop.set()
        self._queues.pop(session_id, None)
        self._titles.pop(session_id, None)
        self._running.discard(session_id)
        try:
            self._pty.stop(session_id)
        except SplitTermError:
            logger.debug("qt-backend-destroy session=%s pty=not-started", session_id)
        if view is not None:
            view.setParent(None)
            view.deleteLater()

    def shutdown(self) -> None:
        self._timer.stop()
        for stop in self._stops.values():
            stop.set()
        self._pty.stop_all()

    def write(self, session_id: str, payload: str) -> None:
        try:
            self._pty.write(session_id, payload)
        except SplitTermError as exc:
            logger.warning("qt-backend-write-failed session=%s error=%s", session_id, exc)

    def resize(self, session_id: str, *, columns: int, rows: int) -> None:
        if session_id not in self._running:
            return
        try:
            self._pty.resize(session_id, cols=columns, rows=rows)
        except SplitTermError as exc:
            logger.debug("qt-backend-resize-failed session=%s error=%s", session_id, exc)

    def handle_key(self, modifiers: Iterable[Modifier], key: str) -> bool:
        if self._context is None:
            return False
        return self._context.dispatcher.handle_key(modifiers, key)

    def focus_gained(self, session_id: str) -> None:
        if self._context is not None:
            self._context.session_focus_gained(session_id)

    def hovered(self, session_id: str) -> None:
        if self._context is not None:
            self._context.session_hovered(session_id)

    def selection_changed(self, session_id: str, has_selection: bool) -> None:
        if self._context is not None:
            self._context.session_selection_changed(session_id, has_selection)

    def _start(self, handle: SessionHandle, spec: SessionSpec, on_spawned: SpawnCallback) -> None:
        session_id = handle.session_id
        if session_id not in self._views:
            return
        try:
            self._pty.start(
                session_id,
                command=list(spec.argv),
                cwd=spec.working_dir or None,
                env=spec.env or None,
            )
        except SplitTermError as exc:
            self._views[session_id].show_message(str(exc))
            on_spawned(handle, None, exc)
            return
        on_spawned(handle, self._pty.pid(session_id), None)
        queue: Queue[str] = Queue()
        stop = threading.Event()
        self._queues[session_id] = queue
        self._stops[session_id] = stop
        self._running.add(session_id)
        reader = threading.Thread(target=self._read_loop, args=(session_id, queue, stop), daemon=True)
        reader.start()

    def _read_loop(self, session_id: str, queue: Queue[str], stop: threading.Event) -> None:
        while not stop.is_set():
            try:
                data = self._pty.read(session_id)
            except SplitTermError:
                return
            if data:
                queue.put(data)

    def _poll(self) -> None:
        exited: list[tuple[str, int | None]] = []
        for session_id, queue in list(self._queues.items()):
            view = self._views.get(session_id)
            chunks: list[str] = []
            while True:
                try:
                    chunks.append(queue.get_nowait())
                except Empty:
                    break
            if view is not None and chunks:
                view.feed("".join(chunks))
                self._check_title(session_id, view)
            if chunks or session_id not in self._running:
                continue
            try:
                alive = self._pty.is_alive(session_id)
            except SplitTermError:
                alive = False
            if not alive:
                self._running.discard(session_id)
                status = None
                try:
                    status = self._pty.exit_status(session_id)
                except SplitTermError:
                    status = None
                exited.append((session_id, status))
        for session_id, status in exited:
            if self._context is not None:
                self._context.session_exited(session_id, status)

    def _check_title(self, session_id: str, view: TerminalView) -> None:
        title = view.title
        if title == self._titles.get(session_id, ""):
            return
        self._titles[session_id] = title
        if self._context is not None and self._window is not None:
            self._window.setWindowTitle(self._context.session_title_changed(session_id, title))


class CommandLine(QLineEdit):  # pragma: no cover
    def __init__(self, window: MainWindow) -> None:
        super().__init__()
        self._window = window
        self.setPlaceholderText("verb [args...]")
        self.returnPressed.connect(self._submit)

    def keyPressEvent(self, event) -> None:
        if event.key() == Qt.Key.Key_Escape:
            self._window.hide_commander()
            event.accept()
            return
        super().keyPressEvent(event)

    def _submit(self) -> None:
        text = self.text()
        self.clear()
        self._window.submit_command(text)


class MainWindow(QMainWindow):  # pragma: no cover
    def __init__(self, backend: QtSessionBackend, config: AppConfig) -> None:
        super().__init__()
        self._backend = backend
        self._context: AppContext | None = None
        self._rebuilding = False
        self._rebuild_pending = False
        self._splits: dict[int, SplitNode] = {}
        self.resize(900, 560)
        self.setWindowOpacity(config.opacity)

        self._tabs = QTabWidget()
        self._tabs.setDocumentMode(True)
        if config.tab_position == "top":
            self._tabs.setTabPosition(QTabWidget.TabPosition.North)
        else:
            self._tabs.setTabPosition(QTabWidget.TabPosition.South)
        self._tabs.currentChanged.connect(self._on_current_changed)

        self._commander = CommandLine(self)
        self._commander.hide()

        root = QWidget(self)
        layout = QVBoxLayout(root)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)
        if config.commander_position == "top":
            layout.addWidget(self._commander)
            layout.addWidget(self._tabs, 1)
        else:
            layout.addWidget(self._tabs, 1)
            layout.addWidget(self._commander)
        self.setCentralWidget(root)

    def attach(self, context: AppContext) -> None:
        self._context = context
        context.tree.subscribe(self._on_layout_event)
        self.setWindowTitle(context.window_title)

    def show_commander(self, visible: bool) -> None:
        self._commander.setVisible(visible)
        if visible:
            self._commander.setFocus(Qt.FocusReason.OtherFocusReason)

    def hide_commander(self) -> None:
        if self._context is not None and self._context.command_visible:
            self._context.toggle_commander()

    def submit_command(self, text: str) -> None:
        if self._context is not None:
            self._context.submit_command(text)

    def quit_requested(self) -> None:
        QTimer.singleShot(0, self.close)

    def closeEvent(self, event) -> None:
        if self._context is not None and not self._context.quit_requested:
            self._context.request_quit()
        self._backend.shutdown()
        event.accept()
        app = QApplication.instance()
        if app is not None:
            app.quit()

    def _on_layout_event(self, event: LayoutEvent) -> None:
        if event.kind in _REBUILD_KINDS:
            if not self._rebuild_pending:
                self._rebuild_pending = True
                QTimer.singleShot(0, self._rebuild)
            return
        if event.kind == LayoutEventKind.TAB_ACTIVATED and not self._rebuild_pending:
            self._sync_current_tab()
        elif event.kind == LayoutEventKind.FOCUS:
            self._sync_focus()

    def _rebuild(self) -> None:
        self._rebuild_pending = False
        context = self._context
        if context is None or context.tree.terminated:
            return
        self._rebuilding = True
        try:
            for view in self._backend.views():
                view.setParent(None)
            while self._tabs.count():
                page = self._tabs.widget(0)
                self._tabs.removeTab(0)
                page.deleteLater()
            self._splits.clear()
            for tab in context.tree.tabs:
                page = QWidget()
                layout = QVBoxLayout(page)
                layout.setContentsMargins(0, 0, 0, 0)
                if tab.root is not None:
                    layout.addWidget(self._build_node(tab.root))
                self._tabs.addTab(page, tab.label)
            self._tabs.tabBar().setVisible(context.tree.tabs_visible)
            self._tabs.setCurrentIndex(context.tree.active_index)
        finally:
            self._rebuilding = False
        self._sync_focus()

    def _build_node(self, node: Node) -> QWidget:
        if isinstance(node, TerminalSession):
            view = self._backend.view(node.session_id)
            if view is None:
                return QWidget()
            view.show()
            return view
        orientation = Qt.Orientation.Vertical if node.orientation == Orientation.VERTICAL else Qt.Orientation.Horizontal
        splitter = QSplitter(orientation)
        splitter.setChildrenCollapsible(False)
        splitter.addWidget(self._build_node(node.first))
        splitter.addWidget(self._build_node(node.second))
        first = int(node.ratio * _SPLITTER_SCALE)
        splitter.setSizes([first, _SPLITTER_SCALE - first])
        self._splits[id(splitter)] = node
        splitter.splitterMoved.connect(lambda _pos, _index, widget=splitter: self._on_splitter_moved(widget))
        return splitter

    def _on_splitter_moved(self, splitter: QSplitter) -> None:
        node = self._splits.get(id(splitter))
        sizes = splitter.sizes()
        if node is None or self._context is None or len(sizes) != 2 or sum(sizes) <= 0:
            return
        ratio = sizes[0] / sum(sizes)
        if 0.0 < ratio < 1.0:
            self._context.tree.resize_split(node, ratio)

    def _on_current_changed(self, index: int) -> None:
        if self._rebuilding or self._context is None or index < 0:
            return
        if index != self._context.tree.active_index:
            self._context.tree.goto_tab(index + 1)

    def _sync_current_tab(self) -> None:
        if self._context is None:
            return
        self._rebuilding = True
        try:
            self._tabs.setCurrentIndex(self._context.tree.active_index)
        finally:
            self._rebuilding = False

    def _sync_focus(self) -> None:
        if self._context is None:
            return
        session = self._context.tree.focused
        if session is not None and not self._commander.hasFocus():
            view = self._backend.view(session.session_id)
            if view is not None:
                view.setFocus(Qt.FocusReason.OtherFocusReason)
        self.setWindowTitle(self._context.window_title)


def run_window(
    *,
    config: AppConfig,
    config_path: str | Path | None = None,
    working_dir: str = "",
    command: str = "",
    title: str = "",
) -> int:  # pragma: no cover
    app = QApplication.instance() or QApplication(sys.argv)
    backend = QtSessionBackend()
    window = MainWindow(backend, config)
    context = AppContext(
        backend,
        config=config,
        config_path=config_path,
        working_dir=working_dir,
        command=command,
        title=title,
        on_quit=window.quit_requested,
        on_commander=window.show_commander,
    )
    backend.bind(context, window)
    window.attach(context)
    try:
        context.start()
    except SplitTermError:
        backend.shutdown()
        raise
    window.show()
    app.exec()
    return int(ExitCode.SUCCESS)
