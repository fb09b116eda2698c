"""Application context: one window's config, sessions, layout and dispatcher."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable, Mapping
from pathlib import Path

from splitterm.actions.dispatcher import ActionDispatcher
from splitterm.actions.hotkeys import HotkeyTable
from splitterm.config import AppConfig, get_config_path, reload_config
from splitterm.errors import ExitCode, SplitTermError
from splitterm.layout.tree import LayoutEvent, LayoutEventKind, LayoutTree
from splitterm.terminal.models import ColorScheme, SessionBackend, SessionSettings, SessionSpec
from splitterm.terminal.palette import build_palette
from splitterm.terminal.pty_backend import build_shell_command, terminal_environment
from splitterm.terminal.service import SessionService
from splitterm.terminal.session import TerminalSession

logger = py_logging.getLogger(__name__)

DEFAULT_WINDOW_TITLE = "splitterm"


def settings_from_config(config: AppConfig) -> SessionSettings:
    colors = ColorScheme(
        foreground=config.foreground,
        background=config.background,
        bold=config.bold_color,
        cursor=config.cursor_color,
        cursor_foreground=config.cursor_foreground,
        cursor_shape=config.cursor_shape,
        opacity=config.opacity,
        palette=build_palette(config.palette),
    )
    return SessionSettings(
        font_family=config.font_family,
        font_size=config.font_size,
        word_chars=config.word_chars,
        colors=colors,
    )


class AppContext:
    def __init__(
        self,
        backend: SessionBackend,
        *,
        config: AppConfig | None = None,
        config_path: str | Path | None = None,
        working_dir: str = "",
        command: str = "",
        title: str = "",
        environ: Mapping[str, str] | None = None,
        on_quit: Callable[[], None] | None = None,
        on_commander: Callable[[bool], None] | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.config_path = get_config_path(config_path)
        self.fixed_title = title.strip()
        self.command_visible = False
        self.quit_requested = False
        self._on_quit = on_quit
        self._on_commander = on_commander

        argv = tuple(build_shell_command(command, environ=environ))
        env = terminal_environment(environ)
        env.setdefault("LANG", self.config.locale)

        def spec_factory() -> SessionSpec:
            return SessionSpec(argv=argv, working_dir=working_dir, env=dict(env))

        self.service = SessionService(
            backend,
            spec_factory=spec_factory,
            settings=settings_from_config(self.config),
        )
        self.tree = LayoutTree(self.service)
        self.hotkeys = HotkeyTable.from_config(self.config.hotkeys)
        self.dispatcher = ActionDispatcher(self)
        self.tree.subscribe(self._on_layout_event)

    @property
    def focused(self) -> TerminalSession | None:
        return self.tree.focused

    @property
    def window_title(self) -> str:
        if self.fixed_title:
            return self.fixed_title
        session = self.tree.focused
        if session is not None and session.title:
            return session.title
        return DEFAULT_WINDOW_TITLE

    def start(self) -> TerminalSession:
        self.tree.add_tab()
        session = self.tree.focused
        if session is None:
            raise SplitTermError("Initial tab has no session.", code=ExitCode.LAYOUT_ERROR)
        logger.info("app-started session=%s config=%s", session.session_id, self.config_path)
        return session

    def reload_config(self) -> bool:
        updated = reload_config(self.config_path, self.config)
        if updated is self.config:
            return False
        self.config = updated
        self.hotkeys = HotkeyTable.from_config(updated.hotkeys)
        settings = settings_from_config(updated)
        self.service.update_settings(settings)
        session = self.tree.focused
        if session is not None:
            session.apply_settings(settings)
        logger.info("config-reloaded path=%s hotkeys=%s", self.config_path, len(self.hotkeys))
        return True

    def request_quit(self) -> None:
        if self.quit_requested:
            return
        self.quit_requested = True
        logger.info("app-quit sessions=%s", len(self.service.list_sessions()))
        self.tree.shutdown()
        if self._on_quit is not None:
            self._on_quit()

    def toggle_commander(self) -> bool:
        self._set_commander(not self.command_visible)
        return self.command_visible

    def submit_command(self, text: str) -> bool:
        handled = self.dispatcher.dispatch_text(text)
        if self.command_visible:
            self._set_commander(False)
        return handled

    def session_exited(self, session_id: str, status: int | None = None) -> bool:
        return self.tree.session_exited(session_id, status)

    def session_focus_gained(self, session_id: str) -> bool:
        session = self.tree.find_session(session_id)
        if session is None:
            return False
        return self.tree.focus_gained(session)

    def session_title_changed(self, session_id: str, title: str) -> str:
        session = self.tree.find_session(session_id)
        if session is not None:
            session.title = title
        return self.window_title

    def session_selection_changed(self, session_id: str, has_selection: bool) -> bool:
        if not (self.config.copy_on_selection and has_selection):
            return False
        session = self.tree.find_session(session_id)
        if session is None:
            return False
        session.copy_selection()
        return True

    def session_hovered(self, session_id: str) -> bool:
        if not self.config.focus_follow_mouse:
            return False
        session = self.tree.find_session(session_id)
        if session is None or session is self.tree.focused:
            return False
        self.tree.focus(session)
        return True

    def _set_commander(self, visible: bool) -> None:
        self.command_visible = visible
        logger.debug("commander visible=%s", visible)
        if self._on_commander is not None:
            self._on_commander(visible)
        if not visible and not self.tree.terminated:
            session = self.tree.focused
            if session is not None:
                session.request_focus()

    def _on_layout_event(self, event: LayoutEvent) -> None:
        if event.kind == LayoutEventKind.QUIT:
            self.request_quit()
