"""Terminal session domain package."""

from .models import ColorScheme, SessionBackend, SessionHandle, SessionSettings, SessionSpec, SessionState
from .pty_backend import PtyBackend, PtyHandle, build_shell_command, default_shell
from .service import SessionEvent, SessionService
from .session import TerminalSession

__all__ = [
    "build_shell_command",
    "ColorScheme",
    "default_shell",
    "PtyBackend",
    "PtyHandle",
    "SessionBackend",
    "SessionEvent",
    "SessionHandle",
    "SessionService",
    "SessionSettings",
    "SessionSpec",
    "SessionState",
    "TerminalSession",
]
