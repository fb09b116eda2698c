"""PTY process lifecycle: pexpect on POSIX, pywinpty on Windows."""

from __future__ import annotations

import atexit
import logging as py_logging
import os
import subprocess
from collections.abc import Callable, Mapping
from contextlib import suppress
from dataclasses import dataclass

from splitterm.errors import ExitCode, SplitTermError

logger = py_logging.getLogger(__name__)

DEFAULT_COLUMNS = 80
DEFAULT_ROWS = 24


@dataclass(frozen=True)
class PtyHandle:
    terminal_id: str
    command: tuple[str, ...]
    cwd: str = ""


PtySpawn = Callable[[list[str], str | None, dict[str, str] | None], object]


def default_shell(environ: Mapping[str, str] | None = None) -> str:
    env = os.environ if environ is None else environ
    shell = env.get("SHELL", "").strip()
    if shell:
        return shell
    if os.name == "nt":
        return "powershell.exe"
    return "/bin/sh"


def build_shell_command(
    command: str = "",
    *,
    shell: str = "",
    environ: Mapping[str, str] | None = None,
) -> list[str]:
    """Return ``[shell]`` or ``[shell, "-c", command]`` for a one-shot command."""
    resolved = shell.strip() or default_shell(environ)
    if not command.strip():
        return [resolved]
    if os.path.basename(resolved).lower().startswith("powershell"):
        return [resolved, "-NoLogo", "-Command", command]
    return [resolved, "-c", command]


def terminal_environment(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    env = dict(os.environ if environ is None else environ)
    env.setdefault("TERM", "xterm-256color")
    env.setdefault("COLORTERM", "truecolor")
    return env


class _PexpectProcess:
    """Non-blocking view over ``pexpect.spawn`` with the pywinpty method names."""

    def __init__(self, command: list[str], cwd: str | None, env: dict[str, str] | None) -> None:
        import pexpect

        self._pexpect = pexpect
        self._proc = pexpect.spawn(
            command[0],
            args=command[1:],
            cwd=cwd or None,
            env=env,
            encoding="utf-8",
            codec_errors="replace",
            echo=False,
            dimensions=(DEFAULT_ROWS, DEFAULT_COLUMNS),
        )

    @property
    def pid(self) -> int | None:
        return self._proc.pid

    @property
    def exitstatus(self) -> int | None:
        if self._proc.exitstatus is not None:
            return self._proc.exitstatus
        if self._proc.signalstatus is not None:
            return 128 + self._proc.signalstatus
        return None

    def read(self, size: int = 4096) -> str:
        try:
            return self._proc.read_nonblocking(size=size, timeout=0.1)
        except self._pexpect.TIMEOUT:
            return ""
        except self._pexpect.EOF as exc:
            raise EOFError(str(exc)) from exc

    def write(self, payload: str) -> None:
        self._proc.send(payload)

    def setwinsize(self, rows: int, cols: int) -> None:
        self._proc.setwinsize(rows, cols)

    def isalive(self) -> bool:
        return bool(self._proc.isalive())

    def close(self) -> None:
        self._proc.close(force=True)

    def terminate(self) -> None:
        self._proc.terminate(force=True)


def _spawn_with_pexpect(command: list[str], cwd: str | None, env: dict[str, str] | None) -> object:
    try:
        import pexpect  # noqa: F401
    except ImportError as exc:
        raise SplitTermError(
            "pexpect backend is unavailable.",
            code=ExitCode.SPAWN_ERROR,
            hint="Install pexpect to run shells on POSIX systems.",
        ) from exc
    return _PexpectProcess(command, cwd, env)


def _spawn_with_pywinpty(command: list[str], cwd: str | None, env: dict[str, str] | None) -> object:
    try:
        from winpty import PtyProcess
    except Exception as exc:
        raise SplitTermError(
            "pywinpty backend is unavailable.",
            code=ExitCode.SPAWN_ERROR,
            hint="Install pywinpty to run shells on Windows.",
        ) from exc

    kwargs: dict[str, object] = {"dimensions": (DEFAULT_ROWS, DEFAULT_COLUMNS)}
    if cwd:
        kwargs["cwd"] = cwd
    if env:
        kwargs["env"] = env
    return PtyProcess.spawn(subprocess.list2cmdline(command), **kwargs)


def default_spawn() -> PtySpawn:
    if os.name == "nt":
        return _spawn_with_pywinpty
    return _spawn_with_pexpect


class PtyBackend:
    def __init__(self, spawn: PtySpawn | None = None) -> None:
        self._spawn = spawn or default_spawn()
        self._sessions: dict[str, object] = {}
        atexit.register(self.stop_all)

    def start(
        self,
        terminal_id: str,
        *,
        command: list[str] | None = None,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> PtyHandle:
        if terminal_id in self._sessions:
            raise SplitTermError(
                f"Terminal already started: {terminal_id}",
                code=ExitCode.VALIDATION_ERROR,
                hint="Stop the current PTY session before starting a new one.",
            )

        resolved_command = list(command) if command else build_shell_command()
        if not resolved_command:
            raise SplitTermError(
                "PTY command cannot be empty.",
                code=ExitCode.VALIDATION_ERROR,
                hint="Provide a shell command.",
            )

        try:
            process = self._spawn(resolved_command, cwd, env)
        except SplitTermError:
            raise
        except Exception as exc:
            raise SplitTermError(
                "Failed to start PTY process.",
                code=ExitCode.SPAWN_ERROR,
                hint=str(exc) or "Check the shell installation.",
            ) from exc

        handle = PtyHandle(terminal_id=terminal_id, command=tuple(resolved_command), cwd=cwd or "")
        self._sessions[terminal_id] = process
        logger.debug("pty-start terminal=%s command=%s cwd=%s", terminal_id, resolved_command, cwd or "-")
        return handle

    def pid(self, terminal_id: str) -> int | None:
        process = self._require_session(terminal_id)
        value = getattr(process, "pid", None)
        return value if isinstance(value, int) else None

    def write(self, terminal_id: str, payload: str) -> None:
        process = self._require_session(terminal_id)
        try:
            process.write(payload)
        except Exception as exc:
            raise SplitTermError(
                f"Failed to write to terminal {terminal_id}.",
                code=ExitCode.RUNTIME_ERROR,
                hint=str(exc) or "Verify terminal process health.",
            ) from exc

    def read(self, terminal_id: str, *, max_bytes: int = 4096) -> str:
        process = self._require_session(terminal_id)
        chunk: object
        try:
            chunk = process.read(max_bytes)
        except TypeError:
            chunk = process.read()
        except EOFError as exc:
            raise SplitTermError(
                f"Terminal output closed: {terminal_id}",
                code=ExitCode.RUNTIME_ERROR,
                hint="The shell has exited.",
            ) from exc
        except Exception as exc:
            raise SplitTermError(
                f"Failed to read from terminal {terminal_id}.",
                code=ExitCode.RUNTIME_ERROR,
                hint=str(exc) or "Verify PTY stream state.",
            ) from exc

        if chunk is None:
            return ""
        if isinstance(chunk, bytes):
            return chunk.decode("utf-8", errors="replace")
        return str(chunk)

    def resize(self, terminal_id: str, *, cols: int, rows: int) -> None:
        if cols <= 0 or rows <= 0:
            raise SplitTermError(
                f"Invalid PTY size: {cols}x{rows}",
                code=ExitCode.VALIDATION_ERROR,
                hint="Use positive terminal row/column values.",
            )
        process = self._require_session(terminal_id)
        try:
            process.setwinsize(rows, cols)
        except Exception as exc:
            raise SplitTermError(
                f"Failed to resize terminal {terminal_id}.",
                code=ExitCode.RUNTIME_ERROR,
                hint=str(exc) or "Verify PTY backend supports resizing.",
            ) from exc

    def is_alive(self, terminal_id: str) -> bool:
        return _is_alive(self._require_session(terminal_id))

    def exit_status(self, terminal_id: str) -> int | None:
        process = self._require_session(terminal_id)
        value = getattr(process, "exitstatus", None)
        return value if isinstance(value, int) else None

    def stop(self, terminal_id: str) -> None:
        process = self._sessions.pop(terminal_id, None)
        if process is None:
            raise SplitTermError(
                f"Terminal not running: {terminal_id}",
                code=ExitCode.VALIDATION_ERROR,
                hint="Select an active terminal session.",
            )
        self._close_session(process)
        logger.debug("pty-stop terminal=%s", terminal_id)

    def stop_all(self) -> None:
        ids = list(self._sessions)
        for terminal_id in ids:
            process = self._sessions.pop(terminal_id, None)
            if process is None:
                continue
            self._close_session(process)

    def _require_session(self, terminal_id: str) -> object:
        process = self._sessions.get(terminal_id)
        if process is None:
            raise SplitTermError(
                f"Terminal not running: {terminal_id}",
                code=ExitCode.VALIDATION_ERROR,
                hint="Start terminal before PTY I/O operations.",
            )
        return process

    def _close_session(self, process: object) -> None:
        alive = _is_alive(process)
        if hasattr(process, "close"):
            try:
                process.close()
            except Exception as exc:
                logger.debug("pty-close-failed error=%s", exc)
        if alive and _is_alive(process):
            if hasattr(process, "terminate"):
                with suppress(Exception):
                    process.terminate()
            elif hasattr(process, "kill"):
                with suppress(Exception):
                    process.kill()


def _is_alive(process: object) -> bool:
    if hasattr(process, "isalive"):
        try:
            return bool(process.isalive())
        except Exception:
            return True
    return True
