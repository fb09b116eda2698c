"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import logging as py_logging
import sys
from collections.abc import Callable, Sequence
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from .errors import ExitCode, SplitTermError, user_facing_error
from .logging import configure_logging, default_log_path, normalize_level

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")

try:
    __version__ = version("splitterm")
except PackageNotFoundError:
    __version__ = "0.0.0"


def _log_level_type(value: str) -> str:
    normalized = normalize_level(value)
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="splitterm")
    parser.add_argument("-c", "--config", type=Path, default=None, help="Load configuration from this file")
    parser.add_argument("-w", "--workdir", type=Path, default=None, help="Working directory for new sessions")
    parser.add_argument("-e", "--command", default="", help="Run this command instead of the login shell")
    parser.add_argument("-t", "--title", default="", help="Fixed window title")
    parser.add_argument("-d", "--debug", action="store_true", help="Log at DEBUG level")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", type=_log_level_type, default="INFO")
    parser.add_argument("--log-file", type=Path, default=None)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def validate_namespace(namespace: argparse.Namespace) -> None:
    workdir = namespace.workdir
    if workdir is not None and not workdir.expanduser().is_dir():
        raise SplitTermError(
            f"Working directory not found: {workdir}",
            code=ExitCode.VALIDATION_ERROR,
            hint="Pass an existing directory to --workdir.",
        )


def launch_gui(namespace: argparse.Namespace) -> int:
    from splitterm.ui.app import launch_app

    workdir = namespace.workdir.expanduser() if namespace.workdir is not None else Path.cwd()
    return launch_app(
        config_path=namespace.config,
        working_dir=str(workdir),
        command=namespace.command,
        title=namespace.title,
    )


def main(
    argv: Sequence[str] | None = None,
    *,
    gui_launcher: Callable[[], int | None] | None = None,
) -> int:
    log_path = default_log_path()
    logger = configure_logging(log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()
    level = "DEBUG" if namespace.debug else namespace.log_level
    logger = configure_logging(level=level, log_file=log_path)

    try:
        validate_namespace(namespace)
        launcher = gui_launcher or (lambda: launch_gui(namespace))
        logger.debug("Starting GUI flow config=%s workdir=%s", namespace.config, namespace.workdir)
        result = launcher()
        if isinstance(result, int):
            return result
        return int(ExitCode.SUCCESS)
    except SplitTermError as exc:
        logger.error(
            "Handled SplitTermError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        try:
            hint = f"Inspect logs: {log_path}"
            print(user_facing_error("Unexpected runtime failure", hint=hint), file=sys.stderr)
        except Exception:
            pass
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
