"""GUI launch: config load, PySide6 availability check, window run."""

from __future__ import annotations

import logging as py_logging
from pathlib import Path

from splitterm.config import parse_config_file
from splitterm.errors import ExitCode, SplitTermError

logger = py_logging.getLogger(__name__)


def launch_app(
    *,
    config_path: str | Path | None = None,
    working_dir: str = "",
    command: str = "",
    title: str = "",
) -> int:
    """Open the terminal window and block until it closes."""
    config, issues = parse_config_file(config_path)
    if issues:
        logger.info("config-loaded issues=%s", len(issues))

    try:
        from PySide6.QtWidgets import QApplication  # noqa: F401
    except ImportError as exc:
        raise SplitTermError(
            "PySide6 is not installed; the terminal window cannot open.",
            code=ExitCode.RUNTIME_ERROR,
            hint="Run `pip install PySide6` and try again.",
        ) from exc

    from splitterm.ui.window import run_window

    return run_window(
        config=config,
        config_path=config_path,
        working_dir=working_dir,
        command=command,
        title=title,
    )
