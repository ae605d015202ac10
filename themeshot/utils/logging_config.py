"""Logging setup shared by the pipeline CLI and library modules.

Provides:
    - setup_logging(): console (stderr) + optional file handler on the root logger
    - ContextFormatter: human-readable or JSON-lines records with context fields
    - push_context() / pop_context(): fields such as command=render on every record
    - theme_context(slug): scoped theme=<slug> field for per-theme work
    - install_excepthook(), route_warnings(), shutdown()

Library modules never configure logging; they only do
``logger = logging.getLogger(__name__)``. The CLI calls setup_logging() once
with the ``logging`` section of the pipeline config.

Format examples:
    Human: 2026-10-19T13:45:12.345Z | INFO     | command=render theme=ocean-dark | Rendered 800x520 ...
    JSON:  {"t": "2026-10-19T13:45:12.345Z", "lvl": "INFO", "logger": "themeshot.pipeline",
            "command": "render", "theme": "ocean-dark", "msg": "Rendered 800x520 ..."}

Invariants:
    - Context lives in a ContextVar: a theme_context() entered on a worker
      thread is invisible to other workers
    - Pool workers see the submitting thread's fields (command=...) only when
      the task is submitted through ``contextvars.copy_context().run``
    - setup_logging() is idempotent (re-running replaces handlers, never stacks them)
"""

import contextlib
import contextvars
import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

_context_var: contextvars.ContextVar = contextvars.ContextVar("themeshot_log_context", default={})

_configured = False

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"


def current_context() -> Dict[str, Any]:
    """Copy of the context fields visible to the calling thread."""
    return dict(_context_var.get())


class ContextFormatter(logging.Formatter):
    """Formats records with the active context fields.

    Parameters
    ----------
    fmt_mode : str
        "human" (pipe-separated, optional ANSI level colors) or "json"
    use_color : bool
        Colorize the level in human mode; ignored unless stderr is a TTY
    """

    def __init__(self, fmt_mode: str = "human", use_color: bool = True):
        super().__init__()
        if fmt_mode not in ("human", "json"):
            raise ValueError(f"Unknown log format {fmt_mode!r}, use 'human' or 'json'")
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()

    @staticmethod
    def _timestamp(record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"

    def format(self, record: logging.LogRecord) -> str:
        context = _context_var.get()
        if self.fmt_mode == "json":
            payload = {
                "t": self._timestamp(record),
                "lvl": record.levelname,
                "logger": record.name,
                **context,
                "msg": record.getMessage(),
            }
            if record.exc_info:
                payload["exc"] = self.formatException(record.exc_info)
            return json.dumps(payload, default=str)

        level = f"{record.levelname:8s}"
        if self.use_color:
            level = f"{LEVEL_COLORS.get(record.levelname, '')}{level}{RESET}"

        fields = " ".join(f"{k}={v}" for k, v in context.items())
        prefix = f"{self._timestamp(record)} | {level} | "
        if fields:
            prefix += f"{fields} | "
        line = prefix + record.getMessage()
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    rotate: Optional[Dict[str, int]] = None,
    capture_warnings: bool = True,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> List[logging.Handler]:
    """Configure the root logger (idempotent).

    Parameters
    ----------
    log_level : str
        "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL" (case-insensitive)
    log_file : str, optional
        Also log to this file; parent directories are created
    json : bool
        JSON-lines format for the file handler (console stays human-readable)
    color : bool
        ANSI level colors on the console
    to_stderr : bool
        Install the console handler
    rotate : dict, optional
        Size-based rotation for the file handler:
        ``{"max_bytes": 10_000_000, "backup_count": 3}``
    capture_warnings : bool
        Route ``warnings.warn`` through logging
    quiet_libs : list[str], optional
        Loggers raised to WARNING (default: ["PIL"], whose PNG plugin is chatty at DEBUG)
    context : dict, optional
        Fields pushed for the rest of the run, e.g. {"command": "all"}

    Returns
    -------
    list[logging.Handler]
        Handlers installed on the root logger

    Raises
    ------
    ValueError
        If ``rotate`` contains unknown keys
    """
    global _configured

    root = logging.getLogger()
    if _configured:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

    root.setLevel(getattr(logging, log_level.upper()))
    handlers: List[logging.Handler] = []

    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ContextFormatter("human", use_color=color))
        handlers.append(console)

    if log_file:
        handlers.append(_file_handler(Path(log_file), rotate, json))

    for handler in handlers:
        root.addHandler(handler)

    if context:
        push_context(**context)

    for name in (quiet_libs if quiet_libs is not None else ["PIL"]):
        logging.getLogger(name).setLevel(logging.WARNING)

    if capture_warnings:
        route_warnings()

    _configured = True
    return handlers


def _file_handler(path: Path, rotate: Optional[Dict[str, int]], json_lines: bool) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    if rotate:
        unknown = set(rotate) - {"max_bytes", "backup_count"}
        if unknown:
            raise ValueError(f"Unknown rotate option(s) {sorted(unknown)}; use max_bytes, backup_count")
        handler: logging.Handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=rotate.get("max_bytes", 10_000_000),
            backupCount=rotate.get("backup_count", 3),
            encoding="utf-8",
        )
    else:
        handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(ContextFormatter("json" if json_lines else "human", use_color=False))
    return handler


def push_context(**fields) -> None:
    """Attach fields to every subsequent record logged from this thread."""
    _context_var.set({**_context_var.get(), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Remove the given context fields, or all of them when keys is None."""
    if keys is None:
        _context_var.set({})
        return
    _context_var.set({k: v for k, v in _context_var.get().items() if k not in keys})


@contextlib.contextmanager
def theme_context(slug: str) -> Iterator[None]:
    """Tag records logged inside the block with theme=<slug>.

    The previous context is restored on exit, including on exceptions.

    Examples
    --------
    >>> with theme_context("ocean-dark"):
    ...     logger.info("Rendering")  # "... | theme=ocean-dark | Rendering"
    """
    token = _context_var.set({**_context_var.get(), "theme": slug})
    try:
        yield
    finally:
        _context_var.reset(token)


def install_excepthook() -> None:
    """Log uncaught exceptions at CRITICAL before the interpreter exits."""
    def _log_uncaught(exc_type, exc_value, exc_tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        logging.getLogger("themeshot").critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_tb))

    sys.excepthook = _log_uncaught


def route_warnings() -> None:
    """Send ``warnings.warn`` output to the py.warnings logger."""
    logging.captureWarnings(True)
    logging.getLogger("py.warnings").setLevel(logging.WARNING)


def shutdown() -> None:
    """Flush and close every handler; last call in main()."""
    logging.shutdown()
