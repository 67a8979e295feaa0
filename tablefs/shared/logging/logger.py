# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""loguru setup with a per-invocation run id stamped on every record."""

from __future__ import annotations

import logging
import os
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from loguru import logger

from .sensitive_filter import sanitize_record

_FMT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<lvl>{level:<8}</lvl> | "
    "<magenta>{extra[run]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<lvl>{message}</lvl>"
)

_NO_RUN = "-"
_RUN_ID: ContextVar[str] = ContextVar("tablefs_run", default=_NO_RUN)


def _stamp_run(record) -> None:
    record["extra"].setdefault("run", _RUN_ID.get())


class _StdlibBridge(logging.Handler):
    """Forward stdlib records (SQLAlchemy, pydantic) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def current_run() -> str:
    return _RUN_ID.get()


@contextmanager
def run_context(command: str, run_id: str | None = None) -> Iterator[str]:
    """Tag every record logged inside the block with ``<command>:<id>``."""

    value = f"{command}:{run_id or uuid.uuid4().hex[:8]}"
    token = _RUN_ID.set(value)
    try:
        yield value
    finally:
        _RUN_ID.reset(token)


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    level = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    log_file = log_file or os.getenv("LOG_FILE")

    logger.remove()
    logger.configure(patcher=_stamp_run)
    sink_options = {
        "level": level,
        "format": _FMT,
        "backtrace": False,
        "diagnose": False,
        "filter": sanitize_record,
    }
    logger.add(sys.stderr, colorize=True, **sink_options)
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        logger.add(log_file, colorize=False, enqueue=True, encoding="utf-8", **sink_options)

    logging.basicConfig(handlers=[_StdlibBridge()], level=0, force=True)
    for name in ("sqlalchemy.engine", "sqlalchemy.pool"):
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["current_run", "logger", "run_context", "setup_logging"]
