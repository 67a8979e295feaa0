# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Engine construction and schema helpers."""

from __future__ import annotations

from typing import Any

from sqlalchemy import MetaData, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from tablefs.infrastructure.db.models import build_files_table
from tablefs.infrastructure.unit_of_work import Bind, transaction_scope
from tablefs.shared.config import AppConfig
from tablefs.shared.logging import logger, sanitize_message


def _set_sqlite_pragmas(dbapi_conn, _) -> None:
    """Apply safety PRAGMAs when using SQLite."""

    cur = dbapi_conn.cursor()
    try:
        cur.execute("PRAGMA synchronous=NORMAL;")
        cur.execute("PRAGMA busy_timeout=30000;")
    except Exception:
        logger.exception("Failed to apply SQLite PRAGMAs")
    finally:
        cur.close()


def build_engine(config: AppConfig) -> Engine:
    url = config.database.url
    kwargs: dict[str, Any] = {"echo": config.database.echo, "future": True}
    if config.is_sqlite():
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": int(config.database.pool_timeout),
        }
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
        kwargs["pool_timeout"] = config.database.pool_timeout

    engine = create_engine(url, **kwargs)
    if config.is_sqlite():
        event.listen(engine, "connect", _set_sqlite_pragmas)
    logger.debug(f"db.engine: created url={sanitize_message(url)}")
    return engine


def create_schema(bind: Bind, table: str) -> None:
    """Ensure the file table exists."""

    metadata = MetaData()
    files = build_files_table(metadata, table)
    with transaction_scope(bind) as connection:
        metadata.create_all(connection, tables=[files], checkfirst=True)
    logger.info(f"db.schema: ensured table={table}")


__all__ = ["build_engine", "create_schema"]
