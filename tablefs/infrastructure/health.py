# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from tablefs.infrastructure.db.models import split_table_name
from tablefs.infrastructure.unit_of_work import Bind, transaction_scope
from tablefs.shared.errors import StorageError
from tablefs.shared.logging import logger


def _probe(bind: Bind, table: str) -> int:
    with transaction_scope(bind) as connection:
        connection.execute(text("SELECT 1"))
        return int(connection.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar_one())


def check_database(
    bind: Bind,
    table: str,
    *,
    retries: int = 0,
    backoff_base: float = 0.5,
    backoff_cap: float = 8.0,
) -> int:
    """Return the row count of ``table``, proving the database and table are reachable.

    Operational errors (connection refused, database locked) are retried with
    exponential backoff; anything else fails on the first attempt.
    """

    split_table_name(table)
    retrying = Retrying(
        stop=stop_after_attempt(retries + 1),
        wait=wait_exponential(multiplier=backoff_base, max=backoff_cap),
        retry=retry_if_exception_type(OperationalError),
        reraise=True,
    )
    try:
        for attempt in retrying:
            with attempt:
                logger.debug(
                    f"health: attempt={attempt.retry_state.attempt_number} table={table}"
                )
                count = _probe(bind, table)
    except SQLAlchemyError as exc:
        logger.warning(f"health: check failed table={table} error={type(exc).__name__}")
        raise StorageError(context={"table": table, "operation": "check"}) from exc
    return count


__all__ = ["check_database"]
