# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Transaction scope over an SQLAlchemy connection or engine."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from typing import Protocol

from sqlalchemy.engine import Connection, Engine, RootTransaction

from tablefs.shared.logging import logger

Bind = Connection | Engine


class UnitOfWork(Protocol):
    """Unit of work protocol for statement sequences."""

    def __enter__(self) -> UnitOfWork: ...

    def __exit__(self, exc_type, exc, tb) -> None: ...

    @property
    def connection(self) -> Connection: ...


@dataclass(slots=True)
class SqlAlchemyUnitOfWork(AbstractContextManager, UnitOfWork):
    """Runs statements in one transaction.

    An engine gets a fresh connection and transaction. A connection without an
    open transaction gets one begun here. A connection whose caller already
    opened a transaction is joined, leaving commit and rollback to the caller.
    """

    bind: Bind
    _connection: Connection | None = field(default=None, init=False)
    _transaction: RootTransaction | None = field(default=None, init=False)
    _owns_connection: bool = field(default=False, init=False)

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if isinstance(self.bind, Engine):
            self._connection = self.bind.connect()
            self._owns_connection = True
        else:
            self._connection = self.bind
        if not self._connection.in_transaction():
            self._transaction = self._connection.begin()
            logger.debug("uow: transaction begun")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        assert self._connection is not None
        try:
            if self._transaction is not None:
                if exc:
                    logger.warning(f"uow: rollback due to {exc_type.__name__}")
                    self._transaction.rollback()
                else:
                    self._transaction.commit()
                    logger.debug("uow: committed")
        except Exception:
            logger.exception("uow: exception while finalising")
            if self._transaction is not None and self._transaction.is_active:
                self._transaction.rollback()
            raise
        finally:
            if self._owns_connection:
                self._connection.close()
            self._connection = None
            self._transaction = None
            self._owns_connection = False

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            msg = "UnitOfWork connection accessed before entering context"
            raise RuntimeError(msg)
        return self._connection


@contextmanager
def transaction_scope(bind: Bind) -> Iterator[Connection]:
    """Provide a context manager yielding a connection inside a transaction."""

    with SqlAlchemyUnitOfWork(bind) as uow:
        yield uow.connection


__all__ = ["Bind", "SqlAlchemyUnitOfWork", "UnitOfWork", "transaction_scope"]
