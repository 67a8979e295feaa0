from __future__ import annotations

from collections.abc import Iterator

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from tablefs.application import Filesystem
from tablefs.infrastructure import TableFilesystemAdapter
from tablefs.infrastructure.db import create_schema

TABLE = "files"


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine, TABLE)
    yield engine
    engine.dispose()


@pytest.fixture
def adapter(engine: Engine) -> TableFilesystemAdapter:
    return TableFilesystemAdapter(engine, TABLE)


@pytest.fixture
def filesystem(adapter: TableFilesystemAdapter) -> Filesystem:
    return Filesystem(adapter)


@pytest.fixture
def table_rows(engine: Engine):
    """Return the stored rows without id and timestamp, ordered by id."""

    def _rows() -> list[dict]:
        with engine.connect() as connection:
            rows = connection.execute(
                text(f"SELECT path, contents, type, size, mimetype FROM {TABLE} ORDER BY id")
            ).mappings()
            return [
                {**row, "size": int(row["size"]), "contents": row["contents"]} for row in rows
            ]

    return _rows
