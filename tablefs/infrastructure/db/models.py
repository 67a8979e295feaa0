# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from sqlalchemy import Column, Integer, LargeBinary, MetaData, String, Table, Text

from tablefs.shared.errors import InvalidConfigurationError
from tablefs.utils.paths import is_valid_table_name


def split_table_name(name: str) -> tuple[str | None, str]:
    """Split ``schema.table`` into its parts."""

    if not is_valid_table_name(name):
        raise InvalidConfigurationError("invalid table name", context={"table": name})
    schema, _, table = name.rpartition(".")
    if not table:
        raise InvalidConfigurationError("invalid table name", context={"table": name})
    return schema or None, table


def build_files_table(metadata: MetaData, name: str = "files") -> Table:
    """Declare the file table under ``name`` on ``metadata``."""

    schema, table = split_table_name(name)
    return Table(
        table,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("path", String(1024), nullable=False, unique=True),
        Column("type", String(8), nullable=False),
        Column("contents", LargeBinary, nullable=True),
        Column("size", Integer, nullable=False, default=0, server_default="0"),
        Column("mimetype", Text, nullable=True),
        Column("timestamp", Integer, nullable=False, default=0, server_default="0"),
        schema=schema,
    )


__all__ = ["build_files_table", "split_table_name"]
