# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Filesystem adapter storing files and directories as rows of one table."""

from __future__ import annotations

import tempfile
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import IO, Any

from sqlalchemy import Integer, LargeBinary, String, bindparam, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.sql.elements import TextClause

from tablefs.domain import Entry, EntryType, Options, normalize_entry
from tablefs.infrastructure.unit_of_work import Bind, transaction_scope
from tablefs.shared.errors import (
    InvalidConfigurationError,
    PartialOperationError,
    PathExistsError,
    StorageError,
    UnsupportedOperationError,
)
from tablefs.shared.logging import logger
from tablefs.utils.mime import guess_mime_type
from tablefs.utils.paths import (
    LIKE_ESCAPE,
    PathPrefixer,
    dirname,
    emulate_directories,
    escape_like,
    is_valid_table_name,
)

DEFAULT_SPOOL_MAX_SIZE = 2 * 1024 * 1024

_INSERT = (
    "INSERT INTO {table} (path, contents, size, type, mimetype, timestamp) "
    "VALUES (:path, :contents, :size, :type, :mimetype, :timestamp)"
)
_FIX_SIZE = "UPDATE {table} SET size = LENGTH(contents) WHERE path = :path"
_UPDATE = (
    "UPDATE {table} SET contents = :contents, mimetype = :mimetype, size = :size, "
    "timestamp = :timestamp WHERE path = :path"
)
_UPDATE_STREAM = (
    "UPDATE {table} SET contents = :contents, mimetype = :mimetype, "
    "timestamp = :timestamp WHERE path = :path"
)
_SELECT_TYPE = "SELECT type FROM {table} WHERE path = :path"
_MOVE = "UPDATE {table} SET path = :new_path WHERE path = :path"
_COPY = (
    "INSERT INTO {table} (path, contents, size, type, mimetype, timestamp) "
    "SELECT :new_path, contents, size, type, mimetype, timestamp FROM {table} WHERE path = :path"
)
_DELETE = "DELETE FROM {table} WHERE path = :path"
_DELETE_DIR = "DELETE FROM {table} WHERE path = :path AND type = :type"
_CREATE_DIR = "INSERT INTO {table} (path, type, timestamp) VALUES (:path, :type, :timestamp)"
_HAS = "SELECT id FROM {table} WHERE path = :path"
_READ = "SELECT contents FROM {table} WHERE path = :path"
_LIST = "SELECT path, size, type, mimetype, timestamp FROM {table}"
_LIST_WHERE = f" WHERE path LIKE :pattern ESCAPE '{LIKE_ESCAPE}' OR path = :path"
_METADATA = "SELECT id, path, size, type, mimetype, timestamp FROM {table} WHERE path = :path"

_PARAM_TYPES = {
    "path": String,
    "new_path": String,
    "contents": LargeBinary,
    "size": Integer,
    "type": String,
    "mimetype": String,
    "timestamp": Integer,
    "pattern": String,
}


def _materialize(value: Any) -> bytes:
    """Turn a driver value (buffer, memoryview, LOB handle, text) into bytes."""

    if value is None:
        return b""
    if hasattr(value, "read"):
        value = value.read()
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _timestamp(options: Options | None) -> int:
    if options and options.get("timestamp") is not None:
        return int(options["timestamp"])
    return int(time.time())


class TableFilesystemAdapter:
    """Translate filesystem operations into SQL against a single table.

    Every statement binds its values; only the table name is interpolated and
    it is checked against an identifier allow-list at construction time. An
    optional path prefix confines the adapter to a subtree of a shared table.
    """

    def __init__(
        self,
        bind: Bind,
        table: str,
        path_prefix: str | None = None,
        *,
        spool_max_size: int = DEFAULT_SPOOL_MAX_SIZE,
    ) -> None:
        if not is_valid_table_name(table):
            raise InvalidConfigurationError("invalid table name", context={"table": table})
        self._bind = bind
        self._table = table
        self._prefixer = PathPrefixer(path_prefix)
        self._spool_max_size = spool_max_size

    @property
    def table(self) -> str:
        return self._table

    @property
    def path_prefix(self) -> str:
        return self._prefixer.value

    def _sql(self, template: str) -> TextClause:
        statement = text(template.format(table=self._table))
        params = [
            bindparam(name, type_=type_)
            for name, type_ in _PARAM_TYPES.items()
            if f":{name}" in template
        ]
        return statement.bindparams(*params) if params else statement

    @contextmanager
    def _storage_errors(self, operation: str, path: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            logger.warning(f"tablefs: {operation} conflict path={path}")
            raise PathExistsError(path) from exc
        except SQLAlchemyError as exc:
            logger.exception(f"tablefs: {operation} failed path={path}")
            raise StorageError(context={"operation": operation, "path": path}) from exc

    # Writing

    def write(self, path: str, contents: bytes | str, options: Options | None = None) -> Entry:
        data = _materialize(contents)
        record = {
            "path": path,
            "contents": data,
            "size": len(data),
            "type": EntryType.FILE.value,
            "mimetype": guess_mime_type(path, data),
            "timestamp": _timestamp(options),
        }
        with self._storage_errors("write", path), transaction_scope(self._bind) as connection:
            connection.execute(self._sql(_INSERT), {**record, "path": self._prefixer.apply(path)})
        logger.debug(f"tablefs: write path={path} size={record['size']}")
        return record

    def write_stream(self, path: str, stream: IO[Any], options: Options | None = None) -> Entry:
        record = {
            "path": path,
            "type": EntryType.FILE.value,
            "mimetype": guess_mime_type(path, b""),
            "timestamp": _timestamp(options),
        }
        location = self._prefixer.apply(path)
        with self._storage_errors("write_stream", path), transaction_scope(
            self._bind
        ) as connection:
            connection.execute(
                self._sql(_INSERT),
                {**record, "path": location, "contents": _materialize(stream), "size": 0},
            )
            connection.execute(self._sql(_FIX_SIZE), {"path": location})
        logger.debug(f"tablefs: write_stream path={path}")
        return record

    def update(
        self, path: str, contents: bytes | str, options: Options | None = None
    ) -> Entry | None:
        data = _materialize(contents)
        record = {
            "path": path,
            "contents": data,
            "size": len(data),
            "mimetype": guess_mime_type(path, data),
            "timestamp": _timestamp(options),
        }
        with self._storage_errors("update", path), transaction_scope(self._bind) as connection:
            result = connection.execute(
                self._sql(_UPDATE), {**record, "path": self._prefixer.apply(path)}
            )
        if result.rowcount == 0:
            logger.debug(f"tablefs: update matched nothing path={path}")
            return None
        logger.debug(f"tablefs: update path={path} size={record['size']}")
        return record

    def update_stream(
        self, path: str, stream: IO[Any], options: Options | None = None
    ) -> Entry | None:
        record = {
            "path": path,
            "mimetype": guess_mime_type(path, b""),
            "timestamp": _timestamp(options),
        }
        location = self._prefixer.apply(path)
        with self._storage_errors("update_stream", path), transaction_scope(
            self._bind
        ) as connection:
            result = connection.execute(
                self._sql(_UPDATE_STREAM),
                {**record, "path": location, "contents": _materialize(stream)},
            )
            if result.rowcount == 0:
                logger.debug(f"tablefs: update_stream matched nothing path={path}")
                return None
            connection.execute(self._sql(_FIX_SIZE), {"path": location})
        logger.debug(f"tablefs: update_stream path={path}")
        return record

    def create_dir(self, dirname: str, options: Options | None = None) -> Entry:
        record = {"path": dirname, "type": EntryType.DIR.value, "timestamp": _timestamp(options)}
        with self._storage_errors("create_dir", dirname), transaction_scope(
            self._bind
        ) as connection:
            connection.execute(
                self._sql(_CREATE_DIR), {**record, "path": self._prefixer.apply(dirname)}
            )
        logger.debug(f"tablefs: create_dir path={dirname}")
        return record

    # Moving and removing

    def rename(self, path: str, new_path: str) -> bool:
        source = self._prefixer.apply(path)
        moved = 0
        try:
            with transaction_scope(self._bind) as connection:
                kind = connection.execute(
                    self._sql(_SELECT_TYPE), {"path": source}
                ).scalar_one_or_none()
                if kind is None:
                    return False
                move = self._sql(_MOVE)
                if kind == EntryType.DIR:
                    for entry in self._list(connection, path, recursive=True):
                        suffix = entry["path"][len(path) :]
                        connection.execute(
                            move,
                            {
                                "path": self._prefixer.apply(entry["path"]),
                                "new_path": self._prefixer.apply(new_path + suffix),
                            },
                        )
                        moved += 1
                connection.execute(
                    move, {"path": source, "new_path": self._prefixer.apply(new_path)}
                )
        except IntegrityError as exc:
            logger.warning(f"tablefs: rename conflict path={path} new_path={new_path}")
            raise PathExistsError(new_path) from exc
        except SQLAlchemyError as exc:
            logger.exception(f"tablefs: rename failed path={path} moved={moved}")
            if moved:
                raise PartialOperationError("rename", path, completed=moved) from exc
            raise StorageError(context={"operation": "rename", "path": path}) from exc
        logger.debug(f"tablefs: rename path={path} new_path={new_path} descendants={moved}")
        return True

    def copy(self, path: str, new_path: str) -> bool:
        # A single INSERT ... SELECT leaves no gap between the existence check and the copy.
        with self._storage_errors("copy", new_path), transaction_scope(self._bind) as connection:
            result = connection.execute(
                self._sql(_COPY),
                {
                    "path": self._prefixer.apply(path),
                    "new_path": self._prefixer.apply(new_path),
                },
            )
        copied = result.rowcount > 0
        logger.debug(f"tablefs: copy path={path} new_path={new_path} copied={copied}")
        return copied

    def delete(self, path: str) -> bool:
        with self._storage_errors("delete", path), transaction_scope(self._bind) as connection:
            result = connection.execute(self._sql(_DELETE), {"path": self._prefixer.apply(path)})
        logger.debug(f"tablefs: delete path={path} rows={result.rowcount}")
        return result.rowcount > 0

    def delete_dir(self, dirname: str) -> bool:
        removed = 0
        try:
            with transaction_scope(self._bind) as connection:
                delete = self._sql(_DELETE)
                for entry in self._list(connection, dirname, recursive=True):
                    connection.execute(delete, {"path": self._prefixer.apply(entry["path"])})
                    removed += 1
                result = connection.execute(
                    self._sql(_DELETE_DIR),
                    {"path": self._prefixer.apply(dirname), "type": EntryType.DIR.value},
                )
        except SQLAlchemyError as exc:
            logger.exception(f"tablefs: delete_dir failed path={dirname} removed={removed}")
            if removed:
                raise PartialOperationError("delete_dir", dirname, completed=removed) from exc
            raise StorageError(context={"operation": "delete_dir", "path": dirname}) from exc
        logger.debug(f"tablefs: delete_dir path={dirname} descendants={removed}")
        return bool(removed or result.rowcount)

    # Reading

    def has(self, path: str) -> bool:
        with self._storage_errors("has", path), transaction_scope(self._bind) as connection:
            row = connection.execute(self._sql(_HAS), {"path": self._prefixer.apply(path)}).first()
        return row is not None

    def _fetch_contents(self, path: str) -> tuple[bool, Any]:
        statement = self._sql(_READ).columns(contents=LargeBinary)
        with self._storage_errors("read", path), transaction_scope(self._bind) as connection:
            row = connection.execute(statement, {"path": self._prefixer.apply(path)}).first()
            if row is None:
                return False, None
            return True, row.contents

    def read(self, path: str) -> Entry | None:
        found, value = self._fetch_contents(path)
        if not found:
            return None
        return {"path": path, "contents": _materialize(value)}

    def read_stream(self, path: str) -> Entry | None:
        found, value = self._fetch_contents(path)
        if not found:
            return None
        stream = tempfile.SpooledTemporaryFile(max_size=self._spool_max_size, mode="w+b")
        stream.write(_materialize(value))
        stream.seek(0)
        return {"path": path, "stream": stream}

    def _list(
        self,
        connection: Connection,
        directory: str,
        recursive: bool,
        include_self: bool = False,
    ) -> list[Entry]:
        directory = directory.strip("/")
        location = self._prefixer.apply(directory).rstrip("/")
        children = location + "/"
        if location:
            rows = connection.execute(
                self._sql(_LIST + _LIST_WHERE + " ORDER BY path"),
                {"path": location, "pattern": escape_like(children) + "%"},
            )
        else:
            rows = connection.execute(self._sql(_LIST + " ORDER BY path"))

        entries: list[Entry] = []
        for row in rows.mappings():
            # LIKE may ignore case (SQLite, MySQL collations); match the prefix exactly.
            if location and not (
                row["path"].startswith(children)
                or (include_self and directory and row["path"] == location)
            ):
                continue
            entry = normalize_entry(row)
            entry["path"] = self._prefixer.remove(entry["path"])
            entry["dirname"] = dirname(entry["path"])
            entries.append(entry)

        if recursive:
            return entries
        return [entry for entry in emulate_directories(entries) if entry["dirname"] == directory]

    def list_contents(self, directory: str = "", recursive: bool = False) -> list[Entry]:
        with self._storage_errors("list_contents", directory), transaction_scope(
            self._bind
        ) as connection:
            return self._list(connection, directory, recursive, include_self=recursive)

    def get_metadata(self, path: str) -> Entry | None:
        with self._storage_errors("get_metadata", path), transaction_scope(
            self._bind
        ) as connection:
            row = (
                connection.execute(self._sql(_METADATA), {"path": self._prefixer.apply(path)})
                .mappings()
                .first()
            )
        if row is None:
            return None
        entry = normalize_entry(row)
        entry["path"] = self._prefixer.remove(entry["path"])
        entry["dirname"] = dirname(entry["path"])
        return entry

    def get_size(self, path: str) -> Entry | None:
        return self.get_metadata(path)

    def get_mimetype(self, path: str) -> Entry | None:
        return self.get_metadata(path)

    def get_timestamp(self, path: str) -> Entry | None:
        return self.get_metadata(path)

    def get_visibility(self, path: str) -> Mapping[str, Any]:
        raise UnsupportedOperationError("get_visibility")

    def set_visibility(self, path: str, visibility: str) -> Mapping[str, Any]:
        raise UnsupportedOperationError("set_visibility")


__all__ = ["DEFAULT_SPOOL_MAX_SIZE", "TableFilesystemAdapter"]
