# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Path-normalizing facade over a :class:`FilesystemAdapter`."""

from __future__ import annotations

from typing import IO, Any

from tablefs.application.interfaces import FilesystemAdapter
from tablefs.domain import Entry, Options
from tablefs.shared.errors import (
    PathExistsError,
    PathNotFoundError,
    RootViolationError,
)
from tablefs.shared.logging import logger
from tablefs.utils.paths import normalize_path, pathinfo


class Filesystem:
    """User-facing filesystem API.

    Normalizes every path, asserts presence or absence before mutating calls
    and projects single fields out of the adapter's metadata rows.
    """

    def __init__(self, adapter: FilesystemAdapter) -> None:
        self._adapter = adapter

    @property
    def adapter(self) -> FilesystemAdapter:
        return self._adapter

    def _assert_present(self, path: str) -> None:
        if not self._adapter.has(path):
            raise PathNotFoundError(path)

    def _assert_absent(self, path: str) -> None:
        if self._adapter.has(path):
            raise PathExistsError(path)

    def has(self, path: str) -> bool:
        path = normalize_path(path)
        return bool(path) and self._adapter.has(path)

    def write(self, path: str, contents: bytes | str, options: Options | None = None) -> bool:
        path = normalize_path(path)
        self._assert_absent(path)
        self._adapter.write(path, contents, options)
        return True

    def write_stream(self, path: str, stream: IO[Any], options: Options | None = None) -> bool:
        path = normalize_path(path)
        self._assert_absent(path)
        self._adapter.write_stream(path, stream, options)
        return True

    def put(self, path: str, contents: bytes | str, options: Options | None = None) -> bool:
        path = normalize_path(path)
        if self._adapter.has(path):
            return self._adapter.update(path, contents, options) is not None
        self._adapter.write(path, contents, options)
        return True

    def put_stream(self, path: str, stream: IO[Any], options: Options | None = None) -> bool:
        path = normalize_path(path)
        if self._adapter.has(path):
            return self._adapter.update_stream(path, stream, options) is not None
        self._adapter.write_stream(path, stream, options)
        return True

    def update(self, path: str, contents: bytes | str, options: Options | None = None) -> bool:
        path = normalize_path(path)
        self._assert_present(path)
        return self._adapter.update(path, contents, options) is not None

    def update_stream(self, path: str, stream: IO[Any], options: Options | None = None) -> bool:
        path = normalize_path(path)
        self._assert_present(path)
        return self._adapter.update_stream(path, stream, options) is not None

    def read(self, path: str) -> bytes:
        path = normalize_path(path)
        result = self._adapter.read(path)
        if result is None:
            raise PathNotFoundError(path)
        return result["contents"]

    def read_stream(self, path: str) -> IO[bytes]:
        path = normalize_path(path)
        result = self._adapter.read_stream(path)
        if result is None:
            raise PathNotFoundError(path)
        return result["stream"]

    def read_and_delete(self, path: str) -> bytes:
        contents = self.read(path)
        self._adapter.delete(normalize_path(path))
        return contents

    def rename(self, path: str, new_path: str) -> bool:
        path = normalize_path(path)
        new_path = normalize_path(new_path)
        self._assert_present(path)
        self._assert_absent(new_path)
        return self._adapter.rename(path, new_path)

    def copy(self, path: str, new_path: str) -> bool:
        path = normalize_path(path)
        new_path = normalize_path(new_path)
        self._assert_present(path)
        self._assert_absent(new_path)
        return self._adapter.copy(path, new_path)

    def delete(self, path: str) -> bool:
        path = normalize_path(path)
        self._assert_present(path)
        return self._adapter.delete(path)

    def delete_dir(self, dirname: str) -> bool:
        dirname = normalize_path(dirname)
        if dirname == "":
            raise RootViolationError()
        return self._adapter.delete_dir(dirname)

    def create_dir(self, dirname: str, options: Options | None = None) -> bool:
        dirname = normalize_path(dirname)
        self._assert_absent(dirname)
        self._adapter.create_dir(dirname, options)
        return True

    def list_contents(self, directory: str = "", recursive: bool = False) -> list[Entry]:
        directory = normalize_path(directory)
        listing = self._adapter.list_contents(directory, recursive)
        formatted: list[Entry] = []
        for entry in listing:
            path = entry["path"]
            if recursive:
                keep = not directory or path.startswith(directory + "/")
            else:
                keep = entry.get("dirname") == directory
            if keep:
                formatted.append({**pathinfo(path), **entry})
        formatted.sort(key=lambda item: item["path"])
        logger.debug(
            f"fs: list directory={directory!r} recursive={recursive} count={len(formatted)}"
        )
        return formatted

    def get_metadata(self, path: str) -> Entry:
        path = normalize_path(path)
        metadata = self._adapter.get_metadata(path)
        if metadata is None:
            raise PathNotFoundError(path)
        return metadata

    def get_size(self, path: str) -> int:
        path = normalize_path(path)
        metadata = self._adapter.get_size(path)
        if metadata is None:
            raise PathNotFoundError(path)
        return int(metadata.get("size", 0))

    def get_mimetype(self, path: str) -> str | None:
        path = normalize_path(path)
        metadata = self._adapter.get_mimetype(path)
        if metadata is None:
            raise PathNotFoundError(path)
        return metadata.get("mimetype")

    def get_timestamp(self, path: str) -> int:
        path = normalize_path(path)
        metadata = self._adapter.get_timestamp(path)
        if metadata is None:
            raise PathNotFoundError(path)
        return int(metadata["timestamp"])

    def get_visibility(self, path: str) -> Any:
        return self._adapter.get_visibility(normalize_path(path))

    def set_visibility(self, path: str, visibility: str) -> Any:
        return self._adapter.set_visibility(normalize_path(path), visibility)


__all__ = ["Filesystem"]
