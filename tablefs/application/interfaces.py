# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import IO, Any, Protocol

from tablefs.domain import Entry, Options


class FilesystemAdapter(Protocol):
    """Storage backend contract consumed by :class:`tablefs.application.filesystem.Filesystem`.

    Paths are already normalized. Absence is reported as ``None`` or ``False``;
    storage failures are raised. ``has`` therefore raises on a driver error
    instead of answering ``False`` like a boolean-only existence check.
    """

    def write(self, path: str, contents: bytes, options: Options | None = None) -> Entry: ...

    def write_stream(
        self, path: str, stream: IO[bytes], options: Options | None = None
    ) -> Entry: ...

    def update(
        self, path: str, contents: bytes, options: Options | None = None
    ) -> Entry | None: ...

    def update_stream(
        self, path: str, stream: IO[bytes], options: Options | None = None
    ) -> Entry | None: ...

    def rename(self, path: str, new_path: str) -> bool: ...

    def copy(self, path: str, new_path: str) -> bool: ...

    def delete(self, path: str) -> bool: ...

    def delete_dir(self, dirname: str) -> bool: ...

    def create_dir(self, dirname: str, options: Options | None = None) -> Entry: ...

    def has(self, path: str) -> bool: ...

    def read(self, path: str) -> Entry | None: ...

    def read_stream(self, path: str) -> Entry | None: ...

    def list_contents(self, directory: str = "", recursive: bool = False) -> list[Entry]: ...

    def get_metadata(self, path: str) -> Entry | None: ...

    def get_size(self, path: str) -> Entry | None: ...

    def get_mimetype(self, path: str) -> Entry | None: ...

    def get_timestamp(self, path: str) -> Entry | None: ...

    def get_visibility(self, path: str) -> Any: ...

    def set_visibility(self, path: str, visibility: str) -> Any: ...


__all__ = ["FilesystemAdapter"]
