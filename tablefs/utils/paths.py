# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Path helpers for the slash-separated virtual hierarchy."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from tablefs.shared.errors import PathOutsideRootError

TABLE_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_.]*$")
LIKE_ESCAPE = "!"


def is_valid_table_name(name: str) -> bool:
    return bool(TABLE_NAME_RE.match(name or ""))


def normalize_path(path: str) -> str:
    """Return the canonical relative form of ``path``.

    Backslashes become slashes, empty and ``.`` segments are dropped and
    ``..`` removes the previous segment. Climbing above the root raises
    :class:`PathOutsideRootError`.
    """

    parts: list[str] = []
    for segment in path.replace("\\", "/").split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not parts:
                raise PathOutsideRootError(path)
            parts.pop()
            continue
        parts.append(segment)
    return "/".join(parts)


def dirname(path: str) -> str:
    path = path.rstrip("/")
    head, sep, _ = path.rpartition("/")
    return head if sep else ""


def pathinfo(path: str) -> dict[str, str]:
    info = {"path": path, "dirname": dirname(path)}
    basename = path.rstrip("/").rpartition("/")[2]
    info["basename"] = basename
    stem, dot, extension = basename.rpartition(".")
    if dot:
        info["extension"] = extension
        info["filename"] = stem
    else:
        info["filename"] = basename
    return info


def escape_like(value: str, escape: str = LIKE_ESCAPE) -> str:
    """Escape LIKE wildcards so ``value`` matches literally."""

    return (
        value.replace(escape, escape + escape)
        .replace("%", escape + "%")
        .replace("_", escape + "_")
    )


def emulate_directories(listing: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Add entries for directories implied by paths but not stored as rows."""

    entries = list(listing)
    implied: list[str] = []
    listed: set[str] = set()
    for entry in entries:
        if entry.get("type") == "dir":
            listed.add(entry["path"])
        parent = entry.get("dirname", dirname(entry["path"]))
        while parent:
            if parent not in implied:
                implied.append(parent)
            parent = dirname(parent)

    for directory in implied:
        if directory not in listed:
            entries.append({**pathinfo(directory), "type": "dir"})
    return entries


@dataclass(slots=True, frozen=True)
class PathPrefixer:
    """Confine paths to a subtree by prepending and stripping a prefix."""

    prefix: str | None = None
    _normalized: str = field(init=False, repr=False, default="")

    def __post_init__(self) -> None:
        stripped = (self.prefix or "").rstrip("/\\")
        object.__setattr__(self, "_normalized", f"{stripped}/" if stripped else "")

    @property
    def value(self) -> str:
        return self._normalized

    def apply(self, path: str) -> str:
        return self._normalized + path.lstrip("/\\")

    def remove(self, path: str) -> str:
        if self._normalized and path.startswith(self._normalized):
            return path[len(self._normalized) :]
        return path


__all__ = [
    "LIKE_ESCAPE",
    "PathPrefixer",
    "TABLE_NAME_RE",
    "dirname",
    "emulate_directories",
    "escape_like",
    "is_valid_table_name",
    "normalize_path",
    "pathinfo",
]
