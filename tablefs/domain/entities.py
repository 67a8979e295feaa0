# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Row-level vocabulary shared by the adapter and the facade."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

# Field-name keyed row as returned by metadata and listing operations.
Entry = dict[str, Any]
Options = Mapping[str, Any]

# Keys a directory entry never carries.
FILE_ONLY_FIELDS = ("contents", "mimetype", "size")


class EntryType(StrEnum):
    FILE = "file"
    DIR = "dir"


def normalize_entry(row: Mapping[str, Any]) -> Entry:
    """Coerce numeric columns and drop file-only fields from directory rows."""

    entry = dict(row)
    if "timestamp" in entry:
        entry["timestamp"] = int(entry["timestamp"] or 0)
    if "size" in entry:
        entry["size"] = int(entry["size"] or 0)
    if entry.get("type") == EntryType.DIR:
        for key in FILE_ONLY_FIELDS:
            entry.pop(key, None)
    return entry
