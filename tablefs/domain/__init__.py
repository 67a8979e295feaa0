# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .entities import FILE_ONLY_FIELDS, Entry, EntryType, Options, normalize_entry

__all__ = ["FILE_ONLY_FIELDS", "Entry", "EntryType", "Options", "normalize_entry"]
