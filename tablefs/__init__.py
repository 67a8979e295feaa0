# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Filesystem stored as rows of a relational table."""

from tablefs.application import Filesystem, FilesystemAdapter
from tablefs.domain import EntryType
from tablefs.infrastructure import TableFilesystemAdapter
from tablefs.infrastructure.db import build_files_table, create_schema

__version__ = "0.1.0"

__all__ = [
    "EntryType",
    "Filesystem",
    "FilesystemAdapter",
    "TableFilesystemAdapter",
    "build_files_table",
    "create_schema",
]
