# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .mime import guess_mime_type
from .paths import (
    PathPrefixer,
    dirname,
    emulate_directories,
    escape_like,
    is_valid_table_name,
    normalize_path,
    pathinfo,
)

__all__ = [
    "PathPrefixer",
    "dirname",
    "emulate_directories",
    "escape_like",
    "guess_mime_type",
    "is_valid_table_name",
    "normalize_path",
    "pathinfo",
]
