# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .models import build_files_table, split_table_name
from .session import build_engine, create_schema

__all__ = ["build_engine", "build_files_table", "create_schema", "split_table_name"]
