# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .adapter import DEFAULT_SPOOL_MAX_SIZE, TableFilesystemAdapter
from .unit_of_work import SqlAlchemyUnitOfWork, transaction_scope

__all__ = [
    "DEFAULT_SPOOL_MAX_SIZE",
    "SqlAlchemyUnitOfWork",
    "TableFilesystemAdapter",
    "transaction_scope",
]
