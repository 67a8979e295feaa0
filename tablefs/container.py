# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from functools import cached_property

from sqlalchemy.engine import Engine

from tablefs.application.filesystem import Filesystem
from tablefs.infrastructure.adapter import TableFilesystemAdapter
from tablefs.infrastructure.db import build_engine, create_schema
from tablefs.shared.config import AppConfig, load_config


class Container:
    def __init__(self, config: AppConfig | None = None) -> None:
        self._config = config

    @cached_property
    def config(self) -> AppConfig:
        return self._config if self._config is not None else load_config()

    @cached_property
    def engine(self) -> Engine:
        engine = build_engine(self.config)
        if self.config.storage.create_schema:
            create_schema(engine, self.config.storage.table)
        return engine

    @cached_property
    def adapter(self) -> TableFilesystemAdapter:
        storage = self.config.storage
        return TableFilesystemAdapter(
            self.engine,
            storage.table,
            storage.path_prefix,
            spool_max_size=storage.spool_max_size,
        )

    @cached_property
    def filesystem(self) -> Filesystem:
        return Filesystem(self.adapter)

    def dispose(self) -> None:
        if "engine" in self.__dict__:
            self.engine.dispose()


__all__ = ["Container"]
