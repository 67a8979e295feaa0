# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, cast


@dataclass(slots=True)
class AppError(Exception):
    code: str
    context: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        Exception.__init__(self, self.code)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.code}
        if self.context:
            payload["context"] = dict(self.context)
        return payload


class DomainError(AppError):
    def __init__(
        self,
        *,
        code: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        resolved_code = code or cast(str, getattr(type(self), "default_code", "domain_error"))
        super().__init__(code=resolved_code, context=context)


class InvalidConfigurationError(AppError):
    def __init__(self, reason: str, *, context: Mapping[str, Any] | None = None) -> None:
        payload = {"reason": reason}
        if context:
            payload.update(context)
        super().__init__(code="invalid_configuration", context=payload)


class StorageError(AppError):
    def __init__(
        self,
        code: str = "storage_error",
        *,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(code=code, context=context)


class PathExistsError(StorageError):
    def __init__(self, path: str) -> None:
        super().__init__(code="path_exists", context={"path": path})


class PartialOperationError(StorageError):
    def __init__(self, operation: str, path: str, *, completed: int = 0) -> None:
        super().__init__(
            code="partial_operation",
            context={"operation": operation, "path": path, "completed": completed},
        )


class PathNotFoundError(DomainError):
    default_code = "path_not_found"

    def __init__(self, path: str) -> None:
        super().__init__(context={"path": path})


class PathOutsideRootError(DomainError):
    default_code = "path_outside_root"

    def __init__(self, path: str) -> None:
        super().__init__(context={"path": path})


class RootViolationError(DomainError):
    default_code = "root_violation"

    def __init__(self) -> None:
        super().__init__()


class UnsupportedOperationError(AppError):
    def __init__(self, operation: str) -> None:
        super().__init__(code="not_supported", context={"operation": operation})
