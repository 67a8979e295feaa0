from .base import (
    AppError,
    DomainError,
    InvalidConfigurationError,
    PartialOperationError,
    PathExistsError,
    PathNotFoundError,
    PathOutsideRootError,
    RootViolationError,
    StorageError,
    UnsupportedOperationError,
)

__all__ = [
    "AppError",
    "DomainError",
    "InvalidConfigurationError",
    "PartialOperationError",
    "PathExistsError",
    "PathNotFoundError",
    "PathOutsideRootError",
    "RootViolationError",
    "StorageError",
    "UnsupportedOperationError",
]
