# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .filesystem import Filesystem
from .interfaces import FilesystemAdapter

__all__ = ["Filesystem", "FilesystemAdapter"]
