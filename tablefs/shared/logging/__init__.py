# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig


from .logger import current_run, logger, run_context, setup_logging
from .sensitive_filter import sanitize_message

__all__ = [
    "current_run",
    "logger",
    "run_context",
    "sanitize_message",
    "setup_logging",
]
