# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import mimetypes

_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
)

_SAMPLE_SIZE = 1024


def guess_mime_type(path: str, content: bytes | str | None) -> str | None:
    """Infer a MIME type from the path extension, falling back to the content."""

    guessed, _ = mimetypes.guess_type(path, strict=False)
    if guessed:
        return guessed
    return _sniff(content)


def _sniff(content: bytes | str | None) -> str | None:
    if content is None or len(content) == 0:
        return None
    if isinstance(content, str):
        return "text/plain"
    sample = bytes(content[:_SAMPLE_SIZE])
    for signature, mimetype in _SIGNATURES:
        if sample.startswith(signature):
            return mimetype
    try:
        sample.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A multi-byte sequence cut at the sample boundary is still text.
        if exc.start < len(sample) - 3:
            return "application/octet-stream"
    if b"\x00" in sample:
        return "application/octet-stream"
    return "text/plain"


__all__ = ["guess_mime_type"]
