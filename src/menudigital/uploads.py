"""Local-disk storage for uploaded logos, dish photos and 3D models."""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import TYPE_CHECKING

from menudigital.defaults import UPLOADS_URL_PREFIX

if TYPE_CHECKING:
    from fastapi import UploadFile

log = logging.getLogger("menudigital.uploads")

_MS_PER_SECOND = 1000
_BYTES_PER_MB = 1024 * 1024
_READ_CHUNK_BYTES = 64 * 1024
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

# Accepted MIME types per extension; 3D models are often sent as octet-stream.
_MIME_BY_EXTENSION: dict[str, set[str]] = {
    ".jpeg": {"image/jpeg"},
    ".jpg": {"image/jpeg"},
    ".png": {"image/png"},
    ".gltf": {"model/gltf+json", "application/json", "application/octet-stream"},
    ".glb": {"model/gltf-binary", "application/octet-stream"},
}


class UploadRejected(ValueError):
    """Raised when an uploaded file fails type or size validation."""


class LocalUploadStorage:
    """Stores files under *root* and returns their public ``/uploads`` URL."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def save(
        self,
        filename: str,
        content: bytes,
        *,
        content_type: str | None,
        allowed_extensions: frozenset[str],
        max_bytes: int,
    ) -> str:
        """Validate and persist one file. Returns its URL path."""
        original = Path(filename or "").name
        ext = Path(original).suffix.lower()
        if not original or ext not in allowed_extensions:
            raise UploadRejected(
                f"File type not allowed; expected one of {', '.join(sorted(allowed_extensions))}"
            )
        if content_type and content_type not in _MIME_BY_EXTENSION.get(ext, set()):
            raise UploadRejected(f"Content type {content_type} does not match {ext}")
        if not content:
            raise UploadRejected("Empty file")
        if len(content) > max_bytes:
            raise UploadRejected(_too_large(max_bytes))

        stored_name = f"{int(time.time() * _MS_PER_SECOND)}-{_UNSAFE_CHARS.sub('_', original)}"
        (self.root / stored_name).write_bytes(content)
        log.info("Stored upload %s (%d bytes)", stored_name, len(content))
        return f"{UPLOADS_URL_PREFIX}/{stored_name}"


def _too_large(max_bytes: int) -> str:
    if max_bytes >= _BYTES_PER_MB:
        return f"File exceeds {max_bytes // _BYTES_PER_MB} MB limit"
    return f"File exceeds {max_bytes} byte limit"


async def read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an uploaded file, rejecting it once it grows past *max_bytes*.

    The declared size is checked first; the body is then read in chunks so an
    oversize file is never held in memory beyond ``max_bytes``.
    """
    if upload.size is not None and upload.size > max_bytes:
        raise UploadRejected(_too_large(max_bytes))
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await upload.read(_READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            log.warning("Upload %s rejected after %d bytes", upload.filename, total)
            raise UploadRejected(_too_large(max_bytes))
        chunks.append(chunk)
    return b"".join(chunks)
