"""
Scan Barang Backend — File Storage Service
============================================

What:  Upload validation, staging, finalization and cleanup for item images
       and QR-code labels.
Why:   Centralizes all file system operations with security checks and one
       canonical on-disk layout.
How:   Validates extension, declared MIME type, size and decoded image
       format; writes bytes to a staging area; moves them into place only
       after the database transaction that references them has committed.
Who:   Called by ItemService during create/update/delete.

Directory Structure:
    storage/
    ├── .staging/                      ← written before commit
    │   └── 3f2a...e1.jpg
    ├── images/
    │   └── <owner_key>/
    │       └── 42-photo.jpg           ← finalized after commit
    └── qr_codes/
        └── <owner_key>/
            └── 42-qrcode.png

Write policy (stage → commit → finalize):
    1. stage():    bytes land in .staging/ under a UUID name
    2. the caller commits the DB row that references the final path
    3. finalize(): os.replace() moves the staged file into place (atomic on
                   the same filesystem)
    On failure before commit the caller discard()s the staged file. A crash
    between commit and finalize leaves the staged file behind; the startup
    sweep (sweep_staging) removes anything older than STAGING_MAX_AGE.
"""

import io
import logging
import os
import re
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import aiofiles
from PIL import Image, UnidentifiedImageError

from scanbarang.config import settings
from scanbarang.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
}

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

# Pillow format name → extension we store under
DECODED_FORMATS = {
    "JPEG": ".jpg",
    "PNG": ".png",
    "GIF": ".gif",
    "WEBP": ".webp",
}

# Storage kinds, each served by its own static mount
KIND_IMAGES = "images"
KIND_QR_CODES = "qr_codes"
KINDS = (KIND_IMAGES, KIND_QR_CODES)

STAGING_DIR = ".staging"

# Owner keys become directory names
_SAFE_SEGMENT = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass
class StagedFile:
    """A validated file sitting in the staging area, not yet visible."""

    path: Path
    extension: str
    size: int


class FileService:
    """
    Manages upload validation and the storage lifecycle of item files.

    Lifecycle of an uploaded image:
        1. validate_upload() → normalized extension (or ValidationError)
        2. stage() → StagedFile in .staging/
        3. (caller commits the DB transaction)
        4. finalize() → file moved to <kind>/<owner>/<id>-<purpose><ext>
        5. on replacement/deletion: remove() + prune_owner_dir()
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.staging_root = self.storage_root / STAGING_DIR
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def ensure_directories(self) -> None:
        """Create the staging area and one directory per storage kind."""
        try:
            self.staging_root.mkdir(parents=True, exist_ok=True)
            for kind in KINDS:
                (self.storage_root / kind).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileStorageError(
                message="Storage directory is not writable",
                context={"storage_root": str(self.storage_root), "os_error": str(e)},
            )

    def kind_root(self, kind: str) -> Path:
        if kind not in KINDS:
            raise FileStorageError(message="Unknown storage kind", context={"kind": kind})
        return self.storage_root / kind

    # ── Validation ────────────────────────────────────────────────────────

    def _validate_extension(self, filename: str) -> str:
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    "Only JPEG, JPG, PNG, GIF, and WEBP are allowed."
                ),
                field="image",
                context={"extension": ext},
            )
        return ext

    def _validate_content_type(self, content_type: Optional[str]) -> None:
        """Check the multipart part's declared type (absent is tolerated)."""
        if content_type and content_type.lower() not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message="Invalid file type. Only JPEG, JPG, PNG, GIF, and WEBP are allowed.",
                field="image",
                context={"content_type": content_type},
            )

    def _validate_size(self, content: bytes, content_length: Optional[int]) -> None:
        max_mb = settings.max_file_size / (1024 * 1024)
        if not content:
            raise ValidationError(message="Uploaded file is empty.", field="image")
        if (content_length and content_length > settings.max_file_size) or len(
            content
        ) > settings.max_file_size:
            raise ValidationError(
                message=f"File too large. Maximum size is {max_mb:.0f}MB.",
                field="image",
                context={"size": len(content), "limit": settings.max_file_size},
            )

    def _detect_format(self, content: bytes) -> str:
        """
        Decode the header with Pillow and return the extension of the real format.

        Catches renamed files: a .jpg whose bytes aren't an image fails here.
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                fmt = img.format
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise ValidationError(
                message="Uploaded file is not a valid image.",
                field="image",
                context={"error": str(e)},
            )
        if fmt not in DECODED_FORMATS:
            raise ValidationError(
                message="Invalid file type. Only JPEG, JPG, PNG, GIF, and WEBP are allowed.",
                field="image",
                context={"detected_format": fmt},
            )
        return DECODED_FORMATS[fmt]

    def validate_upload(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
        content_length: Optional[int] = None,
    ) -> str:
        """
        Run every upload check, cheapest first.

        Returns:
            The extension to store under, taken from the decoded format
            (so "photo.jpeg" holding PNG bytes is stored as .png).
        """
        self._validate_extension(filename)
        self._validate_content_type(content_type)
        self._validate_size(content, content_length)
        return self._detect_format(content)

    # ── Path helpers ──────────────────────────────────────────────────────

    @staticmethod
    def reference_for(owner_key: str, entity_id: int, purpose: str, extension: str) -> str:
        """
        Canonical stored reference: "{owner_key}/{entity_id}-{purpose}{ext}".

        Raises:
            FileStorageError: owner key isn't safe to use as a directory name.
        """
        if not _SAFE_SEGMENT.match(owner_key or ""):
            raise FileStorageError(
                message="Owner key cannot be used as a storage path",
                context={"owner_key": owner_key},
            )
        return f"{owner_key}/{entity_id}-{purpose}{extension}"

    def resolve(self, kind: str, reference: str) -> Path:
        """Absolute path of a stored reference; refuses paths escaping the kind root."""
        root = self.kind_root(kind).resolve()
        path = (root / reference).resolve()
        if root != path and root not in path.parents:
            raise FileStorageError(message="Invalid stored file reference", context={"reference": reference})
        return path

    # ── Staging lifecycle ─────────────────────────────────────────────────

    async def stage(self, content: bytes, extension: str) -> StagedFile:
        """
        Write bytes to the staging area under a UUID name.

        Raises:
            FileStorageError if the staging directory or write fails.
        """
        path = self.staging_root / f"{uuid.uuid4()}{extension}"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to stage file at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )
        logger.debug("Staged %s (%d bytes)", path.name, len(content))
        return StagedFile(path=path, extension=extension, size=len(content))

    def finalize(self, staged: StagedFile, kind: str, reference: str) -> Path:
        """
        Move a staged file to its final location, replacing any file there.

        Raises:
            FileStorageError if the move fails (the staged file is left for the sweep).
        """
        target = self.resolve(kind, reference)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            os.replace(staged.path, target)
        except OSError as e:
            logger.error("Failed to finalize %s → %s: %s", staged.path.name, reference, str(e))
            raise FileStorageError(
                message="Failed to store file",
                context={"reference": reference, "os_error": str(e)},
            )
        logger.info("File stored: %s/%s (%d bytes)", kind, reference, staged.size)
        return target

    def discard(self, staged: Optional[StagedFile]) -> None:
        """Drop a staged file after a failed request. Best-effort."""
        if staged is None:
            return
        try:
            staged.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to discard staged file %s: %s", staged.path.name, str(e))

    # ── Removal ───────────────────────────────────────────────────────────

    def remove(self, kind: str, reference: Optional[str]) -> bool:
        """
        Delete a stored file. Best-effort.

        Returns:
            True if a file was removed; False if it was already gone, the
            reference was empty, or deletion failed (logged).
        """
        if not reference:
            return False
        try:
            path = self.resolve(kind, reference)
            if not path.is_file():
                logger.debug("Remove: file already gone: %s/%s", kind, reference)
                return False
            path.unlink()
            logger.info("Removed file: %s/%s", kind, reference)
            return True
        except (OSError, FileStorageError) as e:
            logger.warning("Failed to remove %s/%s: %s", kind, reference, str(e))
            return False

    def prune_owner_dir(self, kind: str, owner_key: str) -> bool:
        """Remove the owner's directory under `kind` if it is now empty."""
        if not _SAFE_SEGMENT.match(owner_key or ""):
            return False
        try:
            directory = self.kind_root(kind) / owner_key
            if directory.is_dir() and not any(directory.iterdir()):
                directory.rmdir()
                logger.info("Removed empty directory: %s/%s", kind, owner_key)
                return True
        except OSError as e:
            logger.warning("Failed to prune %s/%s: %s", kind, owner_key, str(e))
        return False

    def sweep_staging(self, max_age: Optional[int] = None) -> int:
        """
        Delete staged files older than `max_age` seconds.

        Runs once at startup; these are leftovers from requests that died
        between the DB commit and finalize().
        """
        max_age = settings.staging_max_age if max_age is None else max_age
        if not self.staging_root.is_dir():
            return 0
        cutoff = time.time() - max_age
        removed = 0
        for path in self.staging_root.iterdir():
            try:
                if path.is_file() and path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except OSError as e:
                logger.warning("Sweep could not remove %s: %s", path.name, str(e))
        if removed:
            logger.info("Swept %d orphaned staged file(s)", removed)
        return removed


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
