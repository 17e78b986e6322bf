"""
Attachment store: photo blobs kept as flat files under one cache directory.

Files are named by a storage key, ``<millis>-<random hex><ext>``. The store
knows nothing about inventory items; the registry decides which keys are live.
"""

import logging
import os
import re
import secrets
import tempfile
import threading
import time
from pathlib import Path
from typing import Optional, Union

from core.exceptions import IOFailure, PhotoNotFound, ValidationError

logger = logging.getLogger(__name__)

_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,10}$")
_KEY_RE = re.compile(r"^\d+-[0-9a-f]+(\.[a-z0-9]{1,10})?$")

# 5 random bytes = 40 bits per key within the same millisecond
_RANDOM_BYTES = 5


def normalize_extension(original: Optional[str]) -> str:
    """Turn ``"JPG"`` or ``".jpg"`` into ``".jpg"``; anything that is not a short alphanumeric suffix becomes ``""``."""
    ext = (original or "").strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext if _EXTENSION_RE.match(ext) else ""


class AttachmentStore:
    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()
        self._last_millis = 0
        self._key_lock = threading.Lock()

    def ensure_root(self) -> bool:
        """Create the root directory if needed. Returns True when it was created."""
        if self.root.is_dir():
            return False
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailure(f"Cannot create cache directory {self.root}: {e}") from e
        return True

    def _next_millis(self) -> int:
        # Wall clock may step backwards; keys must not.
        with self._key_lock:
            now = int(time.time() * 1000)
            self._last_millis = max(now, self._last_millis)
            return self._last_millis

    def generate_key(self, original_extension: Optional[str] = None) -> str:
        ext = normalize_extension(original_extension)
        return f"{self._next_millis()}-{secrets.token_hex(_RANDOM_BYTES)}{ext}"

    def resolve(self, storage_key: str) -> Path:
        """Absolute path for a key. Does not touch the filesystem."""
        if not storage_key or not _KEY_RE.match(storage_key):
            raise ValidationError(f"Invalid storage key: {storage_key!r}")
        return self.root / storage_key

    def exists(self, storage_key: str) -> bool:
        return self.resolve(storage_key).is_file()

    def store(self, data: bytes, original_extension: Optional[str] = None) -> str:
        """Write ``data`` under a fresh key and return the key.

        The blob goes to a temp file in the same directory first and is renamed
        into place, so a key never points at a half-written file.
        """
        self.ensure_root()

        key = self.generate_key(original_extension)
        while self.exists(key):
            key = self.generate_key(original_extension)
        dest = self.resolve(key)

        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(dir=self.root, prefix=".upload-", delete=False, mode="wb") as tmp:
                tmp_path = tmp.name
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, dest)
            tmp_path = None
        except OSError as e:
            logger.error("failed to store attachment %s: %s", key, e)
            raise IOFailure(f"Failed to store attachment: {e}") from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.unlink(tmp_path)
                except OSError as cleanup_error:
                    logger.warning("failed to remove temp file %s: %s", tmp_path, cleanup_error)

        logger.debug("stored attachment %s (%d bytes)", key, len(data))
        return key

    def read(self, storage_key: str) -> bytes:
        path = self.resolve(storage_key)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise PhotoNotFound("Photo file does not exist") from e
        except OSError as e:
            raise IOFailure(f"Failed to read attachment {storage_key}: {e}") from e

    def delete(self, storage_key: str) -> bool:
        """Remove the file for ``storage_key``.

        A missing file is not an error. Returns True if something was removed.
        """
        path = self.resolve(storage_key)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("attachment %s already gone", storage_key)
            return False
        except OSError as e:
            logger.error("failed to delete attachment %s: %s", storage_key, e)
            raise IOFailure(f"Failed to delete attachment {storage_key}: {e}") from e
        logger.debug("deleted attachment %s", storage_key)
        return True
