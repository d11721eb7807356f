"""Local disk storage for uploaded documents."""

import logging
import os
import secrets
import time
from dataclasses import dataclass
from typing import Iterator

from synapse.core.errors import NotFoundError, TooLargeError, UnsupportedTypeError

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_ALLOWED_EXTENSIONS = frozenset({".pdf", ".doc", ".docx"})
STREAM_CHUNK_SIZE = 64 * 1024
STORED_NAME_PREFIX = "file"
MAX_NAME_ATTEMPTS = 5


@dataclass(frozen=True)
class StoredBlob:
    original_name: str
    stored_name: str
    stored_path: str
    byte_size: int


class BlobStage:
    """Validates uploads and keeps them under ``upload_dir`` with generated names."""

    def __init__(
        self,
        upload_dir: str,
        max_bytes: int = DEFAULT_MAX_BYTES,
        allowed_extensions: frozenset[str] = DEFAULT_ALLOWED_EXTENSIONS,
    ) -> None:
        self.upload_dir = upload_dir
        self.max_bytes = max_bytes
        self.allowed_extensions = frozenset(ext.lower() for ext in allowed_extensions)

    @staticmethod
    def extension_of(original_name: str) -> str:
        return os.path.splitext(original_name or "")[1].lower()

    def check(self, original_name: str, size: int) -> None:
        """Raise if the file would be refused. Extension is checked before size."""
        if self.extension_of(original_name) not in self.allowed_extensions:
            raise UnsupportedTypeError()
        if size > self.max_bytes:
            raise TooLargeError()

    def _generate_name(self, extension: str) -> str:
        timestamp_ms = int(time.time() * 1000)
        suffix = secrets.randbelow(1_000_000_000)
        return f"{STORED_NAME_PREFIX}-{timestamp_ms}-{suffix}{extension}"

    def accept(self, data: bytes, original_name: str, size: int) -> StoredBlob:
        self.check(original_name, size)
        os.makedirs(self.upload_dir, exist_ok=True)

        extension = self.extension_of(original_name)
        for _ in range(MAX_NAME_ATTEMPTS):
            stored_name = self._generate_name(extension)
            stored_path = os.path.join(self.upload_dir, stored_name)
            try:
                # "x" refuses to overwrite a file another request just created.
                with open(stored_path, "xb") as handle:
                    handle.write(data)
            except FileExistsError:
                continue
            logger.info("Stored upload %s (%d bytes)", stored_name, len(data))
            return StoredBlob(
                original_name=original_name,
                stored_name=stored_name,
                stored_path=stored_path,
                byte_size=len(data),
            )

        raise FileExistsError(f"Could not allocate a unique name in {self.upload_dir}")

    def exists(self, stored_path: str) -> bool:
        return bool(stored_path) and os.path.isfile(stored_path)

    def stream(self, stored_path: str, chunk_size: int = STREAM_CHUNK_SIZE) -> Iterator[bytes]:
        if not self.exists(stored_path):
            raise NotFoundError("File not found on server")
        return self._iter_chunks(stored_path, chunk_size)

    @staticmethod
    def _iter_chunks(stored_path: str, chunk_size: int) -> Iterator[bytes]:
        # Opened on first iteration, so an unconsumed stream holds no handle.
        with open(stored_path, "rb") as handle:
            while True:
                chunk = handle.read(chunk_size)
                if not chunk:
                    break
                yield chunk

    def remove(self, stored_path: str) -> None:
        try:
            os.remove(stored_path)
        except OSError as exc:
            logger.warning("File cleanup failed for %s: %s", stored_path, exc)
