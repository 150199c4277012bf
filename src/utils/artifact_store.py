"""Filesystem artifact store.

Uploaded content files are stored as opaque blobs under ARTIFACTS_DIR, one
file per artifact reference. The catalog keeps the reference and the file's
declared name, type and size; this module only moves bytes.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config import ARTIFACTS_DIR
from core.exceptions import ArtifactNotFoundError

logger = logging.getLogger(__name__)

_FILE_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


@dataclass(frozen=True)
class StoredArtifact:
    file_id: str
    file_name: str
    content_type: str
    size: int


class ArtifactStore:
    """Stores and locates uploaded files."""

    def __init__(self, root: Path = ARTIFACTS_DIR):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def save(
        self,
        data: bytes,
        file_name: Optional[str],
        content_type: Optional[str],
    ) -> StoredArtifact:
        """Write a new blob and return its reference.

        Args:
            data: File contents.
            file_name: Original file name, kept for the download header.
            content_type: Declared MIME type.
        """
        file_id = uuid.uuid4().hex
        self._path(file_id).write_bytes(data)
        artifact = StoredArtifact(
            file_id=file_id,
            file_name=file_name or "content",
            content_type=content_type or "application/octet-stream",
            size=len(data),
        )
        logger.info("Stored file %s (%d bytes)", file_id, artifact.size)
        return artifact

    def path_for(self, file_id: str) -> Path:
        """Locate a stored blob.

        Raises:
            ArtifactNotFoundError: If the reference is malformed or the file
                is gone.
        """
        if not _FILE_ID_PATTERN.match(file_id or ""):
            raise ArtifactNotFoundError(file_id)
        path = self._path(file_id)
        if not path.is_file():
            raise ArtifactNotFoundError(file_id)
        return path

    def delete(self, file_id: str) -> None:
        """Remove a stored blob. Missing files are ignored."""
        if not _FILE_ID_PATTERN.match(file_id or ""):
            return
        try:
            self._path(file_id).unlink()
            logger.info("Deleted file %s", file_id)
        except FileNotFoundError:
            logger.debug("File %s already gone", file_id)

    def _path(self, file_id: str) -> Path:
        return self.root / file_id
