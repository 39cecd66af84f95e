from __future__ import annotations

"""Attachment storage collaborator.

Expenses and card summaries only keep a locator (URL) plus filename and MIME
type. The store turns an upload stream into such a locator and answers
whether a locator still resolves, so a write never persists a reference to
a file that is not there.
"""
import logging
import secrets
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Optional

logger = logging.getLogger("app.blob_store")


class BlobStoreError(Exception):
    pass


@dataclass(frozen=True)
class StoredBlob:
    key: str
    url: str
    filename: str
    content_type: str


class BlobStore(ABC):
    @abstractmethod
    def put(
        self, owner_user_id: int, filename: str, content_type: str, stream: BinaryIO
    ) -> StoredBlob:
        raise NotImplementedError

    @abstractmethod
    def exists(self, url: str) -> bool:
        raise NotImplementedError


class LocalBlobStore(BlobStore):
    """Files under ``root`` addressed as ``<public_base_url>/<owner>/<token>.<ext>``."""

    def __init__(self, root: Path, public_base_url: str = "/uploads"):
        self.root = root
        self.public_base_url = public_base_url.rstrip("/")

    def put(
        self, owner_user_id: int, filename: str, content_type: str, stream: BinaryIO
    ) -> StoredBlob:
        suffix = PurePosixPath(filename).suffix.lower()
        key = f"{owner_user_id}/{secrets.token_hex(8)}{suffix}"
        target = self.root / key
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as out:
                shutil.copyfileobj(stream, out)
        except OSError as e:
            target.unlink(missing_ok=True)
            raise BlobStoreError(f"failed to store {filename!r}") from e
        logger.info("stored blob %s (%s)", key, content_type)
        return StoredBlob(
            key=key,
            url=f"{self.public_base_url}/{key}",
            filename=filename,
            content_type=content_type,
        )

    def exists(self, url: str) -> bool:
        path = self._path_for(url)
        return path is not None and path.is_file()

    def _path_for(self, url: str) -> Optional[Path]:
        prefix = self.public_base_url + "/"
        if not url.startswith(prefix):
            return None
        key = url[len(prefix):]
        candidate = (self.root / key).resolve()
        root = self.root.resolve()
        if root not in candidate.parents:
            return None
        return candidate
