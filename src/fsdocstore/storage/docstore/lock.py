from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
import logging
import os
from pathlib import Path
from typing import AsyncIterator

from fsdocstore.errors import AlreadyLocked, FilesystemFailure

from .codec import LOCK_SUFFIX

logger = logging.getLogger(__name__)


class MarkerLock:
    """
    Per-document mutex backed by an atomic "mkdir, fail if it exists".

    - Marker is `<id>.lock` next to `<id>.json`, visible to every process
      sharing the directory.
    - Fail-fast: a contender never waits, it gets AlreadyLocked.
    - A crash inside the critical section leaks the marker; nothing here heals it.
    """

    def __init__(self, directory: str | Path, *, collection: str | None = None):
        self.directory = Path(directory)
        self.collection = collection

    def marker_path(self, doc_id: str) -> Path:
        return self.directory / f"{doc_id}{LOCK_SUFFIX}"

    async def acquire(self, doc_id: str) -> None:
        path = self.marker_path(doc_id)
        try:
            await asyncio.to_thread(os.mkdir, path)
        except FileExistsError as exc:
            raise AlreadyLocked(
                f"document {doc_id!r} is locked by another operation",
                collection=self.collection,
                doc_id=doc_id,
            ) from exc
        except OSError as exc:
            raise FilesystemFailure.from_os_error(
                exc, collection=self.collection, doc_id=doc_id
            ) from exc
        logger.debug("lock acquired: %s", path)

    async def release(self, doc_id: str) -> None:
        path = self.marker_path(doc_id)
        try:
            await asyncio.to_thread(os.rmdir, path)
        except FileNotFoundError:
            return
        except OSError:
            # must not mask the outcome of the operation that held the lock
            logger.warning("failed to release lock marker %s", path, exc_info=True)
            return
        logger.debug("lock released: %s", path)

    async def is_locked(self, doc_id: str) -> bool:
        return await asyncio.to_thread(self.marker_path(doc_id).is_dir)

    @asynccontextmanager
    async def held(self, doc_id: str) -> AsyncIterator[None]:
        await self.acquire(doc_id)
        try:
            yield
        finally:
            await self.release(doc_id)
