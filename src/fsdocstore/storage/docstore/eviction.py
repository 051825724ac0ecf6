from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fsdocstore.contracts.storage.collection import CollectionStats, CreateResult
from fsdocstore.errors import DocStoreError, InvalidArgument
from fsdocstore.services.logger.std import LogContext

from .codec import DocumentMeta

if TYPE_CHECKING:
    from .fs_collection import FSCollection

logger = logging.getLogger(__name__)


def _by_updated(meta: DocumentMeta) -> tuple[int, str]:
    return (meta.updated_ns, meta.id)


async def collection_stats(collection: FSCollection) -> CollectionStats:
    metas = await collection.scan_meta()
    return CollectionStats(
        count=len(metas),
        created_ascending=sorted(metas, key=collection.creation_key),
        updated_ascending=sorted(metas, key=_by_updated),
    )


class EvictionPolicy:
    """
    Caps a collection at `max_documents`, dropping the oldest-created first.

    The whole "count, evict, insert" step runs as one task on the collection's
    SerialTaskQueue, so concurrent creates in this process cannot push the
    count above the cap. Victims are removed through the normal locked delete;
    a victim that cannot be removed is logged and reported on
    CreateResult.skipped, and the insert still happens.

    max_documents == 0 stores nothing: create() returns the id/path the
    document would have had.
    """

    def __init__(self, max_documents: int):
        if isinstance(max_documents, bool) or not isinstance(max_documents, int) or max_documents < 0:
            raise InvalidArgument(f"max_documents must be a non-negative int, got {max_documents!r}")
        self.max_documents = max_documents

    async def create(self, collection: FSCollection, content: dict[str, Any]) -> CreateResult:
        if self.max_documents == 0:
            doc_id = collection.resolve_id(content)
            return CreateResult(id=doc_id, path=str(collection.doc_path(doc_id)))
        return await collection.queue.enqueue(self._evict_and_insert, collection, content)

    async def _evict_and_insert(self, collection: FSCollection, content: dict[str, Any]) -> CreateResult:
        metas = await collection.scan_meta()
        collection.forget_missing({m.id for m in metas})
        overflow = len(metas) - self.max_documents + 1

        evicted: list[str] = []
        skipped: list[str] = []
        if overflow > 0:
            for victim in sorted(metas, key=collection.creation_key)[:overflow]:
                try:
                    await collection.delete(victim.id)
                except DocStoreError as exc:
                    logger.warning(
                        "eviction skipped %s/%s: %s",
                        collection.name,
                        victim.id,
                        exc,
                        extra=LogContext(collection=collection.name, doc_id=victim.id).as_extra(),
                    )
                    skipped.append(victim.id)
                else:
                    evicted.append(victim.id)
            if evicted:
                logger.info(
                    "evicted %d document(s) from %s (max_documents=%d)",
                    len(evicted),
                    collection.name,
                    self.max_documents,
                )

        result = await collection.insert(content)
        return CreateResult(
            id=result.id,
            path=result.path,
            evicted=tuple(evicted),
            skipped=tuple(skipped),
        )
