from __future__ import annotations

from typing import Any

from fsdocstore.contracts.storage.doc_store import DocStore
from fsdocstore.errors import NotFound

from .codec import ID_FIELD
from .fs_collection import FSCollection


class FSDocStore(DocStore):
    """
    DocStore over a single FSCollection.

    - put() fully replaces an existing doc, else creates it (size policy applies).
    - get() returns None for a missing doc; the "_id" field is stripped.
    - delete() of a missing doc is a no-op.
    - AlreadyLocked and every other failure propagate unchanged.
    """

    def __init__(self, collection: FSCollection):
        self._coll = collection

    async def put(self, doc_id: str, doc: dict[str, Any]) -> None:
        body = {k: v for k, v in doc.items() if k != ID_FIELD}
        try:
            await self._coll.update(doc_id, body)
        except NotFound:
            await self._coll.create({**body, ID_FIELD: doc_id})

    async def get(self, doc_id: str) -> dict[str, Any] | None:
        try:
            doc = await self._coll.read(doc_id)
        except NotFound:
            return None
        return {k: v for k, v in doc.items() if k != ID_FIELD}

    async def delete(self, doc_id: str) -> None:
        try:
            await self._coll.delete(doc_id)
        except NotFound:
            pass

    async def list(self) -> list[str]:
        return sorted(m.id for m in await self._coll.scan_meta())
