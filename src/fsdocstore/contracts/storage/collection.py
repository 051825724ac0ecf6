from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from fsdocstore.query.evaluator import FilterQuery
    from fsdocstore.storage.docstore.codec import Document, DocumentMeta

"""
Collection interface: one named group of JSON documents.

Implementations:
- FSCollection: one file per document under <root>/<name>/, lock markers as
  sibling directories, optional size cap.

Every method may raise a DocStoreError subclass (see fsdocstore.errors).
"""


@dataclass(frozen=True)
class CreateResult:
    id: str
    path: str
    # filled only by a size-capped create
    evicted: tuple[str, ...] = field(default_factory=tuple)
    skipped: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CollectionStats:
    count: int
    created_ascending: list[DocumentMeta]
    updated_ascending: list[DocumentMeta]

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "created_ascending": [m.to_dict() for m in self.created_ascending],
            "updated_ascending": [m.to_dict() for m in self.updated_ascending],
        }


class Collection(Protocol):
    name: str

    async def create(self, content: dict[str, Any]) -> CreateResult: ...
    async def read(self, doc_id: str) -> Document: ...
    async def update(self, doc_id: str, content: dict[str, Any]) -> CreateResult: ...
    async def delete(self, doc_id: str) -> None: ...
    async def all(self) -> list[Document]: ...
    async def filter(
        self, query: FilterQuery | dict[str, Any] | None = None, **kwargs: Any
    ) -> list[Document]: ...
    async def get_stats(self) -> CollectionStats: ...
