from typing import Any, Protocol

"""
Key/value style document store interface for JSON-like documents.

Implementations:
- FSDocStore: one FSCollection, put = create-or-replace, get = None when missing

Use it where callers only need put/get semantics and do not care about lock
contention details beyond AlreadyLocked.
"""


class DocStore(Protocol):
    async def put(self, doc_id: str, doc: dict[str, Any]) -> None: ...
    async def get(self, doc_id: str) -> dict[str, Any] | None: ...
    async def delete(self, doc_id: str) -> None: ...

    # Optional
    async def list(self) -> list[str]: ...
