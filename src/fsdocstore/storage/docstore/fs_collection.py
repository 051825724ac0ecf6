from __future__ import annotations

import asyncio
import itertools
import logging
import os
from pathlib import Path
from typing import Any
import uuid

from fsdocstore.contracts.storage.collection import CollectionStats, CreateResult
from fsdocstore.errors import AlreadyExists, FilesystemFailure, InvalidArgument, NotFound
from fsdocstore.query.evaluator import FilterQuery, apply_query

from .codec import (
    DOC_SUFFIX,
    ID_FIELD,
    Document,
    DocumentMeta,
    decode_document,
    doc_id_from_filename,
    encode_document,
    validate_doc_id,
)
from .eviction import EvictionPolicy, collection_stats
from .lock import MarkerLock
from .task_queue import SerialTaskQueue

logger = logging.getLogger(__name__)


def _write_new(path: Path, text: str) -> None:
    # "x" is the atomic create-if-absent; a half-written file is removed
    with open(path, "x", encoding="utf-8") as f:
        try:
            f.write(text)
        except BaseException:
            f.close()
            os.unlink(path)
            raise


def _overwrite(path: Path, text: str) -> None:
    # "r+" fails when the file is gone; writing in place keeps the inode (and birth time)
    with open(path, "r+", encoding="utf-8") as f:
        f.write(text)
        f.truncate()


def _read(path: Path, doc_id: str) -> tuple[DocumentMeta, str]:
    st = os.stat(path)
    with open(path, encoding="utf-8") as f:
        raw = f.read()
    return DocumentMeta.from_stat(doc_id, st), raw


def _scan(directory: Path, *, with_content: bool) -> list[tuple[DocumentMeta, str | None]]:
    out: list[tuple[DocumentMeta, str | None]] = []
    with os.scandir(directory) as it:
        for entry in it:
            doc_id = doc_id_from_filename(entry.name)
            if doc_id is None or not entry.is_file(follow_symlinks=False):
                continue
            try:
                if with_content:
                    meta, raw = _read(Path(entry.path), doc_id)
                else:
                    meta, raw = DocumentMeta.from_stat(doc_id, entry.stat()), None
            except FileNotFoundError:
                # deleted between listing and reading
                continue
            out.append((meta, raw))
    return out


class FSCollection:
    """
    File-per-document collection.

    Layout:
      <directory>/<id>.json   raw JSON field map (no envelope)
      <directory>/<id>.lock/  transient marker while a mutation is in flight

    - create/update/delete take the marker lock, fail fast on contention and
      always release before returning.
    - read/all are lock-free.
    - With max_documents set, create() runs through the collection queue and
      evicts the oldest documents first (see EvictionPolicy).
    """

    def __init__(
        self,
        name: str,
        directory: str | Path,
        *,
        max_documents: int | None = None,
        queue: SerialTaskQueue | None = None,
    ):
        self.name = name
        self.directory = Path(directory)
        self.queue = queue or SerialTaskQueue(name)
        self.lock = MarkerLock(self.directory, collection=name)
        self.policy = EvictionPolicy(max_documents) if max_documents is not None else None
        # ctime is coarse and moves on update; inserts made through this handle keep their order here
        self._insert_seq = itertools.count()
        self._insert_order: dict[str, int] = {}

    def __repr__(self) -> str:
        return f"FSCollection(name={self.name!r}, directory={str(self.directory)!r}, max_documents={self.max_documents!r})"

    @property
    def max_documents(self) -> int | None:
        return self.policy.max_documents if self.policy is not None else None

    def creation_key(self, meta: DocumentMeta) -> tuple[int, int, str]:
        """
        Sort key, oldest first.

        Documents inserted through this handle rank by insert order, after every
        document that was already there. The others rank by created_ns, which is
        st_ctime on Linux and moves on every update.
        """
        seq = self._insert_order.get(meta.id)
        if seq is not None:
            return (1, seq, meta.id)
        return (0, meta.created_ns, meta.id)

    def forget_missing(self, present: set[str]) -> None:
        """Drop insert-order entries for documents removed behind this handle's back."""
        for doc_id in [d for d in self._insert_order if d not in present]:
            del self._insert_order[doc_id]

    def doc_path(self, doc_id: str) -> Path:
        return self.directory / f"{doc_id}{DOC_SUFFIX}"

    def _fs_error(self, exc: OSError, doc_id: str | None = None) -> FilesystemFailure:
        return FilesystemFailure.from_os_error(exc, collection=self.name, doc_id=doc_id)

    def _not_found(self, doc_id: str) -> NotFound:
        return NotFound(
            f"document {doc_id!r} not found in collection {self.name!r}",
            collection=self.name,
            doc_id=doc_id,
        )

    def resolve_id(self, content: dict[str, Any]) -> str:
        """Explicit "_id" from the content, else a fresh uuid4."""
        if not isinstance(content, dict):
            raise InvalidArgument(
                f"document content must be a dict, got {type(content).__name__}", collection=self.name
            )
        if ID_FIELD in content and content[ID_FIELD] is not None:
            return validate_doc_id(content[ID_FIELD], collection=self.name)
        return str(uuid.uuid4())

    # ---- seams for the blocking calls ----

    async def _write_new(self, path: Path, text: str) -> None:
        await asyncio.to_thread(_write_new, path, text)

    async def _overwrite(self, path: Path, text: str) -> None:
        await asyncio.to_thread(_overwrite, path, text)

    # ---- CRUD ----

    async def create(self, content: dict[str, Any]) -> CreateResult:
        if self.policy is not None:
            return await self.policy.create(self, content)
        return await self.insert(content)

    async def insert(self, content: dict[str, Any]) -> CreateResult:
        """Unbounded create: lock, exclusive write, unlock."""
        doc_id = self.resolve_id(content)
        text = encode_document(content)
        path = self.doc_path(doc_id)

        async with self.lock.held(doc_id):
            try:
                await self._write_new(path, text)
            except FileExistsError as exc:
                raise AlreadyExists(
                    f"document {doc_id!r} already exists in collection {self.name!r}",
                    collection=self.name,
                    doc_id=doc_id,
                ) from exc
            except OSError as exc:
                raise self._fs_error(exc, doc_id) from exc
            self._insert_order[doc_id] = next(self._insert_seq)

        logger.debug("created %s/%s", self.name, doc_id)
        return CreateResult(id=doc_id, path=str(path))

    async def read(self, doc_id: str) -> Document:
        doc_id = validate_doc_id(doc_id, collection=self.name)
        try:
            meta, raw = await asyncio.to_thread(_read, self.doc_path(doc_id), doc_id)
        except FileNotFoundError as exc:
            raise self._not_found(doc_id) from exc
        except OSError as exc:
            raise self._fs_error(exc, doc_id) from exc
        return decode_document(raw, meta, collection=self.name)

    async def update(self, doc_id: str, content: dict[str, Any]) -> CreateResult:
        """Full replace of an existing document; identity is immutable."""
        if isinstance(content, dict) and ID_FIELD in content:
            raise InvalidArgument(
                f"cannot update {ID_FIELD!r}; document identity is immutable",
                collection=self.name,
                doc_id=doc_id if isinstance(doc_id, str) else None,
            )
        doc_id = validate_doc_id(doc_id, collection=self.name)
        text = encode_document(content)
        path = self.doc_path(doc_id)

        async with self.lock.held(doc_id):
            try:
                await self._overwrite(path, text)
            except FileNotFoundError as exc:
                raise self._not_found(doc_id) from exc
            except OSError as exc:
                raise self._fs_error(exc, doc_id) from exc

        logger.debug("updated %s/%s", self.name, doc_id)
        return CreateResult(id=doc_id, path=str(path))

    async def delete(self, doc_id: str) -> None:
        doc_id = validate_doc_id(doc_id, collection=self.name)
        path = self.doc_path(doc_id)

        async with self.lock.held(doc_id):
            try:
                await asyncio.to_thread(os.unlink, path)
            except FileNotFoundError as exc:
                raise self._not_found(doc_id) from exc
            except OSError as exc:
                raise self._fs_error(exc, doc_id) from exc
            self._insert_order.pop(doc_id, None)

        logger.debug("deleted %s/%s", self.name, doc_id)

    # ---- listing ----

    async def _scan(self, *, with_content: bool) -> list[tuple[DocumentMeta, str | None]]:
        try:
            return await asyncio.to_thread(_scan, self.directory, with_content=with_content)
        except FileNotFoundError as exc:
            raise NotFound(
                f"collection directory {str(self.directory)!r} does not exist",
                collection=self.name,
            ) from exc
        except OSError as exc:
            raise self._fs_error(exc) from exc

    async def scan_meta(self) -> list[DocumentMeta]:
        """Metadata of every document, without reading content."""
        return [meta for meta, _ in await self._scan(with_content=False)]

    async def all(self) -> list[Document]:
        rows = await self._scan(with_content=True)
        return [decode_document(raw or "", meta, collection=self.name) for meta, raw in rows]

    async def filter(
        self, query: FilterQuery | dict[str, Any] | None = None, **kwargs: Any
    ) -> list[Document]:
        q = FilterQuery.coerce(query, **kwargs)
        return apply_query(await self.all(), q)

    async def get_stats(self) -> CollectionStats:
        return await collection_stats(self)
