from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import json
import os
from typing import Any

from fsdocstore.errors import InvalidArgument, InvalidData

ID_FIELD = "_id"
DOC_SUFFIX = ".json"
LOCK_SUFFIX = ".lock"


def _ns_to_dt(ns: int) -> datetime:
    return datetime.fromtimestamp(ns / 1_000_000_000, tz=timezone.utc)


@dataclass(frozen=True)
class DocumentMeta:
    """
    Filesystem metadata for one document. Never part of the stored content.

    created_ns is the platform birth time where the OS reports one, else the
    inode change time (Linux has no birth time in os.stat).
    """

    id: str
    created_ns: int
    updated_ns: int
    size: int = 0

    @property
    def created_at(self) -> datetime:
        return _ns_to_dt(self.created_ns)

    @property
    def updated_at(self) -> datetime:
        return _ns_to_dt(self.updated_ns)

    @classmethod
    def from_stat(cls, doc_id: str, st: os.stat_result) -> DocumentMeta:
        created_ns = getattr(st, "st_birthtime_ns", None)
        if created_ns is None:
            birth = getattr(st, "st_birthtime", None)
            created_ns = int(birth * 1_000_000_000) if birth is not None else st.st_ctime_ns
        return cls(
            id=doc_id,
            created_ns=created_ns,
            updated_ns=st.st_mtime_ns,
            size=st.st_size,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "_id": self.id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "size": self.size,
        }


class Document(dict):
    """
    A stored field map plus its identity under "_id".

    Compares equal to a plain dict with the same fields; filesystem metadata
    rides along on `.meta`.
    """

    __slots__ = ("meta",)

    def __init__(self, fields: dict[str, Any], meta: DocumentMeta):
        super().__init__(fields)
        self[ID_FIELD] = meta.id
        self.meta = meta

    @property
    def id(self) -> str:
        return self.meta.id


def encode_document(content: dict[str, Any]) -> str:
    """Serialize a field map for disk; the identity field is never persisted."""
    if not isinstance(content, dict):
        raise InvalidArgument(f"document content must be a dict, got {type(content).__name__}")
    body = {k: v for k, v in content.items() if k != ID_FIELD}
    try:
        return json.dumps(body, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"document content is not JSON-serializable: {exc}") from exc


def decode_document(raw: str, meta: DocumentMeta, *, collection: str | None = None) -> Document:
    try:
        fields = json.loads(raw)
    except ValueError as exc:
        raise InvalidData(
            f"document {meta.id!r} is not valid JSON: {exc}",
            collection=collection,
            doc_id=meta.id,
        ) from exc
    if not isinstance(fields, dict):
        raise InvalidData(
            f"document {meta.id!r} must hold a JSON object, got {type(fields).__name__}",
            collection=collection,
            doc_id=meta.id,
        )
    return Document(fields, meta)


def doc_id_from_filename(name: str) -> str | None:
    if not name.endswith(DOC_SUFFIX) or len(name) == len(DOC_SUFFIX):
        return None
    return name[: -len(DOC_SUFFIX)]


def validate_doc_id(doc_id: Any, *, collection: str | None = None) -> str:
    if not isinstance(doc_id, str) or not doc_id:
        raise InvalidArgument(
            f"document id must be a non-empty string, got {doc_id!r}", collection=collection
        )
    if doc_id in (".", "..") or "\x00" in doc_id or "/" in doc_id or (os.sep in doc_id) or (
        os.altsep is not None and os.altsep in doc_id
    ):
        raise InvalidArgument(f"invalid document id {doc_id!r}", collection=collection)
    return doc_id
