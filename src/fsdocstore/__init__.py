__version__ = "0.1.0"

# Errors
from .errors import (
    AlreadyExists,
    AlreadyLocked,
    DocStoreError,
    FilesystemFailure,
    InvalidArgument,
    InvalidData,
    NotFound,
)

# Storage
from .contracts.storage.collection import CollectionStats, CreateResult
from .storage.docstore.codec import Document, DocumentMeta
from .storage.docstore.fs_collection import FSCollection
from .storage.docstore.fs_doc import FSDocStore
from .storage.docstore.registry import CollectionRegistry
from .storage.factory import build_registry

# Query
from .query.evaluator import FilterQuery, SortSpec

__all__ = [
    # Errors
    "DocStoreError", "InvalidArgument", "NotFound", "AlreadyExists",
    "AlreadyLocked", "InvalidData", "FilesystemFailure",
    # Storage
    "CollectionRegistry", "FSCollection", "FSDocStore", "build_registry",
    "Document", "DocumentMeta", "CreateResult", "CollectionStats",
    # Query
    "FilterQuery", "SortSpec",
]
