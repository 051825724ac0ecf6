from __future__ import annotations

"""
Error taxonomy for the document store.

Every failure raised by the store derives from DocStoreError so callers can
catch the family, while the concrete kind stays discriminable:

- AlreadyLocked      -> another mutation holds the document; safe to retry
- NotFound           -> target document (or collection dir) does not exist
- AlreadyExists      -> create collided with an existing document
- InvalidArgument    -> caller error (bad name/id, identity on update, bad query)
- InvalidData        -> stored content is not a JSON object
- FilesystemFailure  -> permission/space/path problem surfaced from the OS
"""


class DocStoreError(Exception):
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        collection: str | None = None,
        doc_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.collection = collection
        self.doc_id = doc_id


class InvalidArgument(DocStoreError, ValueError):
    pass


class NotFound(DocStoreError, LookupError):
    pass


class AlreadyExists(DocStoreError):
    pass


class AlreadyLocked(DocStoreError):
    retryable = True


class InvalidData(DocStoreError, ValueError):
    pass


class FilesystemFailure(DocStoreError):
    """Platform-level I/O failure; the original OSError is chained as __cause__."""

    def __init__(
        self,
        message: str,
        *,
        collection: str | None = None,
        doc_id: str | None = None,
        errno: int | None = None,
        filename: str | None = None,
    ) -> None:
        super().__init__(message, collection=collection, doc_id=doc_id)
        self.errno = errno
        self.filename = filename

    @classmethod
    def from_os_error(
        cls,
        exc: OSError,
        *,
        collection: str | None = None,
        doc_id: str | None = None,
    ) -> FilesystemFailure:
        filename = exc.filename
        return cls(
            f"{exc.strerror or exc.__class__.__name__}: {filename}",
            collection=collection,
            doc_id=doc_id,
            errno=exc.errno,
            filename=str(filename) if filename is not None else None,
        )
