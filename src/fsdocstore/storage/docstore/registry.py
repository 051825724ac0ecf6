from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from fsdocstore.errors import FilesystemFailure, InvalidArgument, NotFound

from .fs_collection import FSCollection

if TYPE_CHECKING:
    from fsdocstore.config.settings import StoreSettings

logger = logging.getLogger(__name__)


def _validate_name(name: object) -> str:
    if not isinstance(name, str) or not name:
        raise InvalidArgument("collection name is required")
    if name in (".", "..") or "\x00" in name or "/" in name or os.sep in name or (
        os.altsep is not None and os.altsep in name
    ):
        raise InvalidArgument(f"invalid collection name {name!r}", collection=name)
    return name


def _ensure_dir(path: Path) -> bool:
    if path.is_dir():
        return False
    path.mkdir(parents=True, exist_ok=True)
    return True


class CollectionRegistry:
    """
    Hands out one FSCollection per (root, name).

    Construct it once at the entry point and pass it around; there is no
    module-level instance. `reset()` drops every handle.

    - Handle creation is synchronous, so concurrent resolve() calls for the
      same key get the same object.
    - The directory check/create runs on the collection's own queue, so
      concurrent first resolutions create it once.
    - A collection's size policy is fixed by the first resolution.
    """

    def __init__(self, root: str | Path | None = None, *, settings: StoreSettings | None = None):
        self._settings = settings
        if root is None:
            root = settings.root if settings is not None else "."
        self.root = Path(root).resolve()
        self._collections: dict[tuple[Path, str], FSCollection] = {}

    def _configured_max(self, name: str) -> int | None:
        if self._settings is None:
            return None
        per = self._settings.collections.get(name)
        if per is not None and per.max_documents is not None:
            return per.max_documents
        return self._settings.default_max_documents

    def _handle(self, key: tuple[Path, str], max_documents: int | None) -> FSCollection:
        root, name = key
        coll = self._collections.get(key)
        if coll is None:
            if max_documents is None:
                max_documents = self._configured_max(name)
            coll = FSCollection(name, root / name, max_documents=max_documents)
            self._collections[key] = coll
        elif max_documents is not None and max_documents != coll.max_documents:
            raise InvalidArgument(
                f"collection {name!r} already opened with max_documents={coll.max_documents!r}",
                collection=name,
            )
        return coll

    async def resolve(
        self,
        name: str,
        *,
        root: str | Path | None = None,
        max_documents: int | None = None,
        create: bool = True,
    ) -> FSCollection:
        """
        Return the handle for `name` under `root` (default: the registry root).

        With create=False a missing directory raises NotFound instead of being made.
        """
        name = _validate_name(name)
        base = Path(root).resolve() if root is not None else self.root
        key = (base, name)
        coll = self._handle(key, max_documents)

        async def _prepare() -> None:
            if not create:
                if not await asyncio.to_thread(coll.directory.is_dir):
                    raise NotFound(
                        f"collection {name!r} does not exist under {str(base)!r}", collection=name
                    )
                return
            try:
                created = await asyncio.to_thread(_ensure_dir, coll.directory)
            except OSError as exc:
                raise FilesystemFailure.from_os_error(exc, collection=name) from exc
            if created:
                logger.info("created collection %s at %s", name, coll.directory)

        await coll.queue.enqueue(_prepare)
        return coll

    def names(self, root: str | Path | None = None) -> list[str]:
        base = Path(root).resolve() if root is not None else self.root
        return sorted(name for r, name in self._collections if r == base)

    def reset(self) -> None:
        self._collections.clear()
