import os

from fsdocstore.config.settings import StoreSettings
from fsdocstore.storage.docstore.fs_doc import FSDocStore
from fsdocstore.storage.docstore.registry import CollectionRegistry


def build_registry(cfg: StoreSettings | None = None) -> CollectionRegistry:
    """
    Build the collection registry for a process. Call once at the entry point
    and pass the result to whatever needs collections.
    """
    if cfg is None:
        from fsdocstore.config.runtime import get_settings  # late import: reads env files

        cfg = get_settings()
    root = os.path.abspath(cfg.root)
    return CollectionRegistry(root, settings=cfg)


async def build_doc_store(registry: CollectionRegistry, name: str) -> FSDocStore:
    """DocStore view (put/get/delete/list) over one collection."""
    return FSDocStore(await registry.resolve(name))
