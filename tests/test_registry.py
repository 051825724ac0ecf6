import asyncio

import pytest

from fsdocstore.config.settings import CollectionSettings, StoreSettings
from fsdocstore.errors import FilesystemFailure, InvalidArgument, NotFound
from fsdocstore.storage.docstore.registry import CollectionRegistry


@pytest.mark.asyncio
async def test_resolve_creates_directory(registry, tmp_path):
    coll = await registry.resolve("items")

    assert (tmp_path / "items").is_dir()
    assert list((tmp_path / "items").iterdir()) == []
    assert coll.directory == tmp_path.resolve() / "items"


@pytest.mark.asyncio
async def test_concurrent_resolution_returns_same_handle(registry, tmp_path, monkeypatch):
    import fsdocstore.storage.docstore.registry as registry_mod

    calls = []
    real_ensure = registry_mod._ensure_dir

    def counting_ensure(path):
        created = real_ensure(path)
        calls.append(created)
        return created

    monkeypatch.setattr(registry_mod, "_ensure_dir", counting_ensure)

    handles = await asyncio.gather(*(registry.resolve("queue_test") for _ in range(3)))

    assert handles[0] is handles[1] is handles[2]
    # serialized on the collection queue: exactly one call actually created it
    assert calls.count(True) == 1
    assert registry.names() == ["queue_test"]


@pytest.mark.asyncio
async def test_different_collections_get_different_handles(registry):
    a, b, c = await asyncio.gather(
        registry.resolve("parallel1"), registry.resolve("parallel2"), registry.resolve("parallel3")
    )
    assert len({id(a), id(b), id(c)}) == 3
    assert a.queue is not b.queue


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", ["", None, ".", "..", "a/b"])
async def test_invalid_names_rejected(registry, bad):
    with pytest.raises(InvalidArgument):
        await registry.resolve(bad)


@pytest.mark.asyncio
async def test_policy_fixed_at_first_resolution(registry):
    coll = await registry.resolve("capped", max_documents=2)
    assert coll.max_documents == 2

    assert await registry.resolve("capped") is coll
    assert await registry.resolve("capped", max_documents=2) is coll
    with pytest.raises(InvalidArgument):
        await registry.resolve("capped", max_documents=5)


@pytest.mark.asyncio
async def test_settings_supply_limits(tmp_path):
    settings = StoreSettings(
        root=str(tmp_path),
        default_max_documents=10,
        collections={"sessions": CollectionSettings(max_documents=3)},
    )
    reg = CollectionRegistry(settings=settings)

    assert (await reg.resolve("sessions")).max_documents == 3
    assert (await reg.resolve("other")).max_documents == 10
    assert reg.root == tmp_path.resolve()


@pytest.mark.asyncio
async def test_explicit_root_overrides_default(registry, tmp_path):
    other = tmp_path / "elsewhere"
    coll = await registry.resolve("items", root=other)

    assert coll.directory == other.resolve() / "items"
    assert coll is not await registry.resolve("items")


@pytest.mark.asyncio
async def test_reset_drops_handles(registry):
    first = await registry.resolve("items")
    registry.reset()

    assert registry.names() == []
    assert await registry.resolve("items") is not first


@pytest.mark.asyncio
async def test_directory_creation_failure_propagates(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    reg = CollectionRegistry(blocker)

    with pytest.raises(FilesystemFailure) as ei:
        await reg.resolve("items")
    assert isinstance(ei.value.__cause__, OSError)


@pytest.mark.asyncio
async def test_collections_are_isolated(registry):
    items = await registry.resolve("items")
    elements = await registry.resolve("elements")

    res = await items.create({"fileName": "this is some test file", "content": "Hello, world!"})

    assert res.path.endswith(f"items/{res.id}.json")
    assert await elements.all() == []
    assert len(await items.all()) == 1


@pytest.mark.asyncio
async def test_resolve_without_create_requires_existing_directory(registry, tmp_path):
    with pytest.raises(NotFound):
        await registry.resolve("absent", create=False)
    assert not (tmp_path / "absent").exists()

    (tmp_path / "present").mkdir()
    coll = await registry.resolve("present", create=False)
    assert await coll.all() == []
