import asyncio
import json
import os

import pytest

from domain.exceptions import InvalidInstanceData
from infrastructure.persistence import InMemoryInstanceStore, JsonFileInstanceStore


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryInstanceStore()
    return JsonFileInstanceStore(base_path=str(tmp_path / "instances"))


@pytest.mark.asyncio
async def test_create_assigns_id_and_defaults(store):
    instance = await store.create_instance({"name": "alpha", "token": "secret-1"})

    assert instance.instance_id
    assert instance.is_active is False
    assert instance.files == {"main.py": "# Main bot file\n"}
    assert instance.created_at == instance.updated_at
    assert await store.get_instance(instance.instance_id) == instance


@pytest.mark.asyncio
async def test_create_rejects_bad_payloads(store):
    with pytest.raises(InvalidInstanceData):
        await store.create_instance({"name": "alpha", "token": ""})
    with pytest.raises(InvalidInstanceData):
        await store.create_instance({"name": "alpha", "token": "t", "files": {}})
    with pytest.raises(InvalidInstanceData):
        await store.create_instance({"name": "alpha", "token": "t", "is_active": True})


@pytest.mark.asyncio
async def test_update_changes_fields_and_bumps_timestamp(store):
    instance = await store.create_instance({"name": "alpha", "token": "secret-1"})

    updated = await store.update_instance(instance.instance_id, {"is_active": True, "name": "beta"})

    assert updated.is_active is True
    assert updated.name == "beta"
    assert updated.updated_at >= instance.updated_at
    assert (await store.get_instance(instance.instance_id)).name == "beta"


@pytest.mark.asyncio
async def test_update_rejects_read_only_fields(store):
    instance = await store.create_instance({"name": "alpha", "token": "secret-1"})
    with pytest.raises(InvalidInstanceData):
        await store.update_instance(instance.instance_id, {"instance_id": "other"})


@pytest.mark.asyncio
async def test_missing_instances(store):
    assert await store.get_instance("missing") is None
    assert await store.update_instance("missing", {"name": "x"}) is None
    assert await store.delete_instance("missing") is False


@pytest.mark.asyncio
async def test_list_and_delete(store):
    first = await store.create_instance({"name": "alpha", "token": "t1"})
    second = await store.create_instance({"name": "beta", "token": "t2"})

    ids = {i.instance_id for i in await store.list_instances()}
    assert ids == {first.instance_id, second.instance_id}

    assert await store.delete_instance(first.instance_id) is True
    assert [i.instance_id for i in await store.list_instances()] == [second.instance_id]


@pytest.mark.asyncio
async def test_returned_records_are_copies():
    store = InMemoryInstanceStore()
    instance = await store.create_instance({"name": "alpha", "token": "t"})

    instance.files["evil.py"] = "x"

    assert "evil.py" not in (await store.get_instance(instance.instance_id)).files


@pytest.mark.asyncio
async def test_json_store_survives_reopen_and_skips_corrupt_files(tmp_path):
    base = tmp_path / "instances"
    store = JsonFileInstanceStore(base_path=str(base))
    instance = await store.create_instance({"name": "alpha", "token": "t", "description": "demo"})
    (base / "broken.json").write_text("{not json", encoding="utf-8")

    reopened = JsonFileInstanceStore(base_path=str(base))
    listed = await reopened.list_instances()

    assert [i.instance_id for i in listed] == [instance.instance_id]
    assert listed[0].description == "demo"
    assert listed[0].created_at == instance.created_at

    with open(os.path.join(base, f"{instance.instance_id}.json"), encoding="utf-8") as fh:
        assert json.load(fh)["name"] == "alpha"


@pytest.mark.asyncio
async def test_concurrent_writes_keep_every_record(store):
    created = await asyncio.gather(
        *(store.create_instance({"name": f"bot-{n}", "token": "t"}) for n in range(10))
    )
    target = created[0].instance_id

    await asyncio.gather(
        *(store.update_instance(target, {"description": f"rev-{n}"}) for n in range(10))
    )

    listed = await store.list_instances()
    assert {i.instance_id for i in listed} == {i.instance_id for i in created}
    assert (await store.get_instance(target)).description.startswith("rev-")


@pytest.mark.asyncio
async def test_json_store_leaves_no_temporary_files(tmp_path):
    base = tmp_path / "instances"
    store = JsonFileInstanceStore(base_path=str(base))
    instance = await store.create_instance({"name": "alpha", "token": "t"})
    await store.update_instance(instance.instance_id, {"name": "beta"})

    assert os.listdir(base) == [f"{instance.instance_id}.json"]
