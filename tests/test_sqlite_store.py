import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from renotefy.sqlite_db import SQLiteDatabase
from renotefy.store import SERVER_TIMESTAMP, ServerClock, SQLiteDocumentStore


def run_db(tmp_path, scenario):
    async def main():
        db = SQLiteDatabase(str(tmp_path / "store.db"))
        await db.connect()
        try:
            return await scenario(db)
        finally:
            await db.close()

    return asyncio.run(main())


def test_clock_never_repeats_or_goes_backwards(monkeypatch):
    clock = ServerClock()
    frozen = datetime(2026, 1, 1, tzinfo=timezone.utc)
    clock._last = frozen + timedelta(seconds=5)

    class FrozenDatetime(datetime):
        @classmethod
        def now(cls, tz=None):
            return frozen

    monkeypatch.setattr("renotefy.store.base.datetime", FrozenDatetime)

    first = clock.now()
    second = clock.now()

    assert first > frozen + timedelta(seconds=5)
    assert second > first


def test_resolve_uses_one_stamp_per_write():
    resolved = ServerClock().resolve({"createdAt": SERVER_TIMESTAMP, "updatedAt": SERVER_TIMESTAMP, "title": "x"})

    assert resolved["createdAt"] == resolved["updatedAt"]
    assert resolved["title"] == "x"


def test_create_get_update_delete_round(tmp_path):
    async def scenario(db):
        store = SQLiteDocumentStore(db)
        doc_id = await store.create("notes", {"title": "a", "updatedAt": SERVER_TIMESTAMP})
        created = await store.get("notes", doc_id)
        written = await store.update("notes", doc_id, {"title": "b", "updatedAt": SERVER_TIMESTAMP})
        updated = await store.get("notes", doc_id)
        await store.delete("notes", doc_id)
        return created, written, updated, await store.get("notes", doc_id)

    created, written, updated, gone = run_db(tmp_path, scenario)

    assert created["title"] == "a"
    assert isinstance(created["updatedAt"], datetime)
    assert written["title"] == "b"
    assert written["updatedAt"] > created["updatedAt"]
    assert updated["updatedAt"] == written["updatedAt"]
    assert gone is None


def test_update_of_missing_document_raises(tmp_path):
    async def scenario(db):
        with pytest.raises(LookupError):
            await SQLiteDocumentStore(db).update("notes", "missing", {"title": "x"})

    run_db(tmp_path, scenario)


def test_query_filters_and_orders(tmp_path):
    async def scenario(db):
        store = SQLiteDocumentStore(db)
        a = await store.create("notes", {"userId": "u1", "isPublic": True,
                                         "sharedWith": ["bob@example.com"], "updatedAt": SERVER_TIMESTAMP})
        b = await store.create("notes", {"userId": "u1", "isPublic": False,
                                         "sharedWith": [], "updatedAt": SERVER_TIMESTAMP})
        c = await store.create("notes", {"userId": "u2", "isPublic": True,
                                         "sharedWith": ["carol@example.com", "bob@example.com"],
                                         "updatedAt": SERVER_TIMESTAMP})

        def ids(docs):
            return [d["_id"] for d in docs]

        return {
            "owned": ids(await store.query("notes", equals={"userId": "u1"}, order_by_desc="updatedAt")),
            "public": ids(await store.query("notes", equals={"isPublic": True}, order_by_desc="updatedAt")),
            "shared": ids(await store.query("notes", array_contains={"sharedWith": "bob@example.com"},
                                            order_by_desc="updatedAt")),
            "both": ids(await store.query("notes", equals={"userId": "u2"},
                                          array_contains={"sharedWith": "bob@example.com"})),
        }, (a, b, c)

    result, (a, b, c) = run_db(tmp_path, scenario)

    assert result["owned"] == [b, a]
    assert result["public"] == [c, a]
    assert result["shared"] == [c, a]
    assert result["both"] == [c]


def test_query_rejects_conflicting_filters(tmp_path):
    async def scenario(db):
        with pytest.raises(ValueError):
            await SQLiteDocumentStore(db).query(
                "notes", equals={"sharedWith": "a@x.com"}, array_contains={"sharedWith": "b@x.com"}
            )

    run_db(tmp_path, scenario)


def test_collection_filters(tmp_path):
    async def scenario(db):
        await db.users.insert_one({"_id": "1", "email": "a@x.com", "name": "A"})
        await db.users.insert_one({"_id": "2", "email": "b@x.com", "name": None})
        await db.users.update_one({"_id": "2"}, {"$set": {"name": "B"}})
        return (
            await db.users.count_documents({"email": {"$ne": "a@x.com"}}),
            await db.users.find({}, sort=("name", -1)),
            await db.users.delete_one({"_id": "missing"}),
            await db.ping(),
        )

    count, ordered, deleted, ping = run_db(tmp_path, scenario)

    assert count == 1
    assert [d["name"] for d in ordered] == ["B", "A"]
    assert deleted == 0
    assert ping is True


def test_unknown_operators_and_field_names_are_rejected(tmp_path):
    async def scenario(db):
        with pytest.raises(ValueError):
            await db.notes.find({"title": {"$regex": "x"}})
        with pytest.raises(ValueError):
            await db.notes.find({"title') OR 1=1 --": "x"})
        with pytest.raises(ValueError):
            await db.notes.update_one({"_id": "1"}, {"$inc": {"views": 1}})

    run_db(tmp_path, scenario)


def test_concurrent_updates_to_different_fields_both_land(tmp_path):
    async def scenario(db):
        store = SQLiteDocumentStore(db)
        doc_id = await store.create("notes", {"title": "Original", "isPublic": False, "tags": ["a"]})
        await asyncio.gather(
            store.update("notes", doc_id, {"title": "Renamed"}),
            store.update("notes", doc_id, {"isPublic": True}),
            store.update("notes", doc_id, {"tags": ["a", "b"], "emoji": None}),
        )
        return await store.get("notes", doc_id), await db.notes.find({"isPublic": True})

    stored, public = run_db(tmp_path, scenario)

    assert stored["title"] == "Renamed"
    assert stored["isPublic"] is True
    assert stored["tags"] == ["a", "b"]
    assert "emoji" in stored and stored["emoji"] is None
    assert [d["_id"] for d in public] == [stored["_id"]]


def test_update_and_delete_report_matches(tmp_path):
    async def scenario(db):
        await db.notes.insert_one({"_id": "1", "title": "a"})
        return (
            (await db.notes.update_one({"_id": "1"}, {"$set": {"title": "b"}})).matched_count,
            (await db.notes.update_one({"_id": "2"}, {"$set": {"title": "b"}})).matched_count,
            (await db.notes.update_one({"title": "b"}, {"$set": {}})).matched_count,
            await db.notes.delete_one({"title": "b"}),
            await db.notes.count_documents(),
        )

    updated, missed, empty, deleted, remaining = run_db(tmp_path, scenario)

    assert (updated, missed, empty, deleted, remaining) == (1, 0, 1, 1, 0)
