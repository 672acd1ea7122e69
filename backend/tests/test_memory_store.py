"""Tests for the in-memory document store."""

import re

import pytest

from accesshub.errors import UniqueConstraintError
from accesshub.persistence import DocumentStore, MemoryDocumentStore


class TestProtocol:
    def test_implements_document_store(self, store):
        assert isinstance(store, DocumentStore)


class TestWrites:
    def test_create_assigns_id_and_timestamps(self, store):
        role = store.create("Role", {"name": "admin"})
        assert re.fullmatch(r"[0-9a-f]{24}", role["id"])
        assert role["createdAt"] is not None
        assert role["updatedAt"] == role["createdAt"]
        assert role["deletedAt"] is None

    def test_create_ignores_relation_fields(self, store):
        user = store.create("User", {"userName": "ann", "email": "a@x.io", "person": {"id": "p"}})
        assert "person" not in store.find_unique("User", user["id"])

    def test_returned_records_are_copies(self, store):
        role = store.create("Role", {"name": "admin"})
        role["name"] = "changed"
        assert store.find_unique("Role", role["id"])["name"] == "admin"

    def test_update_merges_and_touches_updated_at(self, store):
        role = store.create("Role", {"name": "admin", "description": "x"})
        updated = store.update("Role", role["id"], {"description": "y"})
        assert updated["name"] == "admin"
        assert updated["description"] == "y"
        assert updated["updatedAt"] >= role["updatedAt"]

    def test_update_missing_returns_none(self, store):
        assert store.update("Role", "nope", {"name": "x"}) is None

    def test_unique_keys(self, store):
        store.create("Role", {"name": "admin"})
        with pytest.raises(UniqueConstraintError):
            store.create("Role", {"name": "admin"})

    def test_unique_on_update(self, store):
        store.create("Role", {"name": "admin"})
        other = store.create("Role", {"name": "viewer"})
        with pytest.raises(UniqueConstraintError):
            store.update("Role", other["id"], {"name": "admin"})

    def test_update_many(self, store):
        store.create("Role", {"name": "a", "roleType": "app"})
        store.create("Role", {"name": "b", "roleType": "app"})
        store.create("Role", {"name": "c", "roleType": "system"})
        assert store.update_many("Role", {"roleType": "app"}, {"description": "bulk"}) == 2
        assert store.count("Role", {"description": "bulk"}) == 2

    def test_delete_and_delete_many(self, store):
        a = store.create("UserRole", {"userId": "u1", "roleId": "r1"})
        store.create("UserRole", {"userId": "u1", "roleId": "r2"})
        store.create("UserRole", {"userId": "u2", "roleId": "r1"})

        assert store.delete("UserRole", a["id"]) is True
        assert store.delete("UserRole", a["id"]) is False
        assert store.delete_many("UserRole", {"userId": "u1"}) == 1
        assert store.count("UserRole") == 1


class TestReads:
    def test_find_many_with_paging(self, store):
        for name in ["c", "a", "b", "d"]:
            store.create("Role", {"name": name})
        found = store.find_many("Role", order_by={"name": "asc"}, skip=1, take=2)
        assert [r["name"] for r in found] == ["b", "c"]

    def test_find_first(self, store):
        store.create("Role", {"name": "a"})
        store.create("Role", {"name": "b"})
        assert store.find_first("Role", where={"name": "b"})["name"] == "b"
        assert store.find_first("Role", where={"name": "z"}) is None

    def test_find_unique_with_select(self, store):
        role = store.create("Role", {"name": "a", "description": "d"})
        assert store.find_unique("Role", role["id"], select={"name": True}) == {"name": "a"}
        assert store.find_unique("Role", "missing") is None


class TestTransactions:
    def test_rollback_on_error(self, store):
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.create("Role", {"name": "a"})
                store.create("Role", {"name": "b"})
                raise RuntimeError("boom")
        assert store.count("Role") == 0

    def test_nested_transactions_join_the_outer_one(self, store):
        store.create("Role", {"name": "kept"})
        with pytest.raises(UniqueConstraintError):
            with store.transaction():
                store.create("Role", {"name": "a"})
                with store.transaction():
                    store.create("Role", {"name": "b"})
                store.create("Role", {"name": "kept"})
        assert [r["name"] for r in store.find_many("Role")] == ["kept"]

    def test_commit(self, store):
        with store.transaction():
            store.create("Role", {"name": "a"})
        assert store.count("Role") == 1

    def test_clear(self, metadata):
        store = MemoryDocumentStore(metadata)
        store.create("Role", {"name": "a"})
        store.clear()
        assert store.count("Role") == 0
