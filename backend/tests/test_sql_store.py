"""Tests for the SQLAlchemy document store (SQLite)."""

from datetime import datetime, timezone

import pytest
import sqlalchemy as sa

from accesshub.errors import UniqueConstraintError
from accesshub.persistence import DatabaseConfig, create_store
from accesshub.persistence.sql import SQLDocumentStore


@pytest.fixture
def sql_store(metadata):
    store = SQLDocumentStore.from_url(metadata, "sqlite://")
    store.connect()
    yield store
    store.close()


class TestRoundTrip:
    def test_create_and_read_back(self, sql_store):
        role = sql_store.create("Role", {"name": "admin", "roleType": "system"})
        loaded = sql_store.find_unique("Role", role["id"])
        assert loaded["name"] == "admin"
        assert loaded["roleType"] == "system"
        assert loaded["deletedAt"] is None

    def test_datetimes_are_restored(self, sql_store):
        role = sql_store.create("Role", {"name": "admin"})
        loaded = sql_store.find_unique("Role", role["id"])
        assert isinstance(loaded["createdAt"], datetime)
        assert loaded["createdAt"].tzinfo is not None
        assert loaded["createdAt"] == role["createdAt"]

    def test_datetimes_inside_composites(self, sql_store):
        expiry = datetime(2030, 5, 1, tzinfo=timezone.utc)
        person = sql_store.create(
            "Person",
            {"firstName": "Ann", "lastName": "Lee",
             "identification": {"type": "passport", "number": "X1", "expiryDate": expiry}},
        )
        loaded = sql_store.find_unique("Person", person["id"])
        assert loaded["identification"]["expiryDate"] == expiry

    def test_update_and_delete(self, sql_store):
        role = sql_store.create("Role", {"name": "admin"})
        sql_store.update("Role", role["id"], {"description": "all access"})
        assert sql_store.find_unique("Role", role["id"])["description"] == "all access"
        assert sql_store.delete("Role", role["id"]) is True
        assert sql_store.find_unique("Role", role["id"]) is None


class TestQueries:
    def test_relation_filter_and_selection(self, sql_store):
        ann = sql_store.create("Person", {"firstName": "Ann", "lastName": "Lee"})
        bob = sql_store.create("Person", {"firstName": "Bob", "lastName": "Stone"})
        sql_store.create("User", {"personId": ann["id"], "userName": "ann", "email": "a@x.io"})
        sql_store.create("User", {"personId": bob["id"], "userName": "bob", "email": "b@x.io"})

        found = sql_store.find_many(
            "User",
            where={"person": {"is": {"lastName": "Stone"}}},
            select={"userName": True, "person": {"select": {"firstName": True}}},
        )
        assert found == [{"userName": "bob", "person": {"firstName": "Bob"}}]

    def test_count_with_datetime_condition(self, sql_store):
        sql_store.create("Role", {"name": "a"})
        sql_store.create("Role", {"name": "b", "deletedAt": datetime(2024, 1, 1, tzinfo=timezone.utc)})
        assert sql_store.count("Role", {"deletedAt": None}) == 1


# ── Database-side filtering ──────────────────────────────────────────────────

PEOPLE = [
    {"id": "p1", "firstName": "Ann", "lastName": "Lee", "age": 30,
     "contactInfo": {"email": "ann@x.io", "address": {"city": "Paris"}}},
    {"id": "p2", "firstName": "Bob", "lastName": "Stone", "age": 45,
     "contactInfo": {"email": "bob@y.io"}},
    {"id": "p3", "firstName": "Cy"},
    {"id": "p4", "firstName": "Ädam", "lastName": "lee", "age": 18},
]


@pytest.fixture
def statements(sql_store):
    """SQL statements sent to the database while the test runs."""
    recorded = []

    def record(conn, cursor, statement, parameters, context, executemany):
        recorded.append(statement)

    sa.event.listen(sql_store.engine, "before_cursor_execute", record)
    yield recorded
    sa.event.remove(sql_store.engine, "before_cursor_execute", record)


@pytest.fixture
def both_stores(sql_store, store):
    for person in PEOPLE:
        sql_store.create("Person", person)
        store.create("Person", person)
    return sql_store, store


class TestPushdown:
    def test_scalar_filter_runs_in_the_database(self, sql_store, statements):
        sql_store.create("Role", {"name": "a"})
        sql_store.create("Role", {"name": "b"})
        statements.clear()

        assert [r["name"] for r in sql_store.find_many("Role", where={"name": "b"})] == ["b"]
        assert len(statements) == 1
        assert "WHERE" in statements[0]

    def test_count_runs_in_the_database(self, sql_store, statements):
        sql_store.create("Role", {"name": "a"})
        sql_store.create("Role", {"name": "b", "deletedAt": datetime(2024, 1, 1, tzinfo=timezone.utc)})
        statements.clear()

        assert sql_store.count("Role", {"deletedAt": None}) == 1
        assert len(statements) == 1
        assert "count(*)" in statements[0].lower()
        assert "WHERE" in statements[0]

    def test_paging_runs_in_the_database(self, sql_store, statements):
        for name in ("c", "a", "b"):
            sql_store.create("Role", {"name": name})
        statements.clear()

        found = sql_store.find_many(
            "Role", where={"deletedAt": None}, order_by={"name": "asc"}, skip=1, take=1
        )
        assert [r["name"] for r in found] == ["b"]
        assert "ORDER BY" in statements[-1]
        assert "LIMIT" in statements[-1]
        assert "OFFSET" in statements[-1]

    def test_relation_filter_is_finished_after_a_database_prefilter(self, sql_store, statements):
        ann = sql_store.create("Person", {"firstName": "Ann", "lastName": "Lee"})
        sql_store.create("User", {"personId": ann["id"], "userName": "ann", "email": "a@x.io"})
        sql_store.create(
            "User",
            {"personId": ann["id"], "userName": "old", "email": "o@x.io",
             "deletedAt": datetime(2024, 1, 1, tzinfo=timezone.utc)},
        )
        statements.clear()

        found = sql_store.find_many(
            "User",
            where={"AND": [{"deletedAt": None}, {"person": {"is": {"firstName": "Ann"}}}]},
            order_by={"userName": "asc"},
            take=5,
        )
        assert [u["userName"] for u in found] == ["ann"]
        assert "WHERE" in statements[0]
        assert "LIMIT" not in statements[0]

    def test_relation_count_falls_back(self, sql_store):
        ann = sql_store.create("Person", {"firstName": "Ann"})
        sql_store.create("User", {"personId": ann["id"], "userName": "ann", "email": "a@x.io"})
        assert sql_store.count("User", {"person": {"is": {"firstName": "Ann"}}}) == 1
        assert sql_store.count("User", {"person": {"is": {"firstName": "Bob"}}}) == 0

    def test_bulk_writes_use_the_filter(self, sql_store):
        sql_store.create("Role", {"name": "a"})
        sql_store.create("Role", {"name": "b"})
        assert sql_store.update_many("Role", {"name": "a"}, {"description": "first"}) == 1
        assert sql_store.delete_many("Role", {"description": None}) == 1
        assert [r["name"] for r in sql_store.find_many("Role")] == ["a"]


@pytest.mark.parametrize(
    "where",
    [
        {"firstName": "Ann"},
        {"lastName": None},
        {"lastName": {"not": None}},
        {"NOT": {"lastName": "Lee"}},
        {"age": {"gte": 30}},
        {"age": {"not": {"lt": 30}}},
        {"firstName": {"in": ["Ann", "Cy"]}},
        {"firstName": {"notIn": ["Ann"]}},
        {"lastName": {"contains": "ee"}},
        {"lastName": {"contains": "LEE"}},
        {"lastName": {"startsWith": "St"}},
        {"lastName": {"endsWith": "ee"}},
        {"lastName": {"contains": "LEE", "mode": "insensitive"}},
        {"contactInfo": {"email": "bob@y.io"}},
        {"contactInfo": {"is": {"address": {"city": "Paris"}}}},
        {"contactInfo": None},
        {"contactInfo": {"isNot": None}},
        {"OR": [{"age": {"lt": 20}}, {"contactInfo": {"address": {"is": None}}}]},
        {"AND": [{"age": 30}, {"NOT": [{"firstName": "Ann"}]}]},
        {"OR": []},
    ],
)
def test_database_filter_matches_the_evaluator(both_stores, where):
    sql_store, memory_store = both_stores
    expected = sorted(p["id"] for p in memory_store.find_many("Person", where=where))
    assert sorted(p["id"] for p in sql_store.find_many("Person", where=where)) == expected
    assert sql_store.count("Person", where) == len(expected)


@pytest.mark.parametrize(
    "order_by",
    [{"lastName": "asc"}, {"lastName": "desc"}, {"age": "desc"}, {"firstName": "asc"}],
)
def test_database_order_matches_the_evaluator(both_stores, order_by):
    sql_store, memory_store = both_stores
    for skip, take in ((0, None), (1, 2)):
        expected = memory_store.find_many("Person", order_by=order_by, skip=skip, take=take)
        found = sql_store.find_many("Person", order_by=order_by, skip=skip, take=take)
        assert [p["id"] for p in found] == [p["id"] for p in expected]


class TestTransactions:
    def test_rollback(self, sql_store):
        with pytest.raises(RuntimeError):
            with sql_store.transaction():
                sql_store.create("Role", {"name": "a"})
                raise RuntimeError("boom")
        assert sql_store.count("Role") == 0

    def test_unique_violation_rolls_back_the_block(self, sql_store):
        sql_store.create("Role", {"name": "admin"})
        with pytest.raises(UniqueConstraintError):
            with sql_store.transaction():
                sql_store.create("Role", {"name": "viewer"})
                sql_store.create("Role", {"name": "admin"})
        assert [r["name"] for r in sql_store.find_many("Role")] == ["admin"]

    def test_reads_inside_a_transaction_see_its_writes(self, sql_store):
        with sql_store.transaction():
            sql_store.create("Role", {"name": "a"})
            assert sql_store.count("Role") == 1


class TestCreateStore:
    def test_memory(self, metadata):
        store = create_store(DatabaseConfig(url="memory://"), metadata)
        assert type(store).__name__ == "MemoryDocumentStore"

    def test_sqlite_file_creates_directory(self, metadata, tmp_path):
        db_path = tmp_path / "nested" / "accesshub.db"
        store = create_store(DatabaseConfig(url=f"sqlite:///{db_path}"), metadata)
        try:
            store.create("Role", {"name": "a"})
            assert db_path.exists()
        finally:
            store.close()

    def test_unsupported_scheme(self, metadata):
        with pytest.raises(ValueError):
            create_store(DatabaseConfig(url="mongodb://localhost"), metadata)


class TestDatabaseConfig:
    def test_postgres_driver_rewrite(self):
        config = DatabaseConfig(url="postgresql://u:p@localhost/db")
        assert config.is_postgresql
        assert config.sqlalchemy_url == "postgresql+psycopg://u:p@localhost/db"

    def test_sqlite_path(self):
        assert DatabaseConfig(url="sqlite:///data/app.db").sqlite_path == "data/app.db"
        assert DatabaseConfig(url="sqlite://").sqlite_path is None

    def test_from_env(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        assert DatabaseConfig.from_env().is_memory
        monkeypatch.setenv("DATABASE_URL", "sqlite:///x.db")
        assert DatabaseConfig.from_env().is_sqlite
