"""Tests for the JSON document store."""

import json

import pytest

from symbio.errors import StoreCorrupted
from symbio.models.user import User
from symbio.storage import LOCK_FILENAME, STORE_FILENAME, Store


class TestStore:
    def test_creates_empty_document(self, data_dir):
        store = Store(data_dir)

        assert store.store_file.exists()
        data = json.loads(store.store_file.read_text())
        assert data["schema_version"] == 1
        assert data["users"] == [] and data["notifications"] == []

    def test_commit_persists(self, data_dir):
        with Store(data_dir).transaction() as tables:
            tables.users.append(User(id="u1", email="a@example.com"))

        assert Store(data_dir).read().user("u1").email == "a@example.com"

    def test_exception_rolls_back(self, data_dir):
        store = Store(data_dir)
        before = store.store_file.read_bytes()

        with pytest.raises(RuntimeError):
            with store.transaction() as tables:
                tables.users.append(User(id="u1", email="a@example.com"))
                raise RuntimeError("boom")

        assert store.store_file.read_bytes() == before
        assert store.read().user("u1") is None

    def test_nested_transactions_join_across_instances(self, data_dir):
        outer, inner = Store(data_dir), Store(data_dir)

        with pytest.raises(RuntimeError):
            with outer.transaction() as tables:
                with inner.transaction() as joined:
                    assert joined is tables
                    joined.users.append(User(id="u1", email="a@example.com"))
                assert inner.read() is tables
                raise RuntimeError("outer fails after inner finished")

        assert outer.read().user("u1") is None

    def test_no_stray_temp_files(self, data_dir):
        store = Store(data_dir)
        with store.transaction() as tables:
            tables.users.append(User(id="u1", email="a@example.com"))

        assert {p.name for p in data_dir.iterdir()} == {STORE_FILENAME, LOCK_FILENAME}

    def test_invalid_json_is_corrupted(self, data_dir):
        store = Store(data_dir)
        store.store_file.write_text("{not json")

        with pytest.raises(StoreCorrupted):
            store.read()

    def test_schema_mismatch_is_corrupted(self, data_dir):
        store = Store(data_dir)
        data = json.loads(store.store_file.read_text())
        data["projects"] = [{"id": "PRJ-1", "owner_id": "u1", "status": "paused"}]
        store.store_file.write_text(json.dumps(data))

        with pytest.raises(StoreCorrupted):
            store.read()


class TestTableLookups:
    def test_email_lookup_is_case_insensitive(self, accounts, client):
        tables = accounts.store.read()
        assert tables.user_by_email("  OWNER@Example.com").id == client.id
        assert tables.user_by_email("nobody@example.com") is None

    def test_team_membership(self, lifecycle, running_project, freelancers):
        tables = lifecycle.store.read()
        assert tables.is_team_member(running_project.id, freelancers[0].id)
        assert not tables.is_team_member(running_project.id, freelancers[1].id)
