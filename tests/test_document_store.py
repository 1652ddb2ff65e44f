"""Tests for the SQLAlchemy-backed document store."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from api.services.document_store import DocumentStore
from audit.errors import PersistenceError


@pytest.fixture
def seeded(store):
    docs = [
        {"userId": "u1", "finalized": True, "readinessScore": 40, "createdAt": "2024-01-01T09:00:00+00:00"},
        {"userId": "u2", "finalized": False, "readinessScore": 55, "createdAt": "2024-01-02T09:00:00+00:00"},
        {"userId": "u1", "finalized": True, "readinessScore": 80, "createdAt": "2024-01-03T09:00:00+00:00"},
        {"userId": "u3", "finalized": True, "readinessScore": 65, "createdAt": "2024-01-04T09:00:00+00:00"},
    ]
    ids = [store.add("interviews", d) for d in docs]
    store.add("other", {"userId": "u1", "finalized": True, "createdAt": "2024-01-05T09:00:00+00:00"})
    return ids


class TestAddGet:
    def test_add_returns_id_and_get_roundtrips(self, store):
        doc_id = store.add("interviews", {"userId": "u1", "messages": [{"role": "user", "content": "hi"}]})

        doc = store.get("interviews", doc_id)

        assert doc["id"] == doc_id
        assert doc["userId"] == "u1"
        assert doc["messages"] == [{"role": "user", "content": "hi"}]

    def test_get_missing_returns_none(self, store):
        assert store.get("interviews", "missing") is None

    def test_get_is_scoped_to_collection(self, store):
        doc_id = store.add("interviews", {"userId": "u1"})
        assert store.get("other", doc_id) is None

    def test_write_failure_raises_persistence_error(self):
        db = MagicMock()
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("disk I/O error"))

        with pytest.raises(PersistenceError):
            DocumentStore(db).add("interviews", {"userId": "u1"})
        db.rollback.assert_called_once()


class TestQuery:
    def test_equality_on_string(self, store, seeded):
        docs = store.query("interviews", [("userId", "==", "u1")])
        assert {d["id"] for d in docs} == {seeded[0], seeded[2]}

    def test_equality_on_boolean(self, store, seeded):
        docs = store.query("interviews", [("finalized", "==", True)])
        assert len(docs) == 3

    def test_combined_clauses_with_order_and_limit(self, store, seeded):
        docs = store.query(
            "interviews",
            [("finalized", "==", True), ("userId", "!=", "u1")],
            order_by=("createdAt", "desc"),
            limit=20,
        )
        assert [d["id"] for d in docs] == [seeded[3]]

    def test_numeric_comparison(self, store, seeded):
        docs = store.query("interviews", [("readinessScore", ">=", 60)], order_by="readinessScore")
        assert [d["readinessScore"] for d in docs] == [65, 80]

    def test_order_desc_and_limit(self, store, seeded):
        docs = store.query("interviews", order_by=("createdAt", "desc"), limit=2)
        assert [d["id"] for d in docs] == [seeded[3], seeded[2]]

    def test_unknown_operator(self, store):
        with pytest.raises(ValueError):
            store.query("interviews", [("userId", "like", "u%")])

    def test_unknown_direction(self, store):
        with pytest.raises(ValueError):
            store.query("interviews", order_by=("createdAt", "sideways"))

    def test_count(self, store, seeded):
        assert store.count("interviews") == 4
        assert store.count("interviews", [("finalized", "==", False)]) == 1
