"""Tests for the Supabase wrapper's query building."""

from unittest.mock import MagicMock

from promptea.db.client import SupabaseClient


def _client_returning(rows):
    raw = MagicMock()
    query = raw.table.return_value.select.return_value
    # Every builder step returns the same query so the chain can be inspected.
    query.eq.return_value = query
    query.gt.return_value = query
    query.order.return_value = query
    query.limit.return_value = query
    query.execute.return_value = MagicMock(data=rows)
    return raw, query


class TestSelect:
    def test_filters_order_and_limit_go_to_the_database(self):
        raw, query = _client_returning([{"points": 30}])
        db = SupabaseClient(raw)

        rows = db.select(
            "point_transactions",
            filters={"user_id": "u1"},
            gt={"points": 0},
            order_by="created_at",
            ascending=False,
            limit=10,
        )

        assert rows == [{"points": 30}]
        raw.table.assert_called_once_with("point_transactions")
        raw.table.return_value.select.assert_called_once_with("*")
        query.eq.assert_called_once_with("user_id", "u1")
        query.gt.assert_called_once_with("points", 0)
        query.order.assert_called_once_with("created_at", desc=True)
        query.limit.assert_called_once_with(10)

    def test_columns_and_no_optional_clauses(self):
        raw, query = _client_returning([])
        SupabaseClient(raw).select("point_transactions", columns="points")
        raw.table.return_value.select.assert_called_once_with("points")
        query.gt.assert_not_called()
        query.order.assert_not_called()
        query.limit.assert_not_called()


class TestUpdate:
    def test_update_by_id(self):
        raw = MagicMock()
        chain = raw.table.return_value.update.return_value.eq.return_value
        chain.execute.return_value = MagicMock(data=[{"id": "s1", "status": "completed"}])

        row = SupabaseClient(raw).update("challenge_submissions", "s1", {"status": "completed"})

        assert row["status"] == "completed"
        raw.table.return_value.update.assert_called_once_with({"status": "completed"})
        raw.table.return_value.update.return_value.eq.assert_called_once_with("id", "s1")
