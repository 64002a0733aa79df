from collections import defaultdict
from typing import Any, Dict, List, Set

from cinemalog.core.errors import UpstreamError
from cinemalog.core.store import AnyOf, Filter, StoreClient


class InMemoryStore(StoreClient):
    """StoreClient kept in dicts, with switchable failures per table"""

    def __init__(self):
        self.tables: Dict[str, Dict[Any, Dict[str, Any]]] = defaultdict(dict)
        self.counters: Dict[str, int] = defaultdict(int)
        self.failing_tables: Set[str] = set()

    def _check(self, table: str):
        if table in self.failing_tables:
            raise UpstreamError(f"Failed to read {table}: simulated outage")

    def _matches(self, row: Dict[str, Any], predicate) -> bool:
        if isinstance(predicate, AnyOf):
            return any(all(self._matches(row, f) for f in group) for group in predicate.groups)
        value = row.get(predicate.field)
        if predicate.op == "==":
            return value == predicate.value
        if predicate.op == "in":
            return value in predicate.value
        if value is None:
            return False
        if predicate.op == ">=":
            return value >= predicate.value
        if predicate.op == "<":
            return value < predicate.value
        if predicate.op == "<=":
            return value <= predicate.value
        raise ValueError(f"Unsupported operator {predicate.op}")

    def _matching(self, table, filters) -> List[Dict[str, Any]]:
        return [row for row in self.tables[table].values() if all(self._matches(row, f) for f in filters)]

    def select(self, table, filters=(), order_by=None, descending=False, limit=None):
        self._check(table)
        rows = [dict(row) for row in self._matching(table, filters)]
        if order_by:
            rows.sort(key=lambda row: (row.get(order_by) is None, row.get(order_by)), reverse=descending)
        return rows[:limit] if limit is not None else rows

    def insert(self, table, data):
        self._check(table)
        self.counters[table] += 1
        row = {**data, 'id': self.counters[table]}
        self.tables[table][row['id']] = row
        return dict(row)

    def upsert(self, table, data):
        self._check(table)
        row = self.tables[table].setdefault(data['id'], {})
        row.update(data)
        return dict(row)

    def update(self, table, filters, data):
        self._check(table)
        rows = self._matching(table, filters)
        for row in rows:
            row.update(data)
        return [dict(row) for row in rows]

    def delete(self, table, filters):
        self._check(table)
        rows = self._matching(table, filters)
        for row in rows:
            del self.tables[table][row['id']]
        return len(rows)

    def add_friendship(self, requester_id: str, requested_id: str, status: str = "accepted"):
        return self.insert('friends', {
            'requester_id': requester_id,
            'requested_id': requested_id,
            'status': status,
        })
