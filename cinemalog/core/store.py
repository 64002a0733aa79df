import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple, Union

from firebase_admin import firestore
from google.api_core.exceptions import GoogleAPICallError, RetryError
from google.cloud.firestore_v1.base_query import And, FieldFilter, Or

from .errors import UpstreamError

logger = logging.getLogger(__name__)

# Firestore rejects "in" filters with more values than this
IN_FILTER_LIMIT = 30


class Filter(NamedTuple):
    field: str
    op: str
    value: Any


class AnyOf(NamedTuple):
    """OR of AND-groups, e.g. (a == 1 AND b == 2) OR (a == 2 AND b == 1)"""
    groups: Tuple[Tuple[Filter, ...], ...]


Predicate = Union[Filter, AnyOf]


def eq(field: str, value: Any) -> Filter:
    return Filter(field, "==", value)

def gte(field: str, value: Any) -> Filter:
    return Filter(field, ">=", value)

def lt(field: str, value: Any) -> Filter:
    return Filter(field, "<", value)

def lte(field: str, value: Any) -> Filter:
    return Filter(field, "<=", value)

def in_(field: str, values: Iterable[Any]) -> Filter:
    return Filter(field, "in", list(values))

def any_of(*groups: Sequence[Filter]) -> AnyOf:
    return AnyOf(tuple(tuple(group) for group in groups))


class StoreClient(ABC):
    """Table-scoped CRUD against the backing store.

    Rows are plain dicts carrying their own ``id``. Filters passed as a
    sequence are ANDed together.
    """

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Sequence[Predicate] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def insert(self, table: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a row under the next integer id of the table"""

    @abstractmethod
    def upsert(self, table: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create or merge into the row keyed by data['id']"""

    @abstractmethod
    def update(self, table: str, filters: Sequence[Predicate], data: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Apply data to every matching row and return the updated rows"""

    @abstractmethod
    def delete(self, table: str, filters: Sequence[Predicate]) -> int:
        """Remove every matching row and return how many were removed"""


@contextmanager
def upstream_errors(action: str):
    try:
        yield
    except (GoogleAPICallError, RetryError) as e:
        logger.error(f"Firestore call failed while trying to {action}: {str(e)}")
        raise UpstreamError(f"Failed to {action}: {str(e)}") from e


def to_firestore_filter(predicate: Predicate):
    if isinstance(predicate, AnyOf):
        return Or(filters=[
            And(filters=[to_firestore_filter(f) for f in group]) if len(group) > 1
            else to_firestore_filter(group[0])
            for group in predicate.groups
        ])
    return FieldFilter(predicate.field, predicate.op, predicate.value)


def _split_in_filters(filters: Sequence[Predicate]) -> List[List[Predicate]]:
    """Break an oversized "in" filter into several filter lists that Firestore accepts"""
    for index, predicate in enumerate(filters):
        if isinstance(predicate, Filter) and predicate.op == "in" and len(predicate.value) > IN_FILTER_LIMIT:
            rest = list(filters[:index]) + list(filters[index + 1:])
            values = predicate.value
            return [
                rest + [in_(predicate.field, values[start:start + IN_FILTER_LIMIT])]
                for start in range(0, len(values), IN_FILTER_LIMIT)
            ]
    return [list(filters)]


class FirestoreStore(StoreClient):
    """StoreClient backed by Cloud Firestore.

    Every table is a collection; each row is a document named after its id.
    Integer ids come from ``counters/{table}`` documents updated in a
    transaction.
    """

    def __init__(self, db):
        self.db = db

    def _query(self, table: str, filters: Sequence[Predicate], order_by, descending, limit):
        query = self.db.collection(table)
        for predicate in filters:
            query = query.where(filter=to_firestore_filter(predicate))
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        if limit is not None:
            query = query.limit(limit)
        return query

    def _snapshots(self, table: str, filters: Sequence[Predicate]):
        snapshots = []
        for chunk in _split_in_filters(filters):
            snapshots.extend(self._query(table, chunk, None, False, None).stream())
        return snapshots

    def select(self, table, filters=(), order_by=None, descending=False, limit=None):
        with upstream_errors(f"read {table}"):
            chunks = _split_in_filters(filters)
            if len(chunks) == 1:
                return [doc.to_dict() for doc in self._query(table, chunks[0], order_by, descending, limit).stream()]

            rows = []
            for chunk in chunks:
                rows.extend(doc.to_dict() for doc in self._query(table, chunk, None, False, None).stream())
        if order_by:
            rows.sort(key=lambda row: (row.get(order_by) is None, row.get(order_by)), reverse=descending)
        return rows[:limit] if limit is not None else rows

    def _next_id(self, table: str) -> int:
        counter_ref = self.db.collection('counters').document(table)

        @firestore.transactional
        def increment(transaction):
            snapshot = counter_ref.get(transaction=transaction)
            value = (snapshot.get('value') if snapshot.exists else 0) + 1
            transaction.set(counter_ref, {'value': value})
            return value

        return increment(self.db.transaction())

    def insert(self, table, data):
        with upstream_errors(f"insert into {table}"):
            row_id = self._next_id(table)
            row = {**data, 'id': row_id}
            self.db.collection(table).document(str(row_id)).set(row)
        return row

    def upsert(self, table, data):
        with upstream_errors(f"upsert into {table}"):
            doc_ref = self.db.collection(table).document(str(data['id']))
            doc_ref.set(data, merge=True)
            return doc_ref.get().to_dict()

    def update(self, table, filters, data):
        with upstream_errors(f"update {table}"):
            snapshots = self._snapshots(table, filters)
            if not snapshots:
                return []
            batch = self.db.batch()
            for doc in snapshots:
                batch.update(doc.reference, data)
            batch.commit()
        return [{**doc.to_dict(), **data} for doc in snapshots]

    def delete(self, table, filters):
        with upstream_errors(f"delete from {table}"):
            snapshots = self._snapshots(table, filters)
            if not snapshots:
                return 0
            batch = self.db.batch()
            for doc in snapshots:
                batch.delete(doc.reference)
            batch.commit()
        return len(snapshots)
