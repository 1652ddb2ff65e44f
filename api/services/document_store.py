"""Document collection store backed by SQLAlchemy.

Documents are JSON objects grouped into named collections. Queries filter
on top-level document fields with ``(field, op, value)`` clauses.
"""

import operator
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.models import StoredDocument
from audit.errors import PersistenceError

logger = structlog.get_logger()

WhereClause = Tuple[str, str, Any]
OrderBy = Union[str, Tuple[str, str]]

OPERATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def _field_expression(field: str, value: Any):
    """JSON field cast matching the Python type of the compared value."""
    element = StoredDocument.data[field]
    if isinstance(value, bool):
        return element.as_boolean()
    if isinstance(value, int):
        return element.as_integer()
    if isinstance(value, float):
        return element.as_float()
    return element.as_string()


class DocumentStore:
    """add / get / query over document collections."""

    def __init__(self, db: Session):
        self.db = db

    def add(self, collection: str, doc: Dict[str, Any]) -> str:
        """Insert a document and return its generated id.

        Raises:
            PersistenceError: The write failed.
        """
        record = StoredDocument(collection=collection, data=dict(doc))
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Document write failed", collection=collection, error=str(e))
            raise PersistenceError(f"Failed to write document to {collection}") from e

        logger.info("Document stored", collection=collection, document_id=record.id)
        return record.id

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            record = (
                self.db.query(StoredDocument)
                .filter(StoredDocument.collection == collection, StoredDocument.id == doc_id)
                .first()
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read {collection}/{doc_id}") from e
        return record.to_dict() if record else None

    def query(
        self,
        collection: str,
        where: Iterable[WhereClause] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Filter a collection.

        ``order_by`` is a field name or ``(field, "asc"|"desc")``; values are
        compared as strings, which orders ISO timestamps chronologically.

        Raises:
            ValueError: Unknown operator or sort direction.
            PersistenceError: The read failed.
        """
        q = self._filtered(collection, where)

        if order_by is not None:
            field, direction = (order_by, "asc") if isinstance(order_by, str) else order_by
            if direction not in ("asc", "desc"):
                raise ValueError(f"Unknown sort direction: {direction!r}")
            column = StoredDocument.data[field].as_string()
            q = q.order_by(column.desc() if direction == "desc" else column.asc())

        if limit is not None:
            q = q.limit(limit)

        try:
            return [r.to_dict() for r in q.all()]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to query {collection}") from e

    def count(self, collection: str, where: Iterable[WhereClause] = ()) -> int:
        try:
            return self._filtered(collection, where).count()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to count {collection}") from e

    def _filtered(self, collection: str, where: Iterable[WhereClause]):
        q = self.db.query(StoredDocument).filter(StoredDocument.collection == collection)
        for field, op, value in where:
            if op not in OPERATORS:
                raise ValueError(f"Unknown query operator: {op!r}")
            if value is None:
                if op not in ("==", "!="):
                    raise ValueError(f"Operator {op!r} cannot compare against null")
                element = StoredDocument.data[field].as_string()
                q = q.filter(element.is_(None) if op == "==" else element.isnot(None))
                continue
            q = q.filter(OPERATORS[op](_field_expression(field, value), value))
        return q
