"""Schemaless document storage.

Every interview (and any other collection) is one row holding the whole
document as JSON. Filtering and ordering happen on JSON fields.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column, DateTime, Index, String

from api.config.database import Base


def new_document_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredDocument(Base):
    """One JSON document in a named collection."""

    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=new_document_id)
    collection = Column(String(100), nullable=False)
    data = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_documents_collection_created", "collection", "created_at"),
    )

    def to_dict(self) -> dict[str, Any]:
        """The stored document with its id merged in."""
        return {"id": self.id, **(self.data or {})}

    def __repr__(self) -> str:
        return f"<StoredDocument(collection={self.collection!r}, id={self.id!r})>"
