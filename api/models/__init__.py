"""SQLAlchemy ORM models for the SingularShift API.

Imported by ``init_db`` so the tables are registered with Base.metadata.
"""

from api.config.database import Base

from .documents import StoredDocument

__all__ = ["Base", "StoredDocument"]
