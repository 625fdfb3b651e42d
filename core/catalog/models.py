"""
Database models for the mesh catalog using SQLAlchemy.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

TITLE_MAX_LENGTH = 200


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class MeshModel(Base):
    """SQLAlchemy model for an uploaded mesh and its metadata."""

    __tablename__ = "meshes"

    id = Column(Integer, primary_key=True, autoincrement=True)

    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    model_file_url = Column(String(500), nullable=False)
    # Comma-separated, free-form
    tags = Column(Text, nullable=False, default="", server_default="")

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (Index("idx_meshes_created_at", "created_at"),)

    def to_dict(self) -> Dict[str, Any]:
        """Convert database model to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "model_file_url": self.model_file_url,
            "tags": self.tags or "",
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def __repr__(self) -> str:
        return f"<MeshModel id={self.id} title={self.title!r}>"
