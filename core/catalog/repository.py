"""
Mesh catalog repository: CRUD and tag search over MeshModel.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from .models import TITLE_MAX_LENGTH, MeshModel, utcnow

logger = logging.getLogger(__name__)


def parse_tag_query(tags: Optional[str]) -> List[str]:
    """Split a comma-separated tag query into lowercased, non-empty terms"""
    if not tags or not tags.strip():
        return []
    return [t.strip().lower() for t in tags.split(",") if t.strip()]


class MeshCatalog:
    """Repository for mesh records bound to one session"""

    def __init__(self, session: Session):
        self.session = session

    def list_meshes(self, tags: Optional[str] = None) -> List[MeshModel]:
        """
        List meshes, newest first.

        Args:
            tags: Optional comma-separated query. A mesh matches when any term
                is a case-insensitive substring of its tag string.
        """
        query = select(MeshModel)

        terms = parse_tag_query(tags)
        if terms:
            lowered = func.lower(MeshModel.tags)
            query = query.where(or_(*[lowered.contains(term, autoescape=True) for term in terms]))

        query = query.order_by(MeshModel.created_at.desc(), MeshModel.id.desc())
        return list(self.session.scalars(query))

    def get_mesh(self, mesh_id: int) -> Optional[MeshModel]:
        return self.session.get(MeshModel, mesh_id)

    def create_mesh(self, title: str, model_file_url: str, tags: Optional[str] = None) -> MeshModel:
        """
        Create a mesh record.

        Raises:
            ValueError: If the title is blank or too long.
        """
        title = (title or "").strip()
        if not title:
            raise ValueError("Title is required")
        if len(title) > TITLE_MAX_LENGTH:
            raise ValueError(f"Title must be at most {TITLE_MAX_LENGTH} characters")

        now = utcnow()
        mesh = MeshModel(
            title=title,
            model_file_url=model_file_url,
            tags=(tags or "").strip(),
            created_at=now,
            updated_at=now,
        )
        self.session.add(mesh)
        self.session.commit()
        self.session.refresh(mesh)

        logger.info(f"Mesh created with ID: {mesh.id}, File: {model_file_url}")
        return mesh

    def update_mesh(
        self, mesh_id: int, title: Optional[str] = None, tags: Optional[str] = None
    ) -> Optional[MeshModel]:
        """
        Partially update a mesh. A blank title is ignored; tags are replaced
        whenever provided.
        """
        mesh = self.get_mesh(mesh_id)
        if mesh is None:
            return None

        if title is not None and title.strip():
            title = title.strip()
            if len(title) > TITLE_MAX_LENGTH:
                raise ValueError(f"Title must be at most {TITLE_MAX_LENGTH} characters")
            mesh.title = title

        if tags is not None:
            mesh.tags = tags.strip()

        mesh.updated_at = utcnow()
        self.session.commit()
        self.session.refresh(mesh)
        return mesh

    def delete_mesh(self, mesh_id: int) -> Optional[MeshModel]:
        """Delete a mesh record and return the removed row, or None"""
        mesh = self.get_mesh(mesh_id)
        if mesh is None:
            return None

        self.session.delete(mesh)
        self.session.commit()

        logger.info(f"Mesh deleted with ID: {mesh_id}")
        return mesh
