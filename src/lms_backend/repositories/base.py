"""
Base repository pattern implementation.

Repositories are the only place that turns a missing row into a
NotFoundException, so services can load what they need with one call.
"""

from typing import TypeVar, Generic, Optional, Any, Type
from sqlalchemy.orm import Session

from lms_backend.api.exceptions import entity_not_found

# Type variable for generic entity type
T = TypeVar('T')


class BaseRepository(Generic[T]):
    """Common lookups over one model class."""

    entity_name: str = None

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model

    @property
    def name(self) -> str:
        return self.entity_name or self.model.__name__

    def get_by_id(self, entity_id: Any) -> T:
        """
        Get entity by ID.

        Raises:
            NotFoundException: If entity not found
        """
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise entity_not_found(self.name, entity_id)
        return entity

    def get_by_id_optional(self, entity_id: Any) -> Optional[T]:
        if entity_id is None:
            return None
        return self.db.query(self.model).filter(
            self.model.id == entity_id
        ).first()

    def find_one_by(self, **criteria) -> Optional[T]:
        query = self.db.query(self.model)

        for key, value in criteria.items():
            if hasattr(self.model, key):
                query = query.filter(getattr(self.model, key) == value)

        return query.first()
