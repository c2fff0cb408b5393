"""
Base repository class with common CRUD operations using async SQLAlchemy.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from credora.database import Base
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common CRUD operations.
    Commits on every write and rolls back on failure.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Create a new record in the database.

        Args:
            obj_in: Dictionary of field values for the new record

        Returns:
            Created model instance
        """
        try:
            db_obj = self.model(**obj_in)
            self.db.add(db_obj)
            await self.db.commit()
            await self.db.refresh(db_obj)
            logger.debug(f"Created {self.model.__name__} with id: {db_obj.id}")
            return db_obj
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise

    async def get_by_id(self, id: uuid.UUID) -> Optional[ModelType]:
        try:
            result = await self.db.execute(select(self.model).where(self.model.id == id))
            obj = result.scalar_one_or_none()

            if obj is None:
                logger.debug(f"{self.model.__name__} with id {id} not found")

            return obj
        except Exception as e:
            logger.error(f"Failed to get {self.model.__name__} by id {id}: {e}")
            raise

    async def get_by_field(self, field: str, value: Any) -> Optional[ModelType]:
        """
        Get a single record by a field value.

        Raises:
            ValueError: If the model has no such field
        """
        if not hasattr(self.model, field):
            raise ValueError(f"Field '{field}' does not exist on {self.model.__name__}")

        try:
            query = select(self.model).where(getattr(self.model, field) == value)
            result = await self.db.execute(query)
            return result.scalars().first()
        except Exception as e:
            logger.error(f"Failed to get {self.model.__name__} by {field}={value}: {e}")
            raise

    def _apply_filters(self, query, filters: Optional[Dict[str, Any]]):
        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field):
                    if isinstance(value, (list, tuple, set)):
                        query = query.where(getattr(self.model, field).in_(list(value)))
                    else:
                        query = query.where(getattr(self.model, field) == value)
        return query

    async def get_multi(
        self,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None
    ) -> List[ModelType]:
        """
        Get multiple records with optional filtering, pagination, and ordering.

        Args:
            skip: Number of records to skip
            limit: Maximum number of records to return
            filters: Field equality filters (lists become IN clauses)
            order_by: Field name to order by (prefix with '-' for descending)

        Returns:
            List of model instances, newest first by default
        """
        try:
            query = self._apply_filters(select(self.model), filters)

            if order_by:
                field_name = order_by.lstrip("-")
                if hasattr(self.model, field_name):
                    column = getattr(self.model, field_name)
                    query = query.order_by(column.desc() if order_by.startswith("-") else column)
            else:
                query = query.order_by(self.model.created_at.desc())

            query = query.offset(skip).limit(limit)

            result = await self.db.execute(query)
            objects = list(result.scalars().all())

            logger.debug(f"Retrieved {len(objects)} {self.model.__name__} records")
            return objects
        except Exception as e:
            logger.error(f"Failed to get multiple {self.model.__name__} records: {e}")
            raise

    async def get_page(
        self,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None
    ) -> Tuple[List[ModelType], int]:
        items = await self.get_multi(skip=skip, limit=limit, filters=filters, order_by=order_by)
        total = await self.count(filters)
        return items, total

    async def update(self, db_obj: ModelType, obj_in: Dict[str, Any]) -> ModelType:
        """
        Apply field values to a loaded instance and commit.

        Unlike a bulk UPDATE statement this keeps the identity map in sync,
        so the returned instance reflects the new values.

        Args:
            db_obj: Persistent instance to modify
            obj_in: Field values to set (keys the model lacks are ignored)

        Returns:
            The refreshed instance
        """
        try:
            for field, value in obj_in.items():
                if hasattr(db_obj, field):
                    setattr(db_obj, field, value)

            await self.db.commit()
            await self.db.refresh(db_obj)
            logger.debug(f"Updated {self.model.__name__} with id: {db_obj.id}")
            return db_obj
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update {self.model.__name__} {db_obj.id}: {e}")
            raise

    async def delete(self, id: uuid.UUID) -> bool:
        try:
            result = await self.db.execute(delete(self.model).where(self.model.id == id))
            await self.db.commit()

            deleted = result.rowcount > 0
            logger.debug(f"Delete {self.model.__name__} {id}: {'done' if deleted else 'not found'}")
            return deleted
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete {self.model.__name__} {id}: {e}")
            raise

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        try:
            query = self._apply_filters(select(func.count(self.model.id)), filters)
            result = await self.db.execute(query)
            return result.scalar() or 0
        except Exception as e:
            logger.error(f"Failed to count {self.model.__name__} records: {e}")
            raise

