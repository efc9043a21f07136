# catalog_auth/adapters/outbound/persistence/repositories/base_repository.py

from typing import Any, Generic, List, Optional, Type, TypeVar
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.future import select
import logging

from catalog_auth.adapters.outbound.persistence.models import Base
from catalog_auth.domain.exceptions import DatabaseOperationException

# Define generic type for SQLAlchemy models
ModelType = TypeVar("ModelType", bound=Base)

# Configure logger
logger = logging.getLogger(__name__)


class AsyncRepositoryBase(Generic[ModelType]):
    """
    Async base class for implementing the Repository pattern.

    Provides generic read operations and consistent error handling.
    Writes flush but never commit: the session owner (Database.session)
    commits once per request.

    Attributes:
        model: SQLAlchemy model class
        logger: Configured logger for the class
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    async def get_by_field(self, db: AsyncSession, field_name: str, value: Any) -> Optional[ModelType]:
        """
        Get an entity by the value of a specific field.

        Raises:
            DatabaseOperationException: If an error occurs in the query
        """
        try:
            query = select(self.model).where(getattr(self.model, field_name) == value)
            result = await db.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching {self.model.__name__} with {field_name}={value}: {str(e)}")
            raise DatabaseOperationException(
                detail=f"Error fetching {self.model.__name__} by {field_name}",
                original_error=e
            )

    async def get_multi(self, db: AsyncSession, *, order_by: Any = None, **filters) -> List[ModelType]:
        """
        Get multiple entities with optional equality filters.

        Raises:
            DatabaseOperationException: If an error occurs in the query
        """
        try:
            query = select(self.model)
            for field, value in filters.items():
                if hasattr(self.model, field) and value is not None:
                    query = query.where(getattr(self.model, field) == value)
            if order_by is not None:
                query = query.order_by(order_by)
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing {self.model.__name__}s: {str(e)}")
            raise DatabaseOperationException(
                detail=f"Error listing {self.model.__name__}s",
                original_error=e
            )

    async def count_rows(self, db: AsyncSession) -> int:
        try:
            result = await db.execute(select(func.count()).select_from(self.model))
            return int(result.scalar() or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting {self.model.__name__}s: {str(e)}")
            raise DatabaseOperationException(
                detail=f"Error counting {self.model.__name__}s",
                original_error=e
            )

    async def remove_obj(self, db: AsyncSession, obj: ModelType) -> None:
        try:
            await db.delete(obj)
            await db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error removing {self.model.__name__}: {str(e)}")
            raise DatabaseOperationException(
                detail=f"Error removing {self.model.__name__}",
                original_error=e
            )
