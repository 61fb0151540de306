import logging
from abc import ABC, abstractmethod
from typing import Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from farmtofork.core.exceptions import DatabaseError, NotFoundError

T = TypeVar('T')

logger = logging.getLogger(__name__)


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository providing common ORM operations.

    A repository is bound to one session; the service that opens the
    session (see db.session_scope) owns the transaction.
    """

    resource_name = "Resource"

    def __init__(self, session: Session):
        self.session = session

    @property
    @abstractmethod
    def model(self) -> Type[T]:
        """Mapped class handled by this repository"""

    def find_by_id(self, entity_id: int) -> Optional[T]:
        try:
            return self.session.get(self.model, entity_id)
        except SQLAlchemyError as e:
            logger.error(f"Lookup of {self.resource_name} {entity_id} failed: {e}")
            raise DatabaseError(f"{self.resource_name} lookup failed", "SELECT")

    def get_by_id(self, entity_id: int) -> T:
        """Get entity by ID or raise NotFoundError"""
        entity = self.find_by_id(entity_id)
        if entity is None:
            raise NotFoundError(self.resource_name, entity_id)
        return entity

    def add(self, entity: T) -> T:
        """Stage entity and flush so generated IDs are available."""
        try:
            self.session.add(entity)
            self.session.flush()
            return entity
        except IntegrityError as e:
            logger.error(f"Integrity constraint violation on {self.resource_name}: {e}")
            raise DatabaseError(f"Data integrity violation: {e}", "INSERT")
        except SQLAlchemyError as e:
            logger.error(f"Insert of {self.resource_name} failed: {e}")
            raise DatabaseError("Insert execution failed", "INSERT")

    def delete(self, entity: T) -> None:
        try:
            self.session.delete(entity)
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Delete of {self.resource_name} failed: {e}")
            raise DatabaseError("Delete execution failed", "DELETE")

    def flush(self) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Flush of {self.resource_name} failed: {e}")
            raise DatabaseError("Update execution failed", "UPDATE")

    def fetch_all(self, stmt: Select) -> List[T]:
        try:
            return list(self.session.scalars(stmt).all())
        except SQLAlchemyError as e:
            logger.error(f"Query on {self.resource_name} failed: {e}")
            raise DatabaseError("Query execution failed", "SELECT")

    def fetch_page(self, stmt: Select, limit: Optional[int], offset: int = 0) -> Tuple[List[T], int]:
        """Run stmt with limit/offset and return (items, total matching rows)."""
        try:
            total = self.session.scalar(
                select(func.count()).select_from(stmt.order_by(None).subquery())
            ) or 0
            if limit is not None:
                stmt = stmt.limit(limit)
            if offset:
                stmt = stmt.offset(offset)
            return list(self.session.scalars(stmt).all()), total
        except SQLAlchemyError as e:
            logger.error(f"Paged query on {self.resource_name} failed: {e}")
            raise DatabaseError("Query execution failed", "SELECT")
