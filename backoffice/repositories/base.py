"""Base repository for common persistence operations."""

import logging
from typing import Any, Generic, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from backoffice.core.database import Base
from backoffice.domain.exceptions import PersistenceError, StaleRecord

ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelType]):
    """Generic repository over one SQLAlchemy model.

    Storage failures leave the session rolled back and surface as
    ``PersistenceError``.
    """

    def __init__(self, db: Session, model: type[ModelType]):
        self.db = db
        self.model = model

    def get(self, pk: Any) -> ModelType | None:
        """Get a model instance by its primary key."""
        return self.db.get(self.model, pk)

    def add(self, instance: ModelType) -> ModelType:
        """Persist a new instance and return it refreshed."""
        self.db.add(instance)
        self.commit(instance)
        self.db.refresh(instance)
        return instance

    def delete(self, instance: ModelType) -> None:
        """Permanently remove an instance."""
        self.db.delete(instance)
        self.commit(instance)

    def commit(self, instance: ModelType | None = None) -> None:
        """Commit the unit of work, translating storage errors."""
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            raise StaleRecord(self.model.__name__, getattr(instance, "id", None)) from None
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("Integrity violation on %s: %s", self.model.__name__, exc.orig)
            raise PersistenceError(
                f"{self.model.__name__} violates a storage constraint: {exc.orig}",
                integrity=True,
            ) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Storage failure on %s: %s", self.model.__name__, exc)
            raise PersistenceError(f"Storage failure: {exc}") from exc
