import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .failures import ServerFailure

logger = logging.getLogger(__name__)


class SqlAlchemyRepository:
    """Base for repositories backed by a SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def guard(self, action: str):
        """Roll back and raise ServerFailure when a database call fails"""
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Database error while {action}: {e}")
            raise ServerFailure(f"Failed {action}") from e

    def commit(self, *instances) -> None:
        self.db.commit()
        for instance in instances:
            self.db.refresh(instance)
