from typing import Generic, TypeVar, Type, List, Optional, Dict, Any, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from portfolio_tracker.core.db import Base, in_unit_of_work
from portfolio_tracker.core.logger import logger

T = TypeVar("T", bound=Base)


class RepositoryError(Exception):
    """Raised when a database operation fails; wraps the SQLAlchemy error"""
    pass


class BaseRepository(Generic[T]):
    """
    CRUD over one model. Writes commit on their own, or only flush while a
    unit of work is open on the session so the unit decides the outcome.
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model

    @property
    def name(self) -> str:
        return self.model.__name__

    def _commit(self) -> None:
        if in_unit_of_work(self.db):
            self.db.flush()
        else:
            self.db.commit()

    def _rollback(self) -> None:
        # the enclosing unit of work rolls back as a whole
        if not in_unit_of_work(self.db):
            self.db.rollback()

    def _filtered(self, **filters) -> Query:
        query = self.db.query(self.model)
        for key, value in filters.items():
            column = getattr(self.model, key, None)
            if column is not None:
                query = query.filter(column == value)
        return query

    def get(self, id_: Union[int, str]) -> Optional[T]:
        try:
            return self.db.get(self.model, id_)
        except SQLAlchemyError as e:
            logger.error(f"Error loading {self.name} {id_}: {e}")
            raise RepositoryError(f"Failed to load {self.name}") from e

    def get_by_filters(self, **filters) -> List[T]:
        """Records whose columns equal the given values; unknown keys are ignored"""
        try:
            return self._filtered(**filters).all()
        except SQLAlchemyError as e:
            logger.error(f"Error filtering {self.name} by {sorted(filters)}: {e}")
            raise RepositoryError(f"Failed to filter {self.name}") from e

    def get_all(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[T]:
        """Records in id order, optionally one page of them"""
        try:
            query = self.db.query(self.model).order_by(self.model.id)
            if offset:
                query = query.offset(offset)
            if limit:
                query = query.limit(limit)
            return query.all()
        except SQLAlchemyError as e:
            logger.error(f"Error listing {self.name}: {e}")
            raise RepositoryError(f"Failed to list {self.name}") from e

    def count(self, **filters) -> int:
        try:
            return self._filtered(**filters).count()
        except SQLAlchemyError as e:
            logger.error(f"Error counting {self.name}: {e}")
            raise RepositoryError(f"Failed to count {self.name}") from e

    def create(self, obj_in: Dict[str, Any]) -> T:
        try:
            db_obj = self.model(**obj_in)
            self.db.add(db_obj)
            self._commit()
            self.db.refresh(db_obj)
            return db_obj
        except SQLAlchemyError as e:
            self._rollback()
            logger.error(f"Error creating {self.name}: {e}")
            raise RepositoryError(f"Failed to create {self.name}") from e

    def update_obj(self, db_obj: T, obj_in: Dict[str, Any]) -> T:
        """Set the given fields on a loaded record and persist it"""
        try:
            for field, value in obj_in.items():
                if hasattr(db_obj, field):
                    setattr(db_obj, field, value)
            self._commit()
            self.db.refresh(db_obj)
            return db_obj
        except SQLAlchemyError as e:
            self._rollback()
            logger.error(f"Error updating {self.name} {getattr(db_obj, 'id', None)}: {e}")
            raise RepositoryError(f"Failed to update {self.name}") from e

    def delete(self, id_: Union[int, str]) -> bool:
        """Returns False when there was nothing to delete"""
        db_obj = self.get(id_)
        if db_obj is None:
            return False
        try:
            self.db.delete(db_obj)
            self._commit()
            return True
        except SQLAlchemyError as e:
            self._rollback()
            logger.error(f"Error deleting {self.name} {id_}: {e}")
            raise RepositoryError(f"Failed to delete {self.name}") from e
