from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from portfolio_tracker.core.config import settings

UNIT_OF_WORK_KEY = "unit_of_work"

engine = create_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def in_unit_of_work(db: Session) -> bool:
    return bool(db.info.get(UNIT_OF_WORK_KEY))


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Run a block of repository writes as one atomic unit.

    Repositories flush instead of committing while a unit is open; the unit
    commits once on success and rolls everything back on any exception.
    Nested units join the outermost one.
    """
    if in_unit_of_work(db):
        yield db
        return

    db.info[UNIT_OF_WORK_KEY] = True
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.info.pop(UNIT_OF_WORK_KEY, None)


def init_db():
    import portfolio_tracker.models  # noqa: F401  registers the mappers

    Base.metadata.create_all(bind=engine)
