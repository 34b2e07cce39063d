import logging
import time

from fastapi import HTTPException, status
from sqlmodel import SQLModel, create_engine, Session
from .config import settings
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import NullPool


logger = logging.getLogger(__name__)


if settings.database_url.startswith("sqlite"):
    engine = create_engine(
        settings.database_url,
        echo=settings.sql_echo,
        connect_args={"check_same_thread": False, "timeout": 60},
        poolclass=NullPool,  # avoid multiple pooled connections holding write locks
    )
    # Configure SQLite pragmas to reduce locking
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL;")
            conn.exec_driver_sql("PRAGMA busy_timeout=60000;")
    except OperationalError:
        # The database may be momentarily locked (e.g. during reloader startup).
        logger.warning("Could not set SQLite pragmas, database locked")
else:
    engine = create_engine(
        settings.database_url,
        echo=settings.sql_echo,
    )


def get_session():
    with Session(engine) as session:
        yield session


def _migrate_sqlite(bind) -> None:
    # Lightweight migration for SQLite: add users.display_name if missing.
    with bind.connect() as conn:
        cols = conn.exec_driver_sql("PRAGMA table_info('users');").fetchall()
        col_names = {row[1] for row in cols}  # row[1] is the column name
        if cols and "display_name" not in col_names:
            logger.info("Adding users.display_name column")
            conn.exec_driver_sql("ALTER TABLE users ADD COLUMN display_name TEXT")
            conn.commit()


def init_db(bind=None):
    from .models import user, expense, budget, income  # noqa: F401

    bind = bind or engine
    if str(bind.url).startswith("sqlite"):
        try:
            _migrate_sqlite(bind)
        except OperationalError:
            logger.warning("Skipping SQLite migration, database locked")

    SQLModel.metadata.create_all(bind)


def commit_with_retry(session: Session, *objects, attempts: int = 3) -> None:
    """Add ``objects`` and commit, retrying briefly on transient SQLite locks."""
    for attempt in range(attempts):
        try:
            for obj in objects:
                session.add(obj)
            session.commit()
            return
        except OperationalError:
            session.rollback()
            if attempt == attempts - 1:
                logger.error("Commit failed after %d attempts", attempts)
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Database is busy, please retry",
                )
            time.sleep(0.25 * (attempt + 1))
