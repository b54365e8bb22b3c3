import logging

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from todolist.config import DATABASE_URL

logger = logging.getLogger(__name__)

# Only apply sqlite-specific connect_args when using sqlite
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Columns added after the first release of the tasks table, with their DDL.
_TASK_COLUMNS = {
    "description": "TEXT NOT NULL DEFAULT ''",
    "assignee": "VARCHAR(20) NOT NULL DEFAULT ''",
    "priority": "VARCHAR(10) NOT NULL DEFAULT 'medium'",
    "category": "VARCHAR(20) NOT NULL DEFAULT ''",
    "deadline": "VARCHAR(10) NOT NULL DEFAULT ''",
    "completed": "BOOLEAN NOT NULL DEFAULT 0",
}


def ensure_schema():
    """Create missing tables and add missing task columns (simple additive migrations)."""
    # models must be imported so their tables are registered on Base.metadata
    from todolist.models import task, user  # noqa: F401

    Base.metadata.create_all(bind=engine)
    try:
        insp = inspect(engine)
        cols = {c["name"] for c in insp.get_columns("tasks")}
        missing = [name for name in _TASK_COLUMNS if name not in cols]
        if missing:
            with engine.begin() as conn:
                for name in missing:
                    conn.execute(text(f"ALTER TABLE tasks ADD COLUMN {name} {_TASK_COLUMNS[name]}"))
            logger.info("Added task columns: %s", ", ".join(missing))
    except SQLAlchemyError:
        # best-effort; startup continues with whatever schema is there
        logger.warning("Schema upgrade for 'tasks' failed", exc_info=True)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
