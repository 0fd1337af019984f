import os
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from simpleplan.constants import DEFAULT_DB_DIRECTORY, DEFAULT_DB_FILE


def _default_database_url() -> str:
    db_dir = Path(os.getenv("SIMPLEPLAN_DB_DIR", DEFAULT_DB_DIRECTORY))
    try:
        db_dir.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        # Fallback to local directory if no permissions for /var/lib
        db_dir = Path(".")
    return f"sqlite:///{db_dir / DEFAULT_DB_FILE}"


DATABASE_URL = os.getenv("SIMPLEPLAN_DB_URL") or _default_database_url()

if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
    # In-memory database shared by every session (tests, throwaway runs)
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
else:
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
    )
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
