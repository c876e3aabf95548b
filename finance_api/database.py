# finance_api/database.py
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

DATABASE_URL = settings.get_database_url()

Base = declarative_base()


def make_engine(url: str, **kwargs) -> Engine:
    # SQLite connections are shared across FastAPI's worker threads
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True, **kwargs)


engine = make_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine):
    # Imported for its side effect of registering the tables on Base
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind)


# Dependency function for database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
