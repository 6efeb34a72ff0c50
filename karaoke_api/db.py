"""Database engine and session helpers.

Engine creation lives here so the API, the CLI and the tests share the same
configuration. By default the SQLite database sits under the project root
in `data/karaoke.db`; set DATABASE_URL for anything else.
"""

import os
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .config import DATABASE_URL
from .tables import Base


def get_engine(database_url: Optional[str] = None) -> Engine:
    """Return a SQLAlchemy engine, creating the data dir as needed."""
    url = database_url or DATABASE_URL
    if url.startswith("sqlite:///"):
        db_location = url.replace("sqlite:///", "")
        if db_location != ":memory:" and db_location:
            os.makedirs(os.path.dirname(os.path.abspath(db_location)), exist_ok=True)
    return create_engine(url, echo=False, future=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db(engine: Engine) -> None:
    """Create tables and indexes if they don't exist."""
    Base.metadata.create_all(engine)
