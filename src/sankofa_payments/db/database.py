"""Database engine initialization and connection management."""

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from .schema import Base


def init_database(database_url: str) -> sessionmaker[Any]:
    """Initialize database and return session factory.

    Accepts a full SQLAlchemy URL or a bare filesystem path, which is
    treated as a SQLite database file.
    """
    if "://" not in database_url:
        database_url = f"sqlite:///{database_url}"

    url = make_url(database_url)
    connect_args: dict[str, Any] = {}
    if url.get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False
        if url.database and url.database != ":memory:":
            # Ensure parent directory exists
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)

    return sessionmaker(bind=engine, expire_on_commit=False)
