"""Transaction utilities for explicit transaction boundaries.

This module provides a context manager for managing database transactions
with automatic commit/rollback semantics to prevent partial state updates.
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import StorageError


@contextmanager
def transaction(session: Session) -> Generator[Session]:
    """Context manager for explicit transaction boundaries.

    Commits on successful completion, rolls back on any exception.
    Database failures (including the commit itself) surface as StorageError.

    Example:
        with transaction(session):
            registry.add(user_id, kind, provider, details, is_default=True)
        # Default clearing and insert are committed together

    Args:
        session: SQLAlchemy session to manage

    Yields:
        The same session for use within the context

    Raises:
        StorageError: If the database rejects a statement or the commit
        Any other exception raised within the context (after rollback)
    """
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StorageError(f"Database transaction failed: {e}") from e
    except Exception:
        session.rollback()
        raise
