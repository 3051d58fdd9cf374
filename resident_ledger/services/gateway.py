import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def backend_message(exc: SQLAlchemyError) -> str:
    original = getattr(exc, "orig", None)
    return str(original or exc).strip() or exc.__class__.__name__


@contextmanager
def write_scope(db: Session, description: str) -> Iterator[Session]:
    """Commit on success; on a database error roll back and surface the backend's message."""
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        message = backend_message(exc)
        logger.error("Failed to %s: %s", description, message)
        raise HTTPException(status_code=400, detail=f"Failed to {description}: {message}") from exc
