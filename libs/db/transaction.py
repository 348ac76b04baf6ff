"""Unit-of-work helper that commits, rolls back and translates storage errors."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from libs.common.errors import ConflictError, DependencyError
from libs.common.logging import get_logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the driver reports SQLSTATE 23505 (unique_violation)."""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate == UNIQUE_VIOLATION


@asynccontextmanager
async def atomic(
    db: AsyncSession,
    *,
    conflict_message: str = "Record already exists",
    conflict_code: Optional[str] = None,
) -> AsyncIterator[AsyncSession]:
    """
    Run the enclosed statements as one transaction.

    Commits on success. On any error rolls back, then:
    - unique violations become ConflictError(conflict_message)
    - other SQLAlchemy errors become DependencyError (original chained)
    - everything else (domain errors included) propagates unchanged
    """
    try:
        yield db
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if is_unique_violation(exc):
            raise ConflictError(conflict_message, code=conflict_code) from exc
        logger.error("Integrity error", exc_info=exc)
        raise DependencyError() from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Database operation failed", exc_info=exc)
        raise DependencyError() from exc
    except BaseException:
        await db.rollback()
        raise
