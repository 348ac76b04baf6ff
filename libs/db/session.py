from typing import AsyncGenerator

from fastapi import Request
from libs.db.config import Database
from sqlalchemy.ext.asyncio import AsyncSession


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the storage client built in the app lifespan."""
    return request.app.state.db


async def get_async_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an async database session.
    """
    async with get_database(request).session() as session:
        try:
            yield session
        finally:
            await session.close()
