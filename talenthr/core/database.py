import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Optional

from beanie import Document, init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession

from talenthr.core.config import settings
from talenthr.models import DOCUMENT_MODELS

logger = logging.getLogger(__name__)

_client: Optional[AsyncIOMotorClient] = None


async def init_db(client: Optional[AsyncIOMotorClient] = None, db_name: Optional[str] = None) -> None:
    global _client
    _client = client or AsyncIOMotorClient(settings.MONGODB_URL)
    db = _client[db_name] if db_name else _client.get_default_database()
    await init_beanie(database=db, document_models=DOCUMENT_MODELS)
    logger.info("Database initialized (%s)", db.name)


def close_db() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None


@asynccontextmanager
async def transaction() -> AsyncIterator[Optional[AsyncIOMotorClientSession]]:
    """
    Yield a session with an open transaction, or None when transactions are off.

    Callers pass the session to every write. With None they must clean up
    already inserted documents themselves if a later write fails.
    """
    if not settings.USE_TRANSACTIONS or _client is None:
        yield None
        return
    async with await _client.start_session() as session:
        async with session.start_transaction():
            yield session


async def rollback_inserted(docs: Iterable[Document]) -> None:
    """Undo inserts made outside a transaction, newest first"""
    for doc in reversed(list(docs)):
        if doc.id is not None:
            await doc.delete()
