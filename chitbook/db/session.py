from chitbook.core.config import settings
from chitbook.db.mongo import MongoDocumentStore, mongodb
from chitbook.db.store import DocumentStore


async def get_database():
    """Return the active database connection."""
    return mongodb.db


async def get_store() -> DocumentStore:
    """Return a document store bound to the active connection."""
    return MongoDocumentStore(mongodb.db, max_batch_ops=settings.MAX_BATCH_OPERATIONS)
