"""
MongoDB database connection
Using motor (async MongoDB driver)
"""
import logging
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from cms.config import Settings
from typing import Optional

logger = logging.getLogger(__name__)

# Global database client
mongodb_client: Optional[AsyncIOMotorClient] = None
database = None

async def connect_db(settings: Settings):
    """Connect to MongoDB"""
    global mongodb_client, database

    try:
        mongodb_client = AsyncIOMotorClient(settings.MONGODB_URL)
        database = mongodb_client[settings.DATABASE_NAME]

        # Test connection
        await mongodb_client.admin.command('ping')
        logger.info(f"✅ Connected to MongoDB: {settings.DATABASE_NAME}")

        await create_indexes(database)

    except Exception as e:
        logger.error(f"❌ MongoDB connection failed: {e}")
        raise

    return database

async def close_db():
    """Close MongoDB connection"""
    global mongodb_client

    if mongodb_client:
        mongodb_client.close()
        mongodb_client = None
        logger.info("MongoDB connection closed")

async def create_indexes(db):
    """Create the indexes listing and lookups rely on"""

    # Users: email is the identity, key is the bearer token
    await db.users.create_index("email", unique=True)
    await db.users.create_index("key", unique=True, sparse=True)

    # Sessions
    await db.sessions.create_index("key", unique=True)
    await db.sessions.create_index([("email", ASCENDING), ("expires_at", ASCENDING)])

    # Documents: name is unique within (model, folder)
    await db.documents.create_index(
        [("model", ASCENDING), ("folder", ASCENDING), ("name", ASCENDING)],
        unique=True,
        name="model_folder_name_unique"
    )
    await db.documents.create_index(
        [("model", ASCENDING), ("name", ASCENDING), ("_id", ASCENDING)],
        name="model_name_idx"
    )
    await db.documents.create_index(
        [("model", ASCENDING), ("modified_at", ASCENDING), ("_id", ASCENDING)],
        name="model_modified_idx"
    )

    # Folder listing cache
    await db.cache.create_index("key", unique=True)

    logger.info("✅ Database indexes created")
