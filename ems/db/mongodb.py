import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING

from ems.core.config import settings

logger = logging.getLogger(__name__)

client = None
db = None


async def connect_db():
    global client, db
    client = AsyncIOMotorClient(settings.MONGODB_URL)
    try:
        await client.admin.command("ping")
    except Exception:
        logger.exception("DB connection failed (%s)", settings.DATABASE_NAME)
        raise
    db = client[settings.DATABASE_NAME]
    logger.info("DB connection successful (%s)", settings.DATABASE_NAME)


async def close_db():
    global client
    if client:
        client.close()
        logger.info("DB connection closed")


async def get_db():
    return db


async def ensure_indexes(database):
    await database.users.create_index([("email", ASCENDING)], unique=True)
    await database.departments.create_index([("name", ASCENDING)], unique=True)
    await database.employees.create_index([("email", ASCENDING)], unique=True)
    await database.employees.create_index([("department_id", ASCENDING)])
    await database.employees.create_index([("user_id", ASCENDING)])
