"""Seed the first admin account.

``/api/auth/create-user`` only accepts callers that are already admins, so
a fresh database needs one admin created out of band::

    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=... ems-create-admin
"""
import asyncio
import logging

from motor.motor_asyncio import AsyncIOMotorClient

from ems.core.config import settings
from ems.core.permissions import Role
from ems.core.security import get_password_hash
from ems.db.mongodb import ensure_indexes
from ems.models.base import utcnow

logger = logging.getLogger(__name__)


async def wait_for_mongo(uri, attempts=10, delay=3):
    for attempt in range(1, attempts + 1):
        client = AsyncIOMotorClient(uri)
        try:
            await client.admin.command("ping")
            logger.info("MongoDB ready.")
            return client
        except Exception as exc:
            client.close()
            logger.warning("Waiting for MongoDB (%s/%s): %s", attempt, attempts, exc)
            await asyncio.sleep(delay)
    raise RuntimeError(f"MongoDB unavailable after {attempts * delay}s.")


async def seed_admin(db, email, password):
    """Insert an admin Credential unless ``email`` is already registered.

    Returns ``(created, user_id)``.
    """
    email = email.strip().lower()
    existing = await db.users.find_one({"email": email})
    if existing is not None:
        return False, str(existing["_id"])

    result = await db.users.insert_one({
        "email": email,
        "password_hash": get_password_hash(password),
        "role": Role.ADMIN.value,
        "created_at": utcnow(),
    })
    return True, str(result.inserted_id)


async def create_superadmin(email, password):
    client = await wait_for_mongo(settings.MONGODB_URL)
    try:
        db = client[settings.DATABASE_NAME]
        await ensure_indexes(db)
        created, user_id = await seed_admin(db, email, password)
    finally:
        client.close()

    if created:
        logger.info("Admin %s created with id %s", email, user_id)
    else:
        logger.warning("%s already exists (id %s), left unchanged", email, user_id)


def main():
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        raise SystemExit("ADMIN_EMAIL and ADMIN_PASSWORD must be set.")
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(levelname)s %(message)s")
    asyncio.run(create_superadmin(settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD))


if __name__ == "__main__":
    main()
