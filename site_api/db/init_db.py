#!/usr/bin/env python3
"""
Schema setup for the submission collections.

Creates whatever collections are missing and makes sure their indexes exist,
so it is safe to run on every start. The unique index on
newsletter_subscribers.email is what settles two simultaneous signups for the
same address: exactly one insert wins.

Usage:
    python -m site_api.db.init_db
"""

import asyncio
import logging
from datetime import datetime, timezone

from pymongo import ASCENDING, IndexModel
from pymongo.errors import PyMongoError

from site_api.core.config import get_settings
from site_api.db.mongo import create_client

logger = logging.getLogger(__name__)

SUBMISSION_INDEXES = {
    "contact_submissions": [
        IndexModel([("email", ASCENDING)], name="email_idx"),
        IndexModel([("received_at", ASCENDING)], name="received_at_idx"),
        IndexModel([("followup_sent_at", ASCENDING)], name="followup_sent_at_idx"),
    ],
    "newsletter_subscribers": [
        IndexModel([("email", ASCENDING)], name="email_unique", unique=True),
        IndexModel([("subscribed_at", ASCENDING)], name="subscribed_at_idx"),
    ],
}


async def ensure_collection(db, name, indexes, existing) -> bool:
    """
    Create one collection if absent and build its indexes.

    Returns:
        bool: False if the collection or one of its indexes could not be created
    """
    try:
        if name in existing:
            logger.info(f"✅ Collection '{name}' already exists")
        else:
            await db.create_collection(name)
            logger.info(f"✅ Collection '{name}' created")

        index_names = await db[name].create_indexes(indexes)
        logger.debug(f"Indexes on '{name}': {index_names}")
        return True
    except PyMongoError as e:
        logger.error(f"❌ Schema setup for '{name}' failed: {str(e)}")
        return False


async def initialize_database(db) -> bool:
    """
    Ensure every submission collection and index exists.

    Returns:
        bool: True if the whole schema is in place
    """
    started = datetime.now(timezone.utc)
    logger.info(f"🚀 Initializing database: {db.name}")

    try:
        existing = set(await db.list_collection_names())
    except PyMongoError as e:
        logger.error(f"❌ Cannot list collections in '{db.name}': {str(e)}")
        return False

    failed = 0
    for name, indexes in SUBMISSION_INDEXES.items():
        if not await ensure_collection(db, name, indexes, existing):
            failed += 1

    elapsed = (datetime.now(timezone.utc) - started).total_seconds()
    if failed:
        logger.warning(f"⚠️ Database initialization finished with {failed} failed collection(s) in {elapsed:.2f}s")
        return False

    logger.info(f"🎉 Database initialization completed: {len(SUBMISSION_INDEXES)} collections in {elapsed:.2f}s")
    return True


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    uri = get_settings().effective_mongo_uri
    if not uri:
        print("MONGODB_URL is not set")
        return 1

    async def run():
        client, db = create_client(uri)
        try:
            return await initialize_database(db)
        finally:
            client.close()

    success = asyncio.run(run())
    print(f"Initialization: {'SUCCESS' if success else 'FAILED'}")
    return 0 if success else 1


if __name__ == "__main__":
    raise SystemExit(main())
