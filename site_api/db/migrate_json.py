#!/usr/bin/env python3
"""
Import legacy JSON submission files into the record store.

Before the hosted store existed, submissions were appended to
data/contact-submissions.json and data/newsletter-subscribers.json with
camelCase timestamps (receivedAt / subscribedAt). This script moves them into
MongoDB, skipping anything already present. Safe to run more than once.

Usage:
    python -m site_api.db.migrate_json --data-dir data
"""

import argparse
import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from site_api.core.config import get_settings
from site_api.core.errors import StoreError
from site_api.core.validation import sanitize, sanitize_email
from site_api.db.store import CONTACT_SUBMISSIONS, NEWSLETTER_SUBSCRIBERS, RecordStore, build_record_store

logger = logging.getLogger(__name__)

CONTACT_FILE = "contact-submissions.json"
NEWSLETTER_FILE = "newsletter-subscribers.json"


def read_entries(file_path: Path) -> List[Dict[str, Any]]:
    if not file_path.exists():
        logger.info(f"File not found: {file_path}, skipping...")
        return []
    entries = json.loads(file_path.read_text(encoding="utf-8"))
    return entries if isinstance(entries, list) else []


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc)


def contact_record(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(entry["id"]),
        "name": sanitize(entry.get("name")),
        "email": sanitize_email(entry.get("email")),
        "project": sanitize(entry.get("project")) or None,
        "message": sanitize(entry.get("message")),
        "received_at": parse_timestamp(entry.get("receivedAt")),
    }


def subscriber_record(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(entry["id"]),
        "name": sanitize(entry.get("name")) or None,
        "email": sanitize_email(entry.get("email")),
        "subscribed_at": parse_timestamp(entry.get("subscribedAt")),
    }


async def migrate_collection(store: RecordStore, entries, collection: str, to_record, dedupe_field: str) -> Dict[str, int]:
    """
    Insert legacy entries one by one.

    An entry is skipped when its dedupe field already exists in the store,
    when the insert reports a uniqueness conflict, or when it is malformed or
    rejected by the store.
    """
    migrated = 0
    skipped = 0

    for entry in entries:
        try:
            record = to_record(entry)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"   Malformed entry in {collection}: {str(e)}")
            skipped += 1
            continue

        try:
            if await store.find_by_key(collection, dedupe_field, record[dedupe_field]):
                logger.info(f"   Skipping duplicate {dedupe_field}: {record[dedupe_field]}")
                skipped += 1
                continue

            result = await store.insert(collection, record)
        except StoreError as e:
            logger.error(f"   Error migrating {record['id']}: {e.message}")
            skipped += 1
            continue

        if result.inserted:
            migrated += 1
            logger.info(f"   ✓ Migrated {collection} entry: {record['email']}")
        else:
            logger.info(f"   Skipping duplicate (unique constraint): {record['email']}")
            skipped += 1

    return {"migrated": migrated, "skipped": skipped}


async def migrate(store: RecordStore, data_dir: Path) -> Dict[str, Dict[str, int]]:
    logger.info("📝 Migrating contact submissions...")
    contacts = await migrate_collection(
        store, read_entries(data_dir / CONTACT_FILE), CONTACT_SUBMISSIONS, contact_record, "id"
    )
    logger.info(f"   ✅ Contact submissions: {contacts['migrated']} migrated, {contacts['skipped']} skipped")

    logger.info("📧 Migrating newsletter subscribers...")
    subscribers = await migrate_collection(
        store, read_entries(data_dir / NEWSLETTER_FILE), NEWSLETTER_SUBSCRIBERS, subscriber_record, "email"
    )
    logger.info(f"   ✅ Newsletter subscribers: {subscribers['migrated']} migrated, {subscribers['skipped']} skipped")

    return {CONTACT_SUBMISSIONS: contacts, NEWSLETTER_SUBSCRIBERS: subscribers}


def main(argv=None):
    parser = argparse.ArgumentParser(description="Import legacy JSON submissions into MongoDB")
    parser.add_argument("--data-dir", type=Path, default=Path("data"), help="directory holding the legacy JSON files")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    async def run():
        store = build_record_store(get_settings())
        try:
            await store.ensure_schema()
            return await migrate(store, args.data_dir)
        finally:
            await store.close()

    summary = asyncio.run(run())

    print("\n" + "=" * 60)
    print("MIGRATION SUMMARY")
    print("=" * 60)
    for collection, counts in summary.items():
        print(f"  {collection}: {counts['migrated']} migrated, {counts['skipped']} skipped")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
