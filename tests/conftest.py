"""
Pytest configuration and fixtures for all tests.
"""

import asyncio
import os
from collections import defaultdict

import pytest
from fastapi.testclient import TestClient

# Set up test environment variables before importing any modules
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.pop("MONGODB_URL", None)
os.environ.pop("MONGO_URI", None)

from site_api.core.config import Settings  # noqa: E402
from site_api.core.errors import StoreUnavailable  # noqa: E402
from site_api.db.store import NEWSLETTER_SUBSCRIBERS, InsertOutcome, InsertResult, RecordStore  # noqa: E402
from site_api.main import create_app  # noqa: E402
from site_api.models.email import EmailDispatchResult, EmailFailure  # noqa: E402


class InMemoryRecordStore(RecordStore):
    """RecordStore keeping rows in dicts, with the same uniqueness rules as the MongoDB indexes."""

    UNIQUE_FIELDS = {NEWSLETTER_SUBSCRIBERS: ("email",)}

    def __init__(self):
        self.collections = defaultdict(dict)
        self.unavailable = False
        self.lookups_fail = False
        self.schema_ready = False
        self.closed = False

    def rows(self, collection):
        return list(self.collections[collection].values())

    def _check_available(self):
        if self.unavailable:
            raise StoreUnavailable("Cannot reach MongoDB: connection refused")

    async def insert(self, collection, record):
        # yield so concurrent submissions interleave like real network calls
        await asyncio.sleep(0)
        self._check_available()
        rows = self.collections[collection]
        conflict = record["id"] in rows or any(
            row.get(field) == record.get(field)
            for field in self.UNIQUE_FIELDS.get(collection, ())
            for row in rows.values()
        )
        if conflict:
            return InsertResult(InsertOutcome.ALREADY_EXISTS, dict(record))
        rows[record["id"]] = dict(record)
        return InsertResult(InsertOutcome.INSERTED, dict(record))

    async def find_by_key(self, collection, field_name, value):
        await asyncio.sleep(0)
        self._check_available()
        if self.lookups_fail:
            raise StoreUnavailable("Cannot reach MongoDB: lookup timed out")
        for row in self.collections[collection].values():
            if row.get(field_name) == value:
                return dict(row)
        return None

    async def find_due(self, collection, *, timestamp_field, older_than, newer_than, marker_field, limit=100):
        self._check_available()
        due = [
            dict(row) for row in self.collections[collection].values()
            if newer_than < row[timestamp_field] <= older_than and marker_field not in row
        ]
        due.sort(key=lambda row: row[timestamp_field])
        return due[:limit]

    async def mark(self, collection, record_id, field_name, value):
        self._check_available()
        self.collections[collection][record_id][field_name] = value

    async def ensure_schema(self):
        self.schema_ready = True
        return True

    async def close(self):
        self.closed = True


class RecordingNotifier:
    """Notifier stand-in that records every send instead of talking SMTP."""

    def __init__(self, configured=True):
        self.is_configured = configured
        self.results = {}
        self.sent = []

    def log_configuration(self):
        pass

    def kinds(self):
        return [kind for kind, _, _ in self.sent]

    async def send(self, kind, record, attachments=()):
        await asyncio.sleep(0)
        if not self.is_configured:
            return EmailDispatchResult.failed(EmailFailure.CONFIGURATION_MISSING, "SMTP configuration is missing.")
        if kind in self.results:
            return self.results[kind]
        self.sent.append((kind, dict(record), list(attachments)))
        return EmailDispatchResult.sent(f"<{kind.value}-{len(self.sent)}@archikmor.test>")


@pytest.fixture
def catalogue_file(tmp_path):
    path = tmp_path / "Archikmor-Catalog2026.pdf"
    path.write_bytes(b"%PDF-1.4\n% test catalogue\n%%EOF\n")
    return path


@pytest.fixture
def settings(catalogue_file):
    return Settings(
        _env_file=None,
        smtp_email="team@archikmor.com",
        smtp_password="app-password",
        notification_email="sales@archikmor.com",
        website_url="https://archikmor.test",
        catalogue_path=catalogue_file,
        environment="development",
    )


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def unconfigured_notifier():
    return RecordingNotifier(configured=False)


@pytest.fixture
def app(settings, store, notifier):
    return create_app(settings=settings, store=store, notifier=notifier)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
