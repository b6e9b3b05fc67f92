"""
Tests for the follow-up email series.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from site_api.core.followups import send_followups
from site_api.db.store import CONTACT_SUBMISSIONS, NEWSLETTER_SUBSCRIBERS
from site_api.models.email import EmailDispatchResult, EmailFailure, EmailKind

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def days_ago(days):
    return NOW - timedelta(days=days)


@pytest.fixture
def seeded_store(store):
    subscribers = store.collections[NEWSLETTER_SUBSCRIBERS]
    subscribers["s-4d"] = {"id": "s-4d", "name": "Ana", "email": "ana@example.com", "subscribed_at": days_ago(4)}
    subscribers["s-8d"] = {"id": "s-8d", "name": None, "email": "ben@example.com", "subscribed_at": days_ago(8)}
    subscribers["s-30d"] = {"id": "s-30d", "name": "Old", "email": "old@example.com", "subscribed_at": days_ago(30)}
    subscribers["s-1d"] = {"id": "s-1d", "name": "New", "email": "new@example.com", "subscribed_at": days_ago(1)}
    store.collections[CONTACT_SUBMISSIONS]["c-3d"] = {
        "id": "c-3d", "name": "Cleo", "email": "cleo@example.com", "project": "Kitchen",
        "message": "Quote please", "received_at": days_ago(3.5),
    }
    return store


def sent_to(notifier, kind):
    return [record["email"] for sent_kind, record, _ in notifier.sent if sent_kind is kind]


class TestSendFollowups:

    def test_due_records_are_mailed_once(self, seeded_store, notifier, settings):
        summary = asyncio.run(send_followups(seeded_store, notifier, settings, now=NOW))

        assert sent_to(notifier, EmailKind.NEWSLETTER_DAY3) == ["ana@example.com"]
        assert sent_to(notifier, EmailKind.NEWSLETTER_DAY7) == ["ben@example.com"]
        assert sent_to(notifier, EmailKind.CONTACT_FOLLOWUP) == ["cleo@example.com"]
        assert summary[EmailKind.NEWSLETTER_DAY3.value] == {"due": 1, "sent": 1, "failed": 0}

        subscribers = seeded_store.collections[NEWSLETTER_SUBSCRIBERS]
        assert subscribers["s-4d"]["day3_sent_at"] == NOW
        assert subscribers["s-8d"]["day7_sent_at"] == NOW
        assert seeded_store.collections[CONTACT_SUBMISSIONS]["c-3d"]["followup_sent_at"] == NOW

        notifier.sent.clear()
        asyncio.run(send_followups(seeded_store, notifier, settings, now=NOW + timedelta(hours=1)))
        assert notifier.sent == []

    def test_records_outside_window_are_ignored(self, seeded_store, notifier, settings):
        asyncio.run(send_followups(seeded_store, notifier, settings, now=NOW))

        mailed = {record["email"] for _, record, _ in notifier.sent}
        assert "old@example.com" not in mailed
        assert "new@example.com" not in mailed

    def test_failed_send_stays_due(self, seeded_store, notifier, settings):
        notifier.results[EmailKind.NEWSLETTER_DAY3] = EmailDispatchResult.failed(
            EmailFailure.CONNECTION_FAILED, "Connection refused"
        )

        summary = asyncio.run(send_followups(seeded_store, notifier, settings, now=NOW))

        assert summary[EmailKind.NEWSLETTER_DAY3.value] == {"due": 1, "sent": 0, "failed": 1}
        assert "day3_sent_at" not in seeded_store.collections[NEWSLETTER_SUBSCRIBERS]["s-4d"]

        del notifier.results[EmailKind.NEWSLETTER_DAY3]
        asyncio.run(send_followups(seeded_store, notifier, settings, now=NOW))
        assert sent_to(notifier, EmailKind.NEWSLETTER_DAY3) == ["ana@example.com"]

    def test_contact_delay_is_configurable(self, seeded_store, notifier, settings):
        settings = settings.model_copy(update={"contact_followup_days": 5})

        asyncio.run(send_followups(seeded_store, notifier, settings, now=NOW))

        assert sent_to(notifier, EmailKind.CONTACT_FOLLOWUP) == []

    def test_skipped_without_mail(self, seeded_store, unconfigured_notifier, settings):
        assert asyncio.run(send_followups(seeded_store, unconfigured_notifier, settings, now=NOW)) == {}

    def test_store_outage_is_contained(self, seeded_store, notifier, settings):
        seeded_store.unavailable = True

        summary = asyncio.run(send_followups(seeded_store, notifier, settings, now=NOW))

        assert all(counts == {"due": 0, "sent": 0, "failed": 0} for counts in summary.values())
        assert notifier.sent == []
