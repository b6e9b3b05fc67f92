"""
Follow-up email series.

A periodic job sends the delayed emails:
- newsletter subscribers get the day-3 collections email and the day-7 tips/offer email
- contact submitters get one follow-up a few days after their inquiry

Each step sets a marker field on the record once its email went out, so a
record is mailed at most once per step. Records whose send failed simply stay
due and are picked up by the next run. Records older than the step delay plus
FOLLOWUP_WINDOW_DAYS are ignored so imported history is never mass-mailed.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from site_api.core.errors import StoreError
from site_api.core.notifier import Notifier
from site_api.db.store import CONTACT_SUBMISSIONS, NEWSLETTER_SUBSCRIBERS, RecordStore
from site_api.models.email import EmailKind

logger = logging.getLogger(__name__)

FOLLOWUP_JOB_ID = "followup_emails_job"
BATCH_LIMIT = 100


@dataclass(frozen=True)
class FollowUpStep:
    kind: EmailKind
    collection: str
    timestamp_field: str
    marker_field: str
    delay_days: int


def followup_steps(settings) -> List[FollowUpStep]:
    return [
        FollowUpStep(EmailKind.NEWSLETTER_DAY3, NEWSLETTER_SUBSCRIBERS, "subscribed_at", "day3_sent_at", 3),
        FollowUpStep(EmailKind.NEWSLETTER_DAY7, NEWSLETTER_SUBSCRIBERS, "subscribed_at", "day7_sent_at", 7),
        FollowUpStep(EmailKind.CONTACT_FOLLOWUP, CONTACT_SUBMISSIONS, "received_at", "followup_sent_at",
                     settings.contact_followup_days),
    ]


async def run_step(step: FollowUpStep, store: RecordStore, notifier: Notifier, now: datetime, window_days: int) -> Dict[str, int]:
    older_than = now - timedelta(days=step.delay_days)
    newer_than = older_than - timedelta(days=window_days)

    due = await store.find_due(
        step.collection,
        timestamp_field=step.timestamp_field,
        older_than=older_than,
        newer_than=newer_than,
        marker_field=step.marker_field,
        limit=BATCH_LIMIT,
    )

    sent = failed = 0
    for record in due:
        result = await notifier.send(step.kind, record)
        if not result.success:
            failed += 1
            continue
        sent += 1
        try:
            await store.mark(step.collection, record["id"], step.marker_field, now)
        except StoreError as e:
            logger.error(f"❌ {step.kind.value} sent to {record.get('email')} but marker not saved: {e.message}")

    return {"due": len(due), "sent": sent, "failed": failed}


async def send_followups(store: RecordStore, notifier: Notifier, settings, now: Optional[datetime] = None) -> Dict[str, Dict[str, int]]:
    """
    Run every follow-up step once.

    Args:
        store: Record store holding submissions and subscribers
        notifier: Notifier used for the sends
        settings: Application settings (delays and window)
        now: Reference time, defaults to the current UTC time

    Returns:
        dict: Per email kind, counts of due/sent/failed records
    """
    if not notifier.is_configured:
        logger.info("⏭️ Follow-up emails skipped - SMTP is not configured")
        return {}

    now = now or datetime.now(timezone.utc)
    logger.info(f"🔄 Follow-up email run started at {now.isoformat()}")

    summary = {}
    for step in followup_steps(settings):
        try:
            summary[step.kind.value] = await run_step(step, store, notifier, now, settings.followup_window_days)
        except StoreError as e:
            logger.error(f"❌ Follow-up step {step.kind.value} aborted: {e.message}")
            summary[step.kind.value] = {"due": 0, "sent": 0, "failed": 0}

    logger.info(f"✅ Follow-up email run finished: {summary}")
    return summary
