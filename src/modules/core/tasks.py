"""Background tasks of the core module."""

from __future__ import annotations

from typing import Dict

import structlog
from celery import shared_task
from django.conf import settings

from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(batch_size: int | None = None) -> Dict[str, int]:
    """Publish pending outbox rows to the in-process event bus.

    Each row is handled on its own: a failing handler marks that row
    FAILED (retried on a later run until ``OUTBOX_MAX_RETRIES``) and the
    rest of the batch carries on.
    """
    limit = batch_size or settings.OUTBOX_BATCH_SIZE
    rows = list(OutboxEvent.objects.publishable(settings.OUTBOX_MAX_RETRIES)[:limit])

    published = failed = 0
    for row in rows:
        log = logger.bind(outbox_id=str(row.id), event_type=row.event_type)
        try:
            event = DomainEvent.from_record(row.event_type, row.aggregate_id, row.payload)
            event_bus.publish(event)
        except Exception as exc:  # noqa: BLE001 - recorded on the row for retry
            row.mark_as_failed(f"{type(exc).__name__}: {exc}")
            log.warning("outbox.publish_failed", retry_count=row.retry_count, error=str(exc))
            failed += 1
            continue
        row.mark_as_published()
        published += 1

    if rows:
        logger.info("outbox.batch_processed", published=published, failed=failed)
    return {"published": published, "failed": failed}
