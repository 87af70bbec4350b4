"""Utilities for recording the dashboard activity feed."""

from __future__ import annotations

from stockdesk.extensions import db
from stockdesk.models import ActivityEvent


def _trimmed(value: str | None, *, limit: int) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    return value[:limit]


def record_activity(event_type: str, message: str, *, user_name: str | None = None) -> ActivityEvent:
    """Queue an :class:`ActivityEvent` on the current session.

    The caller owns the transaction; the event is written together with the
    state change it describes.
    """

    event = ActivityEvent(
        event_type=event_type,
        message=_trimmed(message, limit=255) or event_type,
        user_name=_trimmed(user_name, limit=255) or "System",
    )
    db.session.add(event)
    return event


def recent_activity(limit: int = 10) -> list[ActivityEvent]:
    return (
        ActivityEvent.query.order_by(ActivityEvent.created_at.desc(), ActivityEvent.id.desc())
        .limit(limit)
        .all()
    )
