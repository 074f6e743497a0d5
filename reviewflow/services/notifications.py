"""Workflow notifications.

The engine hands a :class:`NotificationEvent` to a notifier callable after the
transition has committed. The HTTP layer wires that callable to FastAPI
background tasks running :func:`deliver_event`, so delivery never sits on the
request path and never rolls a transition back.
"""

from __future__ import annotations

import asyncio
import html
import os
import uuid
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from reviewflow.database import SessionLocal
from reviewflow.logging_config import get_logger
from reviewflow.models.user import User
from reviewflow.services import mailer
from reviewflow.services.state_machine import stage_roles
from reviewflow.utils.constants import Action, UserRole

logger = get_logger(__name__)

NOTIFY_MAX_ATTEMPTS = int(os.getenv("NOTIFY_MAX_ATTEMPTS", "3"))
NOTIFY_BACKOFF_SECONDS = float(os.getenv("NOTIFY_BACKOFF_SECONDS", "2"))

_EVENT_SUFFIX = {
    Action.SUBMIT.value: "SUBMITTED",
    Action.APPROVE.value: "APPROVED",
    Action.REJECT.value: "REJECTED",
    Action.LOCK.value: "LOCKED",
    Action.UNLOCK.value: "UNLOCKED",
    Action.PUBLISH.value: "PUBLISHED",
    Action.ARCHIVE.value: "ARCHIVED",
}

# events where the uploader hears back as well as the next reviewers
_OWNER_EVENTS = {"REJECTED", "LOCKED", "PUBLISHED"}


@dataclass
class NotificationEvent:
    event_type: str
    entity_type: str
    entity_id: uuid.UUID
    topic_id: uuid.UUID
    actor_id: uuid.UUID
    actor_role: str
    next_stage: str
    comments: str | None = None
    version: int | None = None
    deep_link: str | None = None
    uploaded_by_id: uuid.UUID | None = None


Notifier = Callable[[NotificationEvent], None]


def event_type_for(kind: str, action: str) -> str:
    return f"{kind}_{_EVENT_SUFFIX[action]}"


def notify(notifier: Notifier | None, event: NotificationEvent) -> None:
    """Hand ``event`` to ``notifier``; failures are logged, never raised."""
    if notifier is None:
        return
    try:
        notifier(event)
    except Exception as e:
        logger.warning(
            "notification_handoff_failed",
            event_type=event.event_type,
            entity_id=str(event.entity_id),
            error=str(e),
        )


def resolve_recipients(db: Session, event: NotificationEvent) -> list[User]:
    roles = set(stage_roles(event.entity_type, event.next_stage)) - {UserRole.SUPER_ADMIN.value}

    conds = []
    if roles:
        conds.append(User.role.in_(sorted(roles)))
    suffix = event.event_type.split("_", 1)[1]
    if suffix in _OWNER_EVENTS and event.uploaded_by_id is not None:
        conds.append(User.id == event.uploaded_by_id)
    if not conds:
        return []

    q = select(User).where(User.is_active == True, or_(*conds))  # noqa
    return [u for u in db.execute(q).scalars().all() if u.id != event.actor_id]


def build_message(event: NotificationEvent) -> tuple[str, str]:
    kind = event.entity_type.capitalize()
    action = event.event_type.split("_", 1)[1].lower()
    version = f" (v{event.version})" if event.version else ""

    subject = f"{kind}{version} {action}"
    link = event.deep_link or mailer.item_link(event.entity_type, event.entity_id)
    lines = [
        f"<h2>{subject}</h2>",
        f"<p>The {kind.lower()} is now at <strong>{event.next_stage}</strong>.</p>",
    ]
    if event.comments:
        lines.append(f"<p><strong>Comments:</strong> {html.escape(event.comments)}</p>")
    lines.append(f"<p><a href='{link}'>{link}</a></p>")
    return subject, "\n".join(lines)


async def deliver_event(event: NotificationEvent, session_factory=SessionLocal) -> bool:
    """Email the recipients of ``event``, retrying with exponential backoff.

    Delivery is at-least-once: a retry after a timed-out send may duplicate
    the email. Returns True once sent (or when there is nobody to tell).
    """
    db = session_factory()
    try:
        recipients = [u.email for u in resolve_recipients(db, event)]
    finally:
        db.close()

    if not recipients:
        logger.info("notification_no_recipients", event_type=event.event_type, entity_id=str(event.entity_id))
        return True

    subject, body = build_message(event)

    for attempt in range(1, NOTIFY_MAX_ATTEMPTS + 1):
        try:
            await mailer.send_email(recipients, subject, body, tags={"event_type": event.event_type})
            logger.info(
                "notification_sent",
                event_type=event.event_type,
                entity_id=str(event.entity_id),
                recipients=len(recipients),
                attempt=attempt,
            )
            return True
        except mailer.MailerNotConfigured as e:
            logger.warning("notification_skipped", event_type=event.event_type, reason=str(e))
            return False
        except Exception as e:
            logger.warning(
                "notification_attempt_failed",
                event_type=event.event_type,
                entity_id=str(event.entity_id),
                attempt=attempt,
                error=str(e),
            )
            if attempt < NOTIFY_MAX_ATTEMPTS:
                await asyncio.sleep(NOTIFY_BACKOFF_SECONDS * 2 ** (attempt - 1))

    logger.error("notification_failed", event_type=event.event_type, entity_id=str(event.entity_id))
    return False
