"""Transactional workflow transitions for scripts and videos.

Every transition is one unit of work on the caller's session: the stage write
(which always drops the reviewer claim), the review decision for
APPROVE/REJECT, the publication side records for PUBLISH and exactly one audit
entry. Either all of it commits or none of it does. Notifications go out only
after the commit.
"""

from __future__ import annotations

import os
import uuid

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from reviewflow.logging_config import get_logger
from reviewflow.models.review import ScriptReview, VideoReview
from reviewflow.models.script import Script
from reviewflow.models.topic import Topic
from reviewflow.models.video import Video
from reviewflow.models.video_analytics import VideoAnalytics
from reviewflow.services.audit import Actor, record_audit
from reviewflow.services.errors import Forbidden, InvalidTransition, NotFound, ValidationError
from reviewflow.services.notifications import NotificationEvent, Notifier, event_type_for, notify
from reviewflow.services.state_machine import as_value, validate_transition
from reviewflow.services.tokens import utcnow
from reviewflow.utils.constants import (
    REVIEW_ACTIONS,
    Action,
    ContentKind,
    ReviewDecision,
    ScriptStatus,
    TopicStatus,
    UserRole,
    VideoStatus,
)

logger = get_logger(__name__)

DEEP_LINK_BASE = os.getenv("DEEP_LINK_BASE", "practo://hub").rstrip("/")

MODELS = {
    ContentKind.SCRIPT.value: Script,
    ContentKind.VIDEO.value: Video,
}

LOCK_ROLES = frozenset({UserRole.CONTENT_APPROVER.value, UserRole.SUPER_ADMIN.value})
UNLOCK_ROLES = frozenset({UserRole.SUPER_ADMIN.value})
PUBLISH_ROLES = frozenset({UserRole.PUBLISHER.value, UserRole.SUPER_ADMIN.value})

# APPROVED and LOCKED share their names across both kinds
APPROVED = ScriptStatus.APPROVED.value
LOCKED = ScriptStatus.LOCKED.value


def model_for(kind):
    try:
        return MODELS[as_value(kind)]
    except KeyError:
        raise ValidationError(f"Unknown content kind: {as_value(kind)}")


def load_item(db: Session, kind, item_id: uuid.UUID):
    item = db.get(model_for(kind), item_id)
    if item is None:
        raise NotFound(f"{as_value(kind).capitalize()} not found")
    return item


def deep_link_for(video_id: uuid.UUID) -> str:
    return f"{DEEP_LINK_BASE}/video/{video_id}"


def _record_review(db: Session, kind: str, item, action: str, actor: Actor, comments: str | None):
    decision = ReviewDecision.APPROVED.value if action == Action.APPROVE.value else ReviewDecision.REJECTED.value
    if kind == ContentKind.SCRIPT.value:
        review = ScriptReview(script_id=item.id)
    else:
        review = VideoReview(video_id=item.id)
    review.reviewer_id = actor.user_id
    review.reviewer_type = actor.role
    review.decision = decision
    review.comments = comments
    review.reviewed_at = utcnow()
    db.add(review)
    return review


def ensure_analytics(db: Session, video_id: uuid.UUID) -> VideoAnalytics:
    """Create the zeroed analytics row for ``video_id`` unless it exists."""
    existing = db.execute(
        select(VideoAnalytics).where(VideoAnalytics.video_id == video_id)
    ).scalar_one_or_none()
    if existing is not None:
        return existing
    row = VideoAnalytics(video_id=video_id)
    db.add(row)
    return row


def _commit_transition(
    db: Session,
    kind: str,
    item,
    action: str,
    next_stage: str,
    actor: Actor,
    comments: str | None = None,
    notifier: Notifier | None = None,
    audit_action: str | None = None,
):
    model = type(item)
    old_stage = item.status
    now = utcnow()

    values = {
        "status": next_stage,
        "assigned_reviewer_id": None,
        "assigned_at": None,
        "updated_at": now,
    }
    new_value: dict = {"status": next_stage}

    if action == Action.LOCK.value:
        values["locked_by_id"] = actor.user_id
        values["locked_at"] = now
        new_value["locked_by_id"] = actor.user_id
    elif old_stage == LOCKED:
        values["locked_by_id"] = None
        values["locked_at"] = None

    if action == Action.PUBLISH.value:
        values["published_at"] = now
        values["published_by_id"] = actor.user_id
        values["deep_link"] = deep_link_for(item.id)
        new_value["deep_link"] = values["deep_link"]

    try:
        result = db.execute(
            update(model)
            .where(model.id == item.id, model.status == old_stage)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidTransition(
                f"{kind.capitalize()} left stage {old_stage} before {action} was applied; reload and retry"
            )

        if action in REVIEW_ACTIONS:
            _record_review(db, kind, item, action, actor, comments)

        if action == Action.PUBLISH.value:
            ensure_analytics(db, item.id)
            db.execute(
                update(Topic)
                .where(Topic.id == item.topic_id)
                .values(status=TopicStatus.COMPLETED.value, updated_at=now)
                .execution_options(synchronize_session=False)
            )

        record_audit(
            db,
            actor,
            audit_action or f"{action}_{kind}",
            kind,
            item.id,
            old_value={"status": old_stage},
            new_value=new_value,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(item)

    logger.info(
        "workflow_transition_applied",
        kind=kind,
        item_id=str(item.id),
        action=action,
        old_stage=old_stage,
        new_stage=next_stage,
        actor_id=str(actor.user_id),
    )

    notify(
        notifier,
        NotificationEvent(
            event_type=event_type_for(kind, action),
            entity_type=kind,
            entity_id=item.id,
            topic_id=item.topic_id,
            actor_id=actor.user_id,
            actor_role=actor.role,
            next_stage=next_stage,
            comments=comments,
            version=item.version,
            deep_link=getattr(item, "deep_link", None),
            uploaded_by_id=item.uploaded_by_id,
        ),
    )
    return item


def apply_transition(
    db: Session,
    kind,
    item_id: uuid.UUID,
    action,
    actor: Actor,
    comments: str | None = None,
    notifier: Notifier | None = None,
):
    """Move an item through the workflow table.

    Raises NotFound, InvalidTransition, Forbidden, or ValidationError (REJECT
    without comments, checked before touching the store).
    """
    kind, action = as_value(kind), as_value(action)
    comments = (comments or "").strip() or None

    if action == Action.REJECT.value and not comments:
        raise ValidationError("Rejection comments are required")

    item = load_item(db, kind, item_id)
    next_stage = validate_transition(kind, item.status, action, actor.role)
    return _commit_transition(db, kind, item, action, next_stage, actor, comments, notifier)


def submit(db: Session, kind, item_id: uuid.UUID, actor: Actor, notifier: Notifier | None = None):
    return apply_transition(db, kind, item_id, Action.SUBMIT, actor, notifier=notifier)


def approve(db: Session, kind, item_id: uuid.UUID, actor: Actor, comments: str | None = None, notifier: Notifier | None = None):
    return apply_transition(db, kind, item_id, Action.APPROVE, actor, comments, notifier)


def reject(db: Session, kind, item_id: uuid.UUID, actor: Actor, comments: str, notifier: Notifier | None = None):
    """Send an item one stage back. ``comments`` are mandatory."""
    return apply_transition(db, kind, item_id, Action.REJECT, actor, comments, notifier)


def lock(db: Session, kind, item_id: uuid.UUID, actor: Actor, notifier: Notifier | None = None):
    """Freeze an APPROVED item for production (content approver / super admin)."""
    kind = as_value(kind)
    if actor.role not in LOCK_ROLES:
        raise Forbidden(
            f"Only Content Approver or Super Admin can lock {kind.lower()}s",
            required_roles=LOCK_ROLES,
            actor_role=actor.role,
        )

    item = load_item(db, kind, item_id)
    if item.status != APPROVED:
        raise InvalidTransition(
            f"{kind.capitalize()} must be in APPROVED stage to lock. Current: {item.status}. Doctor must approve first."
        )

    return _commit_transition(db, kind, item, Action.LOCK.value, LOCKED, actor, notifier=notifier)


def unlock(db: Session, kind, item_id: uuid.UUID, actor: Actor, notifier: Notifier | None = None):
    """Emergency override: LOCKED back to APPROVED. Super admin only."""
    kind = as_value(kind)
    if actor.role not in UNLOCK_ROLES:
        raise Forbidden(
            f"Only Super Admin can unlock {kind.lower()}s",
            required_roles=UNLOCK_ROLES,
            actor_role=actor.role,
        )

    item = load_item(db, kind, item_id)
    if item.status != LOCKED:
        raise InvalidTransition(f"{kind.capitalize()} is not locked. Current stage: {item.status}")

    return _commit_transition(
        db,
        kind,
        item,
        Action.UNLOCK.value,
        APPROVED,
        actor,
        notifier=notifier,
        audit_action=f"EMERGENCY_UNLOCK_{kind}",
    )


def publish(db: Session, video_id: uuid.UUID, actor: Actor, notifier: Notifier | None = None):
    """Publish a LOCKED video and complete its topic in the same transaction."""
    kind = ContentKind.VIDEO.value
    if actor.role not in PUBLISH_ROLES:
        raise Forbidden(
            "Only Publisher or Super Admin can publish videos",
            required_roles=PUBLISH_ROLES,
            actor_role=actor.role,
        )

    video = load_item(db, kind, video_id)
    if video.status != VideoStatus.LOCKED.value:
        raise InvalidTransition(f"Video must be LOCKED to publish. Current: {video.status}")

    next_stage = validate_transition(kind, video.status, Action.PUBLISH, actor.role)
    return _commit_transition(db, kind, video, Action.PUBLISH.value, next_stage, actor, notifier=notifier)


def archive(db: Session, video_id: uuid.UUID, actor: Actor, notifier: Notifier | None = None):
    return apply_transition(db, ContentKind.VIDEO, video_id, Action.ARCHIVE, actor, notifier=notifier)
