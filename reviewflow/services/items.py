"""Item creation and history reads.

New scripts and videos always start at DRAFT with the next free version for
their topic. A new video moves its topic along to IN_PROGRESS unless it is
COMPLETED. A new script does so only when the topic is at
DOCTOR_INPUT_RECEIVED.
"""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from reviewflow.logging_config import get_logger
from reviewflow.models.audit_log import AuditLog
from reviewflow.models.review import ScriptReview, VideoReview
from reviewflow.models.script import Script
from reviewflow.models.topic import Topic
from reviewflow.models.video import Video
from reviewflow.services.errors import NotFound, ValidationError
from reviewflow.services.state_machine import as_value
from reviewflow.services.tokens import utcnow
from reviewflow.services.workflow import load_item
from reviewflow.utils.constants import ContentKind, ScriptStatus, TopicStatus, VideoStatus

logger = get_logger(__name__)


def _load_topic(db: Session, topic_id: uuid.UUID) -> Topic:
    topic = db.get(Topic, topic_id)
    if topic is None:
        raise NotFound("Topic not found")
    return topic


def _next_version(db: Session, model, topic_id: uuid.UUID) -> int:
    latest = db.execute(select(func.max(model.version)).where(model.topic_id == topic_id)).scalar()
    return (latest or 0) + 1


def _mark_in_progress(topic: Topic, from_statuses=None):
    if from_statuses is not None and topic.status not in from_statuses:
        return
    if topic.status != TopicStatus.COMPLETED.value:
        topic.status = TopicStatus.IN_PROGRESS.value
        topic.updated_at = utcnow()


def create_script(db: Session, topic_id: uuid.UUID, content: str, uploaded_by_id: uuid.UUID) -> Script:
    topic = _load_topic(db, topic_id)
    if not (content or "").strip():
        raise ValidationError("Script content is required")

    try:
        script = Script(
            topic_id=topic.id,
            version=_next_version(db, Script, topic.id),
            content=content,
            status=ScriptStatus.DRAFT.value,
            uploaded_by_id=uploaded_by_id,
        )
        db.add(script)
        _mark_in_progress(topic, from_statuses={TopicStatus.DOCTOR_INPUT_RECEIVED.value})
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(script)
    logger.info("script_created", script_id=str(script.id), topic_id=str(topic.id), version=script.version)
    return script


def create_video(
    db: Session,
    topic_id: uuid.UUID,
    title: str,
    video_url: str,
    uploaded_by_id: uuid.UUID,
    description: str | None = None,
    thumbnail_url: str | None = None,
    script_id: uuid.UUID | None = None,
) -> Video:
    topic = _load_topic(db, topic_id)
    if not (title or "").strip():
        raise ValidationError("Video title is required")
    if not (video_url or "").strip():
        raise ValidationError("Video URL is required")
    if script_id is not None:
        script = db.get(Script, script_id)
        if script is None:
            raise NotFound("Script not found")
        if script.topic_id != topic.id:
            raise ValidationError("Script does not belong to the specified topic")

    try:
        video = Video(
            topic_id=topic.id,
            script_id=script_id,
            version=_next_version(db, Video, topic.id),
            title=title.strip(),
            description=description,
            video_url=video_url.strip(),
            thumbnail_url=thumbnail_url,
            status=VideoStatus.DRAFT.value,
            uploaded_by_id=uploaded_by_id,
        )
        db.add(video)
        _mark_in_progress(topic)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(video)
    logger.info("video_created", video_id=str(video.id), topic_id=str(topic.id), version=video.version)
    return video


def get_reviews(db: Session, kind, item_id: uuid.UUID) -> list:
    """Review decisions for one item, newest first."""
    kind = as_value(kind)
    item = load_item(db, kind, item_id)
    if kind == ContentKind.SCRIPT.value:
        q = select(ScriptReview).where(ScriptReview.script_id == item.id).order_by(ScriptReview.created_at.desc())
    else:
        q = select(VideoReview).where(VideoReview.video_id == item.id).order_by(VideoReview.created_at.desc())
    return list(db.execute(q).scalars().all())


def get_audit_trail(db: Session, kind, item_id: uuid.UUID) -> list[AuditLog]:
    kind = as_value(kind)
    item = load_item(db, kind, item_id)
    q = (
        select(AuditLog)
        .where(AuditLog.entity_type == kind, AuditLog.entity_id == item.id)
        .order_by(AuditLog.created_at.asc())
    )
    return list(db.execute(q).scalars().all())
