import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from reviewflow.database import get_db
from reviewflow.models.user import User
from reviewflow.routers.deps import get_notifier, http_error
from reviewflow.schemas.workflow import (
    RejectRequest,
    ReviewOut,
    ReviewRequest,
    VideoCreate,
    VideoOut,
    VideoQueueOut,
)
from reviewflow.services import claims, items, workflow
from reviewflow.services.authz import actor_from, require_permission
from reviewflow.services.errors import WorkflowError
from reviewflow.services.notifications import Notifier
from reviewflow.services.review_queue import get_queue
from reviewflow.utils.constants import ContentKind

router = APIRouter(prefix="/videos", tags=["videos"])

KIND = ContentKind.VIDEO

# anyone who can hold a video at some stage
CLAIM_PERMS = ("review_video", "approve_video", "lock_video", "publish_content")


@router.post("", response_model=VideoOut, status_code=201)
def create_video(
    payload: VideoCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("upload_video")),
):
    try:
        return items.create_video(
            db,
            payload.topic_id,
            payload.title,
            payload.video_url,
            user.id,
            description=payload.description,
            thumbnail_url=payload.thumbnail_url,
            script_id=payload.script_id,
        )
    except WorkflowError as e:
        raise http_error(e)


@router.get("/queue", response_model=VideoQueueOut)
def queue(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(*CLAIM_PERMS)),
):
    q = get_queue(db, KIND, user.role, user.id)
    return {"available": q.available, "mine": q.mine}


@router.get("/{video_id}", response_model=VideoOut)
def get_video(
    video_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("view_content", "review_video")),
):
    try:
        return workflow.load_item(db, KIND, video_id)
    except WorkflowError as e:
        raise http_error(e)


@router.get("/{video_id}/reviews", response_model=list[ReviewOut])
def reviews(
    video_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("view_content", "review_video")),
):
    try:
        return items.get_reviews(db, KIND, video_id)
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{video_id}/submit", response_model=VideoOut)
def submit(
    video_id: uuid.UUID,
    req: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("submit_for_review")),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        return workflow.submit(db, KIND, video_id, actor_from(user, req), notifier=notifier)
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{video_id}/approve", response_model=VideoOut)
def approve(
    video_id: uuid.UUID,
    req: Request,
    payload: ReviewRequest | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("approve_video")),
    notifier: Notifier = Depends(get_notifier),
):
    comments = payload.comments if payload else None
    try:
        return workflow.approve(db, KIND, video_id, actor_from(user, req), comments, notifier=notifier)
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{video_id}/reject", response_model=VideoOut)
def reject(
    video_id: uuid.UUID,
    payload: RejectRequest,
    req: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("reject_video")),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        return workflow.reject(db, KIND, video_id, actor_from(user, req), payload.comments, notifier=notifier)
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{video_id}/lock", response_model=VideoOut)
def lock(
    video_id: uuid.UUID,
    req: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("lock_video")),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        return workflow.lock(db, KIND, video_id, actor_from(user, req), notifier=notifier)
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{video_id}/unlock", response_model=VideoOut)
def unlock(
    video_id: uuid.UUID,
    req: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("unlock_content")),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        return workflow.unlock(db, KIND, video_id, actor_from(user, req), notifier=notifier)
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{video_id}/publish", response_model=VideoOut)
def publish(
    video_id: uuid.UUID,
    req: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("publish_content")),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        return workflow.publish(db, video_id, actor_from(user, req), notifier=notifier)
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{video_id}/archive", response_model=VideoOut)
def archive(
    video_id: uuid.UUID,
    req: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("archive_content")),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        return workflow.archive(db, video_id, actor_from(user, req), notifier=notifier)
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{video_id}/claim", response_model=VideoOut)
def claim(
    video_id: uuid.UUID,
    req: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(*CLAIM_PERMS)),
):
    try:
        return claims.claim(db, KIND, video_id, actor_from(user, req))
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{video_id}/release", response_model=VideoOut)
def release(
    video_id: uuid.UUID,
    req: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(*CLAIM_PERMS)),
):
    try:
        return claims.release(db, KIND, video_id, actor_from(user, req))
    except WorkflowError as e:
        raise http_error(e)
