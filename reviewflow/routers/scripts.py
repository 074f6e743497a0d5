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
    ScriptCreate,
    ScriptOut,
    ScriptQueueOut,
)
from reviewflow.services import claims, items, workflow
from reviewflow.services.authz import actor_from, require_permission
from reviewflow.services.errors import WorkflowError
from reviewflow.services.notifications import Notifier
from reviewflow.services.review_queue import get_queue
from reviewflow.utils.constants import ContentKind

router = APIRouter(prefix="/scripts", tags=["scripts"])

KIND = ContentKind.SCRIPT


@router.post("", response_model=ScriptOut, status_code=201)
def create_script(
    payload: ScriptCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("upload_script")),
):
    try:
        return items.create_script(db, payload.topic_id, payload.content, user.id)
    except WorkflowError as e:
        raise http_error(e)


@router.get("/queue", response_model=ScriptQueueOut)
def queue(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("review_script", "approve_script", "lock_script")),
):
    q = get_queue(db, KIND, user.role, user.id)
    return {"available": q.available, "mine": q.mine}


@router.get("/{script_id}", response_model=ScriptOut)
def get_script(
    script_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("view_content", "review_script")),
):
    try:
        return workflow.load_item(db, KIND, script_id)
    except WorkflowError as e:
        raise http_error(e)


@router.get("/{script_id}/reviews", response_model=list[ReviewOut])
def reviews(
    script_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("view_content", "review_script")),
):
    try:
        return items.get_reviews(db, KIND, script_id)
    except WorkflowError as e:
        raise http_error(e)


@router.get("/{script_id}/audit")
def audit_trail(
    script_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("view_logs")),
):
    try:
        entries = items.get_audit_trail(db, KIND, script_id)
    except WorkflowError as e:
        raise http_error(e)
    return [
        {
            "id": str(a.id),
            "user_id": str(a.user_id),
            "action": a.action,
            "old_value": a.old_value,
            "new_value": a.new_value,
            "created_at": a.created_at,
        }
        for a in entries
    ]


@router.post("/{script_id}/submit", response_model=ScriptOut)
def submit(
    script_id: uuid.UUID,
    req: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("submit_for_review")),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        return workflow.submit(db, KIND, script_id, actor_from(user, req), notifier=notifier)
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{script_id}/approve", response_model=ScriptOut)
def approve(
    script_id: uuid.UUID,
    req: Request,
    payload: ReviewRequest | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("approve_script")),
    notifier: Notifier = Depends(get_notifier),
):
    comments = payload.comments if payload else None
    try:
        return workflow.approve(db, KIND, script_id, actor_from(user, req), comments, notifier=notifier)
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{script_id}/reject", response_model=ScriptOut)
def reject(
    script_id: uuid.UUID,
    payload: RejectRequest,
    req: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("reject_script")),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        return workflow.reject(db, KIND, script_id, actor_from(user, req), payload.comments, notifier=notifier)
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{script_id}/lock", response_model=ScriptOut)
def lock(
    script_id: uuid.UUID,
    req: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("lock_script")),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        return workflow.lock(db, KIND, script_id, actor_from(user, req), notifier=notifier)
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{script_id}/unlock", response_model=ScriptOut)
def unlock(
    script_id: uuid.UUID,
    req: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("unlock_content")),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        return workflow.unlock(db, KIND, script_id, actor_from(user, req), notifier=notifier)
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{script_id}/claim", response_model=ScriptOut)
def claim(
    script_id: uuid.UUID,
    req: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("review_script", "approve_script", "lock_script")),
):
    try:
        return claims.claim(db, KIND, script_id, actor_from(user, req))
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{script_id}/release", response_model=ScriptOut)
def release(
    script_id: uuid.UUID,
    req: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("review_script", "approve_script", "lock_script")),
):
    try:
        return claims.release(db, KIND, script_id, actor_from(user, req))
    except WorkflowError as e:
        raise http_error(e)
