"""Reviewer custody of scripts and videos.

A claim is written with a conditional UPDATE that only matches while the
claim column is still NULL and the item is still at the stage the role check
was made against. Two reviewers racing for the same item therefore cannot
both win, however many service instances are running. Claims never expire:
they end on release or when the item changes stage.
"""

from __future__ import annotations

import uuid

from sqlalchemy import update
from sqlalchemy.orm import Session

from reviewflow.logging_config import get_logger
from reviewflow.models.user import User
from reviewflow.services.audit import Actor, record_audit
from reviewflow.services.errors import AlreadyClaimed, Forbidden, InvalidTransition
from reviewflow.services.state_machine import as_value, stage_roles
from reviewflow.services.tokens import utcnow
from reviewflow.services.workflow import load_item, model_for

logger = get_logger(__name__)


def holder_name(db: Session, user_id: uuid.UUID) -> str:
    user = db.get(User, user_id)
    if user is None:
        return str(user_id)
    return user.full_name or user.email


def _already_claimed(db: Session, kind: str, item) -> AlreadyClaimed:
    name = holder_name(db, item.assigned_reviewer_id)
    noun = kind.lower()
    return AlreadyClaimed(
        f"{kind.capitalize()} is already being reviewed by {name}. Please select another {noun}.",
        holder_name=name,
    )


def claim(db: Session, kind, item_id: uuid.UUID, actor: Actor):
    """Give ``actor`` exclusive custody of the item at its current stage.

    Claiming an item you already hold is a no-op (the original ``assigned_at``
    is kept and nothing is audited).
    """
    kind = as_value(kind)
    model = model_for(kind)
    item = load_item(db, kind, item_id)

    if item.assigned_reviewer_id == actor.user_id:
        return item
    if item.assigned_reviewer_id is not None:
        raise _already_claimed(db, kind, item)

    allowed = stage_roles(kind, item.status)
    if actor.role not in allowed:
        raise Forbidden(
            f"Your role ({actor.role}) cannot review {kind.lower()}s in {item.status} stage",
            required_roles=allowed,
            actor_role=actor.role,
        )

    stage = item.status
    try:
        result = db.execute(
            update(model)
            .where(
                model.id == item.id,
                model.assigned_reviewer_id.is_(None),
                model.status == stage,
            )
            .values(assigned_reviewer_id=actor.user_id, assigned_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            return _lost_claim(db, kind, item, stage, actor)

        record_audit(
            db,
            actor,
            f"CLAIM_{kind}",
            kind,
            item.id,
            old_value={"assigned_reviewer_id": None},
            new_value={"assigned_reviewer_id": actor.user_id},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(item)
    logger.info("item_claimed", kind=kind, item_id=str(item.id), stage=stage, reviewer_id=str(actor.user_id))
    return item


def _lost_claim(db: Session, kind: str, item, stage: str, actor: Actor):
    db.refresh(item)
    if item.assigned_reviewer_id == actor.user_id:
        return item
    if item.assigned_reviewer_id is not None:
        logger.info(
            "claim_conflict",
            kind=kind,
            item_id=str(item.id),
            reviewer_id=str(actor.user_id),
            holder_id=str(item.assigned_reviewer_id),
        )
        raise _already_claimed(db, kind, item)
    raise InvalidTransition(
        f"{kind.capitalize()} moved from {stage} to {item.status} while claiming; reload the queue"
    )


def release(db: Session, kind, item_id: uuid.UUID, actor: Actor):
    """Return a claimed item to the pool.

    Only the holder or a super admin may release. An admin releasing someone
    else's claim is audited as FORCE_RELEASE_<KIND>.
    """
    kind = as_value(kind)
    model = model_for(kind)
    item = load_item(db, kind, item_id)

    previous = item.assigned_reviewer_id
    if previous is None:
        return item
    if previous != actor.user_id and not actor.is_super_admin:
        raise Forbidden(
            f"Only the assigned reviewer or Super Admin can release this {kind.lower()}",
            required_roles={"SUPER_ADMIN"},
            actor_role=actor.role,
        )

    action = f"RELEASE_{kind}" if previous == actor.user_id else f"FORCE_RELEASE_{kind}"

    try:
        result = db.execute(
            update(model)
            .where(model.id == item.id, model.assigned_reviewer_id == previous)
            .values(assigned_reviewer_id=None, assigned_at=None)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # claim already dropped or handed over since we read it
            db.rollback()
            db.refresh(item)
            if item.assigned_reviewer_id is None:
                return item
            raise _already_claimed(db, kind, item)

        record_audit(
            db,
            actor,
            action,
            kind,
            item.id,
            old_value={"assigned_reviewer_id": previous},
            new_value={"assigned_reviewer_id": None},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(item)
    logger.info("item_released", kind=kind, item_id=str(item.id), action=action, actor_id=str(actor.user_id))
    return item
