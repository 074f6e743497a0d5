from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from reviewflow.services.state_machine import as_value, queue_stages
from reviewflow.services.workflow import model_for


@dataclass
class ReviewQueue:
    available: list = field(default_factory=list)
    mine: list = field(default_factory=list)


def get_queue(db: Session, kind, actor_role, actor_id: uuid.UUID) -> ReviewQueue:
    """Items the role can act on right now.

    ``available`` is the unclaimed pool, oldest first. ``mine`` is what the
    actor currently holds, most recently claimed first. This is a plain read:
    an item listed as available may be gone by the time it is claimed.
    """
    model = model_for(kind)
    stages = queue_stages(kind, as_value(actor_role))
    if not stages:
        return ReviewQueue()

    available = db.execute(
        select(model)
        .where(model.status.in_(stages), model.assigned_reviewer_id.is_(None))
        .order_by(model.created_at.asc())
    ).scalars().all()

    mine = db.execute(
        select(model)
        .where(model.status.in_(stages), model.assigned_reviewer_id == actor_id)
        .order_by(model.assigned_at.desc())
    ).scalars().all()

    return ReviewQueue(available=list(available), mine=list(mine))
