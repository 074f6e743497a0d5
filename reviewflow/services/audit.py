from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from reviewflow.models.audit_log import AuditLog
from reviewflow.utils.constants import UserRole


@dataclass(frozen=True)
class Actor:
    """Who is acting, plus request metadata copied into the audit trail."""

    user_id: uuid.UUID
    role: str
    ip_address: str | None = None
    user_agent: str | None = None

    def __post_init__(self):
        if isinstance(self.role, UserRole):
            object.__setattr__(self, "role", self.role.value)

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN.value


def _jsonable(values: dict[str, Any] | None) -> dict[str, Any] | None:
    if values is None:
        return None
    out = {}
    for k, v in values.items():
        if isinstance(v, uuid.UUID):
            v = str(v)
        elif hasattr(v, "isoformat"):
            v = v.isoformat()
        out[k] = v
    return out


def record_audit(
    db: Session,
    actor: Actor,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID,
    old_value: dict[str, Any] | None = None,
    new_value: dict[str, Any] | None = None,
) -> AuditLog:
    """Stage one audit entry on ``db``. The caller owns the commit."""
    entry = AuditLog(
        user_id=actor.user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        old_value=_jsonable(old_value),
        new_value=_jsonable(new_value),
        ip_address=actor.ip_address,
        user_agent=actor.user_agent,
    )
    db.add(entry)
    return entry
