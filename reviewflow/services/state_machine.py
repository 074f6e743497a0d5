"""Stage transition tables for scripts and videos.

Rejections go one stage back along each kind's own order. The two orders
differ (scripts see medical affairs first, videos see brand first), so every
row is written out rather than derived from a shared order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from reviewflow.services.errors import Forbidden, InvalidTransition, ValidationError
from reviewflow.utils.constants import Action, ContentKind, ScriptStatus, UserRole, VideoStatus


@dataclass(frozen=True)
class TransitionRule:
    next_stage: str
    allowed_roles: frozenset


def _rule(next_stage: Enum, *roles: UserRole) -> TransitionRule:
    return TransitionRule(next_stage=next_stage.value, allowed_roles=frozenset(r.value for r in roles))


def _freeze(table: dict) -> Mapping[str, Mapping[str, TransitionRule]]:
    return MappingProxyType(
        {stage.value: MappingProxyType({a.value: r for a, r in rules.items()}) for stage, rules in table.items()}
    )


SCRIPT_TRANSITIONS = _freeze({
    ScriptStatus.DRAFT: {
        Action.SUBMIT: _rule(ScriptStatus.MEDICAL_REVIEW, UserRole.AGENCY_POC),
    },
    ScriptStatus.MEDICAL_REVIEW: {
        Action.APPROVE: _rule(ScriptStatus.BRAND_REVIEW, UserRole.MEDICAL_AFFAIRS, UserRole.SUPER_ADMIN),
        Action.REJECT: _rule(ScriptStatus.DRAFT, UserRole.MEDICAL_AFFAIRS, UserRole.SUPER_ADMIN),
    },
    ScriptStatus.BRAND_REVIEW: {
        Action.APPROVE: _rule(ScriptStatus.DOCTOR_REVIEW, UserRole.BRAND_REVIEWER, UserRole.SUPER_ADMIN),
        Action.REJECT: _rule(ScriptStatus.MEDICAL_REVIEW, UserRole.BRAND_REVIEWER, UserRole.SUPER_ADMIN),
    },
    ScriptStatus.DOCTOR_REVIEW: {
        # APPROVED waits for a content approver to lock
        Action.APPROVE: _rule(ScriptStatus.APPROVED, UserRole.DOCTOR, UserRole.SUPER_ADMIN),
        Action.REJECT: _rule(ScriptStatus.BRAND_REVIEW, UserRole.DOCTOR, UserRole.SUPER_ADMIN),
    },
    ScriptStatus.APPROVED: {
        Action.LOCK: _rule(ScriptStatus.LOCKED, UserRole.CONTENT_APPROVER, UserRole.SUPER_ADMIN),
    },
    ScriptStatus.LOCKED: {},
    ScriptStatus.REJECTED: {
        Action.SUBMIT: _rule(ScriptStatus.MEDICAL_REVIEW, UserRole.AGENCY_POC),
    },
})

VIDEO_TRANSITIONS = _freeze({
    VideoStatus.DRAFT: {
        Action.SUBMIT: _rule(VideoStatus.BRAND_REVIEW, UserRole.AGENCY_POC),
    },
    VideoStatus.BRAND_REVIEW: {
        Action.APPROVE: _rule(VideoStatus.MEDICAL_REVIEW, UserRole.BRAND_REVIEWER, UserRole.SUPER_ADMIN),
        Action.REJECT: _rule(VideoStatus.DRAFT, UserRole.BRAND_REVIEWER, UserRole.SUPER_ADMIN),
    },
    VideoStatus.MEDICAL_REVIEW: {
        Action.APPROVE: _rule(VideoStatus.DOCTOR_REVIEW, UserRole.MEDICAL_AFFAIRS, UserRole.SUPER_ADMIN),
        Action.REJECT: _rule(VideoStatus.BRAND_REVIEW, UserRole.MEDICAL_AFFAIRS, UserRole.SUPER_ADMIN),
    },
    VideoStatus.DOCTOR_REVIEW: {
        Action.APPROVE: _rule(VideoStatus.APPROVED, UserRole.DOCTOR, UserRole.SUPER_ADMIN),
        Action.REJECT: _rule(VideoStatus.MEDICAL_REVIEW, UserRole.DOCTOR, UserRole.SUPER_ADMIN),
    },
    VideoStatus.APPROVED: {
        Action.LOCK: _rule(VideoStatus.LOCKED, UserRole.CONTENT_APPROVER, UserRole.SUPER_ADMIN),
    },
    VideoStatus.LOCKED: {
        Action.PUBLISH: _rule(VideoStatus.PUBLISHED, UserRole.PUBLISHER, UserRole.SUPER_ADMIN),
    },
    VideoStatus.PUBLISHED: {
        Action.ARCHIVE: _rule(VideoStatus.ARCHIVED, UserRole.SUPER_ADMIN, UserRole.CONTENT_APPROVER),
    },
    VideoStatus.ARCHIVED: {},
    VideoStatus.REJECTED: {
        Action.SUBMIT: _rule(VideoStatus.BRAND_REVIEW, UserRole.AGENCY_POC),
    },
})

TRANSITIONS = MappingProxyType({
    ContentKind.SCRIPT.value: SCRIPT_TRANSITIONS,
    ContentKind.VIDEO.value: VIDEO_TRANSITIONS,
})

# display order
SCRIPT_STAGE_ORDER = (
    ScriptStatus.DRAFT.value,
    ScriptStatus.MEDICAL_REVIEW.value,
    ScriptStatus.BRAND_REVIEW.value,
    ScriptStatus.DOCTOR_REVIEW.value,
    ScriptStatus.APPROVED.value,
    ScriptStatus.LOCKED.value,
)

VIDEO_STAGE_ORDER = (
    VideoStatus.DRAFT.value,
    VideoStatus.BRAND_REVIEW.value,
    VideoStatus.MEDICAL_REVIEW.value,
    VideoStatus.DOCTOR_REVIEW.value,
    VideoStatus.APPROVED.value,
    VideoStatus.LOCKED.value,
    VideoStatus.PUBLISHED.value,
)

# stages where a reviewer holds custody of an item
ACTIVE_STAGES = MappingProxyType({
    ContentKind.SCRIPT.value: (
        ScriptStatus.MEDICAL_REVIEW.value,
        ScriptStatus.BRAND_REVIEW.value,
        ScriptStatus.DOCTOR_REVIEW.value,
        ScriptStatus.APPROVED.value,
        ScriptStatus.LOCKED.value,
    ),
    ContentKind.VIDEO.value: (
        VideoStatus.BRAND_REVIEW.value,
        VideoStatus.MEDICAL_REVIEW.value,
        VideoStatus.DOCTOR_REVIEW.value,
        VideoStatus.APPROVED.value,
        VideoStatus.LOCKED.value,
    ),
})


def as_value(x) -> str:
    return x.value if isinstance(x, Enum) else str(x)


def _build_stage_roles() -> Mapping[str, Mapping[str, frozenset]]:
    out = {}
    for kind, stages in ACTIVE_STAGES.items():
        per_stage = {}
        for stage in stages:
            roles = {UserRole.SUPER_ADMIN.value}
            for rule in TRANSITIONS[kind].get(stage, {}).values():
                roles |= rule.allowed_roles
            per_stage[stage] = frozenset(roles)
        out[kind] = MappingProxyType(per_stage)
    return MappingProxyType(out)


STAGE_ROLES = _build_stage_roles()


def get_rule(kind, stage, action) -> TransitionRule | None:
    return TRANSITIONS[as_value(kind)].get(as_value(stage), {}).get(as_value(action))


def validate_transition(kind, current_stage, action, actor_role) -> str:
    """Resolve the next stage for ``action`` or raise.

    Raises InvalidTransition when the (stage, action) pair is not in the table
    and Forbidden when it is but ``actor_role`` is not one of its roles.
    """
    kind, stage, action, role = as_value(kind), as_value(current_stage), as_value(action), as_value(actor_role)

    if kind not in TRANSITIONS:
        raise ValidationError(f"Unknown content kind: {kind}")
    if stage not in TRANSITIONS[kind]:
        raise InvalidTransition(f"No transitions defined for stage: {stage}")

    rule = TRANSITIONS[kind][stage].get(action)
    if rule is None:
        raise InvalidTransition(f"Action {action} not allowed from stage: {stage}")

    if role not in rule.allowed_roles:
        required = ", ".join(sorted(rule.allowed_roles))
        raise Forbidden(
            f"Role {role} cannot perform {action} on {stage}. Required: {required}",
            required_roles=rule.allowed_roles,
            actor_role=role,
        )

    return rule.next_stage


def stage_roles(kind, stage) -> frozenset:
    """Roles allowed to hold a claim on an item of ``kind`` at ``stage``."""
    return STAGE_ROLES[as_value(kind)].get(as_value(stage), frozenset())


def queue_stages(kind, role) -> tuple[str, ...]:
    kind, role = as_value(kind), as_value(role)
    if role == UserRole.SUPER_ADMIN.value:
        return ACTIVE_STAGES[kind]
    return tuple(
        stage for stage in ACTIVE_STAGES[kind]
        if any(role in r.allowed_roles for r in TRANSITIONS[kind].get(stage, {}).values())
    )
