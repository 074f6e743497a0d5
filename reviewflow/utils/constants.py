from enum import Enum


class ContentKind(str, Enum):
    SCRIPT = "SCRIPT"
    VIDEO = "VIDEO"


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    MEDICAL_AFFAIRS = "MEDICAL_AFFAIRS"
    BRAND_REVIEWER = "BRAND_REVIEWER"
    DOCTOR = "DOCTOR"
    AGENCY_POC = "AGENCY_POC"
    CONTENT_APPROVER = "CONTENT_APPROVER"
    PUBLISHER = "PUBLISHER"


class ScriptStatus(str, Enum):
    DRAFT = "DRAFT"
    MEDICAL_REVIEW = "MEDICAL_REVIEW"
    BRAND_REVIEW = "BRAND_REVIEW"
    DOCTOR_REVIEW = "DOCTOR_REVIEW"
    APPROVED = "APPROVED"
    LOCKED = "LOCKED"
    REJECTED = "REJECTED"


class VideoStatus(str, Enum):
    DRAFT = "DRAFT"
    BRAND_REVIEW = "BRAND_REVIEW"
    MEDICAL_REVIEW = "MEDICAL_REVIEW"
    DOCTOR_REVIEW = "DOCTOR_REVIEW"
    APPROVED = "APPROVED"
    LOCKED = "LOCKED"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"
    REJECTED = "REJECTED"


class Action(str, Enum):
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    LOCK = "LOCK"
    UNLOCK = "UNLOCK"
    PUBLISH = "PUBLISH"
    ARCHIVE = "ARCHIVE"


class ReviewDecision(str, Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class TopicStatus(str, Enum):
    ASSIGNED = "ASSIGNED"
    DOCTOR_INPUT_PENDING = "DOCTOR_INPUT_PENDING"
    DOCTOR_INPUT_RECEIVED = "DOCTOR_INPUT_RECEIVED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


# actions that leave a ReviewDecision behind
REVIEW_ACTIONS = frozenset({Action.APPROVE.value, Action.REJECT.value})
