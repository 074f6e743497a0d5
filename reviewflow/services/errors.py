"""Typed failures raised by the workflow engine.

All of them subclass ``ValueError``, so callers that only care about "the
request was refused" can catch ``ValueError``. Store failures
(``SQLAlchemyError``) are never wrapped.
"""

from __future__ import annotations

from collections.abc import Iterable


class WorkflowError(ValueError):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(WorkflowError):
    status_code = 404


class InvalidTransition(WorkflowError):
    status_code = 409


class Forbidden(WorkflowError):
    status_code = 403

    def __init__(self, message: str, required_roles: Iterable[str] = (), actor_role: str | None = None):
        super().__init__(message)
        self.required_roles = sorted(str(r) for r in required_roles)
        self.actor_role = actor_role


class AlreadyClaimed(WorkflowError):
    status_code = 409

    def __init__(self, message: str, holder_name: str):
        super().__init__(message)
        self.holder_name = holder_name


class ValidationError(WorkflowError):
    status_code = 400
