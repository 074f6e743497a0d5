import uuid

import pytest
from sqlalchemy import func, select

from reviewflow.models.audit_log import AuditLog
from reviewflow.models.review import ScriptReview, VideoReview
from reviewflow.models.script import Script
from reviewflow.services import claims, workflow
from reviewflow.services.errors import AlreadyClaimed, Forbidden, InvalidTransition, NotFound, ValidationError
from reviewflow.utils.constants import ScriptStatus, UserRole, VideoStatus


def _audit_count(db, entity_id=None) -> int:
    q = select(func.count()).select_from(AuditLog)
    if entity_id is not None:
        q = q.where(AuditLog.entity_id == entity_id)
    return db.execute(q).scalar()


def test_submit_moves_draft_to_medical_review(db, make_user, make_script, as_actor):
    poc = make_user(UserRole.AGENCY_POC)
    script = make_script(uploaded_by=poc)

    out = workflow.submit(db, "SCRIPT", script.id, as_actor(poc))

    assert out.status == "MEDICAL_REVIEW"
    entries = db.execute(select(AuditLog).where(AuditLog.entity_id == script.id)).scalars().all()
    assert [e.action for e in entries] == ["SUBMIT_SCRIPT"]
    assert entries[0].old_value == {"status": "DRAFT"}
    assert entries[0].new_value == {"status": "MEDICAL_REVIEW"}


def test_approve_records_review_and_clears_claim(db, make_user, make_script, as_actor):
    reviewer = make_user(UserRole.MEDICAL_AFFAIRS)
    script = make_script(ScriptStatus.MEDICAL_REVIEW, assigned_to=reviewer)

    out = workflow.approve(db, "SCRIPT", script.id, as_actor(reviewer), comments="  looks right ")

    assert out.status == "BRAND_REVIEW"
    assert out.assigned_reviewer_id is None
    assert out.assigned_at is None
    review = db.execute(select(ScriptReview).where(ScriptReview.script_id == script.id)).scalar_one()
    assert review.decision == "APPROVED"
    assert review.reviewer_type == "MEDICAL_AFFAIRS"
    assert review.comments == "looks right"


def test_reject_requires_comments_before_touching_store(db, make_user, make_script, as_actor):
    reviewer = make_user(UserRole.MEDICAL_AFFAIRS)
    script = make_script(ScriptStatus.MEDICAL_REVIEW)

    for blank in (None, "", "   "):
        with pytest.raises(ValidationError):
            workflow.apply_transition(db, "SCRIPT", script.id, "REJECT", as_actor(reviewer), comments=blank)

    db.refresh(script)
    assert script.status == "MEDICAL_REVIEW"
    assert _audit_count(db) == 0


def test_reject_goes_one_stage_back_for_video(db, make_user, make_video, as_actor):
    doctor = make_user(UserRole.DOCTOR)
    video = make_video(VideoStatus.DOCTOR_REVIEW)

    out = workflow.reject(db, "VIDEO", video.id, as_actor(doctor), "audio drops at 0:42")

    assert out.status == "MEDICAL_REVIEW"
    review = db.execute(select(VideoReview).where(VideoReview.video_id == video.id)).scalar_one()
    assert review.decision == "REJECTED"
    assert review.comments == "audio drops at 0:42"


def test_wrong_role_leaves_no_trace(db, make_user, make_script, as_actor):
    brand = make_user(UserRole.BRAND_REVIEWER)
    script = make_script(ScriptStatus.MEDICAL_REVIEW)

    with pytest.raises(Forbidden):
        workflow.approve(db, "SCRIPT", script.id, as_actor(brand))

    assert _audit_count(db) == 0
    assert db.execute(select(func.count()).select_from(ScriptReview)).scalar() == 0


def test_missing_item_is_not_found(db, make_user, as_actor):
    admin = make_user(UserRole.SUPER_ADMIN)
    with pytest.raises(NotFound, match="Script not found"):
        workflow.approve(db, "SCRIPT", uuid.uuid4(), as_actor(admin))


def test_failure_while_recording_review_rolls_everything_back(db, make_user, make_script, as_actor, monkeypatch):
    reviewer = make_user(UserRole.MEDICAL_AFFAIRS)
    script = make_script(ScriptStatus.MEDICAL_REVIEW, assigned_to=reviewer)

    def boom(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(workflow, "_record_review", boom)
    notified = []

    with pytest.raises(RuntimeError):
        workflow.approve(db, "SCRIPT", script.id, as_actor(reviewer), notifier=notified.append)

    fresh = db.get(Script, script.id)
    assert fresh.status == "MEDICAL_REVIEW"
    assert fresh.assigned_reviewer_id == reviewer.id
    assert _audit_count(db) == 0
    assert notified == []


def test_stale_stage_write_is_refused(db, session_factory, make_user, make_script, as_actor):
    reviewer = make_user(UserRole.MEDICAL_AFFAIRS)
    script = make_script(ScriptStatus.MEDICAL_REVIEW)

    # another request already moved it on
    other = session_factory()
    try:
        other.get(Script, script.id).status = "BRAND_REVIEW"
        other.commit()
    finally:
        other.close()

    item = db.get(Script, script.id)
    assert item.status == "MEDICAL_REVIEW"  # stale identity map
    with pytest.raises(InvalidTransition):
        workflow._commit_transition(db, "SCRIPT", item, "APPROVE", "BRAND_REVIEW", as_actor(reviewer))
    assert _audit_count(db) == 0


def test_notifier_receives_event_after_commit(db, make_user, make_script, as_actor):
    poc = make_user(UserRole.AGENCY_POC)
    script = make_script(uploaded_by=poc)
    events = []

    workflow.submit(db, "SCRIPT", script.id, as_actor(poc), notifier=events.append)

    assert len(events) == 1
    event = events[0]
    assert event.event_type == "SCRIPT_SUBMITTED"
    assert event.entity_id == script.id
    assert event.next_stage == "MEDICAL_REVIEW"
    assert event.actor_role == "AGENCY_POC"


def test_broken_notifier_does_not_undo_transition(db, make_user, make_script, as_actor):
    poc = make_user(UserRole.AGENCY_POC)
    script = make_script(uploaded_by=poc)

    def broken(event):
        raise ConnectionError("queue down")

    out = workflow.submit(db, "SCRIPT", script.id, as_actor(poc), notifier=broken)

    assert out.status == "MEDICAL_REVIEW"
    assert db.get(Script, script.id).status == "MEDICAL_REVIEW"


def test_fix_dosage_scenario(db, session_factory, make_user, make_script, as_actor):
    poc = make_user(UserRole.AGENCY_POC)
    ma1 = make_user(UserRole.MEDICAL_AFFAIRS, first_name="Asha", last_name="Rao")
    ma2 = make_user(UserRole.MEDICAL_AFFAIRS, first_name="Vikram", last_name="Shah")
    script = make_script(uploaded_by=poc)

    workflow.submit(db, "SCRIPT", script.id, as_actor(poc))
    claims.claim(db, "SCRIPT", script.id, as_actor(ma1))

    with pytest.raises(AlreadyClaimed) as exc:
        claims.claim(db, "SCRIPT", script.id, as_actor(ma2))
    assert exc.value.holder_name == "Asha Rao"

    out = workflow.reject(db, "SCRIPT", script.id, as_actor(ma1), "fix dosage")
    assert out.status == "DRAFT"
    assert out.assigned_reviewer_id is None

    review = db.execute(select(ScriptReview).where(ScriptReview.script_id == script.id)).scalar_one()
    assert (review.decision, review.comments, review.reviewer_id) == ("REJECTED", "fix dosage", ma1.id)

    actions = db.execute(
        select(AuditLog.action).where(AuditLog.entity_id == script.id).order_by(AuditLog.created_at)
    ).scalars().all()
    assert actions == ["SUBMIT_SCRIPT", "CLAIM_SCRIPT", "REJECT_SCRIPT"]
