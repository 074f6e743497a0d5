import pytest
from sqlalchemy import select

from reviewflow.models.audit_log import AuditLog
from reviewflow.models.script import Script
from reviewflow.services import claims
from reviewflow.services.errors import AlreadyClaimed, Forbidden, InvalidTransition
from reviewflow.utils.constants import ScriptStatus, UserRole, VideoStatus


def _actions(db, entity_id):
    return db.execute(
        select(AuditLog.action).where(AuditLog.entity_id == entity_id).order_by(AuditLog.created_at)
    ).scalars().all()


def test_claim_sets_both_fields_and_audits(db, make_user, make_script, as_actor):
    reviewer = make_user(UserRole.MEDICAL_AFFAIRS)
    script = make_script(ScriptStatus.MEDICAL_REVIEW)

    out = claims.claim(db, "SCRIPT", script.id, as_actor(reviewer))

    assert out.assigned_reviewer_id == reviewer.id
    assert out.assigned_at is not None
    assert _actions(db, script.id) == ["CLAIM_SCRIPT"]


def test_claim_is_idempotent_for_holder(db, make_user, make_script, as_actor):
    reviewer = make_user(UserRole.MEDICAL_AFFAIRS)
    script = make_script(ScriptStatus.MEDICAL_REVIEW)

    first = claims.claim(db, "SCRIPT", script.id, as_actor(reviewer)).assigned_at
    second = claims.claim(db, "SCRIPT", script.id, as_actor(reviewer)).assigned_at

    assert first == second
    assert _actions(db, script.id) == ["CLAIM_SCRIPT"]


def test_claim_by_role_outside_stage_is_forbidden(db, make_user, make_script, as_actor):
    doctor = make_user(UserRole.DOCTOR)
    script = make_script(ScriptStatus.MEDICAL_REVIEW)

    with pytest.raises(Forbidden) as exc:
        claims.claim(db, "SCRIPT", script.id, as_actor(doctor))
    assert exc.value.required_roles == ["MEDICAL_AFFAIRS", "SUPER_ADMIN"]
    assert _actions(db, script.id) == []


def test_draft_cannot_be_claimed(db, make_user, make_script, as_actor):
    admin = make_user(UserRole.SUPER_ADMIN)
    poc = make_user(UserRole.AGENCY_POC)
    script = make_script()

    for user in (poc, admin):
        with pytest.raises(Forbidden):
            claims.claim(db, "SCRIPT", script.id, as_actor(user))
    assert db.get(Script, script.id).assigned_reviewer_id is None


def test_publisher_claims_locked_video(db, make_user, make_video, as_actor):
    publisher = make_user(UserRole.PUBLISHER)
    video = make_video(VideoStatus.LOCKED)

    out = claims.claim(db, "VIDEO", video.id, as_actor(publisher))

    assert out.assigned_reviewer_id == publisher.id
    assert _actions(db, video.id) == ["CLAIM_VIDEO"]


def test_stale_reader_loses_race_and_learns_the_winner(db, session_factory, make_user, make_script, as_actor):
    winner = make_user(UserRole.MEDICAL_AFFAIRS, first_name="Asha", last_name="Rao")
    loser = make_user(UserRole.MEDICAL_AFFAIRS, first_name="Vikram", last_name="Shah")
    script = make_script(ScriptStatus.MEDICAL_REVIEW)

    db_b = session_factory()
    try:
        stale = db_b.get(Script, script.id)
        assert stale.assigned_reviewer_id is None

        claims.claim(db, "SCRIPT", script.id, as_actor(winner))

        with pytest.raises(AlreadyClaimed) as exc:
            claims.claim(db_b, "SCRIPT", script.id, as_actor(loser))
        assert exc.value.holder_name == "Asha Rao"
        assert "Asha Rao" in exc.value.message

        assert db_b.get(Script, script.id).assigned_reviewer_id == winner.id
    finally:
        db_b.close()

    assert _actions(db, script.id) == ["CLAIM_SCRIPT"]


def test_stale_reader_sees_stage_change(db, session_factory, make_user, make_script, as_actor):
    reviewer = make_user(UserRole.MEDICAL_AFFAIRS)
    script = make_script(ScriptStatus.MEDICAL_REVIEW)

    db_b = session_factory()
    try:
        db_b.get(Script, script.id)

        moved = db.get(Script, script.id)
        moved.status = ScriptStatus.BRAND_REVIEW.value
        db.commit()

        with pytest.raises(InvalidTransition):
            claims.claim(db_b, "SCRIPT", script.id, as_actor(reviewer))
    finally:
        db_b.close()


def test_holder_releases_own_claim(db, make_user, make_script, as_actor):
    reviewer = make_user(UserRole.BRAND_REVIEWER)
    script = make_script(ScriptStatus.BRAND_REVIEW, assigned_to=reviewer)

    out = claims.release(db, "SCRIPT", script.id, as_actor(reviewer))

    assert out.assigned_reviewer_id is None
    assert out.assigned_at is None
    entry = db.execute(select(AuditLog).where(AuditLog.entity_id == script.id)).scalar_one()
    assert entry.action == "RELEASE_SCRIPT"
    assert entry.old_value == {"assigned_reviewer_id": str(reviewer.id)}


def test_admin_force_releases_someone_elses_claim(db, make_user, make_video, as_actor):
    reviewer = make_user(UserRole.BRAND_REVIEWER)
    admin = make_user(UserRole.SUPER_ADMIN)
    video = make_video(VideoStatus.BRAND_REVIEW, assigned_to=reviewer)

    out = claims.release(db, "VIDEO", video.id, as_actor(admin))

    assert out.assigned_reviewer_id is None
    assert _actions(db, video.id) == ["FORCE_RELEASE_VIDEO"]


def test_non_holder_cannot_release(db, make_user, make_script, as_actor):
    holder = make_user(UserRole.BRAND_REVIEWER)
    other = make_user(UserRole.BRAND_REVIEWER)
    script = make_script(ScriptStatus.BRAND_REVIEW, assigned_to=holder)

    with pytest.raises(Forbidden):
        claims.release(db, "SCRIPT", script.id, as_actor(other))

    assert db.get(Script, script.id).assigned_reviewer_id == holder.id
    assert _actions(db, script.id) == []


def test_releasing_unclaimed_item_is_a_no_op(db, make_user, make_script, as_actor):
    reviewer = make_user(UserRole.BRAND_REVIEWER)
    script = make_script(ScriptStatus.BRAND_REVIEW)

    out = claims.release(db, "SCRIPT", script.id, as_actor(reviewer))

    assert out.assigned_reviewer_id is None
    assert _actions(db, script.id) == []
