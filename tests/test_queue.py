from datetime import datetime

from reviewflow.services.review_queue import get_queue
from reviewflow.utils.constants import ScriptStatus, UserRole, VideoStatus


def test_available_is_fifo_and_filtered_by_stage(db, make_user, make_script):
    reviewer = make_user(UserRole.BRAND_REVIEWER)
    newer = make_script(ScriptStatus.BRAND_REVIEW, created_at=datetime(2026, 1, 3))
    older = make_script(ScriptStatus.BRAND_REVIEW, created_at=datetime(2026, 1, 1))
    make_script(ScriptStatus.MEDICAL_REVIEW, created_at=datetime(2026, 1, 2))
    make_script(ScriptStatus.DRAFT, created_at=datetime(2026, 1, 2))

    q = get_queue(db, "SCRIPT", reviewer.role, reviewer.id)

    assert [s.id for s in q.available] == [older.id, newer.id]
    assert q.mine == []


def test_mine_is_most_recently_claimed_first(db, make_user, make_script):
    reviewer = make_user(UserRole.MEDICAL_AFFAIRS)
    other = make_user(UserRole.MEDICAL_AFFAIRS)
    first = make_script(ScriptStatus.MEDICAL_REVIEW, assigned_to=reviewer, assigned_at=datetime(2026, 2, 1, 9))
    second = make_script(ScriptStatus.MEDICAL_REVIEW, assigned_to=reviewer, assigned_at=datetime(2026, 2, 1, 11))
    theirs = make_script(ScriptStatus.MEDICAL_REVIEW, assigned_to=other)
    open_item = make_script(ScriptStatus.MEDICAL_REVIEW)

    q = get_queue(db, "SCRIPT", reviewer.role, reviewer.id)

    assert [s.id for s in q.mine] == [second.id, first.id]
    assert [s.id for s in q.available] == [open_item.id]
    assert theirs.id not in {s.id for s in q.available + q.mine}


def test_super_admin_sees_every_active_stage(db, make_user, make_video):
    admin = make_user(UserRole.SUPER_ADMIN)
    ids = [make_video(stage).id for stage in (
        VideoStatus.BRAND_REVIEW,
        VideoStatus.MEDICAL_REVIEW,
        VideoStatus.DOCTOR_REVIEW,
        VideoStatus.APPROVED,
        VideoStatus.LOCKED,
    )]
    make_video(VideoStatus.DRAFT)
    make_video(VideoStatus.PUBLISHED)

    q = get_queue(db, "VIDEO", admin.role, admin.id)

    assert sorted(v.id for v in q.available) == sorted(ids)


def test_role_without_stages_gets_empty_queue(db, make_user, make_script):
    poc = make_user(UserRole.AGENCY_POC)
    make_script(ScriptStatus.MEDICAL_REVIEW)

    q = get_queue(db, "SCRIPT", poc.role, poc.id)

    assert q.available == [] and q.mine == []


def test_publisher_queue_holds_locked_videos(db, make_user, make_video):
    publisher = make_user(UserRole.PUBLISHER)
    locked = make_video(VideoStatus.LOCKED)
    make_video(VideoStatus.APPROVED)

    q = get_queue(db, "VIDEO", UserRole.PUBLISHER, publisher.id)

    assert [v.id for v in q.available] == [locked.id]
