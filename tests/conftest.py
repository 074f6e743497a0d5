"""Shared fixtures: a throwaway SQLite file database per test plus factories."""

from collections.abc import Generator
from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import Session, sessionmaker

from reviewflow import models  # noqa: F401
from reviewflow.database import Base, make_engine
from reviewflow.models.script import Script
from reviewflow.models.topic import Topic
from reviewflow.models.user import User
from reviewflow.models.video import Video
from reviewflow.services.audit import Actor
from reviewflow.utils.constants import ScriptStatus, TopicStatus, UserRole, VideoStatus

BASE_TIME = datetime(2026, 1, 1, 9, 0, 0)


@pytest.fixture
def session_factory(tmp_path) -> Generator[sessionmaker, None, None]:
    engine = make_engine(f"sqlite:///{tmp_path / 'reviewflow-test.db'}")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role: UserRole, first_name: str | None = None, last_name: str = "Tester", is_active: bool = True) -> User:
        counter["n"] += 1
        user = User(
            email=f"{role.value.lower()}{counter['n']}@example.com",
            first_name=first_name or role.value.title().replace("_", " "),
            last_name=last_name,
            role=role.value,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_topic(db):
    def _make(title: str = "Managing hypertension", status: TopicStatus = TopicStatus.ASSIGNED) -> Topic:
        topic = Topic(title=title, status=status.value)
        db.add(topic)
        db.commit()
        return topic

    return _make


@pytest.fixture
def make_script(db, make_topic):
    counter = {"n": 0}

    def _make(
        status: ScriptStatus = ScriptStatus.DRAFT,
        topic: Topic | None = None,
        uploaded_by: User | None = None,
        assigned_to: User | None = None,
        assigned_at: datetime | None = None,
        created_at: datetime | None = None,
    ) -> Script:
        counter["n"] += 1
        topic = topic or make_topic()
        script = Script(
            topic_id=topic.id,
            version=counter["n"],
            content="Take one tablet twice daily.",
            status=status.value,
            uploaded_by_id=uploaded_by.id if uploaded_by else None,
            created_at=created_at or BASE_TIME + timedelta(minutes=counter["n"]),
        )
        if assigned_to is not None:
            script.assigned_reviewer_id = assigned_to.id
            script.assigned_at = assigned_at or BASE_TIME
        db.add(script)
        db.commit()
        return script

    return _make


@pytest.fixture
def make_video(db, make_topic):
    counter = {"n": 0}

    def _make(
        status: VideoStatus = VideoStatus.DRAFT,
        topic: Topic | None = None,
        uploaded_by: User | None = None,
        assigned_to: User | None = None,
        assigned_at: datetime | None = None,
        created_at: datetime | None = None,
    ) -> Video:
        counter["n"] += 1
        topic = topic or make_topic()
        video = Video(
            topic_id=topic.id,
            version=counter["n"],
            title=f"Explainer {counter['n']}",
            video_url=f"https://cdn.example.com/videos/{counter['n']}.mp4",
            status=status.value,
            uploaded_by_id=uploaded_by.id if uploaded_by else None,
            created_at=created_at or BASE_TIME + timedelta(minutes=counter["n"]),
        )
        if assigned_to is not None:
            video.assigned_reviewer_id = assigned_to.id
            video.assigned_at = assigned_at or BASE_TIME
        db.add(video)
        db.commit()
        return video

    return _make


@pytest.fixture
def as_actor():
    def _as_actor(user: User) -> Actor:
        return Actor(user_id=user.id, role=user.role)

    return _as_actor
