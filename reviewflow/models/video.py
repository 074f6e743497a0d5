import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.database import Base
from reviewflow.services.tokens import utcnow
from reviewflow.utils.constants import VideoStatus


class Video(Base):
    __tablename__ = "videos"
    __table_args__ = (UniqueConstraint("topic_id", "version", name="uq_videos_topic_version"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    topic_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("topics.id", ondelete="RESTRICT"), nullable=False)
    script_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("scripts.id", ondelete="SET NULL"), nullable=True)

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    video_url: Mapped[str | None] = mapped_column(String(1500), nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(String(1500), nullable=True)

    status: Mapped[str] = mapped_column(String(30), default=VideoStatus.DRAFT.value, index=True)

    uploaded_by_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    # claim lease: both set or both null
    assigned_reviewer_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # only while status == LOCKED
    locked_by_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    published_by_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    deep_link: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
