import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.database import Base
from reviewflow.services.tokens import utcnow


class VideoAnalytics(Base):
    __tablename__ = "video_analytics"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    video_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("videos.id", ondelete="CASCADE"), unique=True, nullable=False)

    views: Mapped[int] = mapped_column(Integer, default=0)
    unique_views: Mapped[int] = mapped_column(Integer, default=0)
    avg_watch_time: Mapped[float] = mapped_column(Float, default=0)
    ctr: Mapped[float] = mapped_column(Float, default=0)
    quiz_started: Mapped[int] = mapped_column(Integer, default=0)
    quiz_completed: Mapped[int] = mapped_column(Integer, default=0)
    consult_clicked: Mapped[int] = mapped_column(Integer, default=0)
    consult_completed: Mapped[int] = mapped_column(Integer, default=0)
    hook_rate_3s: Mapped[float] = mapped_column(Float, default=0)
    hook_rate_5s: Mapped[float] = mapped_column(Float, default=0)

    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
