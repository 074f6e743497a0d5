import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, Text, UniqueConstraint, Uuid, String
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.database import Base
from reviewflow.services.tokens import utcnow
from reviewflow.utils.constants import ScriptStatus


class Script(Base):
    __tablename__ = "scripts"
    __table_args__ = (UniqueConstraint("topic_id", "version", name="uq_scripts_topic_version"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    topic_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("topics.id", ondelete="RESTRICT"), nullable=False)

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(30), default=ScriptStatus.DRAFT.value, index=True)

    uploaded_by_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    # claim lease: both set or both null
    assigned_reviewer_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # only while status == LOCKED
    locked_by_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
