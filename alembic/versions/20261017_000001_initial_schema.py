"""Initial review workflow schema.

Revision ID: 20261017_000001
Revises:
Create Date: 2026-10-17 00:00:01.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261017_000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JsonType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _claim_and_lock_columns():
    return [
        sa.Column("uploaded_by_id", sa.Uuid(), nullable=True),
        sa.Column("assigned_reviewer_id", sa.Uuid(), nullable=True),
        sa.Column("assigned_at", sa.DateTime(), nullable=True),
        sa.Column("locked_by_id", sa.Uuid(), nullable=True),
        sa.Column("locked_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def _review_columns():
    return [
        sa.Column("reviewer_id", sa.Uuid(), nullable=False),
        sa.Column("reviewer_type", sa.String(30), nullable=False),
        sa.Column("decision", sa.String(20), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    # ===========================================
    # USERS + SESSIONS
    # ===========================================

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("role", sa.String(30), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "user_sessions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("session_token", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])
    op.create_index("ix_user_sessions_session_token", "user_sessions", ["session_token"], unique=True)
    op.create_index("ix_sessions_user_exp", "user_sessions", ["user_id", "expires_at"])

    # ===========================================
    # TOPICS
    # ===========================================

    op.create_table(
        "topics",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(30), nullable=True),
        sa.Column("assigned_doctor_id", sa.Uuid(), nullable=True),
        sa.Column("created_by_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )

    # ===========================================
    # SCRIPTS + VIDEOS
    # ===========================================

    op.create_table(
        "scripts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("topic_id", sa.Uuid(), sa.ForeignKey("topics.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("status", sa.String(30), nullable=True),
        *_claim_and_lock_columns(),
        sa.UniqueConstraint("topic_id", "version", name="uq_scripts_topic_version"),
    )
    op.create_index("ix_scripts_status", "scripts", ["status"])
    op.create_index("ix_scripts_assigned_reviewer_id", "scripts", ["assigned_reviewer_id"])

    op.create_table(
        "videos",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("topic_id", sa.Uuid(), sa.ForeignKey("topics.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("script_id", sa.Uuid(), sa.ForeignKey("scripts.id", ondelete="SET NULL"), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("video_url", sa.String(1500), nullable=True),
        sa.Column("thumbnail_url", sa.String(1500), nullable=True),
        sa.Column("status", sa.String(30), nullable=True),
        sa.Column("published_by_id", sa.Uuid(), nullable=True),
        sa.Column("published_at", sa.DateTime(), nullable=True),
        sa.Column("deep_link", sa.String(500), nullable=True),
        *_claim_and_lock_columns(),
        sa.UniqueConstraint("topic_id", "version", name="uq_videos_topic_version"),
    )
    op.create_index("ix_videos_status", "videos", ["status"])
    op.create_index("ix_videos_assigned_reviewer_id", "videos", ["assigned_reviewer_id"])

    # ===========================================
    # REVIEW DECISIONS
    # ===========================================

    op.create_table(
        "script_reviews",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("script_id", sa.Uuid(), sa.ForeignKey("scripts.id", ondelete="CASCADE"), nullable=False),
        *_review_columns(),
    )
    op.create_index("ix_script_reviews_script_id", "script_reviews", ["script_id"])

    op.create_table(
        "video_reviews",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("video_id", sa.Uuid(), sa.ForeignKey("videos.id", ondelete="CASCADE"), nullable=False),
        *_review_columns(),
    )
    op.create_index("ix_video_reviews_video_id", "video_reviews", ["video_id"])

    # ===========================================
    # AUDIT + ANALYTICS
    # ===========================================

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(60), nullable=False),
        sa.Column("entity_type", sa.String(20), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("old_value", JsonType, nullable=True),
        sa.Column("new_value", JsonType, nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])

    op.create_table(
        "video_analytics",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("video_id", sa.Uuid(), sa.ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("views", sa.Integer(), nullable=True),
        sa.Column("unique_views", sa.Integer(), nullable=True),
        sa.Column("avg_watch_time", sa.Float(), nullable=True),
        sa.Column("ctr", sa.Float(), nullable=True),
        sa.Column("quiz_started", sa.Integer(), nullable=True),
        sa.Column("quiz_completed", sa.Integer(), nullable=True),
        sa.Column("consult_clicked", sa.Integer(), nullable=True),
        sa.Column("consult_completed", sa.Integer(), nullable=True),
        sa.Column("hook_rate_3s", sa.Float(), nullable=True),
        sa.Column("hook_rate_5s", sa.Float(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("video_analytics")
    op.drop_table("audit_logs")
    op.drop_table("video_reviews")
    op.drop_table("script_reviews")
    op.drop_table("videos")
    op.drop_table("scripts")
    op.drop_table("topics")
    op.drop_table("user_sessions")
    op.drop_table("users")
