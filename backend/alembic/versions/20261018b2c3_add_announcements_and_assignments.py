"""Add announcements, announcement comments and assignments.

Revision ID: 20261018b2c3
Revises: 20261018a1b2
Create Date: 2026-10-18 12:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018b2c3"
down_revision = "20261018a1b2"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "announcements",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("classroom_id", sa.Integer(), sa.ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_announcements_classroom_id", "announcements", ["classroom_id"])
    op.create_index("ix_announcements_created_at", "announcements", ["created_at"])

    op.create_table(
        "announcement_comments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("announcement_id", sa.Integer(), sa.ForeignKey("announcements.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author_id", sa.Integer(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_announcement_comments_announcement_id", "announcement_comments", ["announcement_id"])
    op.create_index("ix_announcement_comments_author_id", "announcement_comments", ["author_id"])

    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("classroom_id", sa.Integer(), sa.ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("file_url", sa.String(length=500), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_assignments_classroom_id", "assignments", ["classroom_id"])
    op.create_index("ix_assignments_classroom_due", "assignments", ["classroom_id", "due_date"])


def downgrade() -> None:
    op.drop_index("ix_assignments_classroom_due", table_name="assignments")
    op.drop_index("ix_assignments_classroom_id", table_name="assignments")
    op.drop_table("assignments")
    op.drop_index("ix_announcement_comments_author_id", table_name="announcement_comments")
    op.drop_index("ix_announcement_comments_announcement_id", table_name="announcement_comments")
    op.drop_table("announcement_comments")
    op.drop_index("ix_announcements_created_at", table_name="announcements")
    op.drop_index("ix_announcements_classroom_id", table_name="announcements")
    op.drop_table("announcements")
