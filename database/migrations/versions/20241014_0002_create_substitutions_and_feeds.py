"""create substitution requests, conflicts, notifications and activity logs

Revision ID: 20241014_0002
Revises: 20241014_0001
Create Date: 2024-10-14 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20241014_0002"
down_revision = "20241014_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    substitution_status = sa.Enum(
        "open", "suggested", "applied", "rejected", "cancelled", name="substitution_status"
    )
    substitution_priority = sa.Enum("critical", "high", "medium", "normal", name="substitution_priority")
    conflict_type = sa.Enum(
        "time_overlap", "location_conflict", "instructor_conflict", "travel_time", name="conflict_type"
    )
    conflict_severity = sa.Enum("low", "medium", "high", "critical", name="conflict_severity")
    notification_audience = sa.Enum("admin", "teacher", name="notification_audience")
    notification_type = sa.Enum(
        "absence_reported",
        "substitution_suggested",
        "substitution_applied",
        "workload_violation",
        "hod_deficit",
        "conflict_detected",
        name="notification_type",
    )

    op.create_table(
        "substitution_requests",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "timetable_id",
            sa.String(length=36),
            sa.ForeignKey("timetables.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("time_slot_id", sa.String(length=36), sa.ForeignKey("time_slots.id"), nullable=False),
        sa.Column("absence_date", sa.Date(), nullable=False),
        sa.Column("original_teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id"), nullable=True),
        sa.Column("suggested_teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id"), nullable=True),
        sa.Column("assigned_teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id"), nullable=True),
        sa.Column("status", substitution_status, nullable=False),
        sa.Column("priority", substitution_priority, nullable=False),
        sa.Column("suggestion_payload", sa.JSON(), nullable=False),
        sa.Column("applied_by", sa.String(length=200), nullable=True),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", sa.String(length=200), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_substitution_requests_timetable_id", "substitution_requests", ["timetable_id"])
    op.create_index("ix_substitution_requests_time_slot_id", "substitution_requests", ["time_slot_id"])
    op.create_index("ix_substitution_requests_absence_date", "substitution_requests", ["absence_date"])
    op.create_index(
        "ix_substitution_requests_original_teacher_id", "substitution_requests", ["original_teacher_id"]
    )
    op.create_index(
        "ix_substitution_requests_suggested_teacher_id", "substitution_requests", ["suggested_teacher_id"]
    )
    op.create_index("ix_substitution_requests_status", "substitution_requests", ["status"])

    op.create_table(
        "conflicts",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "timetable_id",
            sa.String(length=36),
            sa.ForeignKey("timetables.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("conflict_type", conflict_type, nullable=False),
        sa.Column("severity", conflict_severity, nullable=False),
        sa.Column("slot1_id", sa.String(length=36), nullable=False),
        sa.Column("slot2_id", sa.String(length=36), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("detected_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_conflicts_timetable_id", "conflicts", ["timetable_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("audience", notification_audience, nullable=False),
        sa.Column("recipient_id", sa.String(length=36), nullable=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("notification_type", notification_type, nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_audience", "notifications", ["audience"])
    op.create_index("ix_notifications_recipient_id", "notifications", ["recipient_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("actor", sa.String(length=200), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_index("ix_notifications_recipient_id", table_name="notifications")
    op.drop_index("ix_notifications_audience", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_conflicts_timetable_id", table_name="conflicts")
    op.drop_table("conflicts")
    op.drop_index("ix_substitution_requests_status", table_name="substitution_requests")
    op.drop_index("ix_substitution_requests_suggested_teacher_id", table_name="substitution_requests")
    op.drop_index("ix_substitution_requests_original_teacher_id", table_name="substitution_requests")
    op.drop_index("ix_substitution_requests_absence_date", table_name="substitution_requests")
    op.drop_index("ix_substitution_requests_time_slot_id", table_name="substitution_requests")
    op.drop_index("ix_substitution_requests_timetable_id", table_name="substitution_requests")
    op.drop_table("substitution_requests")
    sa.Enum(name="notification_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="notification_audience").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="conflict_severity").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="conflict_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="substitution_priority").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="substitution_status").drop(op.get_bind(), checkfirst=True)
