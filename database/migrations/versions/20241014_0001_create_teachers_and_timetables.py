"""create teachers and timetables

Revision ID: 20241014_0001
Revises:
Create Date: 2024-10-14 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20241014_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    teacher_status = sa.Enum("active", "on_leave", "resigned", "suspended", name="teacher_status")
    weekday = sa.Enum("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", name="weekday")
    slot_status = sa.Enum("scheduled", "cancelled", "substituted", "completed", name="slot_status")
    availability_type = sa.Enum("available", "unavailable", "partial", name="availability_type")
    availability_source = sa.Enum("self", "admin", "auto", name="availability_source")

    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("employee_code", sa.String(length=50), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True, unique=True),
        sa.Column("subjects", sa.JSON(), nullable=False),
        sa.Column("max_weekly_minutes", sa.Integer(), nullable=False, server_default="1080"),
        sa.Column("min_weekly_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", teacher_status, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_teachers_employee_code", "teachers", ["employee_code"], unique=True)
    op.create_index("ix_teachers_status", "teachers", ["status"])

    op.create_table(
        "subjects",
        sa.Column("code", sa.String(length=50), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("weight", sa.Integer(), nullable=False, server_default="1"),
    )

    op.create_table(
        "classrooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("grade", sa.String(length=20), nullable=True),
        sa.Column("hod_id", sa.String(length=36), sa.ForeignKey("teachers.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_classrooms_name", "classrooms", ["name"], unique=True)
    op.create_index("ix_classrooms_hod_id", "classrooms", ["hod_id"])

    op.create_table(
        "subject_progress",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "classroom_id",
            sa.String(length=36),
            sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("subject_code", sa.String(length=50), sa.ForeignKey("subjects.code"), nullable=False),
        sa.Column("progress_percent", sa.Float(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("classroom_id", "subject_code", name="uq_subject_progress_classroom_subject"),
    )
    op.create_index("ix_subject_progress_classroom_id", "subject_progress", ["classroom_id"])
    op.create_index("ix_subject_progress_subject_code", "subject_progress", ["subject_code"])

    op.create_table(
        "timetables",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "time_slots",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "timetable_id",
            sa.String(length=36),
            sa.ForeignKey("timetables.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day", weekday, nullable=False),
        sa.Column("start_time", sa.Integer(), nullable=False),
        sa.Column("end_time", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=True),
        sa.Column("subject_code", sa.String(length=50), sa.ForeignKey("subjects.code"), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("instructor", sa.String(length=200), nullable=True),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id"), nullable=True),
        sa.Column("classroom_id", sa.String(length=36), sa.ForeignKey("classrooms.id"), nullable=True),
        sa.Column("status", slot_status, nullable=False),
        sa.Column("substitution_request_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_time_slots_timetable_id", "time_slots", ["timetable_id"])
    op.create_index("ix_time_slots_teacher_id", "time_slots", ["teacher_id"])
    op.create_index("ix_time_slots_classroom_id", "time_slots", ["classroom_id"])
    op.create_index("ix_time_slots_status", "time_slots", ["status"])

    op.create_table(
        "teacher_workload",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "teacher_id",
            sa.String(length=36),
            sa.ForeignKey("teachers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("assigned_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("teacher_id", "week_start", name="uq_teacher_workload_teacher_week"),
    )
    op.create_index("ix_teacher_workload_teacher_id", "teacher_workload", ["teacher_id"])
    op.create_index("ix_teacher_workload_week_start", "teacher_workload", ["week_start"])

    op.create_table(
        "teacher_availability",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "teacher_id",
            sa.String(length=36),
            sa.ForeignKey("teachers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Integer(), nullable=True),
        sa.Column("end_time", sa.Integer(), nullable=True),
        sa.Column("type", availability_type, nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("source", availability_source, nullable=False, server_default="self"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_teacher_availability_teacher_date", "teacher_availability", ["teacher_id", "date"])


def downgrade() -> None:
    op.drop_index("ix_teacher_availability_teacher_date", table_name="teacher_availability")
    op.drop_table("teacher_availability")
    op.drop_index("ix_teacher_workload_week_start", table_name="teacher_workload")
    op.drop_index("ix_teacher_workload_teacher_id", table_name="teacher_workload")
    op.drop_table("teacher_workload")
    op.drop_index("ix_time_slots_status", table_name="time_slots")
    op.drop_index("ix_time_slots_classroom_id", table_name="time_slots")
    op.drop_index("ix_time_slots_teacher_id", table_name="time_slots")
    op.drop_index("ix_time_slots_timetable_id", table_name="time_slots")
    op.drop_table("time_slots")
    op.drop_table("timetables")
    op.drop_index("ix_subject_progress_subject_code", table_name="subject_progress")
    op.drop_index("ix_subject_progress_classroom_id", table_name="subject_progress")
    op.drop_table("subject_progress")
    op.drop_index("ix_classrooms_hod_id", table_name="classrooms")
    op.drop_index("ix_classrooms_name", table_name="classrooms")
    op.drop_table("classrooms")
    op.drop_table("subjects")
    op.drop_index("ix_teachers_status", table_name="teachers")
    op.drop_index("ix_teachers_employee_code", table_name="teachers")
    op.drop_table("teachers")
    sa.Enum(name="availability_source").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="availability_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="slot_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="weekday").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="teacher_status").drop(op.get_bind(), checkfirst=True)
