from __future__ import annotations

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from coverdesk.db.base import Base
from coverdesk.db.session import engine as default_engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "teachers": {"id", "employee_code", "subjects", "max_weekly_minutes", "min_weekly_minutes", "status"},
    "time_slots": {"id", "timetable_id", "day", "start_time", "end_time", "teacher_id", "status"},
    "teacher_workload": {"id", "teacher_id", "week_start", "assigned_minutes"},
    "teacher_availability": {"id", "teacher_id", "date", "start_time", "end_time", "type", "source"},
    "substitution_requests": {"id", "time_slot_id", "absence_date", "status", "priority", "assigned_teacher_id"},
}


def _ensure_availability_source_column(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "teacher_availability" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("teacher_availability")}
        if "source" in column_names:
            return
        connection.execute(
            text("ALTER TABLE teacher_availability ADD COLUMN source VARCHAR(5) NOT NULL DEFAULT 'self'")
        )
        logger.info("Added teacher_availability.source column")


def _ensure_request_assignment_column(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "substitution_requests" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("substitution_requests")}
        if "assigned_teacher_id" in column_names:
            return
        connection.execute(text("ALTER TABLE substitution_requests ADD COLUMN assigned_teacher_id VARCHAR(36)"))
        logger.info("Added substitution_requests.assigned_teacher_id column")


def _assert_required_columns(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_schema(engine: Engine | None = None) -> None:
    import coverdesk.models  # noqa: F401  registers every table on Base.metadata

    engine = engine or default_engine
    try:
        # Missing tables first, then additive patches for databases created before a column existed.
        Base.metadata.create_all(bind=engine)
        _ensure_availability_source_column(engine)
        _ensure_request_assignment_column(engine)
        _assert_required_columns(engine)
    except SQLAlchemyError as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Schema bootstrap failed")
        raise RuntimeError("Schema bootstrap failed") from exc
    logger.info("Database schema ready")
