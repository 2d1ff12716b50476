import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from coverdesk.db import bootstrap


def _engine():
    return create_engine("sqlite+pysqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)


def _raise_error(message: str):
    raise RuntimeError(message)


def test_schema_bootstrap_creates_every_table():
    engine = _engine()
    bootstrap.ensure_schema(engine)
    tables = set(inspect(engine).get_table_names())
    assert set(bootstrap.REQUIRED_COLUMNS) <= tables
    assert {"conflicts", "notifications", "activity_logs"} <= tables


def test_schema_bootstrap_patches_legacy_request_table():
    engine = _engine()
    with engine.begin() as connection:
        connection.execute(
            text(
                "CREATE TABLE substitution_requests ("
                "id VARCHAR(36) PRIMARY KEY, time_slot_id VARCHAR(36), absence_date DATE, "
                "status VARCHAR(20), priority VARCHAR(20))"
            )
        )

    bootstrap.ensure_schema(engine)

    columns = {item["name"] for item in inspect(engine).get_columns("substitution_requests")}
    assert "assigned_teacher_id" in columns


def test_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap, "_assert_required_columns", lambda engine: _raise_error("missing required schema"))

    with pytest.raises(RuntimeError, match="missing required schema"):
        bootstrap.ensure_schema(_engine())


def test_schema_bootstrap_wraps_database_errors(monkeypatch):
    def broken_create_all(bind):
        raise OperationalError("CREATE TABLE", {}, Exception("disk I/O error"))

    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", broken_create_all)

    with pytest.raises(RuntimeError, match="Schema bootstrap failed"):
        bootstrap.ensure_schema(_engine())
