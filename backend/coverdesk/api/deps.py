from collections.abc import Generator

from sqlalchemy.orm import Session

from coverdesk.core.config import get_settings
from coverdesk.db.session import SessionLocal
from coverdesk.schemas.scheduling import SchedulingPolicy


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_policy() -> SchedulingPolicy:
    return get_settings().scheduling_policy()
