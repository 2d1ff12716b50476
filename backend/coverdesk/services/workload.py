"""Weekly workload aggregate: committed minutes per (teacher, week).

The aggregate must never go stale, so every write that changes a teacher's
slots calls :meth:`WorkloadTracker.refresh` (or :meth:`recompute` for a single
week). A recompute first locks the teacher row for the rest of the caller's
transaction, then writes with a single atomic upsert on
``uq_teacher_workload_teacher_week``.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from coverdesk.core.exceptions import ResourceNotFoundError
from coverdesk.schemas.scheduling import WORKLOAD_STATUSES, TimeSlot
from coverdesk.services.intervals import week_start_for
from coverdesk.services.store import SchedulingStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_WEEKLY_MINUTES = 1080
NEAR_CAPACITY_RATIO = 0.9


def assigned_minutes_for(slots: Iterable[TimeSlot], teacher_id: str) -> int:
    return sum(
        slot.duration
        for slot in slots
        if slot.teacher_id == teacher_id and slot.status in WORKLOAD_STATUSES
    )


def would_exceed_cap(current_minutes: int, additional_minutes: int, cap_minutes: int = DEFAULT_MAX_WEEKLY_MINUTES) -> bool:
    return current_minutes + additional_minutes > cap_minutes


def validate_workload(
    current_minutes: int,
    additional_minutes: int,
    cap_minutes: int = DEFAULT_MAX_WEEKLY_MINUTES,
) -> tuple[bool, str | None]:
    total = current_minutes + additional_minutes
    if total > cap_minutes:
        return False, f"Would exceed weekly cap ({total}/{cap_minutes} minutes)"
    return True, None


def workload_status(assigned_minutes: int, max_minutes: int, min_minutes: int = 0) -> str:
    if assigned_minutes > max_minutes:
        return "overloaded"
    if assigned_minutes < min_minutes:
        return "underutilized"
    if assigned_minutes >= max_minutes * NEAR_CAPACITY_RATIO:
        return "near_capacity"
    return "normal"


class WorkloadTracker:
    def __init__(self, store: SchedulingStore):
        self.store = store

    def recompute(self, teacher_id: str, week_start: date) -> int:
        self.store.lock_teacher(teacher_id)
        minutes = assigned_minutes_for(self.store.teacher_slots(teacher_id), teacher_id)
        self.store.upsert_workload(teacher_id, week_start, minutes)
        logger.debug("Workload for teacher %s week %s recomputed: %d min", teacher_id, week_start, minutes)
        return minutes

    def refresh(self, teacher_ids: Iterable[str | None], *, weeks: Iterable[date] = ()) -> None:
        """Recompute every tracked week for the given teachers.

        A slot repeats every week, so one change moves the total of each stored
        week. The current week and any ``weeks`` passed in are always included.
        """
        extra_weeks = {week_start_for(item) for item in weeks} | {week_start_for(date.today())}
        for teacher_id in sorted({item for item in teacher_ids if item}):
            for week_start in sorted(set(self.store.workload_weeks(teacher_id)) | extra_weeks):
                self.recompute(teacher_id, week_start)

    def recompute_many(self, teacher_ids: Iterable[str | None], week_start: date) -> dict[str, int]:
        results: dict[str, int] = {}
        for teacher_id in sorted({item for item in teacher_ids if item}):
            results[teacher_id] = self.recompute(teacher_id, week_start)
        return results

    def assigned_minutes(self, teacher_id: str, week_start: date) -> int:
        row = self.store.workload_row(teacher_id, week_start)
        if row is None:
            return self.recompute(teacher_id, week_start)
        return row.assigned_minutes

    def remaining_capacity(self, teacher_id: str, week_start: date) -> int:
        """Minutes left under the teacher's cap; negative when already over it."""
        teacher = self.store.get_teacher(teacher_id)
        if teacher is None:
            raise ResourceNotFoundError("Teacher", teacher_id)
        return teacher.max_weekly_minutes - self.assigned_minutes(teacher_id, week_start)
