"""Substitute ranking for a vacant slot.

Eligibility: active, no overlapping unavailability on the date, and the slot
fits under the weekly cap. Score = subject match (0.5) + load headroom
(0.3 / 0.2 / 0.1) + confirmed availability (0.2). Ties are broken by more
remaining minutes, then by employee code, so the order never depends on the
order teachers were supplied in.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone

from coverdesk.schemas.scheduling import (
    AvailabilityRecord,
    AvailabilityType,
    Priority,
    SchedulingPolicy,
    SlotStatus,
    SubstitutionCandidate,
    SubstitutionContext,
    Teacher,
    TimeSlot,
    WeeklyWorkload,
)
from coverdesk.services.intervals import overlaps, week_start_for, weekday_for
from coverdesk.services.store import SchedulingStore
from coverdesk.services.workload import WorkloadTracker

logger = logging.getLogger(__name__)

SUBJECT_MATCH_SCORE = 0.5
AVAILABILITY_SCORE = 0.2
LOW_LOAD_RATIO, LOW_LOAD_SCORE = 0.5, 0.3
MID_LOAD_RATIO, MID_LOAD_SCORE = 0.8, 0.2
HIGH_LOAD_SCORE = 0.1

HIGH_AVAILABILITY_MINUTES = 300
STRONG_MATCH_SCORE = 0.7
DEFAULT_CANDIDATE_LIMIT = 5


def effective_cap(teacher: Teacher, policy: SchedulingPolicy) -> int:
    return min(teacher.max_weekly_minutes, policy.max_weekly_minutes)


def headroom_score(assigned_minutes: int, cap_minutes: int) -> float:
    if assigned_minutes < cap_minutes * LOW_LOAD_RATIO:
        return LOW_LOAD_SCORE
    if assigned_minutes < cap_minutes * MID_LOAD_RATIO:
        return MID_LOAD_SCORE
    return HIGH_LOAD_SCORE


def match_score(teacher: Teacher, subject_code: str | None, assigned_minutes: int, cap_minutes: int) -> float:
    score = headroom_score(assigned_minutes, cap_minutes) + AVAILABILITY_SCORE
    if subject_code and subject_code in teacher.subjects:
        score += SUBJECT_MATCH_SCORE
    # Rounded so equal factor combinations compare equal.
    return round(score, 4)


def is_available(teacher_id: str, slot: TimeSlot, unavailability: Iterable[AvailabilityRecord]) -> bool:
    for record in unavailability:
        if record.teacher_id != teacher_id or record.type != AvailabilityType.unavailable:
            continue
        if overlaps(record.interval_on(slot.day), slot.interval):
            return False
    return True


def format_reason(candidate: SubstitutionCandidate, subject_code: str | None) -> str:
    reasons = []
    if subject_code and subject_code in candidate.subjects:
        reasons.append(f"Qualified in {subject_code}")
    if candidate.available_minutes > HIGH_AVAILABILITY_MINUTES:
        reasons.append(f"High availability ({candidate.available_minutes // 60}h free)")
    if candidate.match_score > STRONG_MATCH_SCORE:
        reasons.append("Strong match")
    return ", ".join(reasons) or "Available and under capacity"


def candidate_sort_key(candidate: SubstitutionCandidate) -> tuple:
    return (-candidate.match_score, -candidate.available_minutes, candidate.employee_code)


def order_candidates(candidates: Iterable[SubstitutionCandidate]) -> list[SubstitutionCandidate]:
    return sorted(candidates, key=candidate_sort_key)


def _workload_map(
    workloads: Mapping[str, int] | Iterable[WeeklyWorkload],
    week_start: date | None,
) -> dict[str, int]:
    if isinstance(workloads, Mapping):
        return dict(workloads)
    result: dict[str, int] = {}
    for row in workloads:
        if week_start is not None and row.week_start != week_start:
            continue
        if row.teacher_id in result:
            raise ValueError(
                f"Several workload rows for teacher {row.teacher_id}; pass on_date or a teacher-to-minutes mapping"
            )
        result[row.teacher_id] = row.assigned_minutes
    return result


def rank(
    slot: TimeSlot,
    teachers: Iterable[Teacher],
    workloads: Mapping[str, int] | Iterable[WeeklyWorkload],
    availability: Iterable[AvailabilityRecord],
    *,
    on_date: date | None = None,
    policy: SchedulingPolicy | None = None,
    limit: int | None = None,
    exclude_teacher_ids: Iterable[str] = (),
) -> list[SubstitutionCandidate]:
    policy = policy or SchedulingPolicy()
    assigned_by_teacher = _workload_map(workloads, week_start_for(on_date) if on_date else None)
    unavailability = [
        record for record in availability if on_date is None or record.on_date == on_date
    ]
    excluded = set(exclude_teacher_ids)

    candidates: list[SubstitutionCandidate] = []
    for teacher in teachers:
        if teacher.id in excluded or not teacher.is_active:
            continue
        if not is_available(teacher.id, slot, unavailability):
            continue

        assigned = assigned_by_teacher.get(teacher.id, 0)
        cap = effective_cap(teacher, policy)
        if assigned + slot.duration > cap:
            logger.debug(
                "Teacher %s excluded for slot %s: %d + %d > %d minutes",
                teacher.employee_code,
                slot.id,
                assigned,
                slot.duration,
                cap,
            )
            continue

        candidate = SubstitutionCandidate(
            teacher_id=teacher.id,
            teacher_name=teacher.full_name,
            employee_code=teacher.employee_code,
            match_score=match_score(teacher, slot.subject_code, assigned, cap),
            available_minutes=cap - assigned,
            assigned_minutes=assigned,
            subjects=teacher.subjects,
        )
        candidates.append(candidate.model_copy(update={"reason": format_reason(candidate, slot.subject_code)}))

    ordered = order_candidates(candidates)
    if limit is not None:
        ordered = ordered[: max(limit, 0)]
    return ordered


def find_eligible(
    store: SchedulingStore,
    slot: TimeSlot,
    on_date: date,
    *,
    limit: int | None = DEFAULT_CANDIDATE_LIMIT,
    policy: SchedulingPolicy | None = None,
) -> list[SubstitutionCandidate]:
    """Ranked substitutes for ``slot`` on ``on_date`` using data from a :class:`SchedulingStore`.

    Besides recorded unavailability, a teacher is busy during their own
    non-cancelled slots that overlap the vacant one. Missing workload rows are
    recomputed rather than read as zero.
    """
    if weekday_for(on_date) != slot.day:
        raise ValueError(f"{on_date.isoformat()} is not a {slot.day.value}")

    week_start = week_start_for(on_date)
    teachers = store.list_teachers(active_only=True)
    workloads = store.workload_snapshot(week_start)
    tracker = WorkloadTracker(store)
    for teacher in teachers:
        if teacher.id not in workloads:
            workloads[teacher.id] = tracker.recompute(teacher.id, week_start)

    unavailability = list(store.unavailability_on(on_date))
    for other in store.slots_on_day(slot.day):
        if other.id == slot.id or not other.teacher_id or other.status == SlotStatus.cancelled:
            continue
        if overlaps(other.interval, slot.interval):
            unavailability.append(
                AvailabilityRecord(
                    teacher_id=other.teacher_id,
                    on_date=on_date,
                    start_time=other.start_time,
                    end_time=other.end_time,
                    reason=f"Teaching {other.label}",
                )
            )

    excluded = [slot.teacher_id] if slot.teacher_id else []
    return rank(
        slot,
        teachers,
        workloads,
        unavailability,
        on_date=on_date,
        policy=policy,
        limit=limit,
        exclude_teacher_ids=excluded,
    )


def build_suggestion_payload(
    candidate: SubstitutionCandidate,
    context: SubstitutionContext,
    priority: Priority,
) -> dict:
    subject_match = bool(context.subject_code) and context.subject_code in candidate.subjects
    return {
        "suggested_teacher_id": candidate.teacher_id,
        "suggested_teacher_name": candidate.teacher_name,
        "employee_code": candidate.employee_code,
        "match_score": candidate.match_score,
        "priority": priority.value,
        "reasoning": format_reason(candidate, context.subject_code),
        "subject_match": subject_match,
        "available_capacity_minutes": candidate.available_minutes,
        "estimated_impact": {
            "teacher_load_increase": context.duration_minutes,
            "subject_progress_maintained": subject_match,
        },
        "confidence": candidate.match_score,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
