from __future__ import annotations

import logging
from collections import Counter, defaultdict
from typing import Iterable, List

from coverdesk.schemas.conflict import (
    ConflictDetail,
    ConflictReport,
    ConflictSeverity,
    ConflictSummary,
    ConflictType,
    ResolutionAction,
)
from coverdesk.schemas.scheduling import SlotStatus, TimeSlot
from coverdesk.services.intervals import Weekday, minutes_to_hhmm, overlaps

logger = logging.getLogger(__name__)

DEFAULT_MIN_TRAVEL_MINUTES = 15

SEVERITY_BY_TYPE: dict[ConflictType, ConflictSeverity] = {
    ConflictType.instructor_conflict: ConflictSeverity.critical,
    ConflictType.location_conflict: ConflictSeverity.high,
    ConflictType.time_overlap: ConflictSeverity.medium,
    ConflictType.travel_time: ConflictSeverity.low,
}

_TYPE_ORDER = {conflict_type: index for index, conflict_type in enumerate(ConflictType)}


def severity_for(conflict_type: ConflictType) -> ConflictSeverity:
    return SEVERITY_BY_TYPE[conflict_type]


def conflict_sort_key(conflict) -> tuple:
    return (_TYPE_ORDER[conflict.conflict_type], conflict.slot1_id, conflict.slot2_id or "")


def _time_range(slot: TimeSlot) -> str:
    return f"{minutes_to_hhmm(slot.start_time)}-{minutes_to_hhmm(slot.end_time)}"


def describe_conflict(conflict_type: ConflictType, first: TimeSlot, second: TimeSlot | None = None) -> str:
    day = first.day.value
    if conflict_type == ConflictType.time_overlap:
        other = second.label if second else "another class"
        return f'"{first.label}" and "{other}" overlap on {day} ({_time_range(first)})'
    if conflict_type == ConflictType.location_conflict:
        return f"{first.location} is double-booked on {day} ({_time_range(first)})"
    if conflict_type == ConflictType.instructor_conflict:
        return f"{first.instructor_key} is assigned to multiple classes on {day} ({_time_range(first)})"
    if conflict_type == ConflictType.travel_time:
        target = second.location if second else "the next class"
        return f"Insufficient travel time between {first.location} and {target} on {day}"
    return "Unknown conflict type"


class ConflictService:
    """Local, synchronous conflict detection over one schedule's slots.

    Output order does not depend on input order: pairs are reported with the
    smaller slot id first and the report is sorted by type, then slot ids.
    """

    def __init__(self, slots: Iterable[TimeSlot], *, min_travel_minutes: int = DEFAULT_MIN_TRAVEL_MINUTES):
        if min_travel_minutes < 0:
            raise ValueError("min_travel_minutes cannot be negative")
        self.min_travel_minutes = min_travel_minutes
        self.slots: List[TimeSlot] = [slot for slot in slots if slot.status != SlotStatus.cancelled]

    def _slots_by_day(self) -> dict[Weekday, list[TimeSlot]]:
        slots_by_day: dict[Weekday, list[TimeSlot]] = defaultdict(list)
        for slot in self.slots:
            slots_by_day[slot.day].append(slot)
        for day_slots in slots_by_day.values():
            day_slots.sort(key=lambda item: (item.start_time, item.end_time, item.id))
        return slots_by_day

    def _pair_conflict(self, conflict_type: ConflictType, first: TimeSlot, second: TimeSlot) -> ConflictDetail:
        if second.id < first.id:
            first, second = second, first
        return ConflictDetail(
            id=f"{conflict_type.value}-{first.id}-{second.id}",
            conflict_type=conflict_type,
            severity=severity_for(conflict_type),
            slot1_id=first.id,
            slot2_id=second.id,
            description=describe_conflict(conflict_type, first, second),
        )

    def _overlap_conflicts(self, day_slots: list[TimeSlot]) -> list[ConflictDetail]:
        conflicts: list[ConflictDetail] = []
        n = len(day_slots)
        for i in range(n):
            s1 = day_slots[i]
            for j in range(i + 1, n):
                s2 = day_slots[j]
                if not overlaps(s1.interval, s2.interval):
                    continue
                conflicts.append(self._pair_conflict(ConflictType.time_overlap, s1, s2))
                if s1.location and s1.location == s2.location:
                    conflicts.append(self._pair_conflict(ConflictType.location_conflict, s1, s2))
                if s1.instructor_key and s1.instructor_key == s2.instructor_key:
                    conflicts.append(self._pair_conflict(ConflictType.instructor_conflict, s1, s2))
        return conflicts

    def _travel_conflicts(self, day_slots: list[TimeSlot]) -> list[ConflictDetail]:
        # Only back-to-back transitions incur travel, so adjacent pairs by start time.
        conflicts: list[ConflictDetail] = []
        for current, following in zip(day_slots, day_slots[1:]):
            if not current.location or not following.location:
                continue
            if current.location == following.location:
                continue
            gap = following.start_time - current.end_time
            if gap < self.min_travel_minutes:
                conflicts.append(
                    ConflictDetail(
                        id=f"{ConflictType.travel_time.value}-{current.id}-{following.id}",
                        conflict_type=ConflictType.travel_time,
                        severity=severity_for(ConflictType.travel_time),
                        slot1_id=current.id,
                        slot2_id=following.id,
                        description=describe_conflict(ConflictType.travel_time, current, following),
                    )
                )
        return conflicts

    def detect_conflicts(self) -> ConflictReport:
        conflicts: List[ConflictDetail] = []
        for day_slots in self._slots_by_day().values():
            conflicts.extend(self._overlap_conflicts(day_slots))
            conflicts.extend(self._travel_conflicts(day_slots))

        conflicts.sort(key=conflict_sort_key)
        logger.debug("Detected %d conflict(s) across %d slot(s)", len(conflicts), len(self.slots))
        return ConflictReport(conflicts=conflicts, summary=summarize(conflicts))

    def generate_resolutions(self, conflict: ConflictDetail) -> List[ResolutionAction]:
        resolutions: List[ResolutionAction] = []
        target = conflict.slot2_id or conflict.slot1_id
        if conflict.conflict_type in (ConflictType.time_overlap, ConflictType.instructor_conflict):
            resolutions.append(ResolutionAction(
                action_type="move_slot",
                description="Move to a different time slot",
                target_slot_id=target,
                parameters={},
            ))
        if conflict.conflict_type == ConflictType.instructor_conflict:
            resolutions.append(ResolutionAction(
                action_type="change_teacher",
                description="Assign another qualified teacher",
                target_slot_id=target,
                parameters={},
            ))
        if conflict.conflict_type == ConflictType.location_conflict:
            resolutions.append(ResolutionAction(
                action_type="change_room",
                description="Find a free room for one of the classes",
                target_slot_id=target,
                parameters={},
            ))
        if conflict.conflict_type == ConflictType.travel_time:
            resolutions.append(ResolutionAction(
                action_type="extend_gap",
                description=f"Leave at least {self.min_travel_minutes} minutes between the classes",
                target_slot_id=target,
                parameters={"min_gap_minutes": self.min_travel_minutes},
            ))
        return resolutions


def summarize(conflicts: Iterable[ConflictDetail]) -> ConflictSummary:
    conflicts = list(conflicts)
    by_severity = Counter(item.severity.value for item in conflicts)
    by_type = Counter(item.conflict_type.value for item in conflicts)
    return ConflictSummary(
        total_conflicts=len(conflicts),
        by_severity=dict(sorted(by_severity.items())),
        by_type=dict(sorted(by_type.items())),
    )


def detect(
    slots: Iterable[TimeSlot],
    *,
    min_travel_minutes: int = DEFAULT_MIN_TRAVEL_MINUTES,
    include_resolutions: bool = False,
) -> ConflictReport:
    service = ConflictService(slots, min_travel_minutes=min_travel_minutes)
    report = service.detect_conflicts()
    if include_resolutions:
        for conflict in report.conflicts:
            report.suggested_resolutions.extend(service.generate_resolutions(conflict))
    return report
