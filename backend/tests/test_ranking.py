import random
from datetime import date

import pytest

from coverdesk.models.availability import TeacherAvailability
from coverdesk.models.teacher import Teacher as TeacherRow
from coverdesk.models.timetable import Timetable, TimetableSlot
from coverdesk.models.workload import TeacherWorkload
from coverdesk.schemas.scheduling import (
    AvailabilityRecord,
    AvailabilityType,
    SchedulingPolicy,
    Teacher,
    TeacherStatus,
    TimeSlot,
    WeeklyWorkload,
)
from coverdesk.services.intervals import Weekday
from coverdesk.services.ranking import find_eligible, match_score, rank
from coverdesk.services.store import SchedulingStore

MONDAY = date(2024, 3, 4)
WEEK = MONDAY


def teacher(teacher_id, code, subjects=(), **extra):
    return Teacher(id=teacher_id, employee_code=code, full_name=f"Teacher {code}", subjects=subjects, **extra)


@pytest.fixture
def slot():
    return TimeSlot(
        id="slot-1",
        day="Monday",
        start_time="10:00",
        end_time="11:40",
        subject_code="math",
        teacher_id="absent",
    )


def test_teacher_near_cap_is_excluded(slot):
    teachers = [teacher("t1", "E001", ["MATH"]), teacher("t2", "E002", ["MATH"])]
    result = rank(slot, teachers, {"t1": 1000, "t2": 900}, [])

    # 1000 + 100 > 1080 while 900 + 100 fits.
    assert [item.teacher_id for item in result] == ["t2"]


def test_policy_cap_applies_when_lower_than_teacher_cap(slot):
    teachers = [teacher("t1", "E001", ["MATH"])]
    policy = SchedulingPolicy(max_weekly_minutes=600)
    assert rank(slot, teachers, {"t1": 550}, [], policy=policy) == []
    assert len(rank(slot, teachers, {"t1": 450}, [], policy=policy)) == 1


def test_scoring_components(slot):
    qualified_idle = teacher("t1", "E001", ["MATH"])
    assert match_score(qualified_idle, "MATH", 0, 1080) == 1.0
    assert match_score(qualified_idle, "MATH", 600, 1080) == 0.9
    assert match_score(qualified_idle, "MATH", 900, 1080) == 0.8
    assert match_score(teacher("t2", "E002", ["ART"]), "MATH", 0, 1080) == 0.5


def test_ordering_by_score_then_headroom_then_code(slot):
    teachers = [
        teacher("t-c", "E003", ["MATH"]),
        teacher("t-a", "E001", ["MATH"]),
        teacher("t-b", "E002", ["MATH"]),
        teacher("t-d", "E004", ["ART"]),
    ]
    workloads = {"t-a": 100, "t-b": 100, "t-c": 50, "t-d": 0}
    result = rank(slot, teachers, workloads, [])

    assert [item.employee_code for item in result] == ["E003", "E001", "E002", "E004"]
    assert result[0].match_score == 1.0
    assert result[0].available_minutes == 1030
    assert "Qualified in MATH" in result[0].reason


def test_ranking_is_independent_of_input_order(slot):
    teachers = [teacher(f"t{i}", f"E{i:03d}", ["MATH"] if i % 2 else ["ART"]) for i in range(12)]
    workloads = {item.id: (i * 97) % 1000 for i, item in enumerate(teachers)}
    expected = rank(slot, teachers, workloads, [])

    rng = random.Random(3)
    for _ in range(10):
        shuffled = teachers[:]
        rng.shuffle(shuffled)
        assert rank(slot, shuffled, workloads, []) == expected


def test_limit_is_applied_after_ordering(slot):
    teachers = [teacher(f"t{i}", f"E{i:03d}", ["MATH"]) for i in range(8)]
    full = rank(slot, teachers, {}, [])
    assert rank(slot, teachers, {}, [], limit=3) == full[:3]


def test_inactive_and_excluded_teachers_are_skipped(slot):
    teachers = [
        teacher("t1", "E001", ["MATH"], status=TeacherStatus.on_leave),
        teacher("absent", "E002", ["MATH"]),
        teacher("t3", "E003", ["MATH"]),
    ]
    result = rank(slot, teachers, {}, [], exclude_teacher_ids=["absent"])
    assert [item.teacher_id for item in result] == ["t3"]


def test_unavailability_blocks_only_overlapping_windows(slot):
    teachers = [teacher("t1", "E001"), teacher("t2", "E002"), teacher("t3", "E003")]
    availability = [
        AvailabilityRecord(teacher_id="t1", on_date=MONDAY),
        AvailabilityRecord(teacher_id="t2", on_date=MONDAY, start_time="09:00", end_time="10:00"),
        AvailabilityRecord(teacher_id="t3", on_date=MONDAY, type=AvailabilityType.available),
    ]
    result = rank(slot, teachers, {}, availability, on_date=MONDAY)
    assert [item.teacher_id for item in result] == ["t2", "t3"]


def test_unavailability_on_another_date_is_ignored(slot):
    availability = [AvailabilityRecord(teacher_id="t1", on_date=date(2024, 3, 11))]
    result = rank(slot, [teacher("t1", "E001")], {}, availability, on_date=MONDAY)
    assert len(result) == 1


def _seed_store(db):
    timetable = Timetable(name="Term 1")
    absent = TeacherRow(employee_code="E000", full_name="Absent", subjects=["MATH"])
    busy = TeacherRow(employee_code="E001", full_name="Busy", subjects=["MATH"])
    free = TeacherRow(employee_code="E002", full_name="Free", subjects=["MATH"])
    loaded = TeacherRow(employee_code="E003", full_name="Loaded", subjects=["MATH"], max_weekly_minutes=150)
    away = TeacherRow(employee_code="E004", full_name="Away", subjects=["MATH"])
    db.add_all([timetable, absent, busy, free, loaded, away])
    db.flush()

    vacant = TimetableSlot(
        timetable_id=timetable.id,
        day=Weekday.monday,
        start_time=600,
        end_time=700,
        subject_code=None,
        teacher_id=absent.id,
    )
    db.add_all([
        vacant,
        TimetableSlot(timetable_id=timetable.id, day=Weekday.monday, start_time=630, end_time=690, teacher_id=busy.id),
        TimetableSlot(timetable_id=timetable.id, day=Weekday.tuesday, start_time=540, end_time=640, teacher_id=loaded.id),
        TeacherAvailability(teacher_id=away.id, on_date=MONDAY, type=AvailabilityType.unavailable),
    ])
    db.flush()
    return vacant, {"absent": absent, "busy": busy, "free": free, "loaded": loaded, "away": away}


def test_find_eligible_uses_store_data(db):
    vacant, rows = _seed_store(db)
    store = SchedulingStore(db)

    result = find_eligible(store, store.get_slot(vacant.id), MONDAY)

    assert [item.employee_code for item in result] == ["E002"]
    # Missing workload rows were filled in while ranking.
    loaded_row = db.query(TeacherWorkload).filter_by(teacher_id=rows["loaded"].id, week_start=WEEK).one()
    assert loaded_row.assigned_minutes == 100


def test_find_eligible_rejects_mismatched_date(db):
    vacant, _ = _seed_store(db)
    store = SchedulingStore(db)
    with pytest.raises(ValueError):
        find_eligible(store, store.get_slot(vacant.id), date(2024, 3, 5))


def test_workload_rows_are_filtered_by_week(slot):
    teachers = [teacher("t1", "E001", ["MATH"])]
    rows = [
        WeeklyWorkload(teacher_id="t1", week_start=date(2024, 3, 11), assigned_minutes=1000),
        WeeklyWorkload(teacher_id="t1", week_start=WEEK, assigned_minutes=100),
    ]
    result = rank(slot, teachers, rows, [], on_date=MONDAY)
    assert [item.assigned_minutes for item in result] == [100]
    assert rank(slot, teachers, rows, [], on_date=date(2024, 3, 11)) == []


def test_workload_rows_for_several_weeks_need_a_date(slot):
    rows = [
        WeeklyWorkload(teacher_id="t1", week_start=date(2024, 3, 11), assigned_minutes=1000),
        WeeklyWorkload(teacher_id="t1", week_start=WEEK, assigned_minutes=100),
    ]
    with pytest.raises(ValueError, match="Several workload rows"):
        rank(slot, [teacher("t1", "E001")], rows, [])
