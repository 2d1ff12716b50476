from __future__ import annotations

from coverdesk.schemas.scheduling import Priority

# (progress below, minimum subject weight, priority); first match wins.
PRIORITY_RULES: tuple[tuple[float, float, Priority], ...] = (
    (50, 4, Priority.critical),
    (75, 3, Priority.high),
    (75, float("-inf"), Priority.medium),
)


def classify(progress_percent: float, subject_weight: int) -> Priority:
    """Urgency of covering a class, from syllabus progress and subject weight.

    Comparisons are strict on progress: a class at exactly 50% with a
    weight-5 subject is ``high``, not ``critical``.
    """
    if progress_percent is None or subject_weight is None:
        raise TypeError("progress_percent and subject_weight are required")
    for progress_below, min_weight, priority in PRIORITY_RULES:
        if progress_percent < progress_below and subject_weight >= min_weight:
            return priority
    return Priority.normal
