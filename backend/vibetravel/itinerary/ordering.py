"""Activity ordering: grouping by day and the dense-position invariant.

Within a plan, the positions of one day's activities always form the gapless
sequence ``1..n``. These helpers are pure: inputs are never mutated, new
``PlanActivity`` copies are returned instead.
"""

import uuid
from collections.abc import Iterable, Sequence

from backend.vibetravel.models.activity import DayActivities, PlanActivity


def _bucket_by_day(activities: Iterable[PlanActivity]) -> dict[int, list[PlanActivity]]:
    buckets: dict[int, list[PlanActivity]] = {}
    for activity in activities:
        buckets.setdefault(activity.day_number, []).append(activity)
    return buckets


def assign_missing_ids(activities: Sequence[PlanActivity]) -> list[PlanActivity]:
    """Give every activity without an identifier a fresh UUID.

    Activities that already carry an id are returned unchanged.
    """
    return [
        activity if activity.id is not None else activity.model_copy(update={"id": uuid.uuid4()})
        for activity in activities
    ]


def group_by_day(activities: Sequence[PlanActivity]) -> list[DayActivities]:
    """Group activities by day, days ascending, positions ascending.

    Input need not be sorted. Ids are passed through as-is, so unsaved
    activities should go through assign_missing_ids once beforehand.

    Args:
        activities: Activities of a single plan

    Returns:
        One entry per distinct day_number present in the input
    """
    buckets = _bucket_by_day(activities)

    return [
        DayActivities(
            day_number=day_number,
            activities=sorted(buckets[day_number], key=lambda a: a.position),
        )
        for day_number in sorted(buckets)
    ]


def renumber(activities: Sequence[PlanActivity]) -> list[PlanActivity]:
    """Close gaps and duplicates so each day's positions are ``1..n``.

    Within a day activities are stable-sorted by their current position, so
    ties keep their relative input order. Already-dense input comes back with
    identical (day_number, position) pairs.

    Returns:
        Activities ordered by day_number, then position
    """
    result: list[PlanActivity] = []
    buckets = _bucket_by_day(activities)

    for day_number in sorted(buckets):
        ordered = sorted(buckets[day_number], key=lambda a: a.position)
        for index, activity in enumerate(ordered, start=1):
            if activity.position == index:
                result.append(activity.model_copy())
            else:
                result.append(activity.model_copy(update={"position": index}))

    return result


def find_density_violations(activities: Sequence[PlanActivity]) -> list[int]:
    """Return the day numbers whose positions are not exactly ``1..n``."""
    violations: list[int] = []
    for day_number, day_activities in sorted(_bucket_by_day(activities).items()):
        positions = sorted(a.position for a in day_activities)
        if positions != list(range(1, len(day_activities) + 1)):
            violations.append(day_number)
    return violations


def ordering_key(activities: Sequence[PlanActivity]) -> list[tuple[str, int, int]]:
    """(id, day_number, position) triples sorted by identifier.

    Payload fields are ignored; two activity sets with the same key have the
    same identity set and the same placement.
    """
    return sorted(
        (str(a.id) if a.id is not None else "", a.day_number, a.position) for a in activities
    )
