"""
Statistics service.
Pure aggregation over attendance, match and player rows.

Every function here accepts ORM instances or plain dicts, never mutates its
input and has a defined result for empty input.
"""

import math
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from club_backend.utils.constants import ATTENDED_STATUSES, TREND_THRESHOLD

TREND_IMPROVING = "improving"
TREND_DECLINING = "declining"
TREND_STABLE = "stable"


# ============================================================================
# Helpers
# ============================================================================

def _field(record: Any, name: str) -> Any:
    """Read a field from a dict or an object."""
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _value(raw: Any) -> Any:
    """Unwrap enum members to their value."""
    return getattr(raw, "value", raw)


def _percentage(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round(part / whole * 100, 2)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


# ============================================================================
# Attendance
# ============================================================================

def attendance_rate(records: Iterable[Any]) -> float:
    """
    Percentage of records marked present or late, rounded to 2 decimals.

    Returns 0.0 for an empty collection.
    """
    records = list(records)
    attended = sum(1 for r in records if _value(_field(r, "status")) in ATTENDED_STATUSES)
    return _percentage(attended, len(records))


def average_performance(records: Iterable[Any]) -> Optional[float]:
    """
    Mean performance_score over the records that carry one, rounded to 2 decimals.

    Returns None ("no data") when no record is scored. Zero is never used as
    a stand-in, so a real average can always be told apart from missing data.
    """
    scores = [
        _field(r, "performance_score")
        for r in records
        if _field(r, "performance_score") is not None
    ]
    if not scores:
        return None
    return round(_mean([float(s) for s in scores]), 2)


# ============================================================================
# Matches
# ============================================================================

def win_rate(matches: Iterable[Any]) -> float:
    """Wins over completed matches as a percentage (0.0 when none completed)."""
    matches = list(matches)
    wins = sum(1 for m in matches if _value(_field(m, "result")) == "win")
    completed = sum(1 for m in matches if _value(_field(m, "status")) == "completed")
    return _percentage(wins, completed)


def derive_result(our_score: Optional[int], opponent_score: Optional[int]) -> str:
    """Match result from the two scores ('pending' while either is unknown)."""
    if our_score is None or opponent_score is None:
        return "pending"
    if our_score > opponent_score:
        return "win"
    if our_score < opponent_score:
        return "loss"
    return "draw"


# ============================================================================
# Trend
# ============================================================================

def trend(scores: Sequence[float]) -> str:
    """
    Classify a chronologically ordered score sequence (oldest first).

    The first ceil(n/2) scores form the first half. The sequence is
    'improving' when the second-half mean exceeds the first-half mean by more
    than TREND_THRESHOLD, 'declining' when it falls short by more than that,
    otherwise 'stable'. Fewer than two scores is always 'stable'.
    """
    values = [float(s) for s in scores if s is not None]
    if len(values) < 2:
        return TREND_STABLE

    midpoint = math.ceil(len(values) / 2)
    first, second = values[:midpoint], values[midpoint:]
    delta = _mean(second) - _mean(first)

    if delta > TREND_THRESHOLD:
        return TREND_IMPROVING
    if delta < -TREND_THRESHOLD:
        return TREND_DECLINING
    return TREND_STABLE


# ============================================================================
# Breakdowns
# ============================================================================

KeyFunc = Union[str, Callable[[Any], Any]]


def group_counts(
    records: Iterable[Any],
    key: KeyFunc,
    sort_by_count: bool = False,
) -> Dict[Any, int]:
    """
    Count records per group.

    Args:
        records: Rows to group
        key: Field name or callable producing the group key
        sort_by_count: Order groups by count descending (ties keep first-seen order)

    Returns:
        Dict of group key -> count, in first-occurrence order unless sorted
    """
    key_func = key if callable(key) else (lambda r: _value(_field(r, key)))
    counts: Dict[Any, int] = {}
    for record in records:
        group = key_func(record)
        counts[group] = counts.get(group, 0) + 1

    if sort_by_count:
        # sorted() is stable, so equal counts keep insertion order
        return dict(sorted(counts.items(), key=lambda item: item[1], reverse=True))
    return counts


def status_breakdown(records: Iterable[Any], statuses: Iterable[Any], key: str = "status") -> Dict[str, int]:
    """
    Total plus a zero-filled count for every known status.

    Example:
        >>> status_breakdown(players, ["active", "injured", "suspended"])
        {"total": 4, "active": 3, "injured": 1, "suspended": 0}
    """
    records = list(records)
    counts = group_counts(records, key)
    breakdown = {"total": len(records)}
    for status in statuses:
        status = _value(status)
        breakdown[status] = counts.get(status, 0)
    return breakdown


def top_players(summaries: Iterable[Dict], limit: int) -> List[Dict]:
    """
    Highest average performance first; players without data go last.

    Input order is kept among equal averages.
    """
    ranked = sorted(
        summaries,
        key=lambda s: (
            s.get("average_performance") is None,
            -(s.get("average_performance") or 0),
        ),
    )
    return ranked[:limit]
