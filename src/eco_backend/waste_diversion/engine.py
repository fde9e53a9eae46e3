"""
Diversion aggregation and leaderboard scoring.

Every function here is a pure computation over records that were already
fetched: no I/O, no logging, no caching. Malformed numeric fields count as
zero instead of raising.
"""

from __future__ import annotations

import math
import re
from collections import defaultdict
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Sequence, Tuple, Union

from .models import LeaderboardEntry, MonthlyAggregate, RawNumber, SchoolKPISummary, WasteRecord

Number = Union[int, float]


_LEADING_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def normalize_number(raw: RawNumber) -> Number:
    """
    Coerce a raw spreadsheet value to a finite number, or 0.

    Text has its commas removed and then contributes its leading number,
    so ``"1,234"`` is 1234 and ``"12 lbs"`` is 12.
    """

    if isinstance(raw, bool):
        return 0
    if isinstance(raw, str):
        match = _LEADING_NUMBER_RE.match(raw.strip().replace(",", ""))
        if match is None:
            return 0
        raw = match.group(0)
    elif not isinstance(raw, (int, float, Decimal)):
        return 0
    try:
        value = float(raw)
    except (InvalidOperation, OverflowError, ValueError):
        return 0
    return value if math.isfinite(value) else 0


def period_key(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def aggregate_monthly(records: Iterable[WasteRecord]) -> List[MonthlyAggregate]:
    """
    Sum recycle and compost weights per reporting month.

    Months without records are absent from the result rather than zero
    filled. The result is ordered by ``period_key``.
    """

    recycle: Dict[Tuple[int, int], Number] = defaultdict(int)
    compost: Dict[Tuple[int, int], Number] = defaultdict(int)

    for record in records:
        period = (record.year, record.month)
        recycle[period] += normalize_number(record.recycle_lbs)
        compost[period] += normalize_number(record.compost_lbs)

    aggregates = [
        MonthlyAggregate(
            period_key=period_key(year, month),
            year=year,
            month=month,
            recycle_lbs=recycle[(year, month)],
            compost_lbs=compost[(year, month)],
            diverted_lbs=recycle[(year, month)] + compost[(year, month)],
        )
        for year, month in recycle
    ]
    return sorted(aggregates, key=lambda aggregate: aggregate.period_key)


def resolve_enrollment(records: Sequence[WasteRecord]) -> Number:
    """
    Enrollment reported for the school's most recent month.

    Sub-accounts repeat the school total, so the largest value in that month
    wins; summing would double count.
    """

    if not records:
        return 0
    latest = max((record.year, record.month) for record in records)
    return max(
        normalize_number(record.enrollment)
        for record in records
        if (record.year, record.month) == latest
    )


def compute_kpis(aggregates: Sequence[MonthlyAggregate], enrollment: Number) -> SchoolKPISummary:
    total_recycle = sum(aggregate.recycle_lbs for aggregate in aggregates)
    total_compost = sum(aggregate.compost_lbs for aggregate in aggregates)
    total_diverted = sum(aggregate.diverted_lbs for aggregate in aggregates)
    return SchoolKPISummary(
        total_recycle_lbs=total_recycle,
        total_compost_lbs=total_compost,
        total_diverted_lbs=total_diverted,
        enrollment=enrollment,
        diverted_per_student=total_diverted / enrollment if enrollment > 0 else 0,
        period_count=len(aggregates),
    )


def rank_schools(all_records: Iterable[WasteRecord]) -> List[LeaderboardEntry]:
    """
    Rank every school by all-time diverted pounds per student.

    Schools are keyed by name alone, so identically named schools in
    different districts share one entry carrying the first district seen.
    Enrollment is the largest value reported in any month. Equal scores keep
    the order in which the schools first appeared.
    """

    districts: Dict[str, str] = {}
    stats: Dict[str, Dict[str, Number]] = defaultdict(lambda: {"diverted": 0, "enrollment": 0})
    for record in all_records:
        if not record.school:
            continue
        districts.setdefault(record.school, record.district)
        stat = stats[record.school]
        stat["diverted"] += normalize_number(record.recycle_lbs) + normalize_number(record.compost_lbs)
        stat["enrollment"] = max(stat["enrollment"], normalize_number(record.enrollment))

    scored: List[Tuple[str, str, Number, Number, Number]] = []
    for school, stat in stats.items():
        diverted, enrollment = stat["diverted"], stat["enrollment"]
        score = diverted / enrollment if enrollment > 0 else 0
        scored.append((school, districts[school], diverted, enrollment, score))

    # Stable: equal scores stay in first-appearance order.
    scored.sort(key=lambda item: item[4], reverse=True)
    return [
        LeaderboardEntry(
            school=school,
            district=district,
            score=score,
            total_diverted_lbs=diverted,
            rank=index + 1,
            enrollment=enrollment,
        )
        for index, (school, district, diverted, enrollment, score) in enumerate(scored)
    ]
