from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence, Union

RawNumber = Union[int, float, Decimal, str, None]

MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@dataclass(frozen=True)
class WasteRecord:
    """
    One row of ``waste_diversion_records``: a school's report for one month.

    Several sub-accounts of the same school may report the same month, so
    rows are not unique per (school, year, month). ``enrollment`` and the two
    weight fields keep whatever the upstream spreadsheet import produced,
    including text such as ``"1,234"``; numeric coercion happens in the engine.
    """

    district: str
    school: str
    year: int
    month: int
    enrollment: RawNumber = 0
    recycle_lbs: RawNumber = 0
    compost_lbs: RawNumber = 0


@dataclass(frozen=True)
class MonthlyAggregate:
    period_key: str
    year: int
    month: int
    recycle_lbs: float
    compost_lbs: float
    diverted_lbs: float

    @property
    def label(self) -> str:
        """Short axis label, e.g. ``"Sep 2025"``."""
        if not 1 <= self.month <= 12:
            return self.period_key
        return f"{MONTH_ABBREVIATIONS[self.month - 1]} {self.year}"


@dataclass(frozen=True)
class SchoolKPISummary:
    total_recycle_lbs: float
    total_compost_lbs: float
    total_diverted_lbs: float
    enrollment: float
    diverted_per_student: float
    period_count: int = 0

    @property
    def average_monthly_diverted_lbs(self) -> float:
        return self.total_diverted_lbs / max(1, self.period_count)


@dataclass(frozen=True)
class LeaderboardEntry:
    school: str
    district: str
    score: float
    total_diverted_lbs: float
    rank: int
    enrollment: float = 0


@dataclass(frozen=True)
class DiversionFilters:
    """
    Request-level options shared by the dashboard views.

    ``window_months`` selects how many of the most recent reporting periods
    feed the trend chart and the windowed KPI cards. ``leaderboard_limit`` of
    0 returns every ranked school.
    """

    school: Optional[str] = None
    district: Optional[str] = None
    window_months: int = 6
    leaderboard_limit: int = 0


@dataclass(frozen=True)
class SchoolImpact:
    school: str
    district: Optional[str]
    trend: Sequence[MonthlyAggregate]
    window_kpis: SchoolKPISummary
    all_time_kpis: SchoolKPISummary
    leaderboard_entry: Optional[LeaderboardEntry] = None


@dataclass(frozen=True)
class DiversionDashboard:
    leaderboard: Sequence[LeaderboardEntry] = field(default_factory=list)
    directory: Dict[str, Sequence[str]] = field(default_factory=dict)
    impact: Optional[SchoolImpact] = None

    def as_dict(self) -> Dict[str, Any]:
        """
        Convert the nested dataclasses into a JSON-serialisable structure.

        The mobile client consumes camelCase keys, so the conversion happens
        here rather than in each endpoint.
        """

        return {
            "leaderboard": [serialize_leaderboard_entry(entry) for entry in self.leaderboard],
            "directory": {district: list(schools) for district, schools in self.directory.items()},
            "impact": None if self.impact is None else serialize_school_impact(self.impact),
        }


def serialize_monthly_aggregate(aggregate: MonthlyAggregate) -> Dict[str, Any]:
    return {
        "key": aggregate.period_key,
        "label": aggregate.label,
        "recycle": aggregate.recycle_lbs,
        "compost": aggregate.compost_lbs,
        "diverted": aggregate.diverted_lbs,
    }


def serialize_kpis(kpis: SchoolKPISummary) -> Dict[str, Any]:
    return {
        "totalRecycleLbs": kpis.total_recycle_lbs,
        "totalCompostLbs": kpis.total_compost_lbs,
        "totalDivertedLbs": kpis.total_diverted_lbs,
        "enrollment": kpis.enrollment,
        "divertedPerStudent": kpis.diverted_per_student,
        "periodCount": kpis.period_count,
        "averageMonthlyDivertedLbs": kpis.average_monthly_diverted_lbs,
    }


def serialize_leaderboard_entry(entry: LeaderboardEntry) -> Dict[str, Any]:
    return {
        "rank": entry.rank,
        "school": entry.school,
        "district": entry.district,
        "score": entry.score,
        "totalDiverted": entry.total_diverted_lbs,
        "enrollment": entry.enrollment,
    }


def serialize_school_impact(impact: SchoolImpact) -> Dict[str, Any]:
    return {
        "school": impact.school,
        "district": impact.district,
        "trend": [serialize_monthly_aggregate(point) for point in impact.trend],
        "windowKpis": serialize_kpis(impact.window_kpis),
        "allTimeKpis": serialize_kpis(impact.all_time_kpis),
        "leaderboardEntry": (
            None if impact.leaderboard_entry is None else serialize_leaderboard_entry(impact.leaderboard_entry)
        ),
    }
