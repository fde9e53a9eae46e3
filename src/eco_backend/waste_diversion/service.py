from __future__ import annotations

from typing import List, Optional, Sequence

from .dataset import DiversionDataset
from .engine import aggregate_monthly, compute_kpis, rank_schools, resolve_enrollment
from .models import (
    DiversionDashboard,
    DiversionFilters,
    LeaderboardEntry,
    SchoolImpact,
    WasteRecord,
)


class SchoolNotFoundError(LookupError):
    """Raised when a requested school has no waste records."""

    def __init__(self, school: str, district: Optional[str] = None) -> None:
        self.school = school
        self.district = district
        where = f" in district {district!r}" if district else ""
        super().__init__(f"No waste diversion records for school {school!r}{where}.")


class WasteDiversionService:
    """
    Builds the waste-diversion views the mobile client renders.

    Every call recomputes from the records handed to the constructor; nothing
    is cached between calls.
    """

    def __init__(self, records: Sequence[WasteRecord]) -> None:
        self.dataset = DiversionDataset(records=records)

    def build(self, filters: DiversionFilters) -> DiversionDashboard:
        leaderboard = rank_schools(self.dataset.records)
        impact = None
        if filters.school:
            impact = self._school_impact(filters.school, filters.district, filters.window_months, leaderboard)
        return DiversionDashboard(
            leaderboard=_limit(leaderboard, filters.leaderboard_limit),
            directory=self.dataset.district_directory(),
            impact=impact,
        )

    def leaderboard(self, limit: int = 0) -> List[LeaderboardEntry]:
        return _limit(rank_schools(self.dataset.records), limit)

    def school_impact(self, school: str, district: Optional[str] = None, window_months: int = 6) -> SchoolImpact:
        return self._school_impact(school, district, window_months, rank_schools(self.dataset.records))

    def _school_impact(
        self,
        school: str,
        district: Optional[str],
        window_months: int,
        leaderboard: Sequence[LeaderboardEntry],
    ) -> SchoolImpact:
        records = self.dataset.records_for_school(school, district)
        if not records:
            raise SchoolNotFoundError(school, district)

        aggregates = aggregate_monthly(records)
        trend = aggregates[-max(1, window_months):]
        enrollment = resolve_enrollment(records)

        return SchoolImpact(
            school=records[0].school,
            district=records[0].district or district,
            trend=trend,
            window_kpis=compute_kpis(trend, enrollment),
            all_time_kpis=compute_kpis(aggregates, enrollment),
            leaderboard_entry=_find_entry(leaderboard, records[0].school),
        )


def _limit(entries: List[LeaderboardEntry], limit: int) -> List[LeaderboardEntry]:
    if limit and limit > 0:
        return entries[:limit]
    return entries


def _find_entry(leaderboard: Sequence[LeaderboardEntry], school: str) -> Optional[LeaderboardEntry]:
    # Leaderboard names are grouped case-sensitively, so look up the stored name.
    for entry in leaderboard:
        if entry.school == school:
            return entry
    return None
