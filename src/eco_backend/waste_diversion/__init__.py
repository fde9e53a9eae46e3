"""
Waste-diversion aggregation for the Eco Academy backend.

Turns the raw per-school, per-month ``waste_diversion_records`` rows into the
monthly trend series, KPI cards and cross-school leaderboard shown by the
mobile client.
"""

from .engine import (  # noqa: F401
    aggregate_monthly,
    compute_kpis,
    normalize_number,
    period_key,
    rank_schools,
    resolve_enrollment,
)
from .models import (  # noqa: F401
    DiversionDashboard,
    DiversionFilters,
    LeaderboardEntry,
    MonthlyAggregate,
    SchoolImpact,
    SchoolKPISummary,
    WasteRecord,
)
from .repository import (  # noqa: F401
    InMemoryWasteRecordRepository,
    RecordSourceError,
    RepositoryConfig,
    SQLWasteRecordRepository,
    WasteRecordRepository,
    build_repository_from_env,
)
from .service import SchoolNotFoundError, WasteDiversionService  # noqa: F401
