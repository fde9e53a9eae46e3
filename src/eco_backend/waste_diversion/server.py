from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field, field_validator

from .logging_config import setup_logging
from .models import DiversionFilters, WasteRecord, serialize_leaderboard_entry, serialize_school_impact
from .repository import RecordSourceError, RepositoryConfig, WasteRecordRepository, build_repository_from_env
from .service import SchoolNotFoundError, WasteDiversionService
from .settings import load_settings

settings = load_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging(settings.log_level, settings.log_file)
    yield


app = FastAPI(title="Eco Academy Waste Diversion API", version="0.1.0", lifespan=lifespan)
repository: Optional[WasteRecordRepository] = build_repository_from_env(RepositoryConfig.from_settings(settings))

RawField = Union[float, str, None]


class WasteRecordPayload(BaseModel):
    district: str = ""
    school: str = ""
    year: int
    month: int
    enrollment: RawField = 0
    recycle_lbs: RawField = 0
    compost_lbs: RawField = 0

    @field_validator("month")
    @classmethod
    def _validate_month(cls, month: int) -> int:
        if not 1 <= month <= 12:
            raise ValueError("month must be between 1 and 12")
        return month


class DashboardRequest(BaseModel):
    school: Optional[str] = None
    district: Optional[str] = None
    window_months: int = Field(default_factory=lambda: settings.trend_window_months, ge=1)
    leaderboard_limit: int = Field(default_factory=lambda: settings.leaderboard_limit, ge=0)
    records: Optional[List[WasteRecordPayload]] = None

    @field_validator("school")
    @classmethod
    def _validate_school(cls, school: Optional[str]) -> Optional[str]:
        if school is not None and not school.strip():
            raise ValueError("school must not be blank")
        return school


class DashboardResponse(BaseModel):
    data: Dict[str, Any]
    source: str


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/dashboard", response_model=DashboardResponse)
async def dashboard_endpoint(request: DashboardRequest) -> DashboardResponse:
    filters = DiversionFilters(
        school=request.school,
        district=request.district,
        window_months=request.window_months,
        leaderboard_limit=request.leaderboard_limit,
    )

    # The leaderboard spans every district, so the load is never narrowed.
    records, source = _load_records(DiversionFilters(), request.records)
    if not records:
        raise HTTPException(status_code=400, detail="No waste diversion records available.")

    service = WasteDiversionService(records)
    try:
        dashboard = service.build(filters)
    except SchoolNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return DashboardResponse(data=dashboard.as_dict(), source=source)


@app.get("/leaderboard")
async def leaderboard_endpoint(limit: Optional[int] = Query(default=None, ge=0)) -> List[Dict[str, Any]]:
    records, _ = _load_records(DiversionFilters(), None)
    effective_limit = settings.leaderboard_limit if limit is None else limit
    entries = WasteDiversionService(records).leaderboard(effective_limit)
    return [serialize_leaderboard_entry(entry) for entry in entries]


@app.get("/schools/{school}/impact")
async def school_impact_endpoint(
    school: str,
    district: Optional[str] = None,
    window: Optional[int] = Query(default=None, ge=1),
) -> Dict[str, Any]:
    records, _ = _load_records(DiversionFilters(), None)
    window_months = settings.trend_window_months if window is None else window
    try:
        impact = WasteDiversionService(records).school_impact(school, district, window_months)
    except SchoolNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return serialize_school_impact(impact)


@app.get("/directory")
async def directory_endpoint(district: Optional[str] = None) -> Dict[str, List[str]]:
    records, _ = _load_records(DiversionFilters(district=district), None)
    return WasteDiversionService(records).dataset.district_directory()


def _load_records(
    filters: DiversionFilters,
    inline: Optional[Sequence[WasteRecordPayload]],
) -> Tuple[Sequence[WasteRecord], str]:
    if inline is not None:
        return tuple(_convert_record_payload(payload) for payload in inline), "inline"

    if repository is None:
        raise HTTPException(
            status_code=500,
            detail=(
                "WASTE_DIVERSION_DATABASE_URL is not configured; "
                "supply records in the request body for ad-hoc queries."
            ),
        )

    try:
        return repository.load(filters), "database"
    except RecordSourceError as exc:
        logger.error("Waste record source unavailable: %s", exc)
        raise HTTPException(status_code=502, detail="Waste record source unavailable.") from exc


def _convert_record_payload(payload: WasteRecordPayload) -> WasteRecord:
    return WasteRecord(
        district=payload.district,
        school=payload.school,
        year=payload.year,
        month=payload.month,
        enrollment=payload.enrollment,
        recycle_lbs=payload.recycle_lbs,
        compost_lbs=payload.compost_lbs,
    )
