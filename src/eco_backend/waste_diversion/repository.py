from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import SQLAlchemyError

from .engine import normalize_number
from .models import DiversionFilters, WasteRecord
from .settings import DEFAULT_TABLE_NAME, DiversionSettings, load_settings

logger = logging.getLogger(__name__)

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class RecordSourceError(RuntimeError):
    """Raised when waste records cannot be fetched from the backing store."""


class WasteRecordRepository:
    """
    Interface for loading waste diversion records.

    Implementations only narrow by district; school matching is
    case-insensitive and happens in Python so every backend behaves the same.
    """

    def load(self, filters: Optional[DiversionFilters] = None) -> Sequence[WasteRecord]:
        raise NotImplementedError


class InMemoryWasteRecordRepository(WasteRecordRepository):
    def __init__(self, records: Sequence[WasteRecord]):
        self.records = tuple(records)

    def load(self, filters: Optional[DiversionFilters] = None) -> Sequence[WasteRecord]:
        if filters is None or not filters.district:
            return self.records
        return tuple(record for record in self.records if record.district == filters.district)


class SQLWasteRecordRepository(WasteRecordRepository):
    """
    Load records from the imported spreadsheet table.

    Expected columns (uppercase, as imported):
      - DISTRICT, SCHOOL, YEAR, MONTH, ENROLLMENT, RECYCLE, COMPOST
    """

    def __init__(self, engine: Engine, table_name: str = DEFAULT_TABLE_NAME):
        if not _TABLE_NAME_RE.match(table_name):
            raise ValueError(f"Invalid table name: {table_name!r}")
        self.engine = engine
        self.table_name = table_name

    def load(self, filters: Optional[DiversionFilters] = None) -> Sequence[WasteRecord]:
        sql = f'SELECT "DISTRICT", "SCHOOL", "YEAR", "MONTH", "ENROLLMENT", "RECYCLE", "COMPOST" FROM {self.table_name}'
        params = {}
        if filters is not None and filters.district:
            sql += ' WHERE "DISTRICT" = :district'
            params["district"] = filters.district
        sql += ' ORDER BY "YEAR" ASC, "MONTH" ASC'

        try:
            with self.engine.connect() as connection:
                rows = connection.execute(text(sql), params).fetchall()
        except SQLAlchemyError as exc:
            logger.warning("Failed to load waste records from %s: %s", self.table_name, exc)
            raise RecordSourceError(f"Failed to load waste records from {self.table_name}") from exc

        records = tuple(self._row_to_record(row) for row in rows)
        logger.info("Loaded %d waste records from %s", len(records), self.table_name)
        return records

    @staticmethod
    def _row_to_record(row: Row) -> WasteRecord:
        mapping = row._mapping
        return WasteRecord(
            district=str(mapping["DISTRICT"] or ""),
            school=str(mapping["SCHOOL"] or ""),
            year=int(normalize_number(mapping["YEAR"])),
            month=int(normalize_number(mapping["MONTH"])),
            enrollment=mapping["ENROLLMENT"],
            recycle_lbs=mapping["RECYCLE"],
            compost_lbs=mapping["COMPOST"],
        )


@dataclass(frozen=True)
class RepositoryConfig:
    database_url: Optional[str] = None
    table_name: str = DEFAULT_TABLE_NAME

    @classmethod
    def from_env(cls) -> "RepositoryConfig":
        return cls.from_settings(load_settings())

    @classmethod
    def from_settings(cls, settings: DiversionSettings) -> "RepositoryConfig":
        return cls(database_url=settings.database_url, table_name=settings.table_name)


def build_repository_from_env(config: Optional[RepositoryConfig] = None) -> Optional[WasteRecordRepository]:
    cfg = config or RepositoryConfig.from_env()
    if cfg.database_url:
        engine = create_engine(cfg.database_url)
        return SQLWasteRecordRepository(engine, table_name=cfg.table_name)
    return None
