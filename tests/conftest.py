"""
Shared fixtures for the waste-diversion tests.

Usage:
    pytest tests/ -v
"""

import pytest

from eco_backend.waste_diversion.models import WasteRecord


def make_record(school="Oak Hill Elementary", district="Austin ISD", year=2025, month=9,
                enrollment=500, recycle="0", compost="0"):
    return WasteRecord(
        district=district,
        school=school,
        year=year,
        month=month,
        enrollment=enrollment,
        recycle_lbs=recycle,
        compost_lbs=compost,
    )


@pytest.fixture
def record_factory():
    """Build WasteRecord rows with sensible defaults."""
    return make_record


@pytest.fixture
def sample_records():
    """
    Three schools across two districts, shaped like the imported spreadsheet.

    Oak Hill reports through two sub-accounts in October 2025.
    """
    return [
        make_record(year=2025, month=8, enrollment=480, recycle="1,200", compost="300"),
        make_record(year=2025, month=9, enrollment=500, recycle="100", compost="50"),
        make_record(year=2025, month=9, enrollment=500, recycle="20", compost="0"),
        make_record(year=2025, month=10, enrollment=500, recycle="10", compost="10"),
        make_record(year=2025, month=10, enrollment=520, recycle="5", compost=""),
        make_record(school="Barton Creek Middle", year=2025, month=9, enrollment=1000,
                    recycle="2,000", compost="1,000"),
        make_record(school="Barton Creek Middle", year=2025, month=10, enrollment=1000,
                    recycle="1,000", compost="1,000"),
        make_record(school="Pflugerville High", district="Pflugerville ISD", year=2025, month=10,
                    enrollment=0, recycle="900", compost="100"),
    ]
