from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set

from .models import WasteRecord


def match_key(name: Optional[str]) -> str:
    return (name or "").strip().casefold()


@dataclass
class DiversionDataset:
    records: Sequence[WasteRecord]

    def __post_init__(self) -> None:
        # Source order is kept: leaderboard ties fall back to first appearance.
        self.records = tuple(self.records)

    def records_for_school(self, school: str, district: Optional[str] = None) -> Sequence[WasteRecord]:
        """
        Return the rows belonging to ``school``.

        Names are compared trimmed and case-insensitively.
        """

        school_key = match_key(school)
        if not school_key:
            return ()
        district_key = match_key(district) if district else None
        return tuple(
            record
            for record in self.records
            if match_key(record.school) == school_key
            and (district_key is None or match_key(record.district) == district_key)
        )

    def schools(self) -> List[str]:
        return sorted({record.school for record in self.records if record.school})

    def district_directory(self) -> Dict[str, List[str]]:
        """
        Map each district to its sorted school names, districts sorted.
        """

        directory: Dict[str, Set[str]] = defaultdict(set)
        for record in self.records:
            if not record.district:
                continue
            schools = directory[record.district]
            if record.school:
                schools.add(record.school)
        return {district: sorted(directory[district]) for district in sorted(directory)}
