"""Data models for occupancy processing."""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class Tier(Enum):
    """Occupancy tier derived from a percentage."""
    LOW = 'low'
    MEDIUM = 'medium'
    FULL = 'full'


class Trend(Enum):
    """Direction of the occupied seat count since the last reading."""
    UP = 'up'
    DOWN = 'down'
    STEADY = 'steady'

    @property
    def arrow(self) -> str:
        return {'up': '⬆️', 'down': '⬇️', 'steady': '➡️'}[self.value]


class LocationStatus(Enum):
    """Outcome of one location within a cycle."""
    OK = 'ok'
    NOT_FOUND = 'not_found'
    ERROR = 'error'


@dataclass
class LocationDescriptor:
    """A tracked library area and its detail page."""
    key: str
    url: str
    match_text: Optional[str] = None

    @property
    def match(self) -> str:
        return self.match_text or self.key


@dataclass
class AuxLink:
    """Link entry next to a status cell on the overview page."""
    text: str
    href: Optional[str]
    detail: Optional[str] = None


@dataclass
class RawLocationBlock:
    """Unprocessed row of the overview page."""
    title_text: Optional[str]
    aux_links: List[AuxLink]
    status_text: str
    cell_text: str = ''


@dataclass
class NumericReading:
    """Figures derived from a status cell title."""
    percentage: int
    total_seats: Optional[int]
    occupied_seats: int
    source: str


@dataclass
class OccupancySnapshot:
    """One occupancy reading for one location."""
    location_key: str
    percentage: int
    total_seats: Optional[int]
    occupied_seats: int
    as_of: str

    @property
    def free_seats(self) -> Optional[int]:
        if self.total_seats is None:
            return None
        return self.total_seats - self.occupied_seats


@dataclass
class CycleResult:
    """Result of processing one location in a cycle."""
    location_key: str
    status: LocationStatus
    snapshot: Optional[OccupancySnapshot] = None
    trend: Optional[Trend] = None
    tier: Optional[Tier] = None
    opening_hours: Optional[Dict[str, str]] = None
    info_text: Optional[str] = None
    place_name: Optional[str] = None
    link_path: Optional[str] = None
    persist: bool = False
    error: Optional[str] = None
