"""Per-location trend tracking across polling cycles."""
import logging
from typing import Dict, Optional

from processor.models import Trend

logger = logging.getLogger(__name__)


class TrendTracker:
    """Remembers the last occupied seat count of each location."""

    def __init__(self):
        self._baselines: Dict[str, int] = {}

    def classify_trend(self, location_key: str, current_occupied: int) -> Trend:
        """
        Compare a reading with the previous one and store it as new baseline.

        Args:
            location_key: Location identifier
            current_occupied: Occupied seats in this cycle

        Returns:
            Trend.STEADY on the first reading, otherwise UP/DOWN/STEADY
        """
        previous = self._baselines.get(location_key)
        self._baselines[location_key] = current_occupied

        if previous is None or current_occupied == previous:
            return Trend.STEADY
        if current_occupied > previous:
            return Trend.UP
        return Trend.DOWN

    def baseline(self, location_key: str) -> Optional[int]:
        return self._baselines.get(location_key)

    def reset(self) -> None:
        logger.info("Clearing trend baselines")
        self._baselines.clear()
