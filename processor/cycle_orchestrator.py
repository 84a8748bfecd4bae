"""Cycle orchestrator: fetch, extract, compute and hand off every location."""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from processor.models import (
    CycleResult,
    LocationDescriptor,
    LocationStatus,
    OccupancySnapshot,
    RawLocationBlock,
)
from processor.occupancy_processor import classify, extract_percentage_and_seats
from processor.trend_tracker import TrendTracker
from scraper.occupancy_scraper import OccupancyScraper

logger = logging.getLogger(__name__)

Details = Tuple[Optional[Dict[str, str]], Optional[str]]


class SnapshotSink(Protocol):
    """Persistence collaborator."""

    def record_occupancy(self, location_key: str, percentage: int, occupied_seats: int) -> bool:
        ...


class CycleOrchestrator:
    """Runs one polling cycle across all tracked locations."""

    def __init__(
        self,
        scraper: OccupancyScraper,
        overview_url: str,
        trend_tracker: Optional[TrendTracker] = None,
        snapshot_sink: Optional[SnapshotSink] = None,
        publisher: Optional[Callable[[CycleResult], None]] = None,
        persist_every: int = 4,
        max_workers: int = 4
    ):
        """
        Initialize the orchestrator.

        Args:
            scraper: Scraper used for all page fetches
            overview_url: URL of the shared occupancy overview page
            trend_tracker: Trend state kept across cycles (default: new tracker)
            snapshot_sink: Optional persistence collaborator
            publisher: Optional callback receiving every successful result
            persist_every: Persist snapshots every Nth cycle (default: 4)
            max_workers: Thread pool size for concurrent page fetches
        """
        if persist_every < 1:
            raise ValueError(f"persist_every must be >= 1, got {persist_every}")

        self.scraper = scraper
        self.overview_url = overview_url
        self.trend_tracker = trend_tracker or TrendTracker()
        self.snapshot_sink = snapshot_sink
        self.publisher = publisher
        self.persist_every = persist_every
        self.max_workers = max_workers
        self.cycle_count = 0

    def run_cycle(self, locations: Sequence[LocationDescriptor]) -> List[CycleResult]:
        """
        Process every location once.

        Page fetches run concurrently; trend updates happen afterwards in
        location order. Per-location failures are reported in the results,
        never raised.

        Args:
            locations: Tracked locations

        Returns:
            One CycleResult per location, or an empty list if the overview
            page could not be fetched
        """
        persist = self.cycle_count % self.persist_every == 0
        self.cycle_count += 1
        logger.info(
            f"Starting cycle {self.cycle_count} for {len(locations)} locations "
            f"(persist={persist})"
        )

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            overview_future = executor.submit(self.scraper.fetch_overview, self.overview_url)
            detail_futures = {
                location.key: executor.submit(self.scraper.fetch_location_details, location.url)
                for location in locations
            }
            fetch_result, blocks = overview_future.result()
            details = {key: self._collect(key, future) for key, future in detail_futures.items()}

        if not fetch_result.ok:
            logger.error(f"Overview fetch failed, skipping cycle: {fetch_result.error}")
            return []

        results = []
        for location in locations:
            try:
                result = self._process_location(
                    location, blocks, details[location.key], persist
                )
            except Exception as e:
                logger.error(
                    f"Failed to process location {location.key}: {e}",
                    exc_info=True
                )
                result = CycleResult(
                    location_key=location.key,
                    status=LocationStatus.ERROR,
                    error=str(e)
                )
            results.append(result)

            if result.status is LocationStatus.OK:
                self._hand_off(result)

        ok_count = sum(1 for r in results if r.status is LocationStatus.OK)
        logger.info(f"Cycle {self.cycle_count} finished: {ok_count}/{len(results)} locations updated")
        return results

    def _collect(self, location_key: str, future) -> Details:
        try:
            return future.result()
        except Exception as e:
            logger.warning(f"Detail page for {location_key} failed: {e}")
            return None, None

    def _process_location(
        self,
        location: LocationDescriptor,
        blocks: List[RawLocationBlock],
        details: Details,
        persist: bool
    ) -> CycleResult:
        block = find_block(blocks, location)
        if block is None:
            logger.warning(f"Location {location.key} not found on overview page")
            return CycleResult(location_key=location.key, status=LocationStatus.NOT_FOUND)

        reading = extract_percentage_and_seats(block.title_text)
        logger.debug(f"Title for {location.key}: {block.title_text!r} -> {reading}")

        snapshot = OccupancySnapshot(
            location_key=location.key,
            percentage=reading.percentage,
            total_seats=reading.total_seats,
            occupied_seats=reading.occupied_seats,
            as_of=strip_status_prefix(block.status_text)
        )
        trend = self.trend_tracker.classify_trend(location.key, snapshot.occupied_seats)
        opening_hours, info_text = details
        first_link = block.aux_links[0] if block.aux_links else None

        return CycleResult(
            location_key=location.key,
            status=LocationStatus.OK,
            snapshot=snapshot,
            trend=trend,
            tier=classify(snapshot.percentage),
            opening_hours=opening_hours,
            info_text=info_text,
            place_name=first_link.text if first_link and first_link.text else location.key,
            link_path=first_link.href if first_link else None,
            persist=persist
        )

    def _hand_off(self, result: CycleResult) -> None:
        if self.publisher is not None:
            try:
                self.publisher(result)
            except Exception as e:
                logger.error(f"Publishing {result.location_key} failed: {e}")

        if result.persist and self.snapshot_sink is not None:
            snapshot = result.snapshot
            try:
                self.snapshot_sink.record_occupancy(
                    snapshot.location_key,
                    snapshot.percentage,
                    snapshot.occupied_seats
                )
            except Exception as e:
                logger.error(f"Persisting {result.location_key} failed: {e}")


def find_block(
    blocks: List[RawLocationBlock], location: LocationDescriptor
) -> Optional[RawLocationBlock]:
    """Return the first block whose link texts mention the location."""
    for block in blocks:
        if any(location.match in link.text for link in block.aux_links):
            return block
    return None


def strip_status_prefix(status_text: str) -> str:
    """Turn "Stand: 02.04.25, 00:30 Uhr" into "02.04.25, 00:30 Uhr"."""
    text = status_text or ''
    if text.startswith('Stand:'):
        text = text[len('Stand:'):]
    return text.strip()
