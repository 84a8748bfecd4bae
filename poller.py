"""Entry point for the library seat occupancy poller."""
import json
import logging
import os
import signal
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from apscheduler.schedulers.blocking import BlockingScheduler

from processor.cycle_orchestrator import CycleOrchestrator
from processor.models import CycleResult, LocationDescriptor
from processor.trend_tracker import TrendTracker
from scraper.occupancy_scraper import OccupancyScraper
from storage.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_OVERVIEW_URL = 'https://www.bib.uni-mannheim.de/standorte/freie-sitzplaetze/'
DEFAULT_LOCATIONS = {
    'A3': 'https://www.bib.uni-mannheim.de/standorte/bb-a3/',
    'A5': 'https://www.bib.uni-mannheim.de/standorte/bb-a5/',
    'Ehrenhof': 'https://www.bib.uni-mannheim.de/standorte/bb-schloss-ehrenhof/',
    'Schneckenhof': 'https://www.bib.uni-mannheim.de/standorte/bb-schloss-schneckenhof/',
}


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


@dataclass
class PollerConfig:
    """Runtime configuration, read once at startup."""
    overview_url: str = DEFAULT_OVERVIEW_URL
    locations: List[LocationDescriptor] = field(default_factory=list)
    poll_interval_seconds: int = 150
    persist_every: int = 4
    timeout_seconds: int = 15
    max_retries: int = 1
    table_name: Optional[str] = None
    aws_region: Optional[str] = None
    log_level: str = 'INFO'


def load_config(environ: Optional[Dict[str, str]] = None) -> PollerConfig:
    """
    Build configuration from environment variables.

    Args:
        environ: Mapping to read from (default: os.environ)

    Returns:
        PollerConfig

    Raises:
        ValueError: If a numeric setting or LOCATIONS_JSON is invalid
    """
    env = os.environ if environ is None else environ

    location_urls = DEFAULT_LOCATIONS
    if env.get('LOCATIONS_JSON'):
        try:
            location_urls = json.loads(env['LOCATIONS_JSON'])
        except json.JSONDecodeError as e:
            raise ValueError(f"LOCATIONS_JSON is not valid JSON: {e}") from e
        if not isinstance(location_urls, dict) or not location_urls:
            raise ValueError("LOCATIONS_JSON must be a non-empty object of key -> URL")

    config = PollerConfig(
        overview_url=env.get('OCCUPANCY_URL', DEFAULT_OVERVIEW_URL),
        locations=[LocationDescriptor(key=key, url=url) for key, url in location_urls.items()],
        poll_interval_seconds=int(env.get('POLL_INTERVAL_SECONDS', '150')),
        persist_every=int(env.get('PERSIST_EVERY', '4')),
        timeout_seconds=int(env.get('TIMEOUT_SECONDS', '15')),
        max_retries=int(env.get('MAX_RETRIES', '1')),
        table_name=env.get('TABLE_NAME') or None,
        aws_region=env.get('AWS_REGION') or None,
        log_level=env.get('LOG_LEVEL', 'INFO')
    )

    if config.poll_interval_seconds < 1:
        raise ValueError("POLL_INTERVAL_SECONDS must be positive")
    if config.persist_every < 1:
        raise ValueError("PERSIST_EVERY must be positive")
    return config


def log_result(result: CycleResult) -> None:
    """Default publisher: one log line per updated location."""
    snapshot = result.snapshot
    total = snapshot.total_seats if snapshot.total_seats is not None else '?'
    logger.info(
        f"{result.place_name}: {snapshot.percentage}% "
        f"({snapshot.occupied_seats}/{total} seats) {result.trend.arrow} "
        f"tier={result.tier.value} as of {snapshot.as_of}"
    )


class OccupancyPoller:
    """Invokes the orchestrator on a fixed interval, one cycle at a time."""

    def __init__(
        self,
        orchestrator: CycleOrchestrator,
        locations: List[LocationDescriptor],
        interval_seconds: int = 150
    ):
        self.orchestrator = orchestrator
        self.locations = locations
        self.interval_seconds = interval_seconds
        self._lock = threading.Lock()
        self._scheduler: Optional[BlockingScheduler] = None

    def run_once(self) -> Optional[List[CycleResult]]:
        """
        Run one cycle unless another one is still in progress.

        Returns:
            Cycle results, or None if the tick was skipped
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Previous cycle still running, skipping this tick")
            return None

        start_time = time.time()
        try:
            return self.orchestrator.run_cycle(self.locations)
        except Exception as e:
            logger.error(f"Cycle failed unexpectedly: {e}", exc_info=True)
            return []
        finally:
            logger.info(f"Cycle took {round(time.time() - start_time, 2)} seconds")
            self._lock.release()

    def start(self) -> None:
        """Run the first cycle now and then every interval until stopped."""
        self._scheduler = BlockingScheduler()
        self._scheduler.add_job(
            self.run_once,
            'interval',
            seconds=self.interval_seconds,
            id='occupancy_cycle',
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now()
        )
        logger.info(f"Polling {len(self.locations)} locations every {self.interval_seconds}s")
        self._scheduler.start()

    def stop(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            logger.info("Stopping poller")
            self._scheduler.shutdown(wait=False)


def build_poller(
    config: PollerConfig,
    publisher: Optional[Callable[[CycleResult], None]] = log_result
) -> OccupancyPoller:
    """Wire scraper, trend state, store and orchestrator from configuration."""
    scraper = OccupancyScraper(
        timeout=config.timeout_seconds,
        max_retries=config.max_retries
    )
    store = None
    if config.table_name:
        store = SnapshotStore(config.table_name, region_name=config.aws_region)
    else:
        logger.info("TABLE_NAME not set, snapshots will not be persisted")

    orchestrator = CycleOrchestrator(
        scraper=scraper,
        overview_url=config.overview_url,
        trend_tracker=TrendTracker(),
        snapshot_sink=store,
        publisher=publisher,
        persist_every=config.persist_every,
        max_workers=len(config.locations) + 1
    )
    return OccupancyPoller(orchestrator, config.locations, config.poll_interval_seconds)


def main() -> None:
    config = load_config()
    setup_logging(config.log_level)
    poller = build_poller(config)

    def handle_signal(signum, frame):
        logger.info("Received shutdown signal. Stopping gracefully...")
        poller.stop()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)
    poller.start()


if __name__ == '__main__':
    main()
