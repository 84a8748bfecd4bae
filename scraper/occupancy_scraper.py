"""Scraper for the University Library seat occupancy pages."""
import logging
import re
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import requests
from bs4 import BeautifulSoup

from processor.models import AuxLink, RawLocationBlock

logger = logging.getLogger(__name__)

# Browser-like header profile; the library site blocks bare clients.
DEFAULT_HEADERS = {
    'User-Agent': (
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
        '(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36 Edg/121.0.0.0'
    ),
    'Accept': (
        'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,'
        'image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7'
    ),
    'Accept-Language': 'de,de-DE;q=0.9,en;q=0.8,en-GB;q=0.7,en-US;q=0.6',
    'Accept-Encoding': 'gzip, deflate, br',
    'Connection': 'keep-alive',
}


class FetchError(Exception):
    """A page could not be retrieved (network error, timeout or non-2xx)."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{url}: {message}")
        self.url = url
        self.message = message


@dataclass
class FetchResult:
    """Outcome of a page fetch: markup on success, FetchError otherwise."""
    url: str
    text: Optional[str] = None
    error: Optional[FetchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None


class OccupancyScraper:
    """Fetches and parses the overview and per-location library pages."""

    STATUS_PARAGRAPH_SELECTOR = 'div.available-seats-table > p'
    STATUS_PREFIX = 'Stand: '
    STATUS_CELL_SELECTOR = 'div.available-seats-table-status'
    OPENING_HOURS_SELECTOR = 'div.content-type-textmedia[id^="c280"]'
    OPENING_HOURS_TABLE_SELECTOR = 'table.contenttable'
    INFO_SELECTOR = '#c375632 .icon-box-text'
    INFO_BOILERPLATE = re.compile(r'Weitere Infos\s*', re.IGNORECASE)

    def __init__(
        self,
        timeout: int = 15,
        max_retries: int = 1,
        headers: Optional[Dict[str, str]] = None
    ):
        """
        Initialize the occupancy scraper.

        Args:
            timeout: HTTP request timeout in seconds (default: 15)
            max_retries: Number of attempts per page (default: 1, no retry)
            headers: Request headers (default: DEFAULT_HEADERS)
        """
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.headers = dict(headers or DEFAULT_HEADERS)

    def fetch_page(self, url: str) -> FetchResult:
        """
        Fetch a page with retry logic. Never raises.

        Args:
            url: Page URL

        Returns:
            FetchResult holding the markup or a FetchError
        """
        base_delay = 1  # seconds

        for attempt in range(self.max_retries):
            try:
                logger.debug(f"Fetching {url} (attempt {attempt + 1}/{self.max_retries})")
                response = requests.get(
                    url,
                    headers=self.headers,
                    timeout=self.timeout
                )
                response.raise_for_status()
                return FetchResult(url=url, text=response.text)

            except requests.RequestException as e:
                if attempt < self.max_retries - 1:
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"Request to {url} failed (attempt {attempt + 1}/"
                        f"{self.max_retries}): {e}. Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(f"Failed to fetch {url}: {e}")
                    return FetchResult(url=url, error=FetchError(url, str(e)))

        return FetchResult(url=url, error=FetchError(url, 'no attempts made'))

    def fetch_overview(self, url: str) -> Tuple[FetchResult, List[RawLocationBlock]]:
        """
        Fetch and parse the shared overview page.

        Returns:
            Tuple of (fetch result, parsed blocks); blocks are empty on failure
        """
        result = self.fetch_page(url)
        if not result.ok:
            return result, []
        return result, self.parse_overview(result.text)

    def fetch_location_details(
        self, url: str
    ) -> Tuple[Optional[Dict[str, str]], Optional[str]]:
        """
        Fetch a location page once and extract opening hours and info text.

        Returns:
            Tuple of (opening hours, info text), both None if the fetch fails
        """
        result = self.fetch_page(url)
        if not result.ok:
            return None, None
        return (
            self.parse_opening_hours(result.text),
            self.parse_location_info(result.text)
        )

    def parse_overview(self, html_content: str) -> List[RawLocationBlock]:
        """
        Parse the "available seats" table that lists all locations.

        Args:
            html_content: Markup of the overview page

        Returns:
            One RawLocationBlock per status cell, in page order
        """
        soup = BeautifulSoup(html_content, 'html.parser')
        status_text = self._parse_status_text(soup)
        blocks = []

        for status_div in soup.select(self.STATUS_CELL_SELECTOR):
            try:
                blocks.append(self._parse_status_cell(status_div, status_text))
            except Exception as e:
                logger.warning(f"Failed to parse status cell: {e}")
                continue

        logger.debug(f"Parsed {len(blocks)} location blocks from overview")
        return blocks

    def _parse_status_text(self, soup: BeautifulSoup) -> str:
        # e.g. "Stand: 02.04.25, 00:30 Uhr"
        for paragraph in soup.select(self.STATUS_PARAGRAPH_SELECTOR):
            text = paragraph.get_text().strip()
            if text.startswith(self.STATUS_PREFIX):
                return text
        return ''

    def _parse_status_cell(self, status_div, status_text: str) -> RawLocationBlock:
        cell = status_div.parent
        if cell is None or cell.name != 'td':
            return RawLocationBlock(
                title_text=None, aux_links=[], status_text=status_text
            )

        title = cell.get('title')
        if title is not None:
            title = title.replace('\u00a0', ' ')
        cell_text = cell.get_text().strip().replace('image/svg+xml', '').strip()

        aux_links = []
        link_cell = cell.find_next_sibling('td')
        if link_cell is not None:
            for anchor in link_cell.find_all('a'):
                # Only a div directly after the link belongs to it.
                detail_div = anchor.find_next_sibling()
                detail = None
                if detail_div is not None and detail_div.name == 'div':
                    detail = ' '.join(p.get_text().strip() for p in detail_div.find_all('p')).strip() or None
                aux_links.append(AuxLink(
                    text=anchor.get_text().strip(),
                    href=anchor.get('href'),
                    detail=detail
                ))

        return RawLocationBlock(
            title_text=title,
            aux_links=aux_links,
            status_text=status_text,
            cell_text=cell_text
        )

    def parse_opening_hours(self, html_content: str) -> Optional[Dict[str, str]]:
        """
        Parse the opening hours table of a location page.

        Args:
            html_content: Markup of the location page

        Returns:
            Ordered mapping of day label to hours, or None if the block is missing
        """
        try:
            soup = BeautifulSoup(html_content, 'html.parser')
            container = soup.select_one(self.OPENING_HOURS_SELECTOR)
            if container is None:
                return None

            table = container.select_one(self.OPENING_HOURS_TABLE_SELECTOR)
            if table is None:
                return None

            hours = {}
            rows = table.select('tbody tr') or table.find_all('tr')
            for row in rows:
                cells = row.find_all('td')
                if len(cells) >= 2:
                    hours[cells[0].get_text().strip()] = cells[1].get_text().strip()

            return hours
        except Exception as e:
            logger.warning(f"Failed to parse opening hours: {e}")
            return None

    def parse_location_info(self, html_content: str) -> Optional[str]:
        """
        Parse the short info text of a location page.

        Args:
            html_content: Markup of the location page

        Returns:
            Info text without the "Weitere Infos" link label, or None
        """
        try:
            soup = BeautifulSoup(html_content, 'html.parser')
            container = soup.select_one(self.INFO_SELECTOR)
            if container is None:
                return None

            info_text = container.get_text().strip()
            info_text = self.INFO_BOILERPLATE.sub('', info_text, count=1).strip()
            return info_text or None
        except Exception as e:
            logger.warning(f"Failed to parse location info: {e}")
            return None
