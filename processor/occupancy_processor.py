"""Numeric extraction and tier classification for occupancy figures."""
import logging
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

from processor.models import NumericReading, Tier

logger = logging.getLogger(__name__)

# e.g. "42 % von 360 Arbeitsplätzen sind belegt"
PRIMARY_PATTERN = re.compile(r'(\d{1,3})\s*%\s*von\s*(\d{1,4})\s*Arbeitsplätzen')
FALLBACK_PATTERN = re.compile(r'(\d{1,3})\s*%')

MEDIUM_THRESHOLD = 90
FULL_THRESHOLD = 100

TIER_DETAILS = {
    Tier.LOW: ('https://i.imgur.com/zjYpulv.png', '00de00'),
    Tier.MEDIUM: ('https://i.imgur.com/Qyoa3lH.png', 'de8d00'),
    Tier.FULL: ('https://i.imgur.com/xILYBDa.png', 'de0000'),
}


def occupied_from_percentage(percentage: int, total_seats: int) -> int:
    """
    Compute occupied seats, rounding half up.

    Args:
        percentage: Occupied percentage
        total_seats: Total number of seats

    Returns:
        round(percentage / 100 * total_seats)
    """
    value = Decimal(percentage) * Decimal(total_seats) / Decimal(100)
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def extract_percentage_from_text(text: Optional[str]) -> Optional[int]:
    """
    Extract a percentage from free text, e.g. "Belegt: 42 %".

    Args:
        text: Arbitrary text

    Returns:
        Percentage as int, or None if no percentage is present
    """
    if not text:
        return None
    match = FALLBACK_PATTERN.search(text.replace('\u00a0', ' '))
    return int(match.group(1)) if match else None


def extract_percentage_and_seats(title_text: Optional[str]) -> NumericReading:
    """
    Derive percentage and seat counts from a status cell title.

    The primary pattern yields percentage and total seats. Otherwise only a
    percentage is recovered and occupied seats stay 0 since the total is
    unknown.

    Args:
        title_text: Title attribute of the status cell

    Returns:
        NumericReading with source 'primary', 'fallback' or 'none'
    """
    text = (title_text or '').replace('\u00a0', ' ')

    match = PRIMARY_PATTERN.search(text)
    if match:
        percentage = int(match.group(1))
        total_seats = int(match.group(2))
        return NumericReading(
            percentage=percentage,
            total_seats=total_seats,
            occupied_seats=occupied_from_percentage(percentage, total_seats),
            source='primary'
        )

    fallback = extract_percentage_from_text(text)
    if fallback is not None:
        return NumericReading(
            percentage=fallback,
            total_seats=None,
            occupied_seats=0,
            source='fallback'
        )

    logger.warning(f"No percentage found in title: {text!r}")
    return NumericReading(percentage=0, total_seats=None, occupied_seats=0, source='none')


def classify(percentage: int) -> Tier:
    """
    Map a percentage to an occupancy tier.

    Negative values classify as Low and values above 100 as Full.

    Args:
        percentage: Occupied percentage

    Returns:
        Tier.LOW below 90, Tier.MEDIUM for 90-99, Tier.FULL from 100
    """
    if percentage < MEDIUM_THRESHOLD:
        return Tier.LOW
    if percentage < FULL_THRESHOLD:
        return Tier.MEDIUM
    return Tier.FULL


def tier_details(tier: Tier) -> Tuple[str, str]:
    """Return (thumbnail URL, hex color) for a tier."""
    return TIER_DETAILS[tier]
