"""Unit tests for numeric extraction and tier classification."""
import pytest

from processor.models import Tier
from processor.occupancy_processor import (
    classify,
    extract_percentage_and_seats,
    extract_percentage_from_text,
    occupied_from_percentage,
    tier_details,
)


class TestExtractPercentageAndSeats:
    """Test cases for title parsing."""

    def test_primary_pattern(self):
        """Test a regular title sentence."""
        reading = extract_percentage_and_seats("42 % von 360 Arbeitsplätzen sind belegt")

        assert reading.percentage == 42
        assert reading.total_seats == 360
        assert reading.occupied_seats == 151
        assert reading.source == 'primary'

    def test_primary_pattern_with_non_breaking_space(self):
        """Test that a non-breaking space before % is accepted."""
        reading = extract_percentage_and_seats("95\u00a0% von 200 Arbeitsplätzen sind belegt")

        assert reading.percentage == 95
        assert reading.occupied_seats == 190

    def test_full_location(self):
        """Test that 100 % maps to all seats occupied."""
        reading = extract_percentage_and_seats("100 % von 360 Arbeitsplätzen sind belegt")

        assert reading.occupied_seats == 360
        assert reading.total_seats == 360

    def test_empty_location(self):
        """Test 0 % of a known total."""
        reading = extract_percentage_and_seats("0 % von 360 Arbeitsplätzen sind belegt")

        assert reading.occupied_seats == 0
        assert reading.source == 'primary'

    @pytest.mark.parametrize('percentage,total', [
        (1, 1), (33, 100), (50, 3), (67, 999), (99, 1234), (100, 9999),
    ])
    def test_occupied_seats_within_bounds(self, percentage, total):
        """Test that occupied seats match the rounded share and stay in range."""
        reading = extract_percentage_and_seats(
            f"{percentage} % von {total} Arbeitsplätzen sind belegt"
        )

        assert reading.occupied_seats == occupied_from_percentage(percentage, total)
        assert 0 <= reading.occupied_seats <= total

    def test_fallback_pattern_leaves_occupied_at_zero(self):
        """Test that without a total no occupied count is estimated."""
        reading = extract_percentage_and_seats("Belegt: 42 %")

        assert reading.percentage == 42
        assert reading.total_seats is None
        assert reading.occupied_seats == 0
        assert reading.source == 'fallback'

    def test_no_percentage(self):
        """Test that unparseable titles default to 0 %."""
        reading = extract_percentage_and_seats("Keine Daten verfügbar")

        assert reading.percentage == 0
        assert reading.total_seats is None
        assert reading.occupied_seats == 0
        assert reading.source == 'none'

    def test_missing_title(self):
        """Test that a missing title attribute is handled."""
        assert extract_percentage_and_seats(None).source == 'none'


class TestHelpers:
    """Test cases for helper functions."""

    @pytest.mark.parametrize('percentage,total,expected', [
        (50, 3, 2),     # 1.5
        (25, 2, 1),     # 0.5
        (1, 50, 1),     # 0.5
        (42, 360, 151), # 151.2
        (17, 10, 2),    # 1.7
    ])
    def test_occupied_rounds_half_up(self, percentage, total, expected):
        """Test round-half-up of the occupied share."""
        assert occupied_from_percentage(percentage, total) == expected

    def test_extract_percentage_from_text(self):
        """Test the loose percentage pattern."""
        assert extract_percentage_from_text("Auslastung 7%") == 7
        assert extract_percentage_from_text("kein Wert") is None
        assert extract_percentage_from_text("") is None
        assert extract_percentage_from_text(None) is None


class TestClassify:
    """Test cases for tier classification."""

    @pytest.mark.parametrize('percentage,tier', [
        (0, Tier.LOW),
        (89, Tier.LOW),
        (90, Tier.MEDIUM),
        (99, Tier.MEDIUM),
        (100, Tier.FULL),
    ])
    def test_boundaries(self, percentage, tier):
        """Test tier boundaries."""
        assert classify(percentage) == tier

    def test_out_of_range_values(self):
        """Test that values outside 0-100 clamp to the nearest tier."""
        assert classify(-5) == Tier.LOW
        assert classify(140) == Tier.FULL

    def test_tier_details(self):
        """Test thumbnail and color per tier."""
        assert tier_details(Tier.LOW)[1] == '00de00'
        assert tier_details(Tier.MEDIUM)[1] == 'de8d00'
        assert tier_details(Tier.FULL)[1] == 'de0000'
        assert all(tier_details(t)[0].startswith('https://') for t in Tier)
