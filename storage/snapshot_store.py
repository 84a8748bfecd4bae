"""DynamoDB store for periodic occupancy snapshots."""
import logging
import time
from typing import List, Optional

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class SnapshotStore:
    """Writes occupancy time series to a DynamoDB table.

    Table layout: partition key ``location_key`` (S), sort key
    ``recorded_at`` (N, epoch milliseconds).
    """

    TTL_DAYS = 365

    def __init__(self, table_name: str, region_name: Optional[str] = None):
        """
        Initialize DynamoDB resource and table reference.

        Args:
            table_name: Name of the DynamoDB table
            region_name: AWS region (default: boto3 configuration)
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized SnapshotStore for table: {table_name}")

    def record_occupancy(self, location_key: str, percentage: int, occupied_seats: int) -> bool:
        """
        Store a single occupancy reading.

        Args:
            location_key: Location identifier (e.g. 'A3')
            percentage: Occupied percentage
            occupied_seats: Absolute occupied seat count

        Returns:
            True if written, False on a DynamoDB error
        """
        item = self._build_item(location_key, percentage, occupied_seats)
        try:
            logger.debug(f"Insert {location_key}: {percentage}% / {occupied_seats} seats")
            self.table.put_item(Item=item)
            return True
        except ClientError as e:
            logger.error(f"Failed to store snapshot for {location_key}: {e}")
            return False

    def get_history(self, location_key: str, limit: int = 96) -> List[dict]:
        """
        Return the newest readings of a location, newest first.

        Args:
            location_key: Location identifier
            limit: Maximum number of items (default: 96)

        Returns:
            List of dicts with recorded_at, percentage and occupied_seats
        """
        try:
            response = self.table.query(
                KeyConditionExpression=Key('location_key').eq(location_key),
                ScanIndexForward=False,
                Limit=limit
            )
        except ClientError as e:
            logger.error(f"Error querying history for {location_key}: {e}")
            raise

        return [
            {
                'recorded_at': int(item['recorded_at']),
                'percentage': int(item['percentage']),
                'occupied_seats': int(item['occupied_seats']),
            }
            for item in response.get('Items', [])
        ]

    def _build_item(
        self,
        location_key: str,
        percentage: int,
        occupied_seats: int,
        recorded_at: Optional[int] = None
    ) -> dict:
        recorded_at = recorded_at if recorded_at is not None else _now_ms()
        return {
            'location_key': location_key,
            'recorded_at': recorded_at,
            'percentage': int(percentage),
            'occupied_seats': int(occupied_seats),
            'ttl': recorded_at // 1000 + self.TTL_DAYS * 24 * 3600,
        }
