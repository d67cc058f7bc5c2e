"""AdSight — Abstract Platform Connector."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List

from adsight.core.metric_registry import Provider


class PlatformConnector(ABC):
    """Abstract base for ad-platform data pulls.

    Connectors return raw platform rows; ``sync.transform_rows`` normalizes
    them into MetricRecord fields before they reach the store.
    """

    provider: Provider

    @abstractmethod
    async def fetch(
        self, client_id: int, start: datetime, end: datetime
    ) -> List[Dict[str, Any]]:
        """Fetch daily performance rows for a tenant and date range.

        Returns:
            A list of dicts with (at least) a date and counter fields.
            Field names may be platform specific, e.g. ``spend`` for cost.
        """
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this connector is configured and ready."""
        ...
