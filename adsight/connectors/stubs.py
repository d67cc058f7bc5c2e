"""AdSight — Stub Platform Connectors.

Placeholders for Google Ads, Meta Ads, TikTok Ads and GA4. Each one
reports itself available and returns no rows, so the sync path can be
exercised end to end without real platform credentials.
"""

from datetime import datetime
from typing import Any, Dict, List

from adsight.connectors.base import PlatformConnector
from adsight.core.logging import get_logger
from adsight.core.metric_registry import Provider

logger = get_logger("connectors.stub")


class StubConnector(PlatformConnector):
    def __init__(self, provider: Provider):
        self.provider = provider

    async def fetch(
        self, client_id: int, start: datetime, end: datetime
    ) -> List[Dict[str, Any]]:
        logger.info(
            f"{self.provider.value}: stub connector, no rows fetched",
            extra={"client_id": client_id},
        )
        return []

    def is_available(self) -> bool:
        return True


def default_connectors() -> List[PlatformConnector]:
    return [
        StubConnector(Provider.GOOGLE_ADS),
        StubConnector(Provider.META_ADS),
        StubConnector(Provider.TIKTOK_ADS),
        StubConnector(Provider.GA4),
    ]
