"""AdSight — Metric Record Model (Universal Schema).

Every connector normalizes into this format. One row per
(client, provider, campaign, timestamp) bucket.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel, UniqueConstraint

from adsight.core.clock import utcnow


class MetricRecord(SQLModel, table=True):
    """Advertising / e-commerce metrics for one tenant, channel and bucket.

    Unique constraint on (client_id, provider, campaign_id, timestamp)
    is the upsert key: re-syncing the same bucket adds to the stored
    counters instead of overwriting them.
    """

    __tablename__ = "metric_records"
    __table_args__ = (
        UniqueConstraint(
            "client_id",
            "provider",
            "campaign_id",
            "timestamp",
            name="uq_metric_record",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(index=True, description="Owning tenant")
    campaign_id: Optional[str] = Field(
        default=None, index=True, description="Source campaign id, if any"
    )
    provider: str = Field(index=True, description="Provider enum value / channel")
    timestamp: datetime = Field(
        sa_type=DateTime(timezone=False), index=True, description="Bucket start, naive UTC"
    )
    impressions: int = Field(default=0)
    clicks: int = Field(default=0)
    cost: float = Field(default=0.0)
    conversions: int = Field(default=0)
    revenue: float = Field(default=0.0)
    updated_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=False)
    )
