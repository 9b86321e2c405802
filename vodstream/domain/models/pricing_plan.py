"""Pricing plan domain model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List

from vodstream.utils.time import utcnow

CURRENCIES = ("USD", "EUR", "GBP")
INTERVALS = ("month", "year")
VIDEO_QUALITIES = ("720p", "1080p", "4k")


@dataclass(slots=True)
class PricingPlan:
    id: str
    name: str
    description: str
    price: Decimal
    currency: str
    interval: str
    external_price_id: str
    features: List[str] = field(default_factory=list)
    max_video_quality: str = "1080p"
    concurrent_streams: int = 2
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def unit_amount(self) -> int:
        """Price in the currency's minor unit, as the processor expects it."""
        return int((self.price * 100).quantize(Decimal("1")))
