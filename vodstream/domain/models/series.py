"""Series grouping of videos."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from vodstream.utils.time import utcnow


@dataclass(slots=True)
class Series:
    id: str
    title: str
    description: str
    thumbnail: str
    created_by: str
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
