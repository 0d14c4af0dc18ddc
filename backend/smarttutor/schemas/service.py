"""Service catalog schemas."""

from datetime import datetime
from typing import List, Optional

from .base import Money, StandardizedModel


class ServiceResponse(StandardizedModel):
    id: str
    title: str
    description: str
    category: str
    price: Money
    duration_minutes: int
    is_active: bool
    created_at: Optional[datetime] = None


class ServiceListResponse(StandardizedModel):
    services: List[ServiceResponse]
    total: int
