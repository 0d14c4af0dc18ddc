# backend/smarttutor/repositories/service_catalog_repository.py
"""
Service catalog repository: read-only lookups of bookable services.
"""

from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from ..models.service import Service
from .base_repository import BaseRepository


class ServiceCatalogRepository(BaseRepository[Service]):
    def __init__(self, db: Session):
        super().__init__(db, Service)

    def get_active(self, service_id: str) -> Optional[Service]:
        query = self._build_query().filter(Service.id == service_id, Service.is_active.is_(True))
        return self._execute_first(query)

    def list_active(self, category: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Service]:
        query = self._build_query().filter(Service.is_active.is_(True))
        if category:
            query = query.filter(Service.category == category)
        return self._execute_query(
            query.order_by(desc(Service.created_at), Service.title).offset(skip).limit(limit)
        )
