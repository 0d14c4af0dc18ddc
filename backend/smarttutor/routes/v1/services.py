# backend/smarttutor/routes/v1/services.py
"""
Service catalog routes - API v1

Read-only, public listing of bookable services.

Endpoints:
    GET / - Active services, optionally filtered by category
    GET /{service_id} - One active service
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.params import Path

from ...api.dependencies import get_service_catalog_repository
from ...core.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT
from ...core.exceptions import NotFoundException, PersistenceException, RepositoryException
from ...models.service import ServiceCategory
from ...repositories.service_catalog_repository import ServiceCatalogRepository
from ...schemas.service import ServiceListResponse, ServiceResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["services-v1"])


@router.get("", response_model=ServiceListResponse)
async def list_services(
    category: Optional[ServiceCategory] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    repository: ServiceCatalogRepository = Depends(get_service_catalog_repository),
) -> ServiceListResponse:
    try:
        services = await asyncio.to_thread(
            repository.list_active,
            category.value if category else None,
            skip,
            limit,
        )
    except RepositoryException as e:
        logger.error(f"Failed to list services: {str(e)}")
        raise PersistenceException("Reservation store unavailable").to_http_exception()
    return ServiceListResponse(
        services=[ServiceResponse.model_validate(s) for s in services], total=len(services)
    )


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: str = Path(..., description="Service ULID"),
    repository: ServiceCatalogRepository = Depends(get_service_catalog_repository),
) -> ServiceResponse:
    try:
        service = await asyncio.to_thread(repository.get_active, service_id)
    except RepositoryException as e:
        logger.error(f"Failed to load service {service_id}: {str(e)}")
        raise PersistenceException("Reservation store unavailable").to_http_exception()
    if service is None:
        raise NotFoundException(
            "Service not found", details={"service_id": service_id}
        ).to_http_exception()
    return ServiceResponse.model_validate(service)
