# backend/smarttutor/routes/v1/tutors.py
"""
Tutor routes - API v1

Endpoints:
    GET / - Tutor directory, best rated first, with name/bio/subject search
    GET /earnings - Completed and paid totals by month (tutor, or admin with tutor_id)
    GET /{tutor_id}/rating - Public rating aggregate
    POST /{tutor_id}/rating/rebuild - Recompute the aggregate from feedback (admin only)
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import (
    get_booking_lifecycle_service,
    get_booking_service,
    get_current_actor,
    get_user_repository,
    require_admin,
)
from ...core.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT
from ...core.exceptions import DomainException, PersistenceException, RepositoryException
from ...models.user import User
from ...principal import Actor
from ...repositories.user_repository import UserRepository
from ...schemas.booking import EarningsResponse
from ...schemas.tutor import TutorListResponse, TutorRatingResponse, TutorSummaryResponse
from ...services.booking_lifecycle_service import BookingLifecycleService
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tutors-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _rating_response(tutor) -> TutorRatingResponse:
    return TutorRatingResponse(
        tutor_id=tutor.id,
        average_rating=tutor.average_rating,
        rating_count=tutor.rating_count,
    )


def _summary(tutor: User) -> TutorSummaryResponse:
    return TutorSummaryResponse(
        id=tutor.id,
        name=tutor.name,
        bio=tutor.bio,
        subjects=tutor.subject_list,
        average_rating=tutor.average_rating,
        rating_count=tutor.rating_count,
    )


@router.get("", response_model=TutorListResponse)
async def list_tutors(
    search: Optional[str] = Query(None, max_length=100, description="Matches name, bio or subjects"),
    subject: Optional[str] = Query(None, max_length=100),
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    actor: Actor = Depends(get_current_actor),
    repository: UserRepository = Depends(get_user_repository),
) -> TutorListResponse:
    try:
        tutors = await asyncio.to_thread(
            repository.search_tutors,
            (search or "").strip() or None,
            (subject or "").strip() or None,
            skip,
            limit,
        )
    except RepositoryException as e:
        logger.error(f"Failed to list tutors for {actor.user_id}: {str(e)}")
        raise PersistenceException("Reservation store unavailable").to_http_exception()
    return TutorListResponse(tutors=[_summary(t) for t in tutors], total=len(tutors))


@router.get("/earnings", response_model=EarningsResponse)
async def get_earnings(
    tutor_id: Optional[str] = Query(None, description="Required for admins"),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> EarningsResponse:
    try:
        earnings = await asyncio.to_thread(booking_service.get_tutor_earnings, actor, tutor_id)
        return EarningsResponse(**earnings)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{tutor_id}/rating", response_model=TutorRatingResponse)
async def get_tutor_rating(
    tutor_id: str = Path(..., description="Tutor ULID"),
    lifecycle_service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> TutorRatingResponse:
    try:
        tutor = await asyncio.to_thread(lifecycle_service.get_tutor_rating, tutor_id)
        return _rating_response(tutor)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{tutor_id}/rating/rebuild", response_model=TutorRatingResponse)
async def rebuild_tutor_rating(
    tutor_id: str = Path(..., description="Tutor ULID"),
    actor: Actor = Depends(require_admin),
    lifecycle_service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> TutorRatingResponse:
    try:
        tutor = await asyncio.to_thread(lifecycle_service.rebuild_tutor_rating, actor, tutor_id)
        logger.info(f"Rating for tutor {tutor_id} rebuilt by {actor.user_id}")
        return _rating_response(tutor)
    except DomainException as e:
        handle_domain_exception(e)
