# backend/smarttutor/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService and BookingLifecycleService.

Endpoints:
    POST / - Reserve a tutor slot
    GET / - List all bookings (admin only)
    GET /my-bookings - Bookings where the caller is student or tutor
    GET /{booking_id} - Booking details for a participant or admin
    PUT /{booking_id}/status - Move a booking through its lifecycle
    POST /{booking_id}/feedback - Student feedback on a completed session
"""

import asyncio
import logging
from typing import Any, NoReturn

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import (
    get_booking_lifecycle_service,
    get_booking_service,
    get_current_actor,
)
from ...core.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT
from ...core.exceptions import DomainException
from ...principal import Actor
from ...schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
    FeedbackCreate,
)
from ...services.booking_lifecycle_service import BookingLifecycleService
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _booking_id_path() -> Any:
    return Path(
        ...,
        description="Booking ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    )


# ============================================================================
# SECTION 1: Root and static routes (no path parameters)
# ============================================================================


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing fields, malformed slot or invalid duration"},
        403: {"description": "Caller is not a student"},
        404: {"description": "Service or tutor not found"},
        409: {"description": "Slot already booked"},
        503: {"description": "Reservation store unavailable"},
    },
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Reserve a tutor slot for the calling student.

    The booking starts pending; price and duration are taken from the service.
    """
    try:
        booking = await asyncio.to_thread(booking_service.create_booking, actor, booking_data)
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """List every booking, newest first. Admin only."""
    try:
        bookings = await asyncio.to_thread(
            booking_service.list_bookings, actor, skip=skip, limit=limit
        )
        return BookingListResponse(
            bookings=[BookingResponse.from_booking(b) for b in bookings], total=len(bookings)
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/my-bookings", response_model=BookingListResponse)
async def list_my_bookings(
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    try:
        bookings = await asyncio.to_thread(
            booking_service.list_my_bookings, actor, skip=skip, limit=limit
        )
        return BookingListResponse(
            bookings=[BookingResponse.from_booking(b) for b in bookings], total=len(bookings)
        )
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 2: Routes with a booking_id path parameter
# ============================================================================


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str = _booking_id_path(),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get_booking_for_user, actor, booking_id)
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.put(
    "/{booking_id}/status",
    response_model=BookingResponse,
    responses={
        403: {"description": "Caller is not a participant or admin"},
        409: {"description": "Transition not allowed from the current status"},
    },
)
async def update_booking_status(
    booking_id: str = _booking_id_path(),
    payload: BookingStatusUpdate = Body(...),
    actor: Actor = Depends(get_current_actor),
    lifecycle_service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> BookingResponse:
    """Confirm, complete or cancel a booking."""
    try:
        booking = await asyncio.to_thread(
            lifecycle_service.update_status, actor, booking_id, payload.status
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{booking_id}/feedback",
    response_model=BookingResponse,
    responses={
        403: {"description": "Only the booking's student can leave feedback"},
        409: {"description": "Session not completed or feedback already given"},
    },
)
async def submit_feedback(
    booking_id: str = _booking_id_path(),
    payload: FeedbackCreate = Body(...),
    actor: Actor = Depends(get_current_actor),
    lifecycle_service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            lifecycle_service.submit_feedback, actor, booking_id, payload.rating, payload.review
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)
