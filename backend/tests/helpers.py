"""Small builders shared by the test modules."""

from smarttutor.core.enums import RoleName
from smarttutor.models.user import User
from smarttutor.principal import Actor
from smarttutor.schemas.booking import BookingCreate


def actor_for(user: User) -> Actor:
    return Actor(user_id=user.id, role=RoleName(user.role))


def auth_headers(user: User) -> dict:
    return {"X-User-Id": user.id, "X-User-Role": user.role}


def booking_request(service, tutor, booking_day, start_time: str = "10:00", **extra) -> BookingCreate:
    return BookingCreate(
        service_id=service.id,
        tutor_id=tutor.id,
        booking_date=booking_day.isoformat(),
        start_time=start_time,
        **extra,
    )
