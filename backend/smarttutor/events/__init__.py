from .booking_events import BookingConfirmed, BookingCreated

__all__ = ["BookingConfirmed", "BookingCreated"]
