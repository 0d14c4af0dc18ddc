# backend/smarttutor/services/notification_service.py
"""
Notification Service for SmartTutor

Fire-and-forget booking emails. Callers hand over an event after their
transaction has committed; any failure here (rendering, provider, network)
is logged and counted, never raised, so a booking is never undone by a
notification problem.
"""

import logging
from typing import Optional, Union

from ..core.config import settings
from ..core.constants import BOOKING_CONFIRMATION_SUBJECT
from ..events.booking_events import BookingConfirmed, BookingCreated, BookingEvent
from ..monitoring.prometheus_metrics import prometheus_metrics
from .base import BaseService
from .email import ConsoleEmailService, EmailSender, build_email_service
from .template_service import TemplateService

logger = logging.getLogger(__name__)

CONFIRMATION_TEMPLATE = "email/booking/confirmation.html"


class NotificationService(BaseService):
    def __init__(
        self,
        template_service: Optional[TemplateService] = None,
        email_service: Optional[Union[EmailSender, ConsoleEmailService]] = None,
    ) -> None:
        super().__init__(None)
        self.template_service = template_service or TemplateService()
        self.email_service = email_service or build_email_service()

    @BaseService.measure_operation("notify_booking_created")
    def notify_booking_created(self, event: BookingCreated) -> bool:
        return self._send_confirmation(event, confirmed=False)

    @BaseService.measure_operation("notify_booking_confirmed")
    def notify_booking_confirmed(self, event: BookingConfirmed) -> bool:
        return self._send_confirmation(event, confirmed=True)

    def _send_confirmation(self, event: BookingEvent, confirmed: bool) -> bool:
        """Render and send the confirmation email. Returns False on any failure."""
        if not settings.notifications_enabled:
            prometheus_metrics.record_notification_outcome(event.event_type, "skipped")
            return False

        try:
            html_content = self.template_service.render_template(
                CONFIRMATION_TEMPLATE,
                context={
                    "subject": BOOKING_CONFIRMATION_SUBJECT,
                    "student_name": event.student_name,
                    "tutor_name": event.tutor_name,
                    "service_title": event.service_title,
                    "booking_date": event.booking_date,
                    "start_time": event.start_time,
                    "confirmed": confirmed,
                },
            )
            self.email_service.send_email(
                to_email=event.student_email,
                subject=BOOKING_CONFIRMATION_SUBJECT,
                html_content=html_content,
            )
        except Exception as e:
            prometheus_metrics.record_notification_outcome(event.event_type, "failed")
            self.logger.error(
                f"Failed to send {event.event_type} notification for booking {event.booking_id}: {str(e)}",
                extra={"booking_id": event.booking_id, "error_type": type(e).__name__},
            )
            return False

        prometheus_metrics.record_notification_outcome(event.event_type, "sent")
        self.logger.info(f"{event.event_type} notification sent for booking {event.booking_id}")
        return True
