# backend/smarttutor/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import bookings, health, services, tutors

__all__ = [
    "bookings",
    "health",
    "services",
    "tutors",
]
