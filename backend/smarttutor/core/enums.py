# backend/smarttutor/core/enums.py
"""
Core enums for the SmartTutor platform.

Role names are supplied by the upstream auth gateway with every request;
this service trusts them without re-verifying credentials.
"""

from enum import Enum


class RoleName(str, Enum):
    """
    Roles an authenticated actor may hold.

    Tutors deliver services, students book them, admins may act on any booking.
    """

    ADMIN = "admin"
    TUTOR = "tutor"
    STUDENT = "student"
