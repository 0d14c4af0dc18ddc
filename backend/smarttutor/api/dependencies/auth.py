# backend/smarttutor/api/dependencies/auth.py
"""
Authentication dependencies.

SmartTutor sits behind an auth gateway that verifies credentials and
forwards the caller identity as two trusted headers:

    X-User-Id:   ULID of the authenticated user
    X-User-Role: admin | tutor | student

Nothing here checks passwords or tokens.
"""

import logging
from typing import Optional

from fastapi import Depends, Header

from ...core.enums import RoleName
from ...core.exceptions import ForbiddenException, UnauthorizedException
from ...principal import Actor

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"


def get_current_actor(
    x_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER),
    x_user_role: Optional[str] = Header(None, alias=USER_ROLE_HEADER),
) -> Actor:
    """
    Build the acting principal from the gateway headers.

    Raises:
        HTTPException: 401 when either header is missing or the role is unknown
    """
    user_id = (x_user_id or "").strip()
    role_value = (x_user_role or "").strip().lower()

    if not user_id or not role_value:
        raise UnauthorizedException(
            "Authentication required", details={"headers": [USER_ID_HEADER, USER_ROLE_HEADER]}
        ).to_http_exception()

    try:
        role = RoleName(role_value)
    except ValueError:
        logger.warning(f"Rejected request with unknown role header '{x_user_role}'")
        raise UnauthorizedException(
            "Unknown role", details={"role": x_user_role}
        ).to_http_exception()

    return Actor(user_id=user_id, role=role)


def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Allow only administrators through."""
    if not actor.is_admin:
        raise ForbiddenException("Administrator access required").to_http_exception()
    return actor
