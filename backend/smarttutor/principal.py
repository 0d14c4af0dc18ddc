"""Actor identity handed to the booking services by the auth gateway."""

from __future__ import annotations

from dataclasses import dataclass

from .core.enums import RoleName


@dataclass(frozen=True)
class Actor:
    """Authenticated caller. Trusted as supplied; credentials are verified upstream."""

    user_id: str
    role: RoleName

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN

    @property
    def is_tutor(self) -> bool:
        return self.role == RoleName.TUTOR
