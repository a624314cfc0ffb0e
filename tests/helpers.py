"""Small helpers shared by the route and service tests."""

from typing import Any, Optional

from classdesk.core.enums import RoleName
from classdesk.principal import Principal


def auth_headers(user: Any, role: Optional[str] = None) -> dict:
    """Identity headers the upstream gateway would forward for ``user``."""
    return {
        "X-User-Id": user.id,
        "X-User-Role": role or user.role,
    }


def principal_for(user: Any) -> Principal:
    return Principal(id=user.id, role=RoleName(user.role))
