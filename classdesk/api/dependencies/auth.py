# classdesk/api/dependencies/auth.py
"""
Caller identity dependencies.

Authentication happens upstream. The gateway forwards the verified caller
as two headers, ``X-User-Id`` and ``X-User-Role``; this module only turns
them into a ``Principal``.
"""

import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from ...core.constants import USER_ID_HEADER, USER_ROLE_HEADER
from ...core.enums import RoleName
from ...principal import Principal

logger = logging.getLogger(__name__)


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": message, "code": "AUTHENTICATION_REQUIRED", "details": {}},
    )


async def get_current_principal(
    user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
    user_role: Optional[str] = Header(default=None, alias=USER_ROLE_HEADER),
) -> Principal:
    """
    Resolve the caller from the identity headers.

    Raises:
        HTTPException: 401 when either header is missing or the role is unknown
    """
    if not user_id or not user_id.strip():
        raise _unauthorized(f"Missing {USER_ID_HEADER} header")
    if not user_role:
        raise _unauthorized(f"Missing {USER_ROLE_HEADER} header")

    try:
        role = RoleName(user_role.strip().lower())
    except ValueError:
        logger.warning(f"Rejected unknown role '{user_role}' for user {user_id}")
        raise _unauthorized(f"Unknown role '{user_role}'")

    return Principal(id=user_id.strip(), role=role)
