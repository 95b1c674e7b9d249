"""Caller identity for the HTTP layer.

Authentication happens upstream; the gateway in front of this service
forwards the authenticated user as ``X-User-Id`` and ``X-User-Role``.
"""

from fastapi import Depends, Header

from ordering.caller import Caller, Role
from ordering.errors import ForbiddenError


async def current_caller(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Caller:
    if not x_user_id:
        raise ForbiddenError("Not authorized, no user identity")
    role = Role.ADMIN.value if x_user_role == Role.ADMIN.value else Role.USER.value
    return Caller(user_id=x_user_id, role=role)


async def require_admin(caller: Caller = Depends(current_caller)) -> Caller:
    if not caller.is_admin:
        raise ForbiddenError("Not authorized as an admin", status_code=403)
    return caller
