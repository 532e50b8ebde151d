"""
Caller identity supplied by the upstream authentication gateway.

Tokens are verified before requests reach this service; the gateway forwards
the tenant, user and role as headers.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_BRANCH_ADMIN = "branch_admin"
ROLE_MANAGER = "manager"
ROLE_TRAINER = "trainer"
ROLE_CLIENT = "client"

ALL_ROLES = (ROLE_ADMIN, ROLE_BRANCH_ADMIN, ROLE_MANAGER, ROLE_TRAINER, ROLE_CLIENT)
STAFF_ROLES = (ROLE_ADMIN, ROLE_BRANCH_ADMIN, ROLE_MANAGER, ROLE_TRAINER)
MANAGER_ROLES = (ROLE_ADMIN, ROLE_BRANCH_ADMIN, ROLE_MANAGER)


@dataclass(frozen=True)
class CallerContext:
    gym_id: int
    user_id: int
    role: str
    branch_id: Optional[int] = None


def get_caller(
    x_gym_id: Optional[int] = Header(None),
    x_user_id: Optional[int] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_branch_id: Optional[int] = Header(None),
) -> CallerContext:
    """Build the caller context from gateway headers"""
    if x_gym_id is None or x_user_id is None or not x_user_role:
        logger.warning("⚠️ Request without caller identity headers")
        raise HTTPException(status_code=401, detail="Not authenticated")

    role = x_user_role.strip().lower()
    if role not in ALL_ROLES:
        logger.warning(f"⚠️ Unknown role '{x_user_role}' for user {x_user_id}")
        raise HTTPException(status_code=403, detail=f"Unknown role '{x_user_role}'")

    return CallerContext(gym_id=x_gym_id, user_id=x_user_id, role=role, branch_id=x_branch_id)


def require_roles(*roles: str):
    """Dependency factory restricting an endpoint to the given roles"""

    def dependency(caller: CallerContext = Depends(get_caller)) -> CallerContext:
        if caller.role not in roles:
            logger.warning(
                f"⚠️ User {caller.user_id} with role '{caller.role}' denied (requires {', '.join(roles)})"
            )
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return caller

    return dependency
