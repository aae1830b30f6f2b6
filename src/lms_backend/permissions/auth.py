"""
Bearer credential handling.

Tokens are issued by the upstream session provider and carry the caller's
user id and role set. They are trusted as-is; verifying them is the
provider's job.
"""

import logging
from fastapi import Request
from fastapi.security.utils import get_authorization_scheme_param

from lms_backend.api.exceptions import ForbiddenException, UnauthorizedException
from lms_backend.permissions.principal import Principal
from lms_backend.permissions.roles import has_any_role

logger = logging.getLogger(__name__)


def get_current_principal(request: Request) -> Principal:

    authorization = request.headers.get("Authorization")

    if not authorization:
        raise UnauthorizedException(headers={"WWW-Authenticate": "Bearer"})

    scheme, param = get_authorization_scheme_param(authorization)

    if scheme.lower() != "bearer" or not param:
        raise UnauthorizedException("Invalid Bearer token", headers={"WWW-Authenticate": "Bearer"})

    principal = Principal.decode(param)

    if principal.user_id is None:
        raise UnauthorizedException("Bearer credential carries no user id")

    logger.debug(f"Authenticated principal {principal.user_id} with roles {principal.roles}")

    return principal


def require_any_role(principal: Principal, roles, action: str = "perform this action"):
    if not has_any_role(principal, roles):
        logger.warning(f"Principal {principal.user_id} with roles {principal.roles} denied: {action}")
        raise ForbiddenException(detail={
            "code": "forbidden",
            "required_roles": list(roles),
            "message": f"Not allowed to {action}",
        })
