"""
Session identity and access gate for the feedback portal.

Bearer JWTs carry the user id, role and contact details. Routers depend on
``get_request_context`` / ``require_admin`` and pass the resulting
``RequestContext`` into services; services trust the gate and never re-check
roles themselves.
"""

from datetime import datetime, timedelta
from typing import Optional
import logging

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from .auth_context import RequestContext, ROLE_ADMIN, ROLE_USER
from .config import get_settings
from .exceptions import AuthenticationError, PermissionError

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

LOGIN_PATH = "/login"
HOME_PATH = "/"


def create_access_token(
    context: RequestContext, expires_delta: Optional[timedelta] = None
) -> str:
    """Issue a signed access token for ``context``."""
    settings = get_settings()
    expire = datetime.utcnow() + (
        expires_delta
        or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )
    to_encode = {
        "sub": context.user_id,
        "role": context.role,
        "email": context.email,
        "name": context.full_name,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> Optional[RequestContext]:
    """Decode a bearer token. Returns ``None`` for invalid or expired tokens."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError as e:
        logger.warning(f"Rejected access token: {e}")
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    role = payload.get("role") or ROLE_USER
    if role not in (ROLE_ADMIN, ROLE_USER):
        role = ROLE_USER

    return RequestContext(
        user_id=str(user_id),
        role=role,
        email=payload.get("email"),
        full_name=payload.get("name"),
    )


async def get_request_context_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[RequestContext]:
    """Current-session lookup: a context, or ``None`` when there is no session."""
    if credentials is None:
        return None
    return verify_token(credentials.credentials)


async def get_request_context(
    context: Optional[RequestContext] = Depends(get_request_context_optional),
) -> RequestContext:
    """Require a signed-in user of any role."""
    if context is None:
        raise AuthenticationError("Not authenticated")
    return context


async def require_admin(
    context: RequestContext = Depends(get_request_context),
) -> RequestContext:
    """Require the admin role."""
    if not context.is_admin:
        raise PermissionError("Admin access required")
    return context


async def require_submitter(
    context: RequestContext = Depends(get_request_context),
) -> RequestContext:
    """Require a non-admin user; admins do not submit feedback."""
    if context.is_admin:
        raise PermissionError("Admins cannot submit feedback")
    return context


def resolve_page_redirect(path: str, context: Optional[RequestContext]) -> Optional[str]:
    """Page-level access rules.

    Returns the path the visitor should be redirected to, or ``None`` when the
    request may proceed.
    """
    is_dashboard = path.startswith("/dashboard")
    is_submit_feedback = path.startswith("/feedback")
    is_auth_page = path in (LOGIN_PATH, "/signup")

    if not (is_dashboard or is_submit_feedback or is_auth_page):
        return None

    if context is None:
        return LOGIN_PATH if (is_dashboard or is_submit_feedback) else None

    if is_auth_page:
        return HOME_PATH
    if is_dashboard and not context.is_admin:
        return HOME_PATH
    if is_submit_feedback and context.is_admin:
        return HOME_PATH
    return None
