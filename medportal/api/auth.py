"""
JWT helpers and session cookies for staff sign-in.

The access router only checks that the ``token`` cookie exists; verifying it
is left to the backend endpoints that need the caller's identity.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from medportal.config import ROLE_COOKIE, SECRET_KEY, TOKEN_COOKIE, TOKEN_EXPIRY_HOURS
from medportal.models import AccessContext


def generate_token(ctx: AccessContext) -> str:
    """Generate a JWT token for an authenticated staff member."""
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": ctx.user_id,
        "role": ctx.role.value,
        "display_name": ctx.display_name,
        "iat": now,
        "exp": now + timedelta(hours=TOKEN_EXPIRY_HOURS),
    }
    return jwt.encode(payload, SECRET_KEY, algorithm="HS256")


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify a JWT token and return the decoded payload (or None)."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def set_session_cookies(response, ctx: AccessContext, token: str):
    """Attach the ``role`` and ``token`` cookies to *response*."""
    max_age = TOKEN_EXPIRY_HOURS * 3600
    response.set_cookie(ROLE_COOKIE, ctx.role.value, max_age=max_age, samesite="Lax")
    response.set_cookie(TOKEN_COOKIE, token, max_age=max_age, httponly=True, samesite="Lax")
    return response


def clear_session_cookies(response):
    response.delete_cookie(ROLE_COOKIE)
    response.delete_cookie(TOKEN_COOKIE)
    return response
