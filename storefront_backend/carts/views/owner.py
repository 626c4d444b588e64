# carts/views/owner.py

"""
Request -> CartOwner resolution.

- Authenticated caller: UserOwner(request.user.id)
- Anonymous caller: GuestOwner from the `sessionId` cookie (or X-Session-Id header),
  minted on first write and sent back as an httpOnly cookie.
"""

from __future__ import annotations

import secrets

from django.conf import settings

from carts.models import CartOwner, GuestOwner, UserOwner

SESSION_COOKIE = "sessionId"
SESSION_HEADER = "HTTP_X_SESSION_ID"


def resolve_owner(request, *, create: bool = False) -> CartOwner | None:
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return UserOwner(user_id=user.id)

    raw = request.COOKIES.get(SESSION_COOKIE) or request.META.get(SESSION_HEADER) or ""
    session_id = raw.strip()[:100]
    if session_id:
        return GuestOwner(session_id=session_id)

    if create:
        return GuestOwner(session_id=f"guest_{secrets.token_urlsafe(16)}")
    return None


def attach_session_cookie(response, owner: CartOwner | None):
    if isinstance(owner, GuestOwner):
        ttl_days = int((getattr(settings, "CARTS", {}) or {}).get("TTL_DAYS", 30))
        response.set_cookie(
            SESSION_COOKIE,
            owner.session_id,
            max_age=ttl_days * 24 * 60 * 60,
            httponly=True,
            secure=not settings.DEBUG,
            samesite="Lax",
        )
    return response
