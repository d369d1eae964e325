"""
auth/dependencies.py -- Access guard and request-level auth helpers.

authorize() is the guard itself: session id in, Identity or None out. None is
the "unauthenticated" signal. It has no side effects: it never extends expiry
and never deletes anything.

try_get_current_identity() is the soft request variant (returns None on any
failure). get_current_identity() wraps it and raises HTTP 401, for use as a
FastAPI dependency on JSON routes. HTML routes redirect instead; see
web/routes.py.

Layer rule: no imports from web/. fastapi is allowed here because this module
is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import Identity
from auth.sessions import SessionStore
from core.config import get_settings


def authorize(sessions: SessionStore, session_id: str | None) -> Identity | None:
    """Return the identity bound to session_id, or None if absent or expired."""
    if not session_id:
        return None
    record = sessions.get(session_id)
    return record.identity if record is not None else None


def get_session_id(request: Request) -> str | None:
    """Read the opaque session token from the request cookie."""
    return request.cookies.get(get_settings().session_cookie_name)


def try_get_current_identity(request: Request) -> Identity | None:
    """Authorize the request's session cookie. Never raises for missing sessions."""
    return authorize(request.app.state.session_store, get_session_id(request))


def get_current_identity(request: Request) -> Identity:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(identity: Identity = Depends(get_current_identity)): ...
    """
    identity = try_get_current_identity(request)
    if identity is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return identity
