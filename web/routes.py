"""
web/routes.py -- Jinja2 template routes for the portal's HTML pages.

These routes share app.state with the API (same stores, same AuthService) but
return HTML instead of JSON. This module is the presentation boundary: it is
the only place that turns auth errors into user-facing text.

Routes:
  GET  /          -- home page: sign up / log in links, or a greeting
  GET  /signup    -- signup form
  POST /signup    -- create account, start session, redirect /members
  GET  /login     -- login form
  POST /login     -- verify credentials, start session, redirect /members
  GET  /members   -- members-only greeting with a random image
  GET  /logout    -- end session, redirect /

Form fields default to "" so a missing field reaches the auth schema and is
reported inline like any other validation failure, instead of as a bare 422.
"""

import logging
import random
from pathlib import Path

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from auth.dependencies import get_session_id, try_get_current_identity
from auth.errors import ConflictError, InvalidCredentialsError, NotFoundError, ValidationError
from auth.models import SessionRecord
from auth.service import AuthService
from auth.tokens import clear_session_cookie, set_session_cookie
from core.config import get_settings

logger = logging.getLogger("portal.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()

# One message for unknown email and wrong password, so the page does not
# reveal which emails are registered.
_LOGIN_FAILED = "Invalid email or password."

_STATUS_PAGES: dict[int, str] = {
    404: "404 Page Not Found",
    503: "Service temporarily unavailable. Please try again later.",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _service(request: Request) -> AuthService:
    return request.app.state.auth_service


def _form_error(request: Request, message: str, retry_path: str, status_code: int) -> HTMLResponse:
    """Render an inline error with a link back to the form."""
    return templates.TemplateResponse(
        request,
        "form_error.html",
        {"message": message, "retry_path": retry_path},
        status_code=status_code,
    )


def _start_session(request: Request, record: SessionRecord) -> RedirectResponse:
    """Redirect to /members carrying the new session cookie.

    Any session named by an incoming cookie is ended first, so a browser
    never holds two live sessions.
    """
    previous = get_session_id(request)
    if previous and previous != record.session_id:
        _service(request).logout(previous)
        logger.info("Replaced previous session on %s", request.url.path)
    resp = RedirectResponse("/members", status_code=302)
    set_session_cookie(resp, record.session_id)
    resp.headers["Cache-Control"] = "no-store"
    return resp


def render_status_page(request: Request, status_code: int) -> HTMLResponse:
    """Render the generic page for an HTTP error status. Used by asgi.py."""
    message = _STATUS_PAGES.get(status_code, "Something went wrong.")
    return templates.TemplateResponse(
        request,
        "status.html",
        {"status_code": status_code, "message": message},
        status_code=status_code,
    )


# ---------------------------------------------------------------------------
# GET / -- home
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def home(request: Request) -> HTMLResponse:
    identity = try_get_current_identity(request)
    return templates.TemplateResponse(request, "home.html", {"identity": identity})


# ---------------------------------------------------------------------------
# Signup
# ---------------------------------------------------------------------------


@router.get("/signup", response_class=HTMLResponse)
def signup_form(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "signup.html", {})


@router.post("/signup", response_class=HTMLResponse)
def signup_post(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
):
    """Handle signup form submission."""
    try:
        record = _service(request).signup(name, email, password)
    except ValidationError as exc:
        return _form_error(request, exc.message, "/signup", 400)
    except ConflictError as exc:
        return _form_error(request, exc.message, "/signup", 409)
    return _start_session(request, record)


# ---------------------------------------------------------------------------
# Login / logout
# ---------------------------------------------------------------------------


@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "login.html", {})


@router.post("/login", response_class=HTMLResponse)
def login_post(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
):
    """Handle login form submission."""
    try:
        record = _service(request).login(email, password)
    except ValidationError as exc:
        return _form_error(request, exc.message, "/login", 400)
    except (NotFoundError, InvalidCredentialsError):
        return _form_error(request, _LOGIN_FAILED, "/login", 401)
    return _start_session(request, record)


@router.get("/logout")
def logout(request: Request) -> RedirectResponse:
    """End the session (if any), clear the cookie, and go home."""
    _service(request).logout(get_session_id(request))
    resp = RedirectResponse("/", status_code=302)
    clear_session_cookie(resp)
    return resp


# ---------------------------------------------------------------------------
# GET /members -- protected
# ---------------------------------------------------------------------------


@router.get("/members", response_class=HTMLResponse)
def members(request: Request):
    """Greet the member with a random image. Anonymous visitors go home.

    A cookie whose session has expired or been destroyed is cleared on the
    redirect so the browser stops sending it.
    """
    identity = try_get_current_identity(request)
    if identity is None:
        resp = RedirectResponse("/", status_code=302)
        if get_session_id(request):
            clear_session_cookie(resp)
        return resp

    image = random.choice(get_settings().member_images)  # noqa: S311 -- decorative, not security
    return templates.TemplateResponse(request, "members.html", {"identity": identity, "image": image})
