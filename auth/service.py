"""
auth/service.py -- Signup, login, and logout orchestration.

AuthService is the only component with real logic. It validates input against
the auth/forms.py schemas, talks to UserStore and SessionStore, and raises the
typed errors from auth/errors.py. It never renders text and never sees a
request object: the session id is always passed in explicitly.

Security:
  login() runs bcrypt exactly once whether or not the email exists (against a
  dummy hash for unknown emails), so response time does not reveal which
  emails are registered. The two failures still raise distinct exceptions;
  the web layer renders them with one shared message.

  Every successful signup or login issues a brand new session. Old sessions
  are never reused.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.errors import ConflictError, InvalidCredentialsError, NotFoundError
from auth.forms import LoginForm, SignupForm, parse_form
from auth.models import SessionRecord, UserRecord
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import hash_password, verify_dummy_password, verify_password

logger = logging.getLogger("portal.auth")


class AuthService:
    """Usage:
    service = AuthService(UserStore(url), SessionStore(url))
    record = service.signup("Alice", "alice@x.com", "pass1")
    record = service.login("alice@x.com", "pass1")
    service.logout(record.session_id)
    """

    def __init__(self, users: UserStore, sessions: SessionStore) -> None:
        self.users = users
        self.sessions = sessions

    def signup(self, name: str, email: str, password: str) -> SessionRecord:
        """Register a user and open their first session.

        Raises ValidationError before any write if the input is malformed, and
        ConflictError if the email is already registered.
        """
        form = parse_form(SignupForm, {"name": name, "email": email, "password": password})
        user = UserRecord(name=form.name, email=form.email, password_hash=hash_password(form.password))
        try:
            self.users.create_user(user)
        except IntegrityError as exc:
            logger.info("Signup rejected: email already registered")
            raise ConflictError() from exc

        session = self.sessions.create(user.identity)
        logger.info("Signup succeeded for %s", user.email)
        return session

    def login(self, email: str, password: str) -> SessionRecord:
        """Verify credentials and open a fresh session.

        Raises ValidationError, NotFoundError, or InvalidCredentialsError.
        """
        form = parse_form(LoginForm, {"email": email, "password": password})
        user = self.users.get_by_email(form.email)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt
            verify_dummy_password(form.password)
            logger.warning("Login failed: unknown email")
            raise NotFoundError()
        if not verify_password(form.password, user.password_hash):
            logger.warning("Login failed: bad password for %s", user.email)
            raise InvalidCredentialsError()

        session = self.sessions.create(user.identity)
        logger.info("Login succeeded for %s", user.email)
        return session

    def logout(self, session_id: str | None) -> None:
        """End the session. Unknown, expired, or missing ids are a no-op."""
        if not session_id:
            return
        if self.sessions.destroy(session_id):
            logger.info("Session ended")
