"""
auth/tokens.py -- Password hashing, session token, and cookie utilities.

Security design decisions:
  Passwords: bcrypt with a fixed cost factor (Settings.bcrypt_rounds, default
       10). Bcrypt is the right choice for low-entropy secrets because its cost
       factor makes brute-force expensive. Passwords are SHA-256 pre-hashed
       so multi-byte input never exceeds bcrypt's 72-byte cap. _DUMMY_HASH enables timing
       equalization in AuthService.login() so response time does not reveal
       whether an email is registered.

  Session tokens: secrets.token_urlsafe(32) gives 256 bits of entropy. The
       store keys sessions by HMAC-SHA256(SECRET_KEY, token) so the raw token
       lives only in the client's cookie. A copy of the sessions table cannot
       be replayed without also knowing SECRET_KEY. bcrypt's slowness is
       unnecessary for high-entropy tokens and would cost a hash per request.

Layer rule: no imports from api/ or web/. Import from core/ is allowed.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets

import bcrypt

from core.config import get_settings

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def _prehash(plain: str) -> bytes:
    """Reduce a password to 44 ASCII bytes before bcrypt sees it.

    bcrypt rejects input over 72 bytes, and a 30-character password can take
    up to 120 bytes of UTF-8. base64(SHA-256) fits any length and contains no
    NUL bytes.
    """
    return base64.b64encode(hashlib.sha256(plain.encode("utf-8")).digest())


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(_prehash(plain), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed stored hash counts as a mismatch rather than an error.
    """
    try:
        return bcrypt.checkpw(_prehash(plain), hashed.encode("utf-8"))
    except ValueError:
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. Verified against when the email is unknown.
_DUMMY_HASH: str = hash_password("portal_timing_dummy")


def verify_dummy_password(plain: str) -> None:
    """Spend one bcrypt verification without a real hash to compare against."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


def generate_session_id() -> str:
    """Return a new opaque session token (43 URL-safe characters)."""
    return secrets.token_urlsafe(32)


def hash_session_id(session_id: str) -> str:
    """Return HMAC-SHA256(SECRET_KEY, session_id) as a hex string.

    Deterministic, so the store can look sessions up by primary key.
    """
    return hmac.new(
        _settings.secret_key.encode(),
        session_id.encode(),
        hashlib.sha256,
    ).hexdigest()


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(response, session_id: str) -> None:
    """Write the session token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie.
    samesite="lax": cookie sent on same-site navigations and top-level GETs.
    secure: only sent over HTTPS when SECURE_COOKIES=true.
    max_age: matches the stored session's absolute expiry.
    """
    response.set_cookie(
        _settings.session_cookie_name,
        value=session_id,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=_settings.session_ttl_seconds,
    )


def clear_session_cookie(response) -> None:
    response.delete_cookie(_settings.session_cookie_name)
