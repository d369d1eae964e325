"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the service
do the work; these only define shape.

Layer rule: no imports from api/ or web/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Identity:
    """The {name, email} pair an authenticated session is bound to.

    Independent of storage: a session carries a copy of this, not a reference
    to the user row.
    """

    name: str
    email: str


@dataclass
class UserRecord:
    """A registered user as held by the credential store.

    password_hash is a bcrypt hash. The plaintext is never stored.
    id and created_at are None until the record is written.
    """

    name: str
    email: str  # unique, compared case-sensitively
    password_hash: str
    id: int | None = None
    created_at: str | None = None  # ISO 8601, set by store on insert

    @property
    def identity(self) -> Identity:
        return Identity(name=self.name, email=self.email)


@dataclass(frozen=True)
class SessionRecord:
    """A server-held binding of an opaque token to an Identity.

    session_id is the raw token handed to the client. The session store keeps
    only its HMAC, so this value exists solely on records returned by create().
    Records read back by lookup carry the token the caller supplied.
    """

    session_id: str
    identity: Identity
    expires_at: datetime  # timezone-aware UTC; absolute, never extended
