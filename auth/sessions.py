"""
auth/sessions.py -- Server-side session storage.

Each row maps HMAC(token) -> JSON session data with an absolute expiry:

    sessions(id_hash TEXT PRIMARY KEY, data TEXT, expires_at REAL)

data is {"user": {"name": ..., "email": ...}}. expires_at is a UNIX timestamp
so expiry checks are a plain numeric comparison in SQL and in Python.

Expiry is enforced passively: get() treats an expired row as absent and never
modifies it, so reads have no side effects. purge_expired() deletes dead rows
for housekeeping; nothing depends on it running.

Usage:
    sessions = SessionStore("sqlite:///portal.db", ttl=3600)
    record = sessions.create(Identity(name="Alice", email="alice@x.com"))
    sessions.get(record.session_id)       # SessionRecord or None
    sessions.destroy(record.session_id)   # idempotent
    sessions.purge_expired()              # returns rows removed
"""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone

from sqlalchemy import Column, Float, MetaData, String, Table, Text

from auth.models import Identity, SessionRecord
from auth.store import make_engine, store_errors
from auth.tokens import generate_session_id, hash_session_id

_DEFAULT_TTL = 60 * 60  # 1 hour in seconds

_metadata = MetaData()

_sessions = Table(
    "sessions",
    _metadata,
    Column("id_hash", String(64), primary_key=True),  # HMAC-SHA256 hex of the token
    Column("data", Text, nullable=False),
    Column("expires_at", Float, nullable=False, index=True),
)


class SessionStore:
    def __init__(self, db_url: str, ttl: int = _DEFAULT_TTL) -> None:
        self.ttl = ttl
        with store_errors("init"):
            self.engine = make_engine(db_url)
            _metadata.create_all(self.engine)

    def create(self, identity: Identity) -> SessionRecord:
        """Persist a new session bound to identity and return it with its raw token."""
        session_id = generate_session_id()
        expires_at = time.time() + self.ttl
        data = {"user": {"name": identity.name, "email": identity.email}}
        with store_errors("create_session"), self.engine.connect() as conn:
            conn.execute(
                _sessions.insert().values(
                    id_hash=hash_session_id(session_id),
                    data=json.dumps(data),
                    expires_at=expires_at,
                )
            )
            conn.commit()
        return SessionRecord(session_id=session_id, identity=identity, expires_at=_to_datetime(expires_at))

    def get(self, session_id: str) -> SessionRecord | None:
        """Return the live session for session_id, or None if unknown or expired."""
        with store_errors("get_session"), self.engine.connect() as conn:
            row = conn.execute(
                _sessions.select().where(_sessions.c.id_hash == hash_session_id(session_id))
            ).fetchone()
        if row is None or time.time() >= row.expires_at:
            return None
        user = json.loads(row.data)["user"]
        return SessionRecord(
            session_id=session_id,
            identity=Identity(name=user["name"], email=user["email"]),
            expires_at=_to_datetime(row.expires_at),
        )

    def destroy(self, session_id: str) -> bool:
        """Delete the session. Returns True if a row was removed; missing ids are not an error."""
        with store_errors("destroy_session"), self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.id_hash == hash_session_id(session_id)))
            conn.commit()
        return result.rowcount > 0

    def purge_expired(self) -> int:
        """Delete all sessions past their expiry. Returns number of rows removed."""
        with store_errors("purge_sessions"), self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.expires_at <= time.time()))
            conn.commit()
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


def _to_datetime(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)
