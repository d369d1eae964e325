"""Unit tests for auth/store.py and auth/sessions.py.

Covers:
- UserStore insert / lookup, exact (case-sensitive) email matching
- UNIQUE(email) surfaces as IntegrityError
- unreachable database surfaces as StoreUnavailableError
- SessionStore create / get / destroy, HMAC-keyed rows, passive expiry
- purge_expired() removes only dead rows
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from auth.errors import StoreUnavailableError
from auth.models import Identity, UserRecord
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import hash_session_id

ALICE = Identity(name="Alice", email="alice@x.com")


def _count_sessions(store: SessionStore) -> int:
    with store.engine.connect() as conn:
        return conn.execute(text("SELECT COUNT(*) FROM sessions")).scalar()


# ---------------------------------------------------------------------------
# UserStore
# ---------------------------------------------------------------------------


class TestUserStore:
    def test_create_and_get_by_email(self, stores) -> None:
        users, _ = stores
        uid = users.create_user(UserRecord(name="Alice", email="alice@x.com", password_hash="$2b$hash"))
        user = users.get_by_email("alice@x.com")
        assert user is not None
        assert user.id == uid
        assert user.name == "Alice"
        assert user.password_hash == "$2b$hash"
        assert user.created_at
        assert user.identity == ALICE

    def test_email_lookup_is_case_sensitive(self, stores) -> None:
        users, _ = stores
        users.create_user(UserRecord(name="Alice", email="alice@x.com", password_hash="h"))
        assert users.get_by_email("Alice@x.com") is None

    def test_duplicate_email_raises_integrity_error(self, stores) -> None:
        users, _ = stores
        users.create_user(UserRecord(name="Alice", email="alice@x.com", password_hash="h"))
        with pytest.raises(IntegrityError):
            users.create_user(UserRecord(name="Other", email="alice@x.com", password_hash="h2"))

    def test_ping(self, stores) -> None:
        users, _ = stores
        assert users.ping() is True

    def test_unreachable_database_raises_store_unavailable(self) -> None:
        with pytest.raises(StoreUnavailableError):
            UserStore("sqlite:////nonexistent-portal-dir/sub/portal.db")


# ---------------------------------------------------------------------------
# SessionStore
# ---------------------------------------------------------------------------


class TestSessionStore:
    def test_create_then_get(self, stores) -> None:
        _, sessions = stores
        before = datetime.now(timezone.utc)
        record = sessions.create(ALICE)
        assert record.identity == ALICE
        assert before + timedelta(seconds=3590) < record.expires_at <= before + timedelta(seconds=3610)

        fetched = sessions.get(record.session_id)
        assert fetched is not None
        assert fetched.identity == ALICE
        assert fetched.session_id == record.session_id

    def test_raw_token_is_never_stored(self, stores) -> None:
        _, sessions = stores
        record = sessions.create(ALICE)
        with sessions.engine.connect() as conn:
            keys = [row[0] for row in conn.execute(text("SELECT id_hash FROM sessions"))]
        assert keys == [hash_session_id(record.session_id)]
        assert record.session_id not in keys

    def test_unknown_id_returns_none(self, stores) -> None:
        _, sessions = stores
        assert sessions.get("no-such-session") is None

    def test_expired_session_is_invisible_but_not_deleted(self) -> None:
        sessions = SessionStore("sqlite:///:memory:", ttl=0)
        record = sessions.create(ALICE)
        assert sessions.get(record.session_id) is None
        # Lookup has no side effects -- the row stays until purged.
        assert _count_sessions(sessions) == 1
        sessions.close()

    def test_destroy_is_idempotent(self, stores) -> None:
        _, sessions = stores
        record = sessions.create(ALICE)
        assert sessions.destroy(record.session_id) is True
        assert sessions.destroy(record.session_id) is False
        assert sessions.get(record.session_id) is None

    def test_purge_removes_only_expired(self, tmp_path) -> None:
        url = f"sqlite:///{tmp_path / 'sessions.db'}"
        expired = SessionStore(url, ttl=0)
        live = SessionStore(url, ttl=3600)
        expired.create(ALICE)
        keeper = live.create(Identity(name="Bob", email="bob@x.com"))

        assert live.purge_expired() == 1
        assert live.get(keeper.session_id) is not None
        assert _count_sessions(live) == 1
        expired.close()
        live.close()
