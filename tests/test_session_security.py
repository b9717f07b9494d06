from datetime import datetime, timedelta, timezone

import pytest

from app.core import security
from app.core.config import mask_secret, mask_url, settings
from app.workflow.errors import PermissionDenied
from app.workflow.session import SessionContext
from app.workflow.status import Role


def test_password_hashing_round_trip():
    hashed = security.hash_password("correct horse")
    assert hashed != "correct horse"
    assert security.verify_password("correct horse", hashed)
    assert not security.verify_password("wrong horse", hashed)


def test_short_password_is_rejected():
    assert not security.is_valid_password("short")
    with pytest.raises(ValueError):
        security.hash_password("short")


def test_verify_password_handles_garbage_hash():
    assert security.verify_password("whatever1", "not-a-hash") is False


def test_token_becomes_session():
    token = security.create_access_token({"sub": "abc123", "role": "student", "username": "MAT/001"})
    session = security.session_from_token(token)

    assert session.user_id == "abc123"
    assert session.role == Role.student
    assert session.username == "MAT/001"
    assert session.token == token
    assert not session.is_expired()
    remaining = session.expires_at - datetime.now(timezone.utc)
    assert timedelta(minutes=55) < remaining <= timedelta(minutes=60)


def test_tampered_or_incomplete_tokens_are_refused():
    token = security.create_access_token({"sub": "abc123", "role": "student"})
    assert security.session_from_token(token + "x") is None
    assert security.session_from_token(security.create_access_token({"sub": "abc123", "role": "dean"})) is None
    assert security.session_from_token(security.create_access_token({"role": "admin"})) is None


def test_expired_token_is_refused():
    token = security.create_access_token({"sub": "abc123", "role": "admin"}, expires_delta=timedelta(seconds=-5))
    assert security.session_from_token(token) is None


def test_token_creation_requires_secret(monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET_KEY", None)
    with pytest.raises(ValueError):
        security.create_access_token({"sub": "abc123", "role": "admin"})
    assert security.decode_token("anything") is None


def test_session_expiry_is_data():
    expires = datetime(2030, 1, 1, 12, 0)
    session = SessionContext(user_id="u", role=Role.student, expires_at=expires)

    assert not session.is_expired(datetime(2030, 1, 1, 11, 59, tzinfo=timezone.utc))
    assert session.is_expired(datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc))
    with pytest.raises(PermissionDenied):
        session.ensure_active(datetime(2030, 1, 1, 13, 0, tzinfo=timezone.utc))


def test_session_without_expiry_never_expires():
    session = SessionContext(user_id="u", role=Role.admin)
    assert not session.is_expired()
    assert session.is_admin
    assert session.actor == "u"


def test_require_owner():
    session = SessionContext(user_id="u", role=Role.student, username="MAT/001")
    assert session.require_owner("u") is session
    with pytest.raises(PermissionDenied):
        session.require_owner("someone-else")
    with pytest.raises(PermissionDenied):
        SessionContext(user_id="u", role=Role.admin).require_owner("u")


def test_masking_helpers():
    assert mask_secret(None) == "<missing>"
    assert mask_secret("short") == "*****"
    assert mask_secret("abcdefghijkl") == "abcd...ijkl"
    assert mask_url("https://user:pw@project.supabase.co/storage/v1") == "https://project.supabase.co"
