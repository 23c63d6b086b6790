from datetime import datetime, timedelta

import pytest

from article_analyzer.errors import AuthError, ConflictError
from article_analyzer.services import auth_service
from article_analyzer.utils.helpers import hash_token


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def test_password_hash_round_trip():
    hashed = auth_service.hash_password("correct-horse")

    assert hashed != "correct-horse"
    assert auth_service.verify_password("correct-horse", hashed)
    assert not auth_service.verify_password("wrong-horse", hashed)
    assert not auth_service.verify_password("correct-horse", "not-a-bcrypt-hash")


def test_create_user_rejects_duplicate_email(db):
    auth_service.create_user(db, "writer@example.com", "long-enough")

    with pytest.raises(ConflictError):
        auth_service.create_user(db, "writer@example.com", "long-enough")


def test_authenticate_hides_which_part_was_wrong(db):
    auth_service.create_user(db, "writer@example.com", "long-enough")

    assert auth_service.authenticate(db, "writer@example.com", "long-enough").email == "writer@example.com"
    with pytest.raises(AuthError, match="Invalid email or password"):
        auth_service.authenticate(db, "writer@example.com", "not-the-password")
    with pytest.raises(AuthError, match="Invalid email or password"):
        auth_service.authenticate(db, "nobody@example.com", "long-enough")


def test_issued_token_is_stored_only_as_hash(db):
    user = auth_service.create_user(db, "writer@example.com", "long-enough")
    issued = auth_service.issue_session(db, user, user_agent="pytest", ip_address="127.0.0.1")

    assert len(issued.access_token) == 128
    assert issued.session.access_token_hash == hash_token(issued.access_token)
    assert auth_service.resolve_session(db, issued.access_token).id == issued.session.id


def test_resolve_session_rejects_unknown_and_expired_tokens(db):
    user = auth_service.create_user(db, "writer@example.com", "long-enough")
    issued = auth_service.issue_session(db, user)

    with pytest.raises(AuthError, match="Unauthorized"):
        auth_service.resolve_session(db, None)
    with pytest.raises(AuthError, match="Unauthorized"):
        auth_service.resolve_session(db, "f" * 128)

    # SQLite hands back naive datetimes; they are read as UTC.
    issued.session.expires_at = datetime.utcnow() - timedelta(seconds=1)
    db.commit()

    with pytest.raises(AuthError, match="Session expired"):
        auth_service.resolve_session(db, issued.access_token)
