"""Tests for admin session management"""

import pytest

from bizbud.auth.passwords import PasswordHasher
from bizbud.auth.sessions import SessionManager, csrf_key, session_key
from bizbud.utils.exceptions import NotFoundError, StoreUnavailableError

from conftest import UnavailableStore, seed_site


def test_create_session_mints_independent_tokens(sessions, store):
    pair = sessions.create_session("acme")

    assert pair.session_token != pair.csrf_token
    assert len(pair.session_token) >= 32
    assert store.get(session_key(pair.session_token)) == "acme"
    assert store.get(csrf_key(pair.session_token)) == pair.csrf_token


def test_sessions_are_unique_per_login(sessions):
    first = sessions.create_session("acme")
    second = sessions.create_session("acme")
    assert first.session_token != second.session_token
    assert first.csrf_token != second.csrf_token


def test_session_expires_exactly_at_ttl(sessions, clock):
    pair = sessions.create_session("acme")

    clock.advance(86399)
    assert sessions.resolve_session(pair.session_token) == "acme"
    assert sessions.verify_csrf(pair.session_token, pair.csrf_token)

    clock.advance(1)
    assert sessions.resolve_session(pair.session_token) is None
    assert not sessions.verify_csrf(pair.session_token, pair.csrf_token)


def test_revoke_takes_effect_immediately(sessions, store):
    pair = sessions.create_session("acme")

    sessions.revoke_session(pair.session_token)

    assert sessions.resolve_session(pair.session_token) is None
    assert store.get(csrf_key(pair.session_token)) is None


def test_revoke_is_idempotent(sessions):
    pair = sessions.create_session("acme")
    sessions.revoke_session(pair.session_token)
    sessions.revoke_session(pair.session_token)
    sessions.revoke_session(None)
    sessions.revoke_session("never-issued")


def test_revoke_swallows_store_outage():
    sessions = SessionManager(UnavailableStore())
    sessions.revoke_session("some-token")


def test_verify_csrf_requires_exact_match(sessions):
    pair = sessions.create_session("acme")

    assert sessions.verify_csrf(pair.session_token, pair.csrf_token)
    assert not sessions.verify_csrf(pair.session_token, pair.csrf_token + "x")
    assert not sessions.verify_csrf(pair.session_token, None)
    assert not sessions.verify_csrf(None, pair.csrf_token)


def test_csrf_token_is_bound_to_its_session(sessions):
    acme = sessions.create_session("acme")
    other = sessions.create_session("acme")

    assert not sessions.verify_csrf(acme.session_token, other.csrf_token)


def test_resolve_session_store_outage():
    sessions = SessionManager(UnavailableStore())

    assert sessions.resolve_session("token") is None
    with pytest.raises(StoreUnavailableError):
        sessions.resolve_session("token", strict=True)


def test_verify_password(store, hasher, sessions):
    seed_site(store, hasher, "acme", "correct-horse")

    assert sessions.verify_password("acme", "correct-horse")
    assert not sessions.verify_password("acme", "wrong")


def test_verify_password_unknown_site(sessions):
    with pytest.raises(NotFoundError):
        sessions.verify_password("ghost", "whatever")


def test_unknown_site_still_runs_bcrypt(store):
    checked = []

    class CountingHasher(PasswordHasher):
        def verify(self, password, password_hash):
            checked.append(password_hash)
            return super().verify(password, password_hash)

    sessions = SessionManager(store, hasher=CountingHasher(rounds=4))
    with pytest.raises(NotFoundError):
        sessions.verify_password("ghost", "whatever")
    with pytest.raises(NotFoundError):
        sessions.verify_password("ghost", "again")

    assert len(checked) == 2
    assert checked[0].startswith("$2")
    assert checked[0] == checked[1]


def test_hash_password_uses_bcrypt(sessions):
    hashed = sessions.hash_password("secret-1")
    assert hashed.startswith("$2")
    assert hashed != "secret-1"
