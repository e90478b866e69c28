"""Tests for signed auth tokens."""
import time

from simtrack.core.security import create_session_token, verify_session_token


class TestSessionToken:
    def test_round_trip(self):
        assert verify_session_token(create_session_token(7)) == 7

    def test_garbage(self):
        assert verify_session_token(None) is None
        assert verify_session_token("") is None
        assert verify_session_token("no-dot") is None
        assert verify_session_token("abc.def") is None

    def test_other_secret(self, monkeypatch):
        token = create_session_token(7)
        monkeypatch.setenv("SECRET_KEY", "another-secret")
        assert verify_session_token(token) is None

    def test_expired(self):
        old = int(time.time()) - 15 * 24 * 3600
        assert verify_session_token(create_session_token(7, issued_at=old)) is None
