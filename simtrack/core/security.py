"""Signed auth cookie for signed-in learners.

Guests carry only an opaque session id; users carry ``<b64(user_id:issued_at)>.<hmac>``
issued by the host application's sign-in flow.
"""
import base64
import hashlib
import hmac
import time

from simtrack.core.config import get_settings


def _signature(payload: bytes) -> str:
    key = get_settings().secret_key.encode("utf-8")
    return hmac.new(key, payload, hashlib.sha256).hexdigest()


def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def create_session_token(user_id: int, issued_at: int | None = None) -> str:
    """Token for the auth cookie; ``issued_at`` defaults to now."""
    issued = int(time.time()) if issued_at is None else issued_at
    payload = f"{user_id}:{issued}".encode("utf-8")
    body = base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")
    return f"{body}.{_signature(payload)}"


def verify_session_token(token: str | None) -> int | None:
    """Return the user id from a valid, unexpired token, else None."""
    if not token or "." not in token:
        return None
    body, sig = token.rsplit(".", 1)
    try:
        payload = _b64decode(body)
        if not hmac.compare_digest(_signature(payload), sig):
            return None
        user_part, issued_part = payload.decode("utf-8").split(":", 1)
        user_id, issued = int(user_part), int(issued_part)
    except ValueError:
        return None
    if abs(time.time() - issued) > get_settings().auth_token_max_age_seconds:
        return None
    return user_id
