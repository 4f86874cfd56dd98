from __future__ import annotations

import os
import re
import secrets
import threading
import time
from typing import Dict, Optional, Set

from fastapi import Request

SESSION_COOKIE = "forms_engine_sid"
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

try:
    ADMIN_SESSION_TTL_SECONDS = int(os.getenv("ADMIN_SESSION_TTL_SECONDS", "86400"))
except ValueError:
    ADMIN_SESSION_TTL_SECONDS = 86400


def _load_keys() -> Set[str]:
    raw = os.getenv("API_KEYS", "")
    return {k.strip() for k in raw.split(",") if k.strip()}

API_KEYS: Set[str] = _load_keys()

def check_api_key(key: str | None) -> bool:
    """True only when API_KEYS is configured and `key` is one of them."""
    return bool(API_KEYS) and bool(key) and key in API_KEYS


def is_valid_email(email: str | None) -> bool:
    return isinstance(email, str) and bool(EMAIL_RE.match(email.strip()))


_SESSIONS: Dict[str, Dict[str, object]] = {}
_SESSIONS_LOCK = threading.Lock()


def create_session(email: str) -> str:
    token = secrets.token_urlsafe(32)
    with _SESSIONS_LOCK:
        _SESSIONS[token] = {
            "email": email.strip(),
            "is_admin": True,
            "expires_at": time.time() + ADMIN_SESSION_TTL_SECONDS,
        }
    return token


def get_session(token: str | None) -> Optional[Dict[str, object]]:
    if not token:
        return None
    with _SESSIONS_LOCK:
        sess = _SESSIONS.get(token)
        if sess is None:
            return None
        if float(sess["expires_at"]) <= time.time():
            _SESSIONS.pop(token, None)
            return None
        return dict(sess)


def destroy_session(token: str | None) -> bool:
    if not token:
        return False
    with _SESSIONS_LOCK:
        return _SESSIONS.pop(token, None) is not None


def current_admin(request: Request) -> Optional[Dict[str, object]]:
    """Session for the request's cookie, or a synthetic one for a valid x-api-key."""
    sess = get_session(request.cookies.get(SESSION_COOKIE))
    if sess and sess.get("is_admin"):
        return sess
    if check_api_key(request.headers.get("x-api-key")):
        return {"email": None, "is_admin": True, "via": "api_key"}
    return None


class AdminUnauthorized(Exception):
    """Raised by `require_admin`; the app renders it as a 401 envelope."""

    message = "Unauthorized: Admin access required"


def require_admin(request: Request) -> Dict[str, object]:
    """FastAPI dependency guarding admin routes."""
    sess = current_admin(request)
    if sess is None:
        raise AdminUnauthorized()
    return sess
