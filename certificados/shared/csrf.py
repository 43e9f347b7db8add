"""Scoped, expiring anti-forgery tokens for forms and AJAX actions."""

from __future__ import annotations

import secrets

from flask import current_app, session
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..constants import TOKEN_MAX_AGE_SECONDS


def _session_nonce() -> str:
    nonce = session.get("_gcp_nonce")
    if not nonce:
        nonce = secrets.token_hex(16)
        session["_gcp_nonce"] = nonce
    return nonce


def _serializer(scope: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.secret_key, salt=f"gcp-token:{scope}")


def make_token(scope: str) -> str:
    """Sign the browser session nonce for ``scope``."""
    return _serializer(scope).dumps(_session_nonce())


def verify_token(token: str | None, scope: str) -> bool:
    if not token:
        return False
    try:
        nonce = _serializer(scope).loads(token, max_age=TOKEN_MAX_AGE_SECONDS)
    except SignatureExpired:
        current_app.logger.info("[TOKEN] expired scope=%s", scope)
        return False
    except BadSignature:
        return False
    expected = session.get("_gcp_nonce")
    return bool(expected) and secrets.compare_digest(str(nonce), expected)
