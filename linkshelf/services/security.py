import hashlib
from dataclasses import dataclass
from functools import wraps

from flask import g, jsonify, request
from flask_login import current_user

from linkshelf.extensions import db
from linkshelf.models import ApiToken, User, utcnow


AUTH_SESSION = "session"
AUTH_TOKEN = "token"


@dataclass(frozen=True)
class ApiIdentity:
    """Who a request acts for, and how that was established."""

    user: User
    method: str
    token: ApiToken | None = None


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _bearer_token():
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header.removeprefix("Bearer ").strip() or None


def _identity_from_bearer_token():
    token = _bearer_token()
    if not token:
        return None
    token_row = ApiToken.query.filter_by(token_hash=hash_token(token)).first()
    if not token_row or token_row.revoked_at is not None:
        return None
    if not token_row.user.is_active:
        return None
    token_row.last_used_at = utcnow()
    db.session.commit()
    return ApiIdentity(user=token_row.user, method=AUTH_TOKEN, token=token_row)


def resolve_identity(token_only=False):
    # A bearer header wins over a browser session so that a revoked token
    # never falls back to the cookie.
    if _bearer_token():
        return _identity_from_bearer_token()
    if token_only or not current_user.is_authenticated:
        return None
    if not current_user.is_active:
        return None
    return ApiIdentity(user=current_user._get_current_object(), method=AUTH_SESSION)


def get_authenticated_api_user(token_only=False):
    identity = resolve_identity(token_only=token_only)
    if not identity:
        return None
    return identity.user


def identity_payload(identity: ApiIdentity) -> dict:
    payload = identity.user.as_dict()
    payload["auth"] = identity.method
    if identity.token is not None:
        payload["token_name"] = identity.token.name
    return payload


def revoke_token(identity: ApiIdentity) -> bool:
    if identity.token is None or identity.token.revoked_at is not None:
        return False
    identity.token.revoked_at = utcnow()
    db.session.commit()
    return True


def api_auth_required(admin=False, token_only=False):
    def decorator(func):
        @wraps(func)
        def wrapped(*args, **kwargs):
            identity = resolve_identity(token_only=token_only)
            if not identity:
                return jsonify({"error": "authentication required"}), 401
            if admin and not identity.user.is_admin:
                return jsonify({"error": "admin access required"}), 403
            g.api_identity = identity
            g.api_user = identity.user
            return func(*args, **kwargs)

        return wrapped

    return decorator
