from __future__ import annotations

from flask import current_app, g, jsonify, request

from linkshelf.api import api_bp
from linkshelf.extensions import db
from linkshelf.models import ApiToken, Bookmark, User
from linkshelf.services.changes import (
    CursorExpired,
    create_bookmark,
    current_cursor,
    delete_bookmark,
    list_changes,
)
from linkshelf.services.common import clean_text, to_bool
from linkshelf.services.security import (
    api_auth_required,
    identity_payload,
    revoke_token,
)


def _get_user_bookmark_or_404(user_id: int, bookmark_id: str):
    bookmark = Bookmark.query.filter_by(id=bookmark_id, user_id=user_id).first()
    if not bookmark:
        return None, (jsonify({"error": "bookmark not found"}), 404)
    return bookmark, None


@api_bp.route("/health")
def health():
    return jsonify({"status": "ok", "service": "LinkShelf"})


@api_bp.route("/auth/token", methods=["POST"])
def create_token_with_credentials():
    payload = request.get_json(silent=True) or {}
    username = clean_text(payload.get("username"))
    password = payload.get("password") or ""
    token_name = clean_text(payload.get("token_name")) or "LinkShelf API Token"

    user = User.query.filter_by(username=username).first()
    if not user or not user.is_active or not user.check_password(password):
        return jsonify({"error": "invalid credentials"}), 401

    token, token_hash = ApiToken.issue_token()
    row = ApiToken(user_id=user.id, name=token_name, token_hash=token_hash)
    db.session.add(row)
    db.session.commit()
    return jsonify({"token": token, "token_name": token_name, "user_id": user.id})


@api_bp.route("/auth/token", methods=["DELETE"])
@api_auth_required(token_only=True)
def revoke_current_token():
    revoke_token(g.api_identity)
    return jsonify({"status": "revoked"})


@api_bp.route("/auth/me", methods=["GET"])
@api_auth_required()
def whoami():
    return jsonify(identity_payload(g.api_identity))


@api_bp.route("/admin/users", methods=["POST"])
@api_auth_required(admin=True)
def admin_create_user():
    payload = request.get_json(silent=True) or {}
    username = clean_text(payload.get("username"))
    password = payload.get("password") or ""
    is_admin = to_bool(payload.get("is_admin"), default=False)

    if not username or not password:
        return jsonify({"error": "username and password are required"}), 400
    if User.query.filter_by(username=username).first():
        return jsonify({"error": "username already exists"}), 409

    user = User(username=username, is_admin=is_admin, is_active=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return jsonify({"status": "created", "user_id": user.id}), 201


@api_bp.route("/bookmarks", methods=["GET"])
@api_auth_required()
def bookmarks_list_api():
    user = g.api_user
    items = (
        Bookmark.query.filter_by(user_id=user.id)
        .order_by(Bookmark.created_at.desc())
        .all()
    )
    return jsonify({"items": [item.as_dict() for item in items]})


@api_bp.route("/bookmarks", methods=["POST"])
@api_auth_required()
def bookmarks_create_api():
    user = g.api_user
    payload = request.get_json(silent=True) or {}
    title = clean_text(payload.get("title"))
    url = clean_text(payload.get("url"))
    note = clean_text(payload.get("note"))
    if not title or not url:
        return jsonify({"error": "title and url are required"}), 400

    owner = payload.get("owner")
    if owner is not None and str(owner) != str(user.id):
        return jsonify({"error": "cannot create bookmarks for another user"}), 403

    bookmark = create_bookmark(user.id, title, url, note)
    return jsonify(bookmark.as_dict()), 201


@api_bp.route("/bookmarks/<bookmark_id>", methods=["GET"])
@api_auth_required()
def bookmarks_get_api(bookmark_id: str):
    user = g.api_user
    bookmark, error = _get_user_bookmark_or_404(user.id, bookmark_id)
    if error:
        return error
    return jsonify(bookmark.as_dict())


@api_bp.route("/bookmarks/<bookmark_id>", methods=["DELETE"])
@api_auth_required()
def bookmarks_delete_api(bookmark_id: str):
    user = g.api_user
    bookmark, error = _get_user_bookmark_or_404(user.id, bookmark_id)
    if error:
        return error

    delete_bookmark(bookmark)
    return jsonify({"status": "deleted", "id": bookmark_id})


@api_bp.route("/changes/cursor", methods=["GET"])
@api_auth_required()
def changes_cursor():
    return jsonify({"cursor": current_cursor(g.api_user.id)})


@api_bp.route("/changes", methods=["GET"])
@api_auth_required()
def changes_pull():
    user = g.api_user
    since = request.args.get("since", default=0, type=int)
    limit = request.args.get("limit", default=200, type=int)
    limit = max(1, min(limit, current_app.config["CHANGE_FEED_MAX_PAGE"]))
    try:
        page = list_changes(user.id, since, limit)
    except CursorExpired as exc:
        return (
            jsonify(
                {
                    "error": "cursor expired",
                    "pruned_through": exc.pruned_through,
                    "cursor": exc.cursor,
                }
            ),
            410,
        )
    return jsonify(page)
