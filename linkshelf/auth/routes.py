from flask import jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from linkshelf.auth import auth_bp
from linkshelf.extensions import db
from linkshelf.models import User
from linkshelf.services.common import clean_text


@auth_bp.route("/bootstrap", methods=["POST"])
def bootstrap_admin():
    if User.query.count() > 0:
        return jsonify({"error": "bootstrap already completed"}), 409

    payload = request.get_json(silent=True) or {}
    username = clean_text(payload.get("username"))
    password = payload.get("password") or ""
    confirm = payload.get("confirm_password") or ""

    if not username or not password:
        return jsonify({"error": "username and password are required"}), 400
    if password != confirm:
        return jsonify({"error": "passwords do not match"}), 400

    admin = User(username=username, is_admin=True, is_active=True)
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    return jsonify({"status": "created", "user_id": admin.id}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    if current_user.is_authenticated:
        return jsonify(current_user.as_dict())

    payload = request.get_json(silent=True) or {}
    username = clean_text(payload.get("username"))
    password = payload.get("password") or ""

    user = User.query.filter_by(username=username).first()
    if user and user.is_active and user.check_password(password):
        login_user(user)
        return jsonify(user.as_dict())
    return jsonify({"error": "invalid credentials"}), 401


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"status": "signed_out"})
