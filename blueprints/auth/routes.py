from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from errors import DuplicateAdmin, ForbiddenError, InvalidCredentials, InvalidFormat, ValidationError
from extensions import db
from models.admin import Admin
from services.guard import clear_session_cookie, issue_token, set_session_cookie
from services.validator import is_valid_email, normalize_email

auth_bp = Blueprint("auth", __name__)

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6


@auth_bp.route("", methods=["POST"])
def auth_action():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    action = body.pop("action", None)
    if action == "login":
        return login(body)
    if action == "register":
        return register(body)
    raise ValidationError("Invalid action")


# Login
def login(data):
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        raise ValidationError("Email and password are required")
    if not is_valid_email(email):
        raise InvalidFormat("email")

    admin = Admin.query.filter_by(email=normalize_email(email)).first()
    if not admin or not admin.is_active or not admin.check_password(password):
        current_app.logger.info("Failed admin login for %s", normalize_email(email))
        raise InvalidCredentials()

    response = jsonify({"message": "Login successful", "admin": admin.to_dict()})
    set_session_cookie(response, issue_token(admin))
    current_app.logger.info("Admin %s logged in", admin.id)
    return response


# Sign-up of additional admins
def register(data):
    if not current_app.config["ADMIN_SIGNUP_ENABLED"]:
        raise ForbiddenError("Admin registration is disabled")

    username = (data.get("username") or "").strip()
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""

    if not username or not email or not password:
        raise ValidationError("Username, email, and password are required")
    if not is_valid_email(email):
        raise InvalidFormat("email")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters long")

    # Duplicate username or email
    existing = Admin.query.filter(or_(Admin.username == username, Admin.email == email)).first()
    if existing:
        raise DuplicateAdmin("email" if existing.email == email else "username")

    admin = Admin(username=username, email=email, role="admin", is_active_flag=True)
    admin.set_password(password)
    db.session.add(admin)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateAdmin("username or email")

    current_app.logger.info("Admin %s registered", admin.id)
    return jsonify({"message": "Admin registered successfully", "admin": admin.to_dict()}), 201


@auth_bp.route("", methods=["GET"])
@login_required
def whoami():
    return jsonify({"admin": current_user.to_dict()})


# Logout
@auth_bp.route("", methods=["DELETE"])
def logout():
    response = jsonify({"message": "Logout successful"})
    return clear_session_cookie(response)
