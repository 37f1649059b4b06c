"""
Admin session guard.

Login issues a signed JWT (admin id, email, role; 24h expiry) stored in an
HTTP-only cookie. Flask-Login's ``request_loader`` verifies that cookie on
every request, so ``@login_required`` / ``current_user`` work without any
server-side session state.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from flask import current_app, jsonify, request
from jose import ExpiredSignatureError, JWTError, jwt

from errors import AuthError, ExpiredToken, InvalidToken, MissingToken
from extensions import db, login_manager
from models.admin import Admin

logger = logging.getLogger(__name__)

# superadmin > admin
ROLE_HIERARCHY = {
    "admin": 1,
    "superadmin": 2,
}

GENERIC_AUTH_MESSAGE = "Authentication required"


@dataclass
class AdminIdentity:
    admin_id: int
    email: str
    role: str


def has_at_least_role(actual, required="admin"):
    return ROLE_HIERARCHY.get(actual, 0) >= ROLE_HIERARCHY.get(required, 0)


def issue_token(admin, ttl_hours=None):
    """Sign a session token for ``admin`` (an ``Admin`` or ``AdminIdentity``)."""
    config = current_app.config
    ttl = ttl_hours if ttl_hours is not None else config["ADMIN_TOKEN_TTL_HOURS"]
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(getattr(admin, "admin_id", None) or admin.id),
        "adminId": getattr(admin, "admin_id", None) or admin.id,
        "email": admin.email,
        "role": admin.role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=ttl)).timestamp()),
    }
    return jwt.encode(claims, config["JWT_SECRET_KEY"], algorithm=config["JWT_ALGORITHM"])


def verify_token(token):
    """Return the ``AdminIdentity`` in ``token`` or raise MissingToken / ExpiredToken / InvalidToken."""
    if not token:
        raise MissingToken("Access denied. No token provided.")

    config = current_app.config
    try:
        claims = jwt.decode(token, config["JWT_SECRET_KEY"], algorithms=[config["JWT_ALGORITHM"]])
    except ExpiredSignatureError:
        raise ExpiredToken("Token expired")
    except JWTError:
        raise InvalidToken("Invalid token")

    try:
        return AdminIdentity(
            admin_id=int(claims["adminId"]),
            email=claims["email"],
            role=claims["role"],
        )
    except (KeyError, TypeError, ValueError):
        raise InvalidToken("Invalid token")


def token_from_request(req=None):
    req = req or request
    token = req.cookies.get(current_app.config["ADMIN_COOKIE_NAME"])
    if not token:
        header = req.headers.get("Authorization", "")
        if header.lower().startswith("bearer "):
            token = header[7:].strip()
    return token


def set_session_cookie(response, token):
    config = current_app.config
    response.set_cookie(
        config["ADMIN_COOKIE_NAME"],
        token,
        max_age=config["ADMIN_TOKEN_TTL_HOURS"] * 60 * 60,
        httponly=True,
        secure=config["SESSION_COOKIE_SECURE"],
        samesite="Strict",
    )
    return response


def clear_session_cookie(response):
    config = current_app.config
    response.set_cookie(
        config["ADMIN_COOKIE_NAME"],
        "",
        max_age=0,
        expires=0,
        httponly=True,
        secure=config["SESSION_COOKIE_SECURE"],
        samesite="Strict",
    )
    return response


def authenticate_request(req=None, required_role="admin"):
    """Resolve the active admin behind the request's token, or raise ``AuthError``."""
    identity = verify_token(token_from_request(req))
    if not has_at_least_role(identity.role, required_role):
        raise InvalidToken("Insufficient role")

    admin = db.session.get(Admin, identity.admin_id)
    if admin is None or not admin.is_active:
        raise InvalidToken("Admin account not found or inactive")
    return admin


@login_manager.user_loader
def load_admin(admin_id):
    return db.session.get(Admin, int(admin_id))


@login_manager.request_loader
def load_admin_from_request(req):
    try:
        return authenticate_request(req)
    except AuthError as e:
        # reason stays in the server log; the client gets one generic message
        if not isinstance(e, MissingToken):
            logger.info("Admin token rejected (%s): %s", e.code, e.message)
        return None


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"message": GENERIC_AUTH_MESSAGE, "code": AuthError.code}), 401
