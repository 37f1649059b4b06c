"""
Error taxonomy for the registration portal.

Every error raised on purpose by the services derives from ``PortalError`` and
carries the HTTP status it should be reported with. ``register_error_handlers``
turns them into ``{"message": ...}`` JSON bodies; anything else becomes a
logged, generic 500.
"""

from flask import jsonify
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge


class PortalError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message=None, details=None):
        self.message = message or "Internal server error. Please try again later."
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self):
        body = {"message": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


# ---------------------------------------------------------------------------
# 400
class ValidationError(PortalError):
    status_code = 400
    code = "VALIDATION_ERROR"


class MissingField(ValidationError):
    code = "MISSING_FIELD"

    def __init__(self, field):
        self.field = field
        super().__init__(f"{field} is required", {"field": field})


class InvalidFormat(ValidationError):
    code = "INVALID_FORMAT"

    def __init__(self, field, member_name=None, message=None):
        self.field = field
        self.member_name = member_name
        if message is None:
            label = {"email": "email", "phoneNumber": "phone number", "fullName": "name"}.get(field, field)
            message = f"Invalid {label} format"
            if member_name:
                message += f" for group member: {member_name}"
        details = {"field": field}
        if member_name:
            details["memberName"] = member_name
        super().__init__(message, details)


class InvalidEnum(ValidationError):
    code = "INVALID_ENUM"

    def __init__(self, field, allowed=()):
        self.field = field
        label = {
            "batchType": "batch type",
            "registrationType": "registration type",
            "status": "status",
        }.get(field, field)
        message = f"Invalid {label}"
        if allowed:
            message += ". Must be one of: " + ", ".join(allowed)
        super().__init__(message, {"field": field})


class InvalidGroupMembers(ValidationError):
    code = "INVALID_GROUP_MEMBERS"

    def __init__(self, reason):
        self.reason = reason
        super().__init__(reason)


class InvalidFileType(ValidationError):
    code = "INVALID_FILE_TYPE"

    def __init__(self):
        super().__init__("Payment screenshot must be an image file (JPG or PNG)")


class FileTooLarge(ValidationError):
    code = "FILE_TOO_LARGE"

    def __init__(self, limit_bytes=5_000_000):
        super().__init__(f"Payment screenshot must be less than {limit_bytes // 1_000_000}MB")


class MissingFile(ValidationError):
    code = "MISSING_FILE"

    def __init__(self):
        super().__init__("Payment screenshot is required")


class InvalidPagination(ValidationError):
    code = "INVALID_PAGINATION"

    def __init__(self, message="Invalid pagination parameters"):
        super().__init__(message)


class NothingSelected(ValidationError):
    code = "NOTHING_SELECTED"

    def __init__(self):
        super().__init__("No registrations selected")


# ---------------------------------------------------------------------------
# 401 / 403
class AuthError(PortalError):
    status_code = 401
    code = "AUTH_FAILED"

    def __init__(self, message="Authentication required"):
        super().__init__(message)


class MissingToken(AuthError):
    code = "TOKEN_MISSING"


class InvalidToken(AuthError):
    code = "TOKEN_INVALID"


class ExpiredToken(AuthError):
    code = "TOKEN_EXPIRED"


class InvalidCredentials(AuthError):
    code = "INVALID_CREDENTIALS"

    def __init__(self):
        super().__init__("Invalid credentials")


class ForbiddenError(PortalError):
    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message="Insufficient permissions"):
        super().__init__(message)


# ---------------------------------------------------------------------------
# 404
class NotFoundError(PortalError):
    status_code = 404
    code = "NOT_FOUND"


class RegistrationNotFound(NotFoundError):
    code = "REGISTRATION_NOT_FOUND"

    def __init__(self, registration_id):
        self.registration_id = registration_id
        super().__init__("Registration not found", {"id": registration_id})


# ---------------------------------------------------------------------------
# 409
class ConflictError(PortalError):
    status_code = 409
    code = "CONFLICT"


class DuplicateEmail(ConflictError):
    code = "DUPLICATE_EMAIL"

    def __init__(self):
        super().__init__("Email already registered. Please use a different email.")


class DuplicateAdmin(ConflictError):
    code = "DUPLICATE_ADMIN"

    def __init__(self, field):
        self.field = field
        super().__init__(f"Admin with this {field} already exists")


# ---------------------------------------------------------------------------
# 500
class StorageError(PortalError):
    code = "STORAGE_ERROR"


class FileBackendError(PortalError):
    code = "FILE_BACKEND_ERROR"

    def __init__(self, message="Error uploading payment screenshot to cloud storage"):
        super().__init__(message)


def register_error_handlers(app):
    @app.errorhandler(PortalError)
    def handle_portal_error(error):
        if error.status_code >= 500:
            app.logger.error("%s: %s", error.code, error.details or error.message)
            # Never leak backend detail to the client
            return jsonify({"message": PortalError().message}), error.status_code
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(error):
        err = FileTooLarge(app.config.get("MAX_PAYMENT_PROOF_BYTES", 5_000_000))
        return jsonify(err.to_dict()), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({"message": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        app.logger.exception("Unhandled error: %s", error)
        return jsonify({"message": PortalError().message}), 500
