from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from errors import FileBackendError, PortalError, ValidationError
from services import registration_store
from services.bulk import delete_registration, delete_screenshot
from services.exporter import format_local
from services.file_store import get_file_store
from services.registration_store import UPDATABLE_FIELDS, RegistrationFilters, parse_pagination
from services.validator import (
    UploadedFile,
    extract_payload,
    normalize_group_members,
    validate_project_title,
    validate_registration,
    validate_status,
)

register_bp = Blueprint("register", __name__)


def _json_body():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def serialize(registration):
    data = registration.to_dict()
    data["_id"] = registration.id
    return data


#-------------------------------------------------------
# Public registration form
@register_bp.route("/register", methods=["POST"])
def create_registration():
    config = current_app.config

    # multipart carries the screenshot; JSON bodies are the older, file-less form
    is_multipart = request.mimetype == "multipart/form-data"
    if is_multipart:
        payload = extract_payload(request.form)
        upload = UploadedFile.from_storage(request.files.get("paymentScreenshot"))
    else:
        payload = _json_body()
        upload = None

    record = validate_registration(
        payload,
        upload=upload,
        require_file=is_multipart and config["REQUIRE_PAYMENT_PROOF"],
        max_file_bytes=config["MAX_PAYMENT_PROOF_BYTES"],
        allowed_extensions=config["ALLOWED_PAYMENT_PROOF_EXTENSIONS"],
        email_exists=registration_store.email_exists,
    )

    screenshot_url = file_id = None
    if record.payment_screenshot is not None:
        shot = record.payment_screenshot
        result = get_file_store().upload(shot.data, shot.content_type, shot.filename)
        if not result.success:
            raise FileBackendError()
        screenshot_url, file_id = result.public_url, result.file_id

    current_app.logger.info(
        "Saving registration: email=%s type=%s members=%d screenshot=%s",
        record.email, record.registration_type, len(record.group_members),
        "URL_PROVIDED" if screenshot_url else None,
    )

    try:
        registration = registration_store.create(record, screenshot_url, file_id)
    except PortalError:
        # nothing points at the upload anymore
        delete_screenshot(file_id)
        raise

    return jsonify({
        "message": "Registration successful",
        "id": registration.id,
        "projectId": registration.project_id,
        "registrationNumber": registration.registration_number(config["REGISTRATION_NUMBER_PREFIX"]),
        "registrationDate": format_local(registration.created_at, config["DISPLAY_TIMEZONE"]),
        "paymentScreenshotUrl": screenshot_url,
    }), 201


#-------------------------------------------------------
# Admin list
@register_bp.route("/register", methods=["GET"])
@login_required
def list_registrations():
    config = current_app.config
    page, limit = parse_pagination(request.args, config["DEFAULT_PAGE_SIZE"], config["MAX_PAGE_SIZE"])
    filters = RegistrationFilters.from_args(request.args)

    result = registration_store.paginate(filters, page=page, limit=limit)

    return jsonify({
        "registrations": [serialize(r) for r in result.items],
        "pagination": result.pagination(),
    })


#-------------------------------------------------------
# Single registration
@register_bp.route("/registration/<int:registration_id>", methods=["GET"])
@login_required
def get_registration(registration_id):
    registration = registration_store.find_by_id(registration_id)
    return jsonify(serialize(registration))


@register_bp.route("/registration/<int:registration_id>", methods=["PUT"])
@login_required
def update_registration(registration_id):
    body = _json_body()

    if not body or set(body) == {"status"}:
        status = validate_status(body.get("status"))
        registration = registration_store.update_status(registration_id, status)
        return jsonify({
            "message": "Registration status updated successfully",
            "registration": serialize(registration),
        })

    registration = registration_store.find_by_id(registration_id)
    changes = {}
    for key in UPDATABLE_FIELDS:
        if key not in body:
            continue
        if key == "status":
            changes[key] = validate_status(body[key])
        elif key == "projectTitle":
            changes[key] = validate_project_title(body[key])
        elif key == "groupMembers":
            changes[key] = normalize_group_members(registration.registration_type, body[key])

    registration = registration_store.update_fields(registration_id, changes)
    return jsonify({
        "message": "Registration updated successfully",
        "registration": serialize(registration),
    })


@register_bp.route("/registration/<int:registration_id>", methods=["DELETE"])
@login_required
def remove_registration(registration_id):
    delete_registration(registration_id)
    return jsonify({
        "message": "Registration deleted successfully",
        "deletedId": registration_id,
    })
