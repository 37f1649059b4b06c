from flask import Blueprint, current_app, jsonify, request, send_file
from flask_login import current_user

from errors import ValidationError
from services import registration_store
from services.bulk import bulk_delete, bulk_update_status, parse_ids
from services.exporter import export_csv, export_excel, export_filename, registration_slip
from services.registration_store import RegistrationFilters
from services.validator import validate_status

admin_bp = Blueprint("admin", __name__)


# Middleware: every admin endpoint needs a valid session token
@admin_bp.before_request
def restrict_to_admin():
    if not current_user.is_authenticated:
        return current_app.login_manager.unauthorized()


def _json_body():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


#-------------------------------------------------------
# Dashboard counters
@admin_bp.route("/stats")
def stats():
    return jsonify(registration_store.get_stats())


#-------------------------------------------------------
# Bulk actions
@admin_bp.route("/registrations/bulk-status", methods=["POST"])
def bulk_status():
    body = _json_body()
    ids = parse_ids(body.get("ids"), current_app.config["BULK_MAX_IDS"])
    status = validate_status(body.get("status"))

    result = bulk_update_status(ids, status)

    if result.succeeded == result.attempted:
        message = f"{result.succeeded} registration(s) marked as {status}"
    else:
        message = f"{result.succeeded} of {result.attempted} registrations updated"
    current_app.logger.info("Admin %s bulk status %s: %s", current_user.id, status, result.to_dict())
    return jsonify({"message": message, **result.to_dict()})


@admin_bp.route("/registrations/bulk-delete", methods=["POST"])
def bulk_remove():
    body = _json_body()
    ids = parse_ids(body.get("ids"), current_app.config["BULK_MAX_IDS"])

    result = bulk_delete(ids)

    if result.succeeded == result.attempted:
        message = f"{result.succeeded} registration(s) deleted"
    else:
        message = f"{result.succeeded} of {result.attempted} registrations deleted"
    current_app.logger.info("Admin %s bulk delete: %s", current_user.id, result.to_dict())
    return jsonify({"message": message, **result.to_dict()})


#-------------------------------------------------------
# Exports
@admin_bp.route("/registrations/export")
def export_registrations():
    fmt = (request.args.get("format") or "csv").lower()
    if fmt not in ("csv", "xlsx"):
        raise ValidationError("format must be csv or xlsx", {"field": "format"})

    filters = RegistrationFilters.from_args(request.args)
    registrations = registration_store.find_with_filters(filters)
    tz_name = current_app.config["DISPLAY_TIMEZONE"]

    if fmt == "csv":
        return send_file(
            export_csv(registrations, tz_name),
            as_attachment=True,
            download_name=export_filename("csv"),
            mimetype="text/csv"
        )

    return send_file(
        export_excel(registrations, registration_store.get_stats(), tz_name),
        as_attachment=True,
        download_name=export_filename("xlsx"),
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )


@admin_bp.route("/registrations/<int:registration_id>/slip")
def export_slip(registration_id):
    registration = registration_store.find_by_id(registration_id)
    config = current_app.config
    number = registration.registration_number(config["REGISTRATION_NUMBER_PREFIX"])

    return send_file(
        registration_slip(registration, number, config["DISPLAY_TIMEZONE"]),
        as_attachment=True,
        download_name=f"{number}.docx",
        mimetype="application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    )
