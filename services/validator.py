"""Registration intake validation."""

import json
import os
import re
from dataclasses import dataclass, field

from errors import (
    DuplicateEmail,
    FileTooLarge,
    InvalidEnum,
    InvalidFileType,
    InvalidFormat,
    InvalidGroupMembers,
    MissingField,
    MissingFile,
    ValidationError,
)
from models.registration import BATCH_TYPES, REGISTRATION_TYPES, STATUSES

REQUIRED_FIELDS = (
    "fullName",
    "phoneNumber",
    "email",
    "collegeName",
    "branch",
    "semester",
    "batchType",
    "registrationType",
    "projectTitle",
)

GROUP_PROJECT = "Group Project"
INDIVIDUAL_PROJECT = "Individual Project"
MAX_GROUP_MEMBERS = 5
PROJECT_TITLE_MIN = 5
PROJECT_TITLE_MAX = 500
DEFAULT_MAX_FILE_BYTES = 5_000_000

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_DIGITS_RE = re.compile(r"^[0-9]{10,15}$")
# letters (any script), spaces, dot, apostrophe, hyphen
NAME_RE = re.compile(r"^(?:[^\W\d_]|[ .'\-]){2,255}$")


@dataclass
class UploadedFile:
    """The bits of an uploaded screenshot the validator and file store need."""

    data: bytes
    content_type: str
    filename: str

    @property
    def size(self):
        return len(self.data)

    @classmethod
    def from_storage(cls, storage):
        """Build from a werkzeug ``FileStorage``; empty file inputs count as no file."""
        if storage is None or not storage.filename:
            return None
        data = storage.read()
        if not data:
            return None
        return cls(data=data, content_type=storage.mimetype or "", filename=storage.filename)


@dataclass
class NormalizedRegistration:
    full_name: str
    phone_number: str
    email: str
    college_name: str
    branch: str
    semester: str
    batch_type: str
    registration_type: str
    project_title: str
    group_members: list = field(default_factory=list)
    payment_screenshot: UploadedFile = None

    def to_model_kwargs(self):
        return {
            "full_name": self.full_name,
            "phone_number": self.phone_number,
            "email": self.email,
            "college_name": self.college_name,
            "branch": self.branch,
            "semester": self.semester,
            "batch_type": self.batch_type,
            "registration_type": self.registration_type,
            "project_title": self.project_title,
            "group_members": [dict(m) for m in self.group_members],
        }


def _clean(value):
    if value is None:
        return ""
    return str(value).strip()


def _scalar(value, field_name):
    # lists/objects from a JSON body would otherwise be stored as "['x']"
    if value is not None and not isinstance(value, (str, int, float)):
        raise InvalidFormat(field_name, message=f"{field_name} must be a single value")
    return _clean(value)


def normalize_email(email):
    return _clean(email).lower()


def normalize_phone(phone):
    """Strip everything but digits, keeping a leading ``+``."""
    raw = _clean(phone)
    digits = re.sub(r"[^0-9]", "", raw)
    return ("+" + digits) if raw.startswith("+") else digits


def is_valid_phone(phone):
    return bool(PHONE_DIGITS_RE.match(re.sub(r"[^0-9]", "", _clean(phone))))


def is_valid_email(email):
    return bool(EMAIL_RE.match(_clean(email)))


def is_valid_name(name):
    return bool(NAME_RE.match(_clean(name)))


def parse_group_members(raw):
    """Group members arrive as a JSON string from multipart forms, a list from JSON bodies."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, (bytes, str)):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise InvalidGroupMembers("Group members must be a valid JSON array")
    if not isinstance(raw, list):
        raise InvalidGroupMembers("Group members must be a list")
    return raw


def normalize_group_members(registration_type, raw_members):
    """Apply the group-member rules for ``registration_type``; Individual always yields ``[]``."""
    if registration_type != GROUP_PROJECT:
        return []

    members = parse_group_members(raw_members)
    if not members:
        raise InvalidGroupMembers("Group members are required for group projects")
    if len(members) > MAX_GROUP_MEMBERS:
        raise InvalidGroupMembers(f"Maximum {MAX_GROUP_MEMBERS} group members allowed")

    normalized = []
    for position, member in enumerate(members, start=1):
        if not isinstance(member, dict):
            raise InvalidGroupMembers("Each group member must have a name and phone number")
        name = _clean(member.get("name"))
        phone = _clean(member.get("phoneNumber"))
        if not name or not phone:
            raise InvalidGroupMembers("Each group member must have a name and phone number")
        if not is_valid_name(name):
            raise InvalidGroupMembers(f"Invalid name for group member #{position}")
        if not is_valid_phone(phone):
            raise InvalidFormat("phoneNumber", member_name=name)
        normalized.append({"name": name, "phoneNumber": normalize_phone(phone)})
    return normalized


def validate_project_title(title):
    title = _scalar(title, "projectTitle")
    if not title:
        raise MissingField("projectTitle")
    if not PROJECT_TITLE_MIN <= len(title) <= PROJECT_TITLE_MAX:
        raise ValidationError(
            f"Project title must be between {PROJECT_TITLE_MIN} and {PROJECT_TITLE_MAX} characters",
            {"field": "projectTitle"},
        )
    return title


def validate_status(status):
    status = _clean(status)
    if not status:
        raise MissingField("status")
    if status not in STATUSES:
        raise InvalidEnum("status", STATUSES)
    return status


def validate_payment_screenshot(upload, required=True, max_bytes=DEFAULT_MAX_FILE_BYTES, allowed_extensions=None):
    if upload is None:
        if required:
            raise MissingFile()
        return None

    if not (upload.content_type or "").lower().startswith("image/"):
        raise InvalidFileType()
    if allowed_extensions:
        ext = os.path.splitext(upload.filename or "")[1].lstrip(".").lower()
        if ext not in allowed_extensions:
            raise InvalidFileType()
    if upload.size > max_bytes:
        raise FileTooLarge(max_bytes)
    return upload


def validate_registration(payload, upload=None, require_file=True, max_file_bytes=DEFAULT_MAX_FILE_BYTES,
                          allowed_extensions=None, email_exists=None):
    """Return a ``NormalizedRegistration`` or raise the first ``ValidationError`` found.

    ``email_exists`` is the duplicate pre-check; the unique constraint on
    ``project_registrations.email`` stays the authoritative guard.
    """
    payload = payload or {}

    for name in REQUIRED_FIELDS:
        if not _scalar(payload.get(name), name):
            raise MissingField(name)

    batch_type = _clean(payload.get("batchType"))
    if batch_type not in BATCH_TYPES:
        raise InvalidEnum("batchType", BATCH_TYPES)

    registration_type = _clean(payload.get("registrationType"))
    if registration_type not in REGISTRATION_TYPES:
        raise InvalidEnum("registrationType", REGISTRATION_TYPES)

    if not is_valid_email(payload.get("email")):
        raise InvalidFormat("email")
    if not is_valid_phone(payload.get("phoneNumber")):
        raise InvalidFormat("phoneNumber")
    if not is_valid_name(payload.get("fullName")):
        raise InvalidFormat("fullName")

    project_title = validate_project_title(payload.get("projectTitle"))
    group_members = normalize_group_members(registration_type, payload.get("groupMembers"))

    screenshot = validate_payment_screenshot(
        upload,
        required=require_file,
        max_bytes=max_file_bytes,
        allowed_extensions=allowed_extensions,
    )

    email = normalize_email(payload.get("email"))
    if email_exists is not None and email_exists(email):
        raise DuplicateEmail()

    return NormalizedRegistration(
        full_name=_clean(payload.get("fullName")),
        phone_number=normalize_phone(payload.get("phoneNumber")),
        email=email,
        college_name=_clean(payload.get("collegeName")),
        branch=_clean(payload.get("branch")),
        semester=_clean(payload.get("semester")),
        batch_type=batch_type,
        registration_type=registration_type,
        project_title=project_title,
        group_members=group_members,
        payment_screenshot=screenshot,
    )


def extract_payload(form):
    """Pull the known fields out of a multipart form (``request.form``)."""
    data = {name: form.get(name) for name in REQUIRED_FIELDS}
    data["groupMembers"] = form.get("groupMembers") or []
    return data
