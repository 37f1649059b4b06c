"""
Registration store: every read and write of ``ProjectRegistration`` goes
through here so the routes never touch the session directly.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import DuplicateEmail, InvalidPagination, RegistrationNotFound, StorageError, ValidationError
from extensions import db
from models.registration import ProjectRegistration, STATUSES, utcnow

logger = logging.getLogger(__name__)

MAX_LIMIT = 100
# largest value a BIGINT id/offset parameter can carry
MAX_SQL_INT = 2 ** 63 - 1
DEFAULT_LIMIT = 10

# Fields an admin may change after submission
UPDATABLE_FIELDS = {
    "status": "status",
    "projectTitle": "project_title",
    "groupMembers": "group_members",
}

SORT_COLUMNS = {
    "createdAt": ProjectRegistration.created_at,
    "updatedAt": ProjectRegistration.updated_at,
    "fullName": ProjectRegistration.full_name,
    "collegeName": ProjectRegistration.college_name,
    "projectTitle": ProjectRegistration.project_title,
    "status": ProjectRegistration.status,
    "batchType": ProjectRegistration.batch_type,
}


@dataclass
class RegistrationFilters:
    search: str = ""
    status: str = ""
    batch_type: str = ""
    registration_type: str = ""
    date_from: datetime = None
    date_to: datetime = None
    sort_by: str = "createdAt"
    sort_order: str = "desc"
    limit: int = None
    offset: int = 0

    @classmethod
    def from_args(cls, args):
        """Build filters (without pagination) from ``request.args``."""
        return cls(
            search=(args.get("search") or "").strip(),
            status=(args.get("status") or "").strip(),
            batch_type=(args.get("batchType") or "").strip(),
            registration_type=(args.get("registrationType") or "").strip(),
            date_from=_parse_day(args.get("dateFrom"), "dateFrom"),
            date_to=_parse_day(args.get("dateTo"), "dateTo", end_of_day=True),
            sort_by=(args.get("sortBy") or "createdAt").strip(),
            sort_order=(args.get("sortOrder") or "desc").strip().lower(),
        )


@dataclass
class Page:
    items: list
    page: int
    limit: int
    total_count: int
    total_pages: int = field(init=False)

    def __post_init__(self):
        self.total_pages = math.ceil(self.total_count / self.limit) if self.limit else 0

    @property
    def has_next_page(self):
        return self.page < self.total_pages

    @property
    def has_prev_page(self):
        return self.page > 1

    def pagination(self):
        return {
            "currentPage": self.page,
            "totalPages": self.total_pages,
            "totalCount": self.total_count,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
            "limit": self.limit,
        }


def _parse_day(value, name, end_of_day=False):
    if not value:
        return None
    try:
        day = datetime.strptime(value.strip(), "%Y-%m-%d")
    except ValueError:
        raise ValidationError(f"{name} must be a date in YYYY-MM-DD format", {"field": name})
    if end_of_day:
        day = day + timedelta(days=1) - timedelta(microseconds=1)
    return day


def parse_pagination(args, default_limit=DEFAULT_LIMIT, max_limit=MAX_LIMIT):
    """Read ``page``/``limit`` query params; missing or blank values fall back to defaults."""
    try:
        page = int(args.get("page") or 1)
        limit = int(args.get("limit") or default_limit)
    except (TypeError, ValueError):
        raise InvalidPagination()
    if page < 1 or limit < 1 or limit > max_limit:
        raise InvalidPagination()
    if (page - 1) * limit > MAX_SQL_INT:
        raise InvalidPagination()
    return page, limit


def clamp_limit(limit):
    return max(1, min(int(limit), MAX_LIMIT))


def _escape_like(term):
    # search is a plain substring match, % and _ included
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _apply_filters(query, filters):
    if filters.search:
        pattern = f"%{_escape_like(filters.search)}%"
        query = query.filter(or_(
            ProjectRegistration.full_name.ilike(pattern, escape="\\"),
            ProjectRegistration.email.ilike(pattern, escape="\\"),
            ProjectRegistration.project_title.ilike(pattern, escape="\\"),
            ProjectRegistration.college_name.ilike(pattern, escape="\\"),
        ))
    if filters.status:
        query = query.filter(ProjectRegistration.status == filters.status)
    if filters.batch_type:
        query = query.filter(ProjectRegistration.batch_type == filters.batch_type)
    if filters.registration_type:
        query = query.filter(ProjectRegistration.registration_type == filters.registration_type)
    if filters.date_from:
        query = query.filter(ProjectRegistration.created_at >= filters.date_from)
    if filters.date_to:
        query = query.filter(ProjectRegistration.created_at <= filters.date_to)
    return query


def _apply_ordering(query, filters):
    column = SORT_COLUMNS.get(filters.sort_by, ProjectRegistration.created_at)
    direction = column.asc() if filters.sort_order == "asc" else column.desc()
    # id breaks ties between rows created in the same instant
    tiebreak = ProjectRegistration.id.asc() if filters.sort_order == "asc" else ProjectRegistration.id.desc()
    return query.order_by(direction, tiebreak)


def _commit(action):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Registration store failed to %s", action)
        raise StorageError(details={"action": action, "error": str(e)})


#-------------------------------------------------------
# Reads
def find_by_id(registration_id):
    # ids past the column range cannot exist, and the driver refuses to bind them
    if not 0 < registration_id <= MAX_SQL_INT:
        raise RegistrationNotFound(registration_id)
    try:
        registration = db.session.get(ProjectRegistration, registration_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Registration store failed to load id=%s", registration_id)
        raise StorageError(details={"action": "load", "error": str(e)})
    if registration is None:
        raise RegistrationNotFound(registration_id)
    return registration


def find_by_email(email):
    if not email:
        return None
    return ProjectRegistration.query.filter_by(email=email.strip().lower()).first()


def email_exists(email):
    return find_by_email(email) is not None


def find_with_filters(filters=None):
    filters = filters or RegistrationFilters()
    query = _apply_ordering(_apply_filters(ProjectRegistration.query, filters), filters)
    if filters.limit:
        query = query.limit(clamp_limit(filters.limit))
    if filters.offset:
        query = query.offset(filters.offset)
    return query.all()


def count_with_filters(filters=None):
    filters = filters or RegistrationFilters()
    return _apply_filters(ProjectRegistration.query, filters).count()


def paginate(filters, page=1, limit=DEFAULT_LIMIT):
    limit = clamp_limit(limit)
    page = max(1, int(page))
    filters.limit = limit
    filters.offset = (page - 1) * limit
    items = find_with_filters(filters)
    total = count_with_filters(filters)
    return Page(items=items, page=page, limit=limit, total_count=total)


def get_stats():
    rows = (
        db.session.query(ProjectRegistration.status, func.count(ProjectRegistration.id))
        .group_by(ProjectRegistration.status)
        .all()
    )
    counts = {status: 0 for status in STATUSES}
    for status, count in rows:
        counts[status] = int(count)
    return {
        "total": sum(counts.values()),
        "pending": counts["pending"],
        "approved": counts["approved"],
        "rejected": counts["rejected"],
    }


#-------------------------------------------------------
# Writes
def create(record, screenshot_url=None, screenshot_file_id=None):
    """Insert a validated ``NormalizedRegistration`` and assign its project id."""
    registration = ProjectRegistration(
        **record.to_model_kwargs(),
        payment_screenshot_path=screenshot_url,
        payment_screenshot_file_name=screenshot_file_id,
        status="pending",
    )
    now = utcnow()
    registration.created_at = now
    registration.updated_at = now

    try:
        db.session.add(registration)
        db.session.flush()
        registration.project_id = ProjectRegistration.format_project_id(registration.id)
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        # lost the race against a concurrent submission with the same email
        if email_exists(record.email):
            logger.info("Duplicate email rejected by unique constraint: %s", record.email)
            raise DuplicateEmail()
        logger.exception("Integrity error creating registration")
        raise StorageError(details={"action": "create", "error": str(e)})
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Failed to create registration")
        raise StorageError(details={"action": "create", "error": str(e)})

    logger.info("Registration saved: id=%s project_id=%s", registration.id, registration.project_id)
    return registration


def update_status(registration_id, status):
    registration = find_by_id(registration_id)
    registration.status = status
    registration.updated_at = utcnow()
    _commit("update status")
    return registration


def update_fields(registration_id, changes):
    """Apply the allowlisted subset of ``changes`` (camelCase keys); other keys are dropped."""
    registration = find_by_id(registration_id)
    applied = {}
    for key, value in (changes or {}).items():
        column = UPDATABLE_FIELDS.get(key)
        if column is None:
            continue
        setattr(registration, column, value)
        applied[key] = value
    if applied:
        registration.updated_at = utcnow()
        _commit("update fields")
    return registration


def delete(registration_id):
    """Remove the row and hand it back so the caller can clean up its screenshot."""
    registration = find_by_id(registration_id)
    snapshot = registration.to_dict()
    db.session.delete(registration)
    _commit("delete")
    return snapshot
