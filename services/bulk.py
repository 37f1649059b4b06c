"""Bulk admin actions; each selected id succeeds or fails on its own."""

import logging
from dataclasses import dataclass, field

from errors import NothingSelected, PortalError, ValidationError
from extensions import db
from services import registration_store
from services.file_store import get_file_store

logger = logging.getLogger(__name__)


@dataclass
class BulkResult:
    attempted: int = 0
    succeeded: int = 0
    failed: list = field(default_factory=list)

    def record(self, registration_id, ok):
        self.attempted += 1
        if ok:
            self.succeeded += 1
        else:
            self.failed.append(registration_id)

    def to_dict(self):
        return {"attempted": self.attempted, "succeeded": self.succeeded, "failed": list(self.failed)}


def parse_ids(raw_ids, max_ids=None):
    """Validate the selected id list; an empty selection is rejected before any store call."""
    if not raw_ids:
        raise NothingSelected()
    if not isinstance(raw_ids, list):
        raise ValidationError("ids must be a list of registration ids", {"field": "ids"})
    if max_ids and len(raw_ids) > max_ids:
        raise ValidationError(f"At most {max_ids} registrations can be processed at once", {"field": "ids"})
    try:
        return [int(i) for i in raw_ids]
    except (TypeError, ValueError):
        raise ValidationError("ids must be a list of registration ids", {"field": "ids"})


def delete_screenshot(file_id):
    """Best-effort screenshot cleanup; a failure is logged and never blocks the delete."""
    if not file_id:
        return False
    result = get_file_store().delete(file_id)
    if not result.success:
        logger.warning("Failed to delete payment screenshot %s: %s", file_id, result.error)
    return result.success


def delete_registration(registration_id):
    deleted = registration_store.delete(registration_id)
    delete_screenshot(deleted.get("paymentScreenshotFileName"))
    return deleted


def _run_each(ids, action, label):
    """Apply ``action`` to every id; each id's outcome is recorded on its own."""
    if not ids:
        raise NothingSelected()
    result = BulkResult()
    for registration_id in ids:
        try:
            action(registration_id)
        except PortalError as e:
            db.session.rollback()
            logger.info("Bulk %s skipped id=%s: %s", label, registration_id, e.message)
            result.record(registration_id, False)
        except Exception:
            db.session.rollback()
            logger.exception("Bulk %s failed for id=%s", label, registration_id)
            result.record(registration_id, False)
        else:
            result.record(registration_id, True)
    logger.info("Bulk %s: %d/%d succeeded", label, result.succeeded, result.attempted)
    return result


def bulk_update_status(ids, status):
    return _run_each(ids, lambda registration_id: registration_store.update_status(registration_id, status),
                     f"status -> {status}")


def bulk_delete(ids):
    return _run_each(ids, delete_registration, "delete")
