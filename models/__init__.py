from .registration import ProjectRegistration, BATCH_TYPES, REGISTRATION_TYPES, STATUSES
from .admin import Admin, ADMIN_ROLES


__all__ = ["ProjectRegistration", "Admin", "BATCH_TYPES", "REGISTRATION_TYPES", "STATUSES", "ADMIN_ROLES"]
