# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    CATALOG_PERMISSIONS,
    REQUEST_PERMISSIONS,
    PAYMENT_PERMISSIONS,
    STOCK_PERMISSIONS,
    REPORT_PERMISSIONS,
    SYSTEM_PERMISSIONS,
)
from .roles import (
    Role,
    ALL_ROLES,
    ROLE_ALIASES,
    ROLE_CREATORS,
    DEFAULT_ROLE_PERMISSIONS,
    normalize_role,
)
from .helpers import (
    get_all_permission_codes,
    get_permission_definition,
    validate_permission_code,
    get_role_permissions,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "CATALOG_PERMISSIONS",
    "REQUEST_PERMISSIONS",
    "PAYMENT_PERMISSIONS",
    "STOCK_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "SYSTEM_PERMISSIONS",
    "Role",
    "ALL_ROLES",
    "ROLE_ALIASES",
    "ROLE_CREATORS",
    "DEFAULT_ROLE_PERMISSIONS",
    "normalize_role",
    "get_all_permission_codes",
    "get_permission_definition",
    "validate_permission_code",
    "get_role_permissions",
]
