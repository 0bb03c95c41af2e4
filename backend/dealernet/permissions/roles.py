# Overview: Canonical roles and the default permission set of each role.

from __future__ import annotations


class Role:
    """Canonical role identifiers; the only role strings stored or compared."""
    ADMIN = "admin"
    STALKIST = "stalkist"
    DEALER = "dealer"
    SALESMAN = "salesman"


ALL_ROLES = (Role.ADMIN, Role.STALKIST, Role.DEALER, Role.SALESMAN)

# Legacy spellings accepted at the boundary (CLI, user creation) only
ROLE_ALIASES = {
    "dellear": Role.DEALER,
    "stockist": Role.STALKIST,
    "salesperson": Role.SALESMAN,
}

# Which role may create accounts of which role (created_by hierarchy)
ROLE_CREATORS = {
    Role.ADMIN: {Role.ADMIN},
    Role.STALKIST: {Role.ADMIN},
    Role.DEALER: {Role.ADMIN, Role.STALKIST},
    Role.SALESMAN: {Role.DEALER},
}


def normalize_role(value: str | None) -> str:
    """
    Map a raw role string to its canonical form.

    Raises ValueError for unknown roles.
    """
    raw = (value or "").strip().lower()
    role = ROLE_ALIASES.get(raw, raw)
    if role not in ALL_ROLES:
        raise ValueError(f"Unknown role: {value!r}. Must be one of {', '.join(ALL_ROLES)}")
    return role


DEFAULT_ROLE_PERMISSIONS = {
    Role.ADMIN: {
        "VIEW_PRODUCTS",
        "MANAGE_PRODUCTS",
        "VIEW_ALL_DEALER_REQUESTS",
        "PROCESS_DEALER_REQUESTS",
        "VERIFY_PAYMENTS",
        "VIEW_PAYMENT_SETTINGS",
        "MANAGE_PAYMENT_SETTINGS",
        "VIEW_USER_COUNTS",
        "VIEW_AUDIT_LOG",
    },
    Role.STALKIST: {
        "VIEW_PRODUCTS",
        "VIEW_DEALER_STATS",
    },
    Role.DEALER: {
        "VIEW_PRODUCTS",
        "CREATE_DEALER_REQUESTS",
        "VIEW_OWN_DEALER_REQUESTS",
        "UPLOAD_RECEIPTS",
        "VIEW_PAYMENT_SETTINGS",
        "ALLOCATE_STOCK",
        "VIEW_DEALER_STOCK",
    },
    Role.SALESMAN: {
        "VIEW_PRODUCTS",
        "VIEW_SALESMAN_STOCK",
    },
}
