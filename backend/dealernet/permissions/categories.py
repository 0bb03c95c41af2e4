# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    CATALOG = "CATALOG"
    REQUESTS = "REQUESTS"
    PAYMENTS = "PAYMENTS"
    STOCK = "STOCK"
    REPORTS = "REPORTS"
    SYSTEM = "SYSTEM"
