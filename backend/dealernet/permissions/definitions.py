# Overview: Permission definitions as (code, name, description, category) tuples.

from .categories import PermissionCategory


CATALOG_PERMISSIONS = [
    ("VIEW_PRODUCTS", "View Products", "Browse the product catalog and current stock", PermissionCategory.CATALOG),
    ("MANAGE_PRODUCTS", "Manage Products", "Create, edit, restock and delete products", PermissionCategory.CATALOG),
]

REQUEST_PERMISSIONS = [
    ("CREATE_DEALER_REQUESTS", "Create Dealer Requests", "Request strips from the central stock", PermissionCategory.REQUESTS),
    ("VIEW_OWN_DEALER_REQUESTS", "View Own Requests", "View requests you created", PermissionCategory.REQUESTS),
    ("VIEW_ALL_DEALER_REQUESTS", "View All Requests", "View every dealer's requests", PermissionCategory.REQUESTS),
    ("PROCESS_DEALER_REQUESTS", "Process Requests", "Approve or cancel pending dealer requests", PermissionCategory.REQUESTS),
]

PAYMENT_PERMISSIONS = [
    ("UPLOAD_RECEIPTS", "Upload Receipts", "Upload a payment receipt for your own request", PermissionCategory.PAYMENTS),
    ("VERIFY_PAYMENTS", "Verify Payments", "Verify or reject uploaded payment receipts", PermissionCategory.PAYMENTS),
    ("VIEW_PAYMENT_SETTINGS", "View Payment Settings", "See the UPI id payments are sent to", PermissionCategory.PAYMENTS),
    ("MANAGE_PAYMENT_SETTINGS", "Manage Payment Settings", "Change the UPI id payments are sent to", PermissionCategory.PAYMENTS),
]

STOCK_PERMISSIONS = [
    ("ALLOCATE_STOCK", "Allocate Stock", "Hand strips from your stock to your salesmen", PermissionCategory.STOCK),
    ("VIEW_DEALER_STOCK", "View Dealer Stock", "View your stock and outgoing allocations", PermissionCategory.STOCK),
    ("VIEW_SALESMAN_STOCK", "View Salesman Stock", "View stock allocated to you", PermissionCategory.STOCK),
]

REPORT_PERMISSIONS = [
    ("VIEW_DEALER_STATS", "View Dealer Statistics", "View request statistics of dealers you created", PermissionCategory.REPORTS),
    ("VIEW_USER_COUNTS", "View User Counts", "View user counts per role", PermissionCategory.REPORTS),
]

SYSTEM_PERMISSIONS = [
    ("VIEW_AUDIT_LOG", "View Audit Log", "Read the stock and payment audit ledger", PermissionCategory.SYSTEM),
]

PERMISSION_DEFINITIONS = (
    CATALOG_PERMISSIONS
    + REQUEST_PERMISSIONS
    + PAYMENT_PERMISSIONS
    + STOCK_PERMISSIONS
    + REPORT_PERMISSIONS
    + SYSTEM_PERMISSIONS
)
