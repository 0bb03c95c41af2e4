# Overview: Flask API routes for admin dashboard reports.

from flask import Blueprint

from ..services import reporting_service
from ..decorators import require_auth, require_permission
from ..responses import ok, server_error


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/user-counts")
@require_auth
@require_permission("VIEW_USER_COUNTS")
def user_counts_route():
    """Active users per role."""
    try:
        return ok({"counts": reporting_service.role_counts()})
    except Exception:
        return server_error("count users")
