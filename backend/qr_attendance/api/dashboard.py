# backend/qr_attendance/api/dashboard.py
"""Dashboard statistics endpoint."""
from flask import Blueprint

from qr_attendance.services.stats_service import StatsService
from qr_attendance.utils.decorators import login_required, get_current_user
from qr_attendance.utils.helpers import success_response

dashboard_bp = Blueprint('dashboard', __name__)


@dashboard_bp.route('/stats', methods=['GET'])
@login_required
def stats():
    user = get_current_user()
    return success_response(
        data={'role': user.role.value, 'stats': StatsService.for_user(user)},
        message="Statistics retrieved successfully"
    )
