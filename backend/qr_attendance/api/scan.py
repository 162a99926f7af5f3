# backend/qr_attendance/api/scan.py
"""Student scan API endpoints."""
from flask import Blueprint, current_app, jsonify, request

from qr_attendance.services.attendance_service import AttendanceRecorder
from qr_attendance.services.scan_service import ScanVerifier
from qr_attendance.utils.decorators import student_required, get_current_user
from qr_attendance.utils.helpers import success_response, error_response

scan_bp = Blueprint('scan', __name__)


@scan_bp.route('/', methods=['POST'])
@student_required
def scan():
    """Verify a decoded QR code and record attendance.

    Accepts {"qr_data": "<decoded text>"} or the payload object itself.
    Always answers 200 with {success, message}; the envelope's error flag
    mirrors success.
    """
    data = request.get_json(silent=True)
    if data is None:
        return error_response("Request body must be JSON", 400)

    decoded = data.get('qr_data', data) if isinstance(data, dict) else data
    result = ScanVerifier.verify_raw(get_current_user().id, decoded)

    return jsonify({
        'error': not result.success,
        'message': result.message,
        'data': result.to_dict()
    })


@scan_bp.route('/recent', methods=['GET'])
@student_required
def recent():
    """The student's latest attendance records."""
    limit = current_app.config.get('RECENT_ATTENDANCE_LIMIT', 5)
    records = AttendanceRecorder.recent_attendance(get_current_user().id, limit=limit)
    return success_response(data=records)
