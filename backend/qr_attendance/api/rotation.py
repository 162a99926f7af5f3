# backend/qr_attendance/api/rotation.py
"""Token rotation RPC endpoints for the external scheduler."""
from flask import Blueprint

from qr_attendance.services.rotation_service import RotationService
from qr_attendance.utils.decorators import service_key_required
from qr_attendance.utils.helpers import success_response

rotation_bp = Blueprint('rotation', __name__)


@rotation_bp.route('/start-tokens', methods=['POST'])
@service_key_required
def rotate_start_tokens():
    rotated = RotationService.rotate_start_tokens()
    return success_response(data={'rotated': rotated}, message=f"Rotated {rotated} start tokens")


@rotation_bp.route('/end-tokens', methods=['POST'])
@service_key_required
def rotate_end_tokens():
    rotated = RotationService.rotate_end_tokens()
    return success_response(data={'rotated': rotated}, message=f"Rotated {rotated} end tokens")
