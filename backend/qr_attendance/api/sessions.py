# backend/qr_attendance/api/sessions.py
"""Session lifecycle and QR display API endpoints."""
from flask import Blueprint, request

from qr_attendance import limiter
from qr_attendance.models.user import Capability
from qr_attendance.services.qr_service import QRService, ScanType
from qr_attendance.services.session_service import SessionService
from qr_attendance.utils.decorators import (
    capability_required, lecturer_required, get_current_user
)
from qr_attendance.utils.errors import AuthorizationError, InvalidStateError
from qr_attendance.utils.helpers import success_response, error_response

sessions_bp = Blueprint('sessions', __name__)

@sessions_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Sessions service is running')


@sessions_bp.route('/', methods=['GET'])
@capability_required(Capability.MANAGE_SESSIONS, Capability.VIEW_ALL)
def get_sessions():
    """List the lecturer's sessions; ?active=1 keeps scheduled and in-progress ones."""
    active_only = request.args.get('active', '').lower() in ('1', 'true', 'yes')
    sessions = SessionService.list_sessions(get_current_user(), active_only=active_only)
    return success_response(
        data=[s.to_dict(include_tokens=True) for s in sessions],
        message=f"Found {len(sessions)} sessions"
    )


@sessions_bp.route('/', methods=['POST'])
@lecturer_required
@limiter.limit("60 per hour")
def create_session():
    """Schedule a new session."""
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return error_response("Request body must be JSON", 400)

    session = SessionService.create_session(
        class_id=data.get('class_id'),
        lecturer_id=get_current_user().id,
        start_time=data.get('start_time'),
        end_time=data.get('end_time')
    )
    return success_response(
        data=session.to_dict(include_tokens=True),
        message="Session created successfully"
    ), 201


@sessions_bp.route('/<int:session_id>', methods=['GET'])
@capability_required(Capability.MANAGE_SESSIONS, Capability.VIEW_ALL)
def get_session(session_id):
    user = get_current_user()
    session = SessionService.get_session(session_id, user)
    return success_response(data=session.to_dict(include_tokens=session.is_owned_by(user.id)))


@sessions_bp.route('/<int:session_id>/start', methods=['POST'])
@lecturer_required
def start_session(session_id):
    session = SessionService.start_session(session_id, get_current_user().id)
    return success_response(
        data=session.to_dict(include_tokens=True),
        message="Session started - Start QR is now active"
    )


@sessions_bp.route('/<int:session_id>/end-token', methods=['POST'])
@lecturer_required
def generate_end_token(session_id):
    session = SessionService.generate_end_token(session_id, get_current_user().id)
    return success_response(
        data=session.to_dict(include_tokens=True),
        message="End QR code generated"
    )


@sessions_bp.route('/<int:session_id>/end', methods=['POST'])
@lecturer_required
def end_session(session_id):
    session, swept = SessionService.end_session(session_id, get_current_user().id)
    return success_response(
        data={'session': session.to_dict(), 'left_early': swept},
        message="Session ended"
    )


@sessions_bp.route('/<int:session_id>/attendance', methods=['GET'])
@capability_required(Capability.MANAGE_SESSIONS, Capability.VIEW_ALL)
def get_attendees(session_id):
    attendees = SessionService.list_attendees(session_id, get_current_user())
    return success_response(data=attendees, message=f"Found {len(attendees)} attendees")


@sessions_bp.route('/<int:session_id>/qr/<string:kind>', methods=['GET'])
@lecturer_required
def get_qr(session_id, kind):
    """Payload and PNG for the start or end QR of an owned session."""
    try:
        scan_type = ScanType(kind.upper())
    except ValueError:
        return error_response("QR type must be 'start' or 'end'", 400)

    user = get_current_user()
    session = SessionService.get_session(session_id, user)
    if not session.is_owned_by(user.id):
        raise AuthorizationError('You can only display QR codes for your own sessions')

    payload = QRService.build_payload(session, scan_type)
    if not payload.token:
        raise InvalidStateError(f"No {kind.lower()} QR token has been issued for this session")

    return success_response(
        data={
            'payload': payload.to_dict(),
            'qr_data': payload.to_json(),
            'qr_image': QRService.render_png(payload),
            'status': session.status.value
        },
        message="QR code generated successfully"
    )
