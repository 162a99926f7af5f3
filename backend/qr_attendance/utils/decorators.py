# backend/qr_attendance/utils/decorators.py
"""Custom decorators for authorization."""
import hmac
from functools import wraps

from flask import current_app, g, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from qr_attendance.models.user import Capability, User
from qr_attendance.services.auth_service import AuthService
from qr_attendance.utils.helpers import error_response


def get_current_user() -> User:
    """User loaded by login_required for this request."""
    return g.current_user


def login_required(f):
    """Require a valid bearer token for an active user."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()
        user = AuthService.get_user_by_id(get_jwt_identity())

        if not user:
            return error_response("User not found", 404)

        if not user.is_active:
            return error_response("Account is deactivated", 403)

        g.current_user = user
        return f(*args, **kwargs)
    return decorated_function


def capability_required(*capabilities: Capability, message: str = None):
    """Require the current user's role to grant any of the capabilities."""
    def decorator(f):
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            if not any(g.current_user.can(c) for c in capabilities):
                return error_response(message or "Access denied", 403)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


lecturer_required = capability_required(Capability.MANAGE_SESSIONS, message="Lecturer access required")
student_required = capability_required(Capability.SCAN_ATTENDANCE, message="Student access required")


def service_key_required(f):
    """Require the rotation service credential in the X-Service-Key header."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get('ROTATION_SERVICE_KEY')
        provided = request.headers.get('X-Service-Key')

        if not expected:
            return error_response("Rotation service is not configured", 503)

        if not provided or not hmac.compare_digest(provided, expected):
            return error_response("Invalid service key", 401)

        return f(*args, **kwargs)
    return decorated_function
