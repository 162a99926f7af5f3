# File: backend/qr_attendance/api/auth.py
"""Authentication API: the identity provider for the attendance core."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity
from qr_attendance import limiter
from qr_attendance.services.auth_service import AuthService
from qr_attendance.utils.decorators import login_required, get_current_user
from qr_attendance.utils.helpers import success_response, error_response

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return success_response(message="Auth service is running")


@auth_bp.route("/register", methods=["POST"])
@limiter.limit("10 per hour")
def register():
    """Register a student or lecturer account."""
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return error_response("Request body must be JSON", 400)

    role = data.get("role", "student")
    if role not in ("student", "lecturer"):
        return error_response("Only student or lecturer accounts can self-register", 400)

    user = AuthService.register(
        email=str(data.get("email") or ""),
        password=str(data.get("password") or ""),
        name=str(data.get("name") or ""),
        role=role
    )
    return success_response(data=user, message="Registration successful"), 201


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    """Exchange email and password for tokens."""
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return error_response("Request body must be JSON", 400)

    result = AuthService.login(
        str(data.get("email") or "").strip(),
        str(data.get("password") or "")
    )
    return success_response(data=result, message="Login successful")


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    """Current user profile."""
    return success_response(data=get_current_user().to_dict())


@auth_bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh():
    """Issue a new access token from a refresh token."""
    result = AuthService.refresh_token(get_jwt_identity())
    return success_response(data=result, message="Token refreshed")
