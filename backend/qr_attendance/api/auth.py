"""Authentication API endpoints."""
from flask import Blueprint, request, g
from qr_attendance import limiter
from qr_attendance.services.auth_service import AuthService
from qr_attendance.utils.decorators import login_required
from qr_attendance.utils.helpers import success_response, error_response

auth_bp = Blueprint("auth", __name__)

@auth_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return success_response(message="Auth service is running")

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    """Exchange email and password for an access token."""
    data = request.get_json(silent=True)

    if not isinstance(data, dict):
        return error_response("Request body must be JSON", 400)

    email = (data.get("email") or "").strip()
    password = data.get("password") or ""

    if not email or not password:
        return error_response("Email and password are required", 400)

    result, error = AuthService.login(email, password)

    if error:
        return error_response(error, 401)

    return success_response(
        data=result,
        message="Login successful"
    )

@auth_bp.route("/me", methods=["GET"])
@login_required
def get_current_user():
    """Get the authenticated user's profile."""
    return success_response(data=g.current_user.to_dict())
