"""Custom decorators for authorization."""
from functools import wraps
from flask import g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from qr_attendance import db
from qr_attendance.models.user import User
from qr_attendance.utils.helpers import error_response

def _load_current_user():
    verify_jwt_in_request()
    user = db.session.get(User, get_jwt_identity())
    if user is None or not user.is_active:
        return None
    g.current_user = user
    return user

def login_required(f):
    """Decorator to require any authenticated, active user."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if _load_current_user() is None:
            return error_response("User not found", 404)

        return f(*args, **kwargs)
    return decorated_function

def teacher_required(f):
    """Decorator to require teacher role or higher."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = _load_current_user()

        if user is None:
            return error_response("User not found", 404)

        if not user.is_teacher():
            return error_response("Teacher access required", 403)

        return f(*args, **kwargs)
    return decorated_function
