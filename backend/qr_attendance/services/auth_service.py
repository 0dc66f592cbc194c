"""Authentication service for issuing API tokens."""
from flask_jwt_extended import create_access_token
from qr_attendance import db
from qr_attendance.models.user import User
from qr_attendance.utils.validators import Validator
from datetime import datetime

class AuthService:
    @staticmethod
    def login(email: str, password: str) -> tuple[dict, str]:
        """Authenticate user and return an access token."""
        if not email or not password:
            return None, "Email and password are required"

        if not Validator.validate_email(email):
            return None, "Invalid email format"

        user = db.session.execute(
            db.select(User).filter_by(email=email.lower().strip())
        ).scalar_one_or_none()

        if not user or not user.check_password(password):
            return None, "Invalid email or password"

        if not user.is_active:
            return None, "Account is deactivated"

        user.last_login = datetime.utcnow()
        user.save()

        access_token = create_access_token(
            identity=user.id,
            additional_claims={'role': user.role.value}
        )

        return {
            "access_token": access_token,
            "user": user.to_dict()
        }, None

