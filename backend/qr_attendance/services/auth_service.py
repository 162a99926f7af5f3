"""Authentication service for user management."""
from flask_jwt_extended import create_access_token, create_refresh_token
from qr_attendance import db
from qr_attendance.models.user import User, Role
from qr_attendance.utils.db import transaction
from qr_attendance.utils.errors import AuthenticationError, ConflictError, ValidationError
from qr_attendance.utils.helpers import utcnow
from qr_attendance.utils.validators import Validator


class AuthService:
    @staticmethod
    def issue_tokens(user: User, refresh: bool = True) -> dict:
        """Create JWTs carrying the user id as subject and the role as a claim."""
        claims = {'role': user.role.value}
        tokens = {
            "access_token": create_access_token(identity=str(user.id), additional_claims=claims),
            "user": user.to_dict()
        }
        if refresh:
            tokens["refresh_token"] = create_refresh_token(identity=str(user.id), additional_claims=claims)
        return tokens

    @staticmethod
    def login(email: str, password: str) -> dict:
        """Authenticate user and return tokens."""
        if not email or not password:
            raise ValidationError("Email and password are required")

        if not Validator.validate_email(email):
            raise ValidationError("Invalid email format")

        with transaction():
            user = User.query.filter_by(email=email.lower().strip()).first()

            if not user or not user.check_password(password):
                raise AuthenticationError("Invalid email or password")

            if not user.is_active:
                raise AuthenticationError("Account is deactivated")

            user.last_login = utcnow()

        return AuthService.issue_tokens(user)

    @staticmethod
    def register(email: str, password: str, name: str, role: str = "student") -> dict:
        """Register new user."""
        if not all([email, password, name]):
            raise ValidationError("Email, password and name are required")

        if not Validator.validate_email(email):
            raise ValidationError("Invalid email format")

        Validator.require(Validator.validate_password(password))
        Validator.require(Validator.validate_name(name))

        try:
            user_role = Role(str(role).lower())
        except ValueError:
            raise ValidationError("Invalid role")

        email = email.lower().strip()
        with transaction():
            if User.query.filter_by(email=email).first():
                raise ConflictError("Email already exists")

            user = User(
                email=email,
                name=name.strip(),
                role=user_role
            )
            user.set_password(password)
            db.session.add(user)

        return user.to_dict()

    @staticmethod
    def get_user_by_id(user_id) -> User:
        """Get user by ID."""
        try:
            return db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None

    @staticmethod
    def refresh_token(user_id) -> dict:
        """Generate new access token."""
        user = AuthService.get_user_by_id(user_id)
        if not user or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        return AuthService.issue_tokens(user, refresh=False)
