"""Validation utilities for the application."""
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from qr_attendance.utils.errors import ValidationError

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
UNIT_CODE_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9 _-]{1,19}$')
# Upper bound of an INTEGER primary key
MAX_ID = 2 ** 31 - 1


def _result(errors: List[str]) -> Dict[str, Any]:
    return {
        "is_valid": len(errors) == 0,
        "errors": errors
    }


class Validator:
    """Validation helper class.

    ``validate_*`` methods return ``{"is_valid": bool, "errors": [...]}``;
    pass the result to ``require`` to raise instead.
    """

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        return bool(email) and bool(EMAIL_PATTERN.match(email))

    @staticmethod
    def validate_password(password: str) -> Dict[str, Any]:
        """Validate password length."""
        if not password:
            return _result(["Password is required"])
        if len(password) < 6:
            return _result(["Password must be at least 6 characters long"])
        if len(password) > 128:
            return _result(["Password is too long"])
        return _result([])

    @staticmethod
    def validate_name(name: str) -> Dict[str, Any]:
        """Validate a person's display name."""
        name = (name or '').strip()
        if not name:
            return _result(["Name is required"])
        if not 2 <= len(name) <= 100:
            return _result(["Name must be between 2 and 100 characters"])
        return _result([])

    @staticmethod
    def validate_unit_code(unit_code: str) -> Dict[str, Any]:
        """Unit codes are short alphanumeric labels such as CS101."""
        if not UNIT_CODE_PATTERN.match(str(unit_code or '').strip()):
            return _result(["Unit code must be 2-20 letters, digits, spaces, '-' or '_'"])
        return _result([])

    @staticmethod
    def validate_session_window(start: Optional[datetime], end: Optional[datetime]) -> Dict[str, Any]:
        """Check parsed session start and end times."""
        if start is None or end is None:
            return _result(["Invalid datetime format. Use ISO format"])
        if start >= end:
            return _result(["End time must be after start time"])
        return _result([])

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []

        for field in required_fields:
            value = data.get(field) if data else None
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(f"{field.replace('_', ' ').capitalize()} is required")

        return _result(errors)

    @staticmethod
    def require(validation: Dict[str, Any]) -> None:
        """Raise ValidationError when a validation result failed."""
        if not validation['is_valid']:
            raise ValidationError(', '.join(validation['errors']))

    @staticmethod
    def parse_id(value: Any, label: str = 'id') -> int:
        """Coerce a positive integer identifier."""
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            raise ValidationError(f"Invalid {label}")
        try:
            parsed = int(value)
        except (TypeError, ValueError, OverflowError):
            raise ValidationError(f"Invalid {label}")
        if not 0 < parsed <= MAX_ID:
            raise ValidationError(f"Invalid {label}")
        return parsed
