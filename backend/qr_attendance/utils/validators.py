"""Validation utilities for the application."""
import re
from datetime import datetime, timezone
from typing import Dict, List, Any, Optional

class ValidationError(Exception):
    """Custom validation error."""
    pass

class Validator:
    """Validation helper class."""

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        if not email:
            return False
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return bool(re.match(pattern, email))

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []

        for field in required_fields:
            if field not in data or not data[field]:
                errors.append(f"{field} is required")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_string_fields(data: Dict, fields: List[str]) -> Dict[str, Any]:
        """Validate that the given fields, when present, hold strings."""
        errors = [
            f"{field} must be a string"
            for field in fields
            if data.get(field) is not None and not isinstance(data[field], str)
        ]

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def parse_datetime(value: Optional[str]) -> datetime:
        """
        Parse an ISO-8601 timestamp into naive UTC.
        Raises ValidationError on malformed input.
        """
        if not isinstance(value, str) or not value:
            raise ValidationError("Invalid datetime format. Use ISO format")
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            raise ValidationError("Invalid datetime format. Use ISO format")

        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
