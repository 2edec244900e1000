"""
Fusion Error Types

Domain exceptions raised by the service layer. Routes translate them into
``{'success': False, 'message': ...}`` responses carrying ``status_code``.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone
from enum import Enum


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    DATABASE = "database"
    UNKNOWN = "unknown"


class FusionError(Exception):
    """Base exception for Fusion service errors."""
    status_code = 500
    category = ErrorCategory.UNKNOWN

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'success': False,
            'message': self.message,
            'category': self.category.value,
        }
        if self.context:
            data['context'] = self.context
        return data


class NotFoundError(FusionError):
    status_code = 404
    category = ErrorCategory.NOT_FOUND


class ValidationError(FusionError):
    status_code = 400
    category = ErrorCategory.VALIDATION


class ConflictError(FusionError):
    status_code = 409
    category = ErrorCategory.CONFLICT


def require(condition: bool, message: str, **context) -> None:
    """Raise ValidationError(message) unless condition holds."""
    if not condition:
        raise ValidationError(message, context or None)


def parse_datetime(name: str, value) -> Optional[datetime]:
    """Accept None, a datetime, or an ISO-8601 string (trailing 'Z' allowed)."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError(f"Invalid {name} format. Use ISO 8601")
    # stored naive in UTC
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def check_range(name: str, value, low, high) -> None:
    """Validate an optional numeric field lies inside [low, high]."""
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number")
    if value < low or value > high:
        raise ValidationError(f"{name} must be between {low} and {high}", {'field': name, 'value': value})
