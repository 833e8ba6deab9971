"""
Validation utilities for input validation and error handling.
"""
import re
from typing import Any
from fastapi import HTTPException

from ..models.tutor_application import AVAILABILITY_OPTIONS, SESSION_TYPES
from ..models.user import USER_ROLES

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
PASSWORD_SPECIAL_CHARS = r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]"
COURSE_CODE_PATTERN = r"^COSC\d{4}$"
SEMESTER_PATTERN = r"^\d{4}-[1-2]$"

MIN_RANK = 1
MAX_RANK = 100
MAX_COMMENT_LENGTH = 1000


def validate_email(email: Any) -> str:
    """Validate email format."""
    if not email or not isinstance(email, str):
        raise HTTPException(status_code=400, detail="Email is required")

    email = email.strip()
    if len(email) > 255:
        raise HTTPException(status_code=400, detail="Email too long (max 255 characters)")

    if not re.match(EMAIL_PATTERN, email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    return email


def password_strength_error(password: Any) -> str | None:
    """Return the first password strength violation, or None when the password is acceptable."""
    if not password or not isinstance(password, str):
        return "Password is required"

    if len(password) < 8:
        return "Password must be at least 8 characters long"

    if len(password) > 128:
        return "Password cannot exceed 128 characters"

    if not re.search(r"[A-Z]", password):
        return "Password must contain at least one uppercase letter"

    if not re.search(r"[a-z]", password):
        return "Password must contain at least one lowercase letter"

    if not re.search(r"\d", password):
        return "Password must contain at least one number"

    if not re.search(PASSWORD_SPECIAL_CHARS, password):
        return "Password must contain at least one special character (!@#$%^&* etc.)"

    return None


def validate_password(password: Any) -> None:
    """Validate password strength."""
    message = password_strength_error(password)
    if message:
        raise HTTPException(status_code=400, detail=message)


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000,
    required: bool = True,
    pattern: str | None = None,
) -> str | None:
    """Validate a string field with common rules."""
    if value is None:
        if required:
            raise HTTPException(status_code=400, detail=f"{field_name} is required")
        return None

    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{field_name} must be a string")

    value = value.strip()

    if required and not value:
        raise HTTPException(status_code=400, detail=f"{field_name} cannot be empty")

    if len(value) < min_length:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must be at least {min_length} characters"
        )

    if len(value) > max_length:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must not exceed {max_length} characters"
        )

    if pattern and not re.match(pattern, value):
        raise HTTPException(status_code=400, detail=f"{field_name} format is invalid")

    return value


def validate_integer_field(
    value: Any,
    field_name: str,
    min_value: int | None = None,
    max_value: int | None = None,
    required: bool = True,
) -> int | None:
    """Validate an integer field."""
    if value is None:
        if required:
            raise HTTPException(status_code=400, detail=f"{field_name} is required")
        return None

    # bool is an int subclass; True must not pass as 1.
    if isinstance(value, bool):
        raise HTTPException(status_code=400, detail=f"{field_name} must be a valid integer")

    if not isinstance(value, int):
        try:
            value = int(value)
        except (ValueError, TypeError):
            raise HTTPException(status_code=400, detail=f"{field_name} must be a valid integer")

    if min_value is not None and value < min_value:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must be at least {min_value}"
        )

    if max_value is not None and value > max_value:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must not exceed {max_value}"
        )

    return value


def validate_role(role: Any) -> str:
    """Validate user role."""
    if not role or not isinstance(role, str) or role.strip().lower() not in USER_ROLES:
        raise HTTPException(
            status_code=400,
            detail="Role must be either 'candidate', 'lecturer', or 'admin'"
        )

    return role.strip().lower()


def validate_availability(availability: Any) -> str:
    if not availability or not isinstance(availability, str) or availability not in AVAILABILITY_OPTIONS:
        raise HTTPException(
            status_code=400,
            detail="Availability must be either 'Full Time' or 'Part Time'"
        )
    return availability


def validate_session_type(session_type: Any) -> str:
    if session_type not in SESSION_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid session type. Must be one of: {', '.join(SESSION_TYPES)}"
        )
    return session_type


def validate_skills(skills: Any) -> list[str] | str | None:
    """Skills may be omitted, a list of strings, or a single comma-separated string."""
    if not skills:
        return None
    if isinstance(skills, list):
        return [str(s).strip() for s in skills if str(s).strip()]
    if isinstance(skills, str):
        return skills.strip()
    raise HTTPException(status_code=400, detail="Skills must be an array or string")


def validate_rank(rank: Any) -> int:
    """Rank must be a whole number between 1 and 100 (no floats, no numeric strings)."""
    if isinstance(rank, bool) or not isinstance(rank, (int, float)):
        raise HTTPException(status_code=400, detail="Rank must be a positive integer between 1 and 100")
    if isinstance(rank, float):
        if not rank.is_integer():
            raise HTTPException(status_code=400, detail="Rank must be a positive integer between 1 and 100")
        rank = int(rank)
    if rank < MIN_RANK or rank > MAX_RANK:
        raise HTTPException(status_code=400, detail="Rank must be a positive integer between 1 and 100")
    return rank


def validate_comment(comment: Any) -> str | None:
    if comment is None:
        return None
    if not isinstance(comment, str):
        raise HTTPException(status_code=400, detail="Comment must be a string")
    if len(comment) > MAX_COMMENT_LENGTH:
        raise HTTPException(status_code=400, detail="Comment cannot exceed 1000 characters")
    return comment


def validate_is_selected(is_selected: Any) -> bool:
    if not isinstance(is_selected, bool):
        raise HTTPException(status_code=400, detail="is_selected must be a boolean value")
    return is_selected


def validate_id_param(value: Any, label: str) -> int:
    """Path/query ids arrive as strings; anything non-numeric is rejected with `Invalid {label}`."""
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        raise HTTPException(status_code=400, detail=f"Invalid {label}")


def validate_course_code(code: Any) -> str:
    if not isinstance(code, str) or not re.match(COURSE_CODE_PATTERN, code.strip()):
        raise HTTPException(
            status_code=400,
            detail="Course code must be in format COSCxxxx (e.g., COSC2222)"
        )
    return code.strip()


def validate_semester(semester: Any) -> str:
    if not isinstance(semester, str) or not re.match(SEMESTER_PATTERN, semester.strip()):
        raise HTTPException(
            status_code=400,
            detail="Semester must be in format YYYY-S (e.g., 2024-1 or 2024-2)"
        )
    return semester.strip()
