"""Form validation.

Each ``validate_*`` function collects every problem into a field → message
map and raises :class:`errors.ValidationFailed` when the map is not empty, so
the client can mark all offending fields at once.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping

from errors import ValidationFailed
from roles import KNOWN_ROLES, Role

_TEN_DIGITS = re.compile(r'^\d{10}$')
_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
_EMAIL = re.compile(r'\S+@\S+\.\S+')
_TIME = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')

ATTENDANCE_STATUSES = ('present', 'absent', 'late')


def text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return '' if value is None else str(value).strip()


def as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or '').strip().lower() in ('1', 'true', 'yes', 'on')


def parse_int(value: Any):
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _raise_if(errors: Dict[str, str]) -> None:
    if errors:
        raise ValidationFailed(errors)


def _require(errors: Dict[str, str], data: Mapping[str, Any], key: str, message: str) -> None:
    if not text(data, key):
        errors[key] = message


def _check_ten_digits(errors: Dict[str, str], data: Mapping[str, Any], key: str, label: str) -> None:
    value = text(data, key)
    if not value:
        errors[key] = f"{label} is required"
    elif not _TEN_DIGITS.match(value):
        errors[key] = f"Enter a valid 10-digit {label.lower()}"


def validate_student(data: Mapping[str, Any]) -> None:
    errors: Dict[str, str] = {}
    _require(errors, data, 'first_name', 'First name is required')
    _require(errors, data, 'last_name', 'Last name is required')
    _require(errors, data, 'roll_number', 'Roll number is required')
    _require(errors, data, 'father_name', "Father's name is required")
    _check_ten_digits(errors, data, 'contact_number', 'Contact number')

    dob = text(data, 'dob')
    if dob and not _DATE.match(dob):
        errors['dob'] = 'Enter date in YYYY-MM-DD format (e.g., 2080-01-15)'

    raw_dues = data.get('dues')
    dues = 0 if raw_dues in (None, '') else parse_int(raw_dues)
    if dues is None or dues < 0:
        errors['dues'] = 'Dues cannot be negative'

    _require(errors, data, 'grade', 'Please select a grade')
    _raise_if(errors)


def validate_teacher(data: Mapping[str, Any]) -> None:
    errors: Dict[str, str] = {}
    _require(errors, data, 'name', 'Name is required')

    email = text(data, 'email')
    if not email:
        errors['email'] = 'Email is required'
    elif not _EMAIL.search(email):
        errors['email'] = 'Enter a valid email address'

    _check_ten_digits(errors, data, 'phone', 'Phone number')
    _require(errors, data, 'qualification', 'Qualification is required')

    roles = data.get('roles') or []
    if isinstance(roles, str):
        roles = [role for role in roles.split(',') if role.strip()]
    if not roles:
        errors['roles'] = 'Select at least one role'
    elif any(str(role).strip() not in KNOWN_ROLES for role in roles):
        errors['roles'] = 'Unknown role selected'
    elif Role.CLASS_TEACHER.value in roles and not text(data, 'assigned_class'):
        errors['assigned_class'] = 'Class teacher must have an assigned class'
    _raise_if(errors)


def validate_assignment(data: Mapping[str, Any]) -> None:
    errors: Dict[str, str] = {}
    _require(errors, data, 'grade', 'Please select a grade')
    _require(errors, data, 'subject', 'Please select a subject')
    _require(errors, data, 'academic_year', 'Academic year is required')
    _raise_if(errors)


def validate_homework(data: Mapping[str, Any]) -> None:
    errors: Dict[str, str] = {}
    _require(errors, data, 'grade', 'Please select a grade')
    _require(errors, data, 'subject', 'Please select a subject')
    _require(errors, data, 'title', 'Title is required')
    _require(errors, data, 'description', 'Description is required')
    _raise_if(errors)


def validate_attendance(data: Mapping[str, Any], bulk: bool = False) -> None:
    """Single marks name a student; a bulk sheet names a grade."""
    errors: Dict[str, str] = {}
    if bulk:
        _require(errors, data, 'grade', 'Please select a grade')
    else:
        _require(errors, data, 'student_id', 'Please select a student')
    _require(errors, data, 'subject', 'Please select a subject')
    _raise_if(errors)


def check_time_range(errors: Dict[str, str], key: str, label: str, start: str, end: str) -> None:
    if not start or not end:
        errors[key] = f"Please set times for {label}"
    elif not _TIME.match(start) or not _TIME.match(end):
        errors[key] = f"Times for {label} must use HH:MM"
    elif start >= end:
        errors[key] = f"{label} must end after it starts"


def validate_attendance_status(status: str) -> None:
    if status not in ATTENDANCE_STATUSES:
        raise ValidationFailed({'status': f"Status must be one of {', '.join(ATTENDANCE_STATUSES)}"})
