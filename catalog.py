"""Fixed catalogs and small lookups shared by the pages."""

from __future__ import annotations

import sys
from datetime import date
from typing import List, Optional, Sequence, Tuple

DEFAULT_GRADES: Tuple[str, ...] = (
    'P.G', 'Nursery', 'LKG', 'UKG',
    '1', '2', '3', '4', '5', '6', '7', '8', '9', '10', '11', '12',
)

DEFAULT_SUBJECTS: Tuple[str, ...] = (
    'English', 'Nepali', 'Mathematics', 'Science', 'Social Studies', 'Computer',
)

SCHOOL_DAYS: Tuple[str, ...] = ('Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday')

TRANSPORTATION_FEE = 500

_PRE_PRIMARY_FEES = {'P.G': 1200, 'Nursery': 1200, 'LKG': 1300, 'UKG': 1400}


def default_monthly_fee(grade: str) -> int:
    """Fee used when no fee document exists for ``grade``."""
    if grade in _PRE_PRIMARY_FEES:
        return _PRE_PRIMARY_FEES[grade]
    number = _leading_int(grade)
    if number is not None and number >= 1:
        return 1500 + (number - 1) * 100
    return 0


def _leading_int(value: Optional[str]) -> Optional[int]:
    digits = ''
    for char in (value or '').strip():
        if not char.isdigit():
            break
        digits += char
    return int(digits) if digits else None


def number_sort_key(value: Optional[str]) -> int:
    """Numeric sort key; values without a leading number sort last."""
    number = _leading_int(value)
    return number if number is not None else sys.maxsize


def sort_students(students: Sequence, by_grade: bool = False) -> List:
    """Order students by roll number, optionally grouping by grade first."""
    if by_grade:
        return sorted(students, key=lambda s: (number_sort_key(s.grade), number_sort_key(s.roll_number)))
    return sorted(students, key=lambda s: number_sort_key(s.roll_number))


def current_academic_year(today: Optional[date] = None) -> str:
    """Academic year label for ``today``; January to March close the previous year."""
    today = today or date.today()
    if today.month <= 3:
        return f"{today.year - 1}-{today.year}"
    return f"{today.year}-{today.year + 1}"
