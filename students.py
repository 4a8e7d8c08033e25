"""Student records: add, edit, delete and the scoped student list."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from app_logging import get_logger
from blob_storage import STUDENT_PROFILE_FOLDER, upload_if_present
from catalog import TRANSPORTATION_FEE, default_monthly_fee, sort_students
from errors import RecordNotFound, StoreUnavailable, ValidationFailed
from models import Fee, Student
from scope import Scope, authorize_student_create, authorize_student_edit
from validation import as_bool, parse_int, text, validate_student

_logger = get_logger('school.students')


def ensure_unique_roll_number(gateway, grade: str, roll_number: str, student_id: Optional[str] = None) -> None:
    """Reject a roll number already held by another student of ``grade``."""
    holders = gateway.find(Student, grade=grade, roll_number=roll_number)
    if any(holder.id != student_id for holder in holders):
        raise ValidationFailed({'roll_number': f"Roll number {roll_number} already exists in {grade}"})


def monthly_fee_for(gateway, grade: str) -> int:
    """Configured fee for ``grade``; the default table when none is set or readable."""
    try:
        fee = gateway.get(Fee, grade)
    except StoreUnavailable:
        _logger.warning('fee lookup failed, using default fee', extra={'grade': grade})
        return default_monthly_fee(grade)
    if fee is not None and fee.monthly_fee:
        return fee.monthly_fee
    return default_monthly_fee(grade)


def full_name(first: str, middle: str, last: str) -> str:
    return ' '.join(part for part in (first, middle, last) if part)


def student_fields(data: Mapping[str, Any], monthly_fee: int) -> Dict[str, Any]:
    first, middle, last = text(data, 'first_name'), text(data, 'middle_name'), text(data, 'last_name')
    uses_bus = as_bool(data.get('uses_bus'))
    return {
        'first_name': first,
        'middle_name': middle,
        'last_name': last,
        'name': full_name(first, middle, last),
        'father_name': text(data, 'father_name'),
        'mother_name': text(data, 'mother_name'),
        'contact_number': text(data, 'contact_number'),
        'dob': text(data, 'dob'),
        'roll_number': text(data, 'roll_number'),
        'grade': text(data, 'grade'),
        'symbol_number': text(data, 'symbol_number') or None,
        'address': text(data, 'address'),
        'uses_bus': uses_bus,
        'bus_route': text(data, 'bus_route') if uses_bus else '',
        'monthly_fee': monthly_fee,
        'transportation_fee': TRANSPORTATION_FEE if uses_bus else 0,
        'dues': parse_int(data.get('dues')) or 0,
    }


def _load(ctx, student_id: str) -> Student:
    student = ctx.gateway.get(Student, student_id)
    if student is None:
        raise RecordNotFound('Student not found')
    return student


def get_student_for_edit(ctx, student_id: str) -> Student:
    student = _load(ctx, student_id)
    authorize_student_edit(ctx, student)
    return student


def create_student(ctx, data: Mapping[str, Any], picture=None) -> Student:
    validate_student(data)
    grade = text(data, 'grade')
    authorize_student_create(ctx, grade)
    ensure_unique_roll_number(ctx.gateway, grade, text(data, 'roll_number'))

    fields = student_fields(data, monthly_fee_for(ctx.gateway, grade))
    fields['profile_picture_url'] = upload_if_present(picture, STUDENT_PROFILE_FOLDER, demo=ctx.demo) or ''
    student = Student(**fields)
    ctx.gateway.save(student)
    _logger.info('student created', extra={'student_id': student.id, 'grade': grade})
    return student


def update_student(ctx, student_id: str, data: Mapping[str, Any], picture=None) -> Student:
    student = get_student_for_edit(ctx, student_id)
    validate_student(data)
    grade = text(data, 'grade')
    if grade != student.grade:
        # Moving the student must stay inside the editor's scope too.
        authorize_student_create(ctx, grade)
    ensure_unique_roll_number(ctx.gateway, grade, text(data, 'roll_number'), student_id=student.id)

    fields = student_fields(data, monthly_fee_for(ctx.gateway, grade))
    uploaded = upload_if_present(picture, STUDENT_PROFILE_FOLDER, demo=ctx.demo)
    fields['profile_picture_url'] = uploaded or student.profile_picture_url or ''
    ctx.gateway.update(student, **fields)
    _logger.info('student updated', extra={'student_id': student.id})
    return student


def delete_student(ctx, student_id: str) -> None:
    student = get_student_for_edit(ctx, student_id)
    ctx.gateway.delete(student)
    _logger.info('student deleted', extra={'student_id': student_id})


def students_in_scope(gateway, scope: Scope) -> List[Student]:
    """Students the scope can see, ordered by grade then roll number."""
    if scope.unrestricted:
        students = gateway.find(Student)
    else:
        students = []
        for grade in scope.grades:
            students.extend(gateway.find(Student, grade=grade))
    return sort_students(students, by_grade=True)


def students_of_grade(gateway, grade: str) -> List[Student]:
    return sort_students(gateway.find(Student, grade=grade))
