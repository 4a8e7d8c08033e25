"""Subject panel, marks entry and student results."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional

from app_logging import get_logger
from catalog import current_academic_year
from errors import PermissionDenied, RecordNotFound, ValidationFailed
from models import ExamTerm, Student
from scope import authorize_subject_write, scope_for
from students import students_of_grade
from validation import text

_logger = get_logger('school.results')


def _select_term(terms: List[ExamTerm], requested: Optional[str]) -> Optional[ExamTerm]:
    for term in terms:
        if requested and term.id == requested:
            return term
    for term in terms:
        if term.is_active:
            return term
    return terms[0] if terms else None


def subject_panel(ctx, grade: Optional[str] = None, exam_term_id: Optional[str] = None) -> Dict[str, Any]:
    """Exam terms of the current academic year with the students and subjects of one grade."""
    scope = scope_for(ctx)
    grade = grade or (scope.grades[0] if scope.grades else None)
    if not grade or not scope.allows_grade(grade):
        raise PermissionDenied("You don't have access to this grade")

    terms = ctx.gateway.find(ExamTerm, academic_year=current_academic_year())
    selected = _select_term(terms, exam_term_id)
    return {
        'academic_year': current_academic_year(),
        'grades': list(scope.grades),
        'grade': grade,
        'exam_terms': [term.to_dict() for term in terms],
        'selected_exam_term_id': selected.id if selected else None,
        'subjects': list(scope.subjects_for(grade)),
        'students': [student.to_dict() for student in students_of_grade(ctx.gateway, grade)],
    }


def _parse_marks(data: Mapping[str, Any]) -> Dict[str, float]:
    errors = {}
    values = {}
    for key in ('full_marks', 'obtained_marks'):
        try:
            value = float(text(data, key))
        except ValueError:
            errors[key] = 'Enter a number'
            continue
        if not math.isfinite(value):
            errors[key] = 'Enter a number'
        else:
            values[key] = value
    if not errors:
        if values['full_marks'] <= 0:
            errors['full_marks'] = 'Full marks must be greater than zero'
        elif not 0 <= values['obtained_marks'] <= values['full_marks']:
            errors['obtained_marks'] = 'Obtained marks must be between 0 and the full marks'
    if not text(data, 'subject'):
        errors['subject'] = 'Please select a subject'
    if errors:
        raise ValidationFailed(errors)
    return values


def term_totals(entries: List[Dict[str, Any]], exam_term_id: str) -> Dict[str, float]:
    term_entries = [entry for entry in entries if entry.get('exam_term_id') == exam_term_id]
    obtained = sum(entry['obtained_marks'] for entry in term_entries)
    full = sum(entry['full_marks'] for entry in term_entries)
    return {
        'total_marks': obtained,
        'percentage': round(obtained / full * 100, 2) if full else 0,
    }


def enter_marks(ctx, student_id: str, exam_term_id: str, data: Mapping[str, Any]) -> Student:
    """Record one subject's marks for a term and refresh the student's totals."""
    student = ctx.gateway.get(Student, student_id)
    if student is None:
        raise RecordNotFound('Student not found')
    term = ctx.gateway.get(ExamTerm, exam_term_id)
    if term is None:
        raise RecordNotFound('Exam term not found')

    marks = _parse_marks(data)
    subject = text(data, 'subject')
    authorize_subject_write(scope_for(ctx), student.grade, subject)

    entries = [
        entry for entry in (student.subjects or [])
        if not (entry.get('exam_term_id') == term.id and entry.get('subject') == subject)
    ]
    entries.append({'exam_term_id': term.id, 'subject': subject, **marks})
    ctx.gateway.update(student, subjects=entries, **term_totals(entries, term.id))
    _logger.info('marks entered', extra={'student_id': student.id, 'exam_term_id': term.id, 'subject': subject})
    return student


def student_result(ctx, student_id: str) -> Dict[str, Any]:
    student = ctx.gateway.get(Student, student_id)
    if student is None:
        raise RecordNotFound('Student not found')
    if not ctx.is_admin and not scope_for(ctx).allows_student(student):
        raise PermissionDenied('You can only view results of students in your classes')

    by_term: Dict[str, List[Dict[str, Any]]] = {}
    for entry in student.subjects or []:
        by_term.setdefault(entry.get('exam_term_id'), []).append(entry)
    return {
        'student': student.to_dict(),
        'is_admin': ctx.is_admin,
        'results': [
            {'exam_term_id': term_id, 'subjects': entries, **term_totals(entries, term_id)}
            for term_id, entries in by_term.items()
        ],
    }
