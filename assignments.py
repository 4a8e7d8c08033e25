"""Subject assignments of a teacher, managed by admins."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Tuple

from app_logging import get_logger
from errors import RecordNotFound
from models import Teacher, TeacherAssignment
from scope import authorize_admin
from validation import text, validate_assignment

_logger = get_logger('school.assignments')


def target_teacher(ctx, teacher_id: str) -> Teacher:
    authorize_admin(ctx, "You don't have permission to manage teacher assignments")
    teacher = ctx.gateway.get(Teacher, teacher_id)
    if teacher is None:
        raise RecordNotFound('Target teacher not found')
    return teacher


def _assignment_fields(data: Mapping[str, Any]) -> Dict[str, str]:
    fields = {
        'grade': text(data, 'grade'),
        'subject': text(data, 'subject'),
        'academic_year': text(data, 'academic_year') or str(date.today().year),
    }
    validate_assignment(fields)
    return fields


def list_assignments(ctx, teacher_id: str) -> Tuple[Teacher, List[TeacherAssignment]]:
    teacher = target_teacher(ctx, teacher_id)
    return teacher, ctx.gateway.find(TeacherAssignment, teacher_id=teacher.id)


def add_assignment(ctx, teacher_id: str, data: Mapping[str, Any]) -> TeacherAssignment:
    teacher = target_teacher(ctx, teacher_id)
    assignment = TeacherAssignment(teacher_id=teacher.id, teacher_name=teacher.name, **_assignment_fields(data))
    ctx.gateway.save(assignment)
    _logger.info('assignment added', extra={'assignment_id': assignment.id, 'target_teacher_id': teacher.id})
    return assignment


def _owned_assignment(ctx, teacher: Teacher, assignment_id: str) -> TeacherAssignment:
    assignment = ctx.gateway.get(TeacherAssignment, assignment_id)
    if assignment is None or assignment.teacher_id != teacher.id:
        raise RecordNotFound('Assignment not found')
    return assignment


def update_assignment(ctx, teacher_id: str, assignment_id: str, data: Mapping[str, Any]) -> TeacherAssignment:
    teacher = target_teacher(ctx, teacher_id)
    assignment = _owned_assignment(ctx, teacher, assignment_id)
    ctx.gateway.update(assignment, **_assignment_fields(data))
    return assignment


def delete_assignment(ctx, teacher_id: str, assignment_id: str) -> None:
    teacher = target_teacher(ctx, teacher_id)
    assignment = _owned_assignment(ctx, teacher, assignment_id)
    ctx.gateway.delete(assignment)
    _logger.info('assignment deleted', extra={'assignment_id': assignment_id})
