"""Which grades, subjects and students a teacher may list or change.

:func:`resolve_scope` is a pure function of the teacher and the assignment
rows already fetched for them; :func:`scope_for` does the fetching for a
session context. The ``authorize_*`` helpers are consulted again before
every write and raise :class:`errors.PermissionDenied` with the message shown
to the teacher.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from app_logging import get_logger
from catalog import DEFAULT_GRADES, DEFAULT_SUBJECTS
from errors import NoAssignments, PermissionDenied
from models import Grade, TeacherAssignment
from roles import AccessTier, classify, is_admin

_logger = get_logger('school.scope')


@dataclass(frozen=True)
class Scope:
    tier: AccessTier
    grades: Tuple[str, ...] = ()
    subjects_by_grade: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    unrestricted: bool = False
    catalog_subjects: Tuple[str, ...] = ()

    @classmethod
    def empty(cls, tier: AccessTier = AccessTier.TEACHER) -> 'Scope':
        return cls(tier=tier)

    @property
    def is_empty(self) -> bool:
        return not self.unrestricted and not self.grades

    def subjects_for(self, grade: str) -> Tuple[str, ...]:
        subjects = tuple(self.subjects_by_grade.get(grade, ()))
        if not subjects and self.unrestricted:
            return tuple(self.catalog_subjects)
        return subjects

    def allows_grade(self, grade: Optional[str]) -> bool:
        return self.unrestricted or grade in self.grades

    def allows(self, grade: Optional[str], subject: Optional[str]) -> bool:
        if self.unrestricted:
            return True
        return subject in self.subjects_by_grade.get(grade, ())

    def allows_student(self, student) -> bool:
        return student is not None and self.allows_grade(student.grade)

    def to_dict(self) -> Dict[str, object]:
        return {
            'tier': self.tier.value,
            'unrestricted': self.unrestricted,
            'grades': list(self.grades),
            'subjects': {grade: list(subjects) for grade, subjects in self.subjects_by_grade.items()},
        }


def resolve_scope(teacher, assignments: Iterable = (), grades: Sequence[str] = DEFAULT_GRADES,
                  subjects: Sequence[str] = DEFAULT_SUBJECTS) -> Scope:
    """Compute the scope of ``teacher``.

    Admins get every grade and subject whatever their assignments. A class
    teacher gets their assigned grade with the full subject catalog. A subject
    teacher gets exactly the grade/subject pairs of ``assignments`` and
    :class:`NoAssignments` is raised when there are none, as it is for a
    class teacher without an assigned class. ``teacher=None`` yields an empty
    scope.
    """
    if teacher is None:
        return Scope.empty()

    tier = classify(teacher.roles)
    catalog = tuple(subjects)

    if is_admin(tier):
        return Scope(
            tier=tier,
            grades=tuple(grades),
            subjects_by_grade={grade: catalog for grade in grades},
            unrestricted=True,
            catalog_subjects=catalog,
        )

    if tier is AccessTier.CLASS_TEACHER:
        assigned = (teacher.assigned_class or '').strip()
        if not assigned:
            raise NoAssignments('No class assigned to this class teacher')
        return Scope(tier=tier, grades=(assigned,), subjects_by_grade={assigned: catalog})

    if tier is AccessTier.SUBJECT_TEACHER:
        pairs: Dict[str, List[str]] = {}
        for assignment in assignments:
            grade = (assignment.grade or '').strip()
            subject = (assignment.subject or '').strip()
            if not grade or not subject:
                continue
            grade_subjects = pairs.setdefault(grade, [])
            if subject not in grade_subjects:
                grade_subjects.append(subject)
        if not pairs:
            raise NoAssignments('No subject assignments found for this teacher')
        ordered = tuple(sorted(pairs))
        return Scope(
            tier=tier,
            grades=ordered,
            subjects_by_grade={grade: tuple(pairs[grade]) for grade in ordered},
        )

    return Scope.empty(tier)


def load_assignments(gateway, teacher) -> List[TeacherAssignment]:
    return gateway.find(TeacherAssignment, teacher_id=teacher.id)


def grade_catalog(gateway) -> Tuple[str, ...]:
    """Visible grades from the store, or the default catalog when none are set."""
    rows = [grade for grade in gateway.find(Grade, order_by='order') if grade.order > 0 and grade.name]
    if not rows:
        return DEFAULT_GRADES
    return tuple(grade.name for grade in rows)


def scope_for(ctx) -> Scope:
    """Scope of the session's teacher; fetches what the tier needs."""
    if ctx.teacher is None:
        return Scope.empty()
    tier = ctx.tier
    assignments = load_assignments(ctx.gateway, ctx.teacher) if tier is AccessTier.SUBJECT_TEACHER else ()
    grades = grade_catalog(ctx.gateway) if is_admin(tier) else DEFAULT_GRADES
    scope = resolve_scope(ctx.teacher, assignments, grades=grades)
    _logger.debug('scope resolved', extra={'grades': list(scope.grades)})
    return scope


def authorize_admin(ctx, message: str) -> None:
    if not ctx.is_admin:
        raise PermissionDenied(message)


def authorize_student_edit(ctx, student) -> None:
    """Admins edit anyone; class teachers only students of their own grade."""
    if ctx.is_admin:
        return
    if ctx.tier is AccessTier.CLASS_TEACHER and ctx.teacher.assigned_class:
        if student.grade != ctx.teacher.assigned_class:
            raise PermissionDenied('You can only edit students in your assigned class')
        return
    raise PermissionDenied("You don't have permission to edit student details")


def authorize_student_create(ctx, grade: str) -> None:
    if ctx.is_admin:
        return
    if ctx.tier is AccessTier.CLASS_TEACHER and ctx.teacher.assigned_class:
        if grade != ctx.teacher.assigned_class:
            raise PermissionDenied('You can only add students to your assigned class')
        return
    raise PermissionDenied("You don't have permission to add students")


def authorize_teacher_edit(ctx, target_id: str) -> None:
    if ctx.is_admin or ctx.teacher_id == target_id:
        return
    raise PermissionDenied("You don't have permission to edit this teacher")


def authorize_teacher_delete(ctx, target_id: str) -> None:
    authorize_admin(ctx, "You don't have permission to delete teachers")
    if ctx.teacher_id == target_id:
        raise PermissionDenied('You cannot delete your own account while signed in')


def authorize_subject_write(scope: Scope, grade: str, subject: str) -> None:
    if not scope.allows(grade, subject):
        raise PermissionDenied(f"You are not assigned to teach {subject} in grade {grade}")


def authorize_routine_write(ctx, grade: str) -> None:
    if ctx.is_admin:
        return
    if ctx.tier is AccessTier.CLASS_TEACHER and ctx.teacher.assigned_class == grade:
        return
    raise PermissionDenied("You don't have permission to change the routine of this grade")
