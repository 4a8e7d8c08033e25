"""Teacher accounts, sign-in and the dashboard."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from app_logging import get_logger
from blob_storage import TEACHER_PROFILE_FOLDER, upload_if_present
from errors import NoAssignments, NotSignedIn, PermissionDenied, RecordNotFound, ValidationFailed
from models import Teacher
from roles import Role, normalize_roles, role_text
from scope import (
    Scope,
    authorize_admin,
    authorize_teacher_delete,
    authorize_teacher_edit,
    scope_for,
)
from students import students_in_scope
from validation import as_bool, text, validate_teacher

_logger = get_logger('school.teachers')


def _roles_from(data: Mapping[str, Any]) -> list:
    roles = data.get('roles') or []
    if isinstance(roles, str):
        roles = roles.split(',')
    held = normalize_roles(roles)
    # Keep the catalogue order so stored role lists are stable.
    return [role.value for role in Role if role.value in held]


def teacher_fields(data: Mapping[str, Any]) -> Dict[str, Any]:
    roles = _roles_from(data)
    return {
        'name': text(data, 'name'),
        'email': text(data, 'email'),
        'phone': text(data, 'phone'),
        'qualification': text(data, 'qualification'),
        'roles': roles,
        'assigned_class': text(data, 'assigned_class') if Role.CLASS_TEACHER.value in roles else '',
        'active': as_bool(data.get('active', True)),
    }


def _ensure_unique_email(gateway, email: str, teacher_id: Optional[str] = None) -> None:
    holder = gateway.first(Teacher, email=email)
    if holder is not None and holder.id != teacher_id:
        raise ValidationFailed({'email': 'A teacher with this email already exists'})


def create_teacher(ctx, data: Mapping[str, Any], image=None) -> Teacher:
    authorize_admin(ctx, "You don't have permission to add teachers")
    validate_teacher(data)
    fields = teacher_fields(data)
    _ensure_unique_email(ctx.gateway, fields['email'])

    password = text(data, 'password')
    fields['password_hash'] = generate_password_hash(password) if password else None
    fields['profile_image_url'] = upload_if_present(image, TEACHER_PROFILE_FOLDER, demo=ctx.demo) or ''
    teacher = Teacher(**fields)
    ctx.gateway.save(teacher)
    _logger.info('teacher created', extra={'target_teacher_id': teacher.id})
    return teacher


def get_teacher_for_edit(ctx, teacher_id: str) -> Teacher:
    authorize_teacher_edit(ctx, teacher_id)
    teacher = ctx.gateway.get(Teacher, teacher_id)
    if teacher is None:
        raise RecordNotFound('Teacher not found')
    return teacher


def update_teacher(ctx, teacher_id: str, data: Mapping[str, Any], image=None) -> Teacher:
    """Save an edited profile.

    Teachers editing their own profile cannot change their roles, assigned
    class or active flag; only admins can.
    """
    teacher = get_teacher_for_edit(ctx, teacher_id)
    if not ctx.is_admin:
        data = dict(data, roles=list(teacher.roles or []), assigned_class=teacher.assigned_class,
                    active=teacher.active)
    validate_teacher(data)
    fields = teacher_fields(data)
    _ensure_unique_email(ctx.gateway, fields['email'], teacher_id=teacher.id)

    password = text(data, 'password')
    if password:
        fields['password_hash'] = generate_password_hash(password)
    uploaded = upload_if_present(image, TEACHER_PROFILE_FOLDER, demo=ctx.demo)
    fields['profile_image_url'] = uploaded or teacher.profile_image_url or ''
    ctx.gateway.update(teacher, **fields)
    _logger.info('teacher updated', extra={'target_teacher_id': teacher.id})
    return teacher


def delete_teacher(ctx, teacher_id: str) -> None:
    authorize_teacher_delete(ctx, teacher_id)
    teacher = ctx.gateway.get(Teacher, teacher_id)
    if teacher is None:
        raise RecordNotFound('Teacher not found')
    ctx.gateway.delete(teacher)
    _logger.info('teacher deleted', extra={'target_teacher_id': teacher_id})


def authenticate(gateway, email: str, password: str) -> Teacher:
    teacher = gateway.first(Teacher, email=email.strip()) if email else None
    if teacher is None or not teacher.password_hash or not check_password_hash(teacher.password_hash, password):
        _logger.info('sign-in rejected')
        raise NotSignedIn('Invalid email or password')
    if not teacher.active:
        raise PermissionDenied('This teacher account is inactive')
    return teacher


def dashboard(ctx) -> Dict[str, Any]:
    """Profile, scoped student list and the staff directory."""
    teacher = ctx.teacher
    notice = None
    try:
        scope = scope_for(ctx)
    except NoAssignments as exc:
        scope = Scope.empty(ctx.tier)
        notice = exc.detail

    students = students_in_scope(ctx.gateway, scope)
    staff = sorted(ctx.gateway.find(Teacher), key=lambda member: (member.name or '').lower())
    return {
        'teacher': teacher.to_dict(),
        'role_text': role_text(teacher.roles, teacher.assigned_class),
        'is_admin': ctx.is_admin,
        'demo_mode': ctx.demo,
        'scope': scope.to_dict(),
        'notice': notice,
        'students': [student.to_dict() for student in students],
        'teachers': [member.to_dict() for member in staff],
    }
