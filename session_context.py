"""Resolution of the acting teacher for a request.

Handlers call :func:`resolve_session` once and pass the resulting
:class:`SessionContext` to every policy function. Identity comes from, in
order: demo mode, the signed-in email kept in the session cookie, or a
teacher id persisted by the client (session or request header).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flask import current_app, request, session

from app_logging import bind_log_context, get_logger
from demo import canned_records, demo_teacher
from errors import NotSignedIn, RecordNotFound
from gateway import DemoGateway, StoreGateway
from models import Teacher
from roles import AccessTier, classify, is_admin

SESSION_DEMO_KEY = 'is_demo_mode'
SESSION_EMAIL_KEY = 'teacher_email'
SESSION_TEACHER_KEY = 'teacher_id'

_logger = get_logger('school.session')


@dataclass
class SessionContext:
    teacher: Optional[Teacher]
    gateway: object
    demo: bool = False

    @property
    def tier(self) -> AccessTier:
        return classify(self.teacher.roles if self.teacher else ())

    @property
    def is_admin(self) -> bool:
        return self.teacher is not None and is_admin(self.tier)

    @property
    def teacher_id(self) -> Optional[str]:
        return self.teacher.id if self.teacher else None


def demo_mode_enabled() -> bool:
    return bool(current_app.config.get('DEMO_MODE') or session.get(SESSION_DEMO_KEY))


def resolve_session(gateway=None) -> SessionContext:
    """Resolve the acting teacher or raise.

    Raises :class:`NotSignedIn` when no identity is present and
    :class:`RecordNotFound` when the identity points to no teacher. Store
    failures propagate as :class:`errors.StoreUnavailable`.
    """
    if demo_mode_enabled():
        ctx = SessionContext(teacher=demo_teacher(), gateway=DemoGateway(canned_records()), demo=True)
    else:
        gateway = gateway or StoreGateway()
        ctx = SessionContext(teacher=_lookup_teacher(gateway), gateway=gateway)

    bind_log_context(teacher_id=ctx.teacher_id, tier=ctx.tier.value, demo_mode=ctx.demo)
    return ctx


def _lookup_teacher(gateway) -> Teacher:
    email = session.get(SESSION_EMAIL_KEY)
    if email:
        teacher = gateway.first(Teacher, email=email)
        if teacher is None:
            _logger.warning('signed-in email has no teacher record')
            raise RecordNotFound('Teacher not found in database')
        return teacher

    header = current_app.config.get('TEACHER_ID_HEADER', 'X-Teacher-Id')
    teacher_id = session.get(SESSION_TEACHER_KEY) or request.headers.get(header, '').strip()
    if teacher_id:
        teacher = gateway.get(Teacher, teacher_id)
        if teacher is None:
            raise RecordNotFound('Teacher account not found')
        return teacher

    raise NotSignedIn()


def sign_in(teacher: Teacher) -> None:
    session.pop(SESSION_DEMO_KEY, None)
    session[SESSION_EMAIL_KEY] = teacher.email
    session[SESSION_TEACHER_KEY] = teacher.id


def start_demo() -> None:
    session.pop(SESSION_EMAIL_KEY, None)
    session.pop(SESSION_TEACHER_KEY, None)
    session[SESSION_DEMO_KEY] = True


def sign_out() -> None:
    for key in (SESSION_EMAIL_KEY, SESSION_TEACHER_KEY, SESSION_DEMO_KEY):
        session.pop(key, None)
