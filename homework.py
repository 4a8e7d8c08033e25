"""Homework listing and posting."""

from __future__ import annotations

from typing import Any, List, Mapping

from flask import current_app

from app_logging import get_logger
from blob_storage import HOMEWORK_FOLDER, upload_if_present
from models import Homework
from scope import authorize_subject_write, scope_for
from validation import text, validate_homework

_logger = get_logger('school.homework')


def list_homework(ctx) -> List[Homework]:
    """Latest homework: everyone's for admins, the teacher's own otherwise."""
    limit = current_app.config.get('HOMEWORK_LIST_LIMIT', 50)
    if ctx.is_admin:
        return ctx.gateway.find(Homework, order_by='timestamp', descending=True, limit=limit)
    return ctx.gateway.find(Homework, order_by='timestamp', descending=True, limit=limit,
                            teacher_id=ctx.teacher.id)


def add_homework(ctx, data: Mapping[str, Any], attachment=None) -> Homework:
    validate_homework(data)
    grade, subject = text(data, 'grade'), text(data, 'subject')
    authorize_subject_write(scope_for(ctx), grade, subject)

    homework = Homework(
        grade=grade,
        subject=subject,
        title=text(data, 'title'),
        description=text(data, 'description'),
        teacher_id=ctx.teacher.id,
        teacher_name=ctx.teacher.name,
    )
    file_url = upload_if_present(attachment, HOMEWORK_FOLDER, demo=ctx.demo)
    if file_url:
        homework.file_url = file_url
        homework.file_name = attachment.filename
    ctx.gateway.save(homework)
    _logger.info('homework added', extra={'homework_id': homework.id, 'grade': grade, 'subject': subject})
    return homework
