import os
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Generator

import pytest

# Importing ``app`` builds the module-level application; keep it off disk.
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ.pop('DEMO_MODE', None)

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app import create_app  # noqa: E402
from models import Student, Teacher, TeacherAssignment, db  # noqa: E402


@pytest.fixture
def app(tmp_path) -> Generator:
    application = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'AUTO_CREATE_TABLES': True,
        'DEMO_MODE': False,
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
    })
    yield application
    with application.app_context():
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def add_records(app, *records):
    """Commit ``records`` and return their ids."""
    with app.app_context():
        db.session.add_all(records)
        db.session.commit()
        return [record.id for record in records]


def as_teacher(teacher_id):
    return {'X-Teacher-Id': teacher_id}


def make_student(grade='10', roll_number='1', **fields):
    values = dict(
        first_name='Ram',
        last_name='Shrestha',
        name='Ram Shrestha',
        father_name='Hari Shrestha',
        contact_number='9800000000',
        roll_number=roll_number,
        grade=grade,
    )
    values.update(fields)
    return Student(**values)


@pytest.fixture
def school(app):
    """A small school: one teacher per tier and a few students."""
    principal, class_teacher, subject_teacher, plain = (
        Teacher(name='PRINCIPAL', email='principal@example.com', phone='9800000001',
                qualification='M.Ed', roles=['principal']),
        Teacher(name='CLASS NINE', email='nine@example.com', phone='9800000002',
                qualification='B.Ed', roles=['class_teacher'], assigned_class='9'),
        Teacher(name='MATHS', email='maths@example.com', phone='9800000003',
                qualification='M.Sc', roles=['subject_teacher']),
        Teacher(name='NO ROLE', email='plain@example.com', phone='9800000004',
                qualification='B.A', roles=[]),
    )
    teacher_ids = add_records(app, principal, class_teacher, subject_teacher, plain)
    add_records(app, TeacherAssignment(teacher_id=teacher_ids[2], teacher_name='MATHS', grade='10',
                                       subject='Mathematics', academic_year='2025'))
    student_ids = add_records(
        app,
        make_student(grade='9', roll_number='1', name='Sita Rai'),
        make_student(grade='10', roll_number='2', name='Gita Lama'),
        make_student(grade='10', roll_number='1', name='Ram Shrestha'),
    )
    return SimpleNamespace(
        principal=teacher_ids[0],
        class_teacher=teacher_ids[1],
        subject_teacher=teacher_ids[2],
        plain=teacher_ids[3],
        nine_student=student_ids[0],
        ten_students=student_ids[1:],
    )
