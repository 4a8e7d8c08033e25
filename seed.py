"""Seed the database with initial data.

This script populates the database with the grade catalog, monthly fees, a
principal account, a class teacher, a subject teacher with assignments,
sample students and the exam terms of the current academic year. Run it
locally before the first launch of the app, or as a release command on a
fresh database.

Usage:
    SEED_ADMIN_PASSWORD=secret python seed.py

"""

import os
from typing import List

from flask import Flask
from werkzeug.security import generate_password_hash

from catalog import DEFAULT_GRADES, TRANSPORTATION_FEE, current_academic_year, default_monthly_fee
from config import Config
from models import ExamTerm, Fee, Grade, Student, Teacher, TeacherAssignment, db


def create_app() -> Flask:
    """Create a standalone Flask application for seeding.

    We avoid importing the main app here to keep the seeding process
    independent of the API routes.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    db.init_app(app)
    return app


def _teachers() -> List[Teacher]:
    password = os.environ.get('SEED_ADMIN_PASSWORD', 'change-me')
    return [
        Teacher(name='SCHOOL PRINCIPAL', email=os.environ.get('SEED_ADMIN_EMAIL', 'principal@sajhaschool.edu'),
                phone='9800000001', qualification='M.Ed', roles=['principal'],
                password_hash=generate_password_hash(password)),
        Teacher(name='CLASS TEACHER', email='classteacher@sajhaschool.edu', phone='9800000002',
                qualification='B.Ed', roles=['class_teacher'], assigned_class='9',
                password_hash=generate_password_hash(password)),
        Teacher(name='SUBJECT TEACHER', email='subjectteacher@sajhaschool.edu', phone='9800000003',
                qualification='M.Sc', roles=['subject_teacher'],
                password_hash=generate_password_hash(password)),
    ]


def seed_data() -> None:
    """Insert the catalog, staff, sample students and exam terms."""
    # Drop and recreate tables. In production you might prefer Alembic
    # migrations instead of dropping the entire database.
    db.drop_all()
    db.create_all()

    for order, name in enumerate(DEFAULT_GRADES, start=1):
        db.session.add(Grade(name=name, order=order))
        db.session.add(Fee(grade=name, monthly_fee=default_monthly_fee(name)))
    db.session.commit()

    principal, class_teacher, subject_teacher = _teachers()
    db.session.add_all([principal, class_teacher, subject_teacher])
    db.session.commit()

    year = current_academic_year()
    for grade, subject in (('10', 'Mathematics'), ('10', 'Science'), ('9', 'Mathematics')):
        db.session.add(TeacherAssignment(teacher_id=subject_teacher.id, teacher_name=subject_teacher.name,
                                         grade=grade, subject=subject, academic_year=year))

    # Five placeholder students in each of the grades the sample staff teach.
    for grade in ('9', '10'):
        for roll in range(1, 6):
            uses_bus = roll % 2 == 0
            db.session.add(Student(
                first_name='Student',
                last_name=f"{grade}-{roll}",
                name=f"Student {grade}-{roll}",
                father_name=f"Father {grade}-{roll}",
                contact_number=f"98{int(grade):02d}{roll:06d}",
                dob='2066-01-01',
                roll_number=str(roll),
                grade=grade,
                uses_bus=uses_bus,
                bus_route='Route A' if uses_bus else '',
                monthly_fee=default_monthly_fee(grade),
                transportation_fee=TRANSPORTATION_FEE if uses_bus else 0,
            ))

    db.session.add(ExamTerm(name='First Term', academic_year=year, is_active=True))
    db.session.add(ExamTerm(name='Second Term', academic_year=year))
    db.session.add(ExamTerm(name='Final Term', academic_year=year))
    db.session.commit()

    print('Database seeded successfully.')


def main() -> None:
    app = create_app()
    with app.app_context():
        seed_data()


if __name__ == '__main__':
    main()
