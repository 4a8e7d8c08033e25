"""Database models for the school administration service.

Each model corresponds to one collection the teacher pages read and write:

* :class:`Teacher` – staff account with its role set and, for class
  teachers, the grade they look after.
* :class:`Student` – enrollment record; ``grade`` + ``roll_number`` is unique.
* :class:`TeacherAssignment` – grants a subject teacher one grade/subject pair
  for an academic year.
* :class:`ClassRoutine` – one time block of a grade's day: a period, the
  tiffin break or the diary check (see ``routines.py``).
* :class:`Attendance` – status of a student in one subject on one day, keyed
  by both the Gregorian and the Bikram Sambat date.
* :class:`Homework`, :class:`ExamTerm`, :class:`Grade`, :class:`Fee`.

Records are keyed by generated string ids and carry no foreign keys between
collections; every write touches exactly one row.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()


def new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[Any]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class Teacher(db.Model):
    """A member of staff who can sign in.

    ``roles`` is a JSON list drawn from ``principal``, ``computer_teacher``,
    ``class_teacher`` and ``subject_teacher``. ``assigned_class`` only means
    something for class teachers and is blank otherwise.
    """

    __tablename__ = 'teachers'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(20), nullable=False, default='')
    qualification = db.Column(db.String(120), nullable=False, default='')
    profile_image_url = db.Column(db.String(255), nullable=False, default='')
    roles = db.Column(db.JSON, nullable=False, default=list)
    assigned_class = db.Column(db.String(20), nullable=False, default='')
    active = db.Column(db.Boolean, nullable=False, default=True)
    password_hash = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'qualification': self.qualification,
            'profile_image_url': self.profile_image_url,
            'roles': list(self.roles or []),
            'assigned_class': self.assigned_class,
            'active': self.active,
        }

    def __repr__(self) -> str:
        return f"<Teacher {self.name} roles={self.roles}>"


class Student(db.Model):
    """An enrolled student.

    ``subjects`` holds the marks entered per exam term as a JSON list of
    ``{exam_term_id, subject, full_marks, obtained_marks}`` entries;
    ``total_marks`` and ``percentage`` are derived from it on every entry.
    """

    __tablename__ = 'students'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    first_name = db.Column(db.String(60), nullable=False)
    middle_name = db.Column(db.String(60), nullable=False, default='')
    last_name = db.Column(db.String(60), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    father_name = db.Column(db.String(120), nullable=False, default='')
    mother_name = db.Column(db.String(120), nullable=False, default='')
    contact_number = db.Column(db.String(20), nullable=False, default='')
    dob = db.Column(db.String(10), nullable=False, default='')  # BS date, YYYY-MM-DD
    roll_number = db.Column(db.String(10), nullable=False)
    grade = db.Column(db.String(20), nullable=False, index=True)
    symbol_number = db.Column(db.String(30), nullable=True)
    address = db.Column(db.String(255), nullable=False, default='')
    uses_bus = db.Column(db.Boolean, nullable=False, default=False)
    bus_route = db.Column(db.String(60), nullable=False, default='')
    profile_picture_url = db.Column(db.String(255), nullable=False, default='')
    monthly_fee = db.Column(db.Integer, nullable=False, default=0)
    transportation_fee = db.Column(db.Integer, nullable=False, default=0)
    dues = db.Column(db.Integer, nullable=False, default=0)
    attendance = db.Column(db.Integer, nullable=False, default=0)
    total_classes = db.Column(db.Integer, nullable=False, default=0)
    subjects = db.Column(db.JSON, nullable=False, default=list)
    total_marks = db.Column(db.Float, nullable=False, default=0)
    percentage = db.Column(db.Float, nullable=False, default=0)
    rank = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (db.UniqueConstraint('grade', 'roll_number', name='uix_student_grade_roll'),)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'first_name': self.first_name,
            'middle_name': self.middle_name,
            'last_name': self.last_name,
            'name': self.name,
            'father_name': self.father_name,
            'mother_name': self.mother_name,
            'contact_number': self.contact_number,
            'dob': self.dob,
            'roll_number': self.roll_number,
            'grade': self.grade,
            'symbol_number': self.symbol_number,
            'address': self.address,
            'uses_bus': self.uses_bus,
            'bus_route': self.bus_route,
            'profile_picture_url': self.profile_picture_url,
            'monthly_fee': self.monthly_fee,
            'transportation_fee': self.transportation_fee,
            'dues': self.dues,
            'attendance': self.attendance,
            'total_classes': self.total_classes,
            'subjects': list(self.subjects or []),
            'total_marks': self.total_marks,
            'percentage': self.percentage,
            'rank': self.rank,
        }

    def __repr__(self) -> str:
        return f"<Student {self.name} grade={self.grade} roll={self.roll_number}>"


class TeacherAssignment(db.Model):
    """Grants a teacher one grade/subject pair for an academic year."""

    __tablename__ = 'teacher_assignments'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    teacher_id = db.Column(db.String(32), nullable=False, index=True)
    teacher_name = db.Column(db.String(120), nullable=False, default='')
    grade = db.Column(db.String(20), nullable=False)
    subject = db.Column(db.String(60), nullable=False)
    academic_year = db.Column(db.String(20), nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'teacher_id': self.teacher_id,
            'teacher_name': self.teacher_name,
            'grade': self.grade,
            'subject': self.subject,
            'academic_year': self.academic_year,
        }

    def __repr__(self) -> str:
        return f"<TeacherAssignment teacher={self.teacher_id} {self.grade}/{self.subject}>"


class ClassRoutine(db.Model):
    """One time block of a grade's day.

    ``kind`` is ``period``, ``tiffin`` or ``diary_check``; only periods carry
    a subject and a teacher.
    """

    __tablename__ = 'class_routines'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    grade = db.Column(db.String(20), nullable=False)
    day = db.Column(db.String(12), nullable=False)
    kind = db.Column(db.String(12), nullable=False, default='period')
    start_time = db.Column(db.String(5), nullable=False)  # HH:MM
    end_time = db.Column(db.String(5), nullable=False)
    subject = db.Column(db.String(60), nullable=True)
    teacher_id = db.Column(db.String(32), nullable=True)
    teacher_name = db.Column(db.String(120), nullable=True)

    __table_args__ = (db.Index('ix_class_routines_grade_day', 'grade', 'day'),)

    def __repr__(self) -> str:
        return (f"<ClassRoutine {self.grade} {self.day} {self.kind} "
                f"{self.start_time}-{self.end_time}>")


class Attendance(db.Model):
    """Attendance status of a student in one subject on one day.

    ``date`` is the Gregorian ISO date. ``bs_date`` and its components hold
    the same day in Bikram Sambat; rows written before the BS key existed have
    them empty and are still found through ``date``. No unique constraint is
    declared because such legacy rows may coexist with BS-keyed ones.
    """

    __tablename__ = 'attendance'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    student_id = db.Column(db.String(32), nullable=False)
    date = db.Column(db.String(10), nullable=False)
    bs_date = db.Column(db.String(10), nullable=True)
    bs_year = db.Column(db.Integer, nullable=True)
    bs_month = db.Column(db.Integer, nullable=True)
    bs_day = db.Column(db.Integer, nullable=True)
    subject = db.Column(db.String(60), nullable=False)
    status = db.Column(db.String(10), nullable=False)  # present, absent, late
    teacher_id = db.Column(db.String(32), nullable=False, default='')
    teacher_name = db.Column(db.String(120), nullable=False, default='')
    grade = db.Column(db.String(20), nullable=False, default='')

    __table_args__ = (
        db.Index('ix_attendance_bs_key', 'student_id', 'bs_date', 'subject'),
        db.Index('ix_attendance_ad_key', 'student_id', 'date', 'subject'),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'student_id': self.student_id,
            'date': self.date,
            'bs_date': self.bs_date,
            'bs_year': self.bs_year,
            'bs_month': self.bs_month,
            'bs_day': self.bs_day,
            'subject': self.subject,
            'status': self.status,
            'teacher_id': self.teacher_id,
            'teacher_name': self.teacher_name,
            'grade': self.grade,
        }

    def __repr__(self) -> str:
        return (f"<Attendance student={self.student_id} date={self.date} "
                f"bs={self.bs_date} subject={self.subject} status={self.status}>")


class Homework(db.Model):
    __tablename__ = 'homework'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    grade = db.Column(db.String(20), nullable=False)
    subject = db.Column(db.String(60), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    file_url = db.Column(db.String(255), nullable=True)
    file_name = db.Column(db.String(255), nullable=True)
    teacher_id = db.Column(db.String(32), nullable=False, index=True)
    teacher_name = db.Column(db.String(120), nullable=False, default='')
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'grade': self.grade,
            'subject': self.subject,
            'title': self.title,
            'description': self.description,
            'teacher_id': self.teacher_id,
            'teacher_name': self.teacher_name,
            'timestamp': _iso(self.timestamp),
        }
        if self.file_url:
            data['file_url'] = self.file_url
            data['file_name'] = self.file_name
        return data

    def __repr__(self) -> str:
        return f"<Homework {self.grade}/{self.subject} {self.title!r}>"


class ExamTerm(db.Model):
    __tablename__ = 'exam_terms'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(60), nullable=False)
    academic_year = db.Column(db.String(9), nullable=False, index=True)  # e.g. 2025-2026
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow,
                                     onupdate=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'academic_year': self.academic_year,
            'start_date': _iso(self.start_date),
            'end_date': _iso(self.end_date),
            'is_active': self.is_active,
        }

    def __repr__(self) -> str:
        return f"<ExamTerm {self.name} {self.academic_year}>"


class Grade(db.Model):
    """A grade offered by the school; ``order`` <= 0 hides it from lists."""

    __tablename__ = 'grades'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(20), unique=True, nullable=False)
    order = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Grade {self.name} order={self.order}>"


class Fee(db.Model):
    """Monthly fee configured for a grade; keyed by the grade name."""

    __tablename__ = 'fees'

    grade = db.Column(db.String(20), primary_key=True)
    monthly_fee = db.Column(db.Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<Fee {self.grade}={self.monthly_fee}>"
