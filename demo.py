"""Canned identity and records served in demo mode."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List

from catalog import current_academic_year, default_monthly_fee
from models import ClassRoutine, ExamTerm, Homework, Student, Teacher, TeacherAssignment

DEMO_TEACHER_ID = 'demo123'
DEMO_GRADE = '10'
PLACEHOLDER_IMAGE_URL = '/placeholder-user.jpg'


def demo_teacher() -> Teacher:
    return Teacher(
        id=DEMO_TEACHER_ID,
        name='DEMO TEACHER',
        email='demo@sajhaschool.edu',
        phone='9876543210',
        qualification='M.Ed',
        profile_image_url='',
        roles=['principal', 'computer_teacher'],
        assigned_class=DEMO_GRADE,
        active=True,
    )


def _teachers() -> List[Teacher]:
    return [
        demo_teacher(),
        Teacher(id='teacher1', name='JOHN DOE', email='john@sajhaschool.edu', phone='9876543211',
                qualification='B.Ed', profile_image_url='', roles=['class_teacher'],
                assigned_class='9', active=True),
        Teacher(id='teacher2', name='JANE SMITH', email='jane@sajhaschool.edu', phone='9876543212',
                qualification='M.Sc', profile_image_url='', roles=['subject_teacher'],
                assigned_class='', active=True),
    ]


def _students() -> List[Student]:
    students = []
    for i in range(10):
        uses_bus = i % 3 == 0
        students.append(Student(
            id=f"student{i + 1}",
            first_name='Student',
            middle_name='',
            last_name=str(i + 1),
            name=f"Student {i + 1}",
            father_name=f"Father {i + 1}",
            mother_name=f"Mother {i + 1}",
            contact_number=f"98765{i:05d}",
            dob='2065-01-15',
            roll_number=str(i + 1),
            grade=DEMO_GRADE,
            symbol_number=None,
            address='Kathmandu',
            uses_bus=uses_bus,
            bus_route='Route A' if uses_bus else '',
            profile_picture_url='',
            monthly_fee=default_monthly_fee(DEMO_GRADE),
            transportation_fee=500 if uses_bus else 0,
            dues=1500 if i % 5 == 0 else 0,
            attendance=0,
            total_classes=0,
            subjects=[],
            total_marks=0,
            percentage=0,
            rank=0,
        ))
    return students


def _assignments() -> List[TeacherAssignment]:
    year = current_academic_year()
    return [
        TeacherAssignment(id=f"assignment{n}", teacher_id='teacher2', teacher_name='JANE SMITH',
                          grade=DEMO_GRADE, subject=subject, academic_year=year)
        for n, subject in enumerate(('Mathematics', 'English', 'Science'), start=1)
    ]


def _homework() -> List[Homework]:
    return [
        Homework(id='homework1', grade=DEMO_GRADE, subject='Mathematics', title='Algebra Exercise 3.2',
                 description='Solve all questions from exercise 3.2.', teacher_id=DEMO_TEACHER_ID,
                 teacher_name='DEMO TEACHER', timestamp=datetime(2025, 4, 22, tzinfo=timezone.utc)),
        Homework(id='homework2', grade='9', subject='Science', title='Photosynthesis Notes',
                 description='Write short notes on photosynthesis.', teacher_id='teacher1',
                 teacher_name='JOHN DOE', timestamp=datetime(2025, 4, 20, tzinfo=timezone.utc)),
    ]


def _routines() -> List[ClassRoutine]:
    rows = [
        ('10:00', '10:45', 'period', 'Mathematics'),
        ('10:45', '11:30', 'period', 'English'),
        ('11:30', '12:00', 'tiffin', None),
        ('12:00', '12:45', 'period', 'Science'),
        ('15:30', '15:45', 'diary_check', None),
    ]
    return [
        ClassRoutine(id=f"routine{n}", grade=DEMO_GRADE, day='Sunday', kind=kind, start_time=start,
                     end_time=end, subject=subject,
                     teacher_id=DEMO_TEACHER_ID if subject else None,
                     teacher_name='DEMO TEACHER' if subject else None)
        for n, (start, end, kind, subject) in enumerate(rows, start=1)
    ]


def _exam_terms() -> List[ExamTerm]:
    year = current_academic_year()
    return [
        ExamTerm(id='term1', name='First Term', academic_year=year, is_active=True),
        ExamTerm(id='term2', name='Second Term', academic_year=year, is_active=False),
    ]


def canned_records() -> Dict[type, list]:
    """Fresh canned records; callers may mutate them freely."""
    return {
        Teacher: _teachers(),
        Student: _students(),
        TeacherAssignment: _assignments(),
        Homework: _homework(),
        ClassRoutine: _routines(),
        ExamTerm: _exam_terms(),
    }
