from datetime import date
from types import SimpleNamespace

import pytest

from catalog import current_academic_year, default_monthly_fee, sort_students


@pytest.mark.parametrize('grade, fee', [
    ('P.G', 1200),
    ('Nursery', 1200),
    ('LKG', 1300),
    ('UKG', 1400),
    ('1', 1500),
    ('10', 2400),
    ('12', 2600),
    ('Unknown', 0),
])
def test_default_monthly_fee(grade, fee):
    assert default_monthly_fee(grade) == fee


def test_academic_year_turns_over_in_april():
    assert current_academic_year(date(2025, 3, 31)) == '2024-2025'
    assert current_academic_year(date(2025, 4, 1)) == '2025-2026'


def test_students_sort_numerically_with_non_numbers_last():
    students = [SimpleNamespace(grade='10', roll_number=roll) for roll in ('10', 'A', '2', '1')]
    assert [s.roll_number for s in sort_students(students)] == ['1', '2', '10', 'A']


def test_students_sort_by_grade_then_roll():
    students = [
        SimpleNamespace(grade='10', roll_number='1'),
        SimpleNamespace(grade='9', roll_number='3'),
        SimpleNamespace(grade='9', roll_number='2'),
    ]
    ordered = sort_students(students, by_grade=True)
    assert [(s.grade, s.roll_number) for s in ordered] == [('9', '2'), ('9', '3'), ('10', '1')]
