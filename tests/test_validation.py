import pytest

from errors import ValidationFailed
from validation import validate_attendance, validate_student, validate_teacher


def student_form(**overrides):
    form = {
        'first_name': 'Ram',
        'last_name': 'Shrestha',
        'roll_number': '4',
        'father_name': 'Hari Shrestha',
        'contact_number': '9812345678',
        'dob': '2066-05-12',
        'dues': '0',
        'grade': '7',
    }
    form.update(overrides)
    return form


def teacher_form(**overrides):
    form = {
        'name': 'Maya Gurung',
        'email': 'maya@example.com',
        'phone': '9812345678',
        'qualification': 'M.Ed',
        'roles': ['subject_teacher'],
    }
    form.update(overrides)
    return form


def errors_for(validator, form):
    with pytest.raises(ValidationFailed) as excinfo:
        validator(form)
    return excinfo.value.errors


def test_valid_forms_pass():
    validate_student(student_form())
    validate_student(student_form(dues='', dob=''))
    validate_teacher(teacher_form())


@pytest.mark.parametrize('contact, message', [
    ('98123', 'Enter a valid 10-digit contact number'),
    ('98123456ab', 'Enter a valid 10-digit contact number'),
    ('', 'Contact number is required'),
])
def test_student_contact_number_must_have_ten_digits(contact, message):
    assert errors_for(validate_student, student_form(contact_number=contact))['contact_number'] == message


def test_student_dues_cannot_be_negative():
    assert errors_for(validate_student, student_form(dues='-5'))['dues'] == 'Dues cannot be negative'


def test_student_problems_are_collected_together():
    errors = errors_for(validate_student, student_form(first_name='', grade='', dob='12/05/2066'))
    assert set(errors) == {'first_name', 'grade', 'dob'}


def test_teacher_needs_known_roles_and_class_for_class_teacher():
    assert 'roles' in errors_for(validate_teacher, teacher_form(roles=[]))
    assert 'roles' in errors_for(validate_teacher, teacher_form(roles=['janitor']))
    errors = errors_for(validate_teacher, teacher_form(roles=['class_teacher']))
    assert errors == {'assigned_class': 'Class teacher must have an assigned class'}


def test_teacher_email_and_phone_are_checked():
    errors = errors_for(validate_teacher, teacher_form(email='not-an-email', phone='123'))
    assert errors['email'] == 'Enter a valid email address'
    assert errors['phone'] == 'Enter a valid 10-digit phone number'


def test_attendance_needs_a_subject_and_a_student_or_grade():
    assert errors_for(validate_attendance, {'student_id': 's1', 'subject': ''}) == {
        'subject': 'Please select a subject',
    }
    assert set(errors_for(lambda data: validate_attendance(data, bulk=True), {})) == {'grade', 'subject'}
    validate_attendance({'grade': '10', 'subject': 'Mathematics'}, bulk=True)
