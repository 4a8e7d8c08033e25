from datetime import date

import pytest

from attendance import AttendanceDay, find_attendance, save_attendance, save_attendance_batch
from errors import ValidationFailed
from gateway import StoreGateway
from models import Attendance
from nepali_calendar import BsDate, to_bs

# 1 Baishakh 2081 BS
NEW_YEAR_BS = '2081-01-01'
NEW_YEAR_AD = date(2024, 4, 13)


def test_bs_and_ad_keys_describe_the_same_day():
    day = AttendanceDay.parse(bs_date=NEW_YEAR_BS)
    assert day.ad == NEW_YEAR_AD
    assert AttendanceDay.parse(ad_date='2024-04-13') == day
    assert to_bs(NEW_YEAR_AD) == BsDate(2081, 1, 1)


def test_bs_key_is_zero_padded():
    key = AttendanceDay.from_bs(2081, 1, 5).key('s1', 'English')
    assert key.bs_date == '2081-01-05'
    assert key.fields()['bs_month'] == 1


@pytest.mark.parametrize('value', ['2081-1-5', '05/01/2081', 'yesterday'])
def test_malformed_bs_date_is_rejected(value):
    with pytest.raises(ValidationFailed) as excinfo:
        AttendanceDay.parse(bs_date=value)
    assert 'bs_date' in excinfo.value.errors


def test_impossible_bs_date_is_rejected():
    with pytest.raises(ValidationFailed):
        AttendanceDay.parse(bs_date='2081-13-01')


def test_empty_dates_mean_today():
    assert AttendanceDay.parse().ad == date.today()


def test_saving_twice_updates_the_same_row(app, school):
    with app.app_context():
        gateway = StoreGateway()
        key = AttendanceDay.parse(bs_date=NEW_YEAR_BS).key(school.ten_students[0], 'Mathematics')
        first = save_attendance(gateway, key, 'present', None, '10')
        second = save_attendance(gateway, key, 'absent', None, '10')

        assert first.id == second.id
        rows = gateway.find(Attendance, student_id=key.student_id)
        assert len(rows) == 1
        assert rows[0].status == 'absent'
        assert rows[0].bs_date == NEW_YEAR_BS
        assert rows[0].date == '2024-04-13'


def test_legacy_row_without_bs_key_is_found_and_upgraded(app, school):
    with app.app_context():
        gateway = StoreGateway()
        legacy = Attendance(student_id=school.nine_student, date='2024-04-13', subject='Science',
                            status='present', grade='9')
        gateway.save(legacy)

        key = AttendanceDay.parse(bs_date=NEW_YEAR_BS).key(school.nine_student, 'Science')
        assert find_attendance(gateway, key).id == legacy.id

        saved = save_attendance(gateway, key, 'late', None, '9')
        assert saved.id == legacy.id
        rows = gateway.find(Attendance, student_id=school.nine_student)
        assert len(rows) == 1
        assert rows[0].bs_date == NEW_YEAR_BS
        assert rows[0].status == 'late'


def test_other_subject_on_same_day_is_a_separate_slot(app, school):
    with app.app_context():
        gateway = StoreGateway()
        day = AttendanceDay.parse(bs_date=NEW_YEAR_BS)
        save_attendance(gateway, day.key(school.nine_student, 'Science'), 'present', None, '9')
        save_attendance(gateway, day.key(school.nine_student, 'English'), 'absent', None, '9')
        assert len(gateway.find(Attendance, student_id=school.nine_student)) == 2


def test_unknown_status_is_rejected(app, school):
    with app.app_context():
        key = AttendanceDay.parse(bs_date=NEW_YEAR_BS).key(school.nine_student, 'Science')
        with pytest.raises(ValidationFailed):
            save_attendance(StoreGateway(), key, 'sick', None, '9')


def test_batch_updates_existing_rows_and_inserts_new_ones(app, school):
    with app.app_context():
        gateway = StoreGateway()
        day = AttendanceDay.parse(bs_date=NEW_YEAR_BS)
        existing = save_attendance(gateway, day.key(school.ten_students[0], 'Mathematics'), 'absent', None, '10')

        saved = save_attendance_batch(
            gateway, day, 'Mathematics',
            [(school.ten_students[0], 'present'), (school.ten_students[1], 'late')],
            None, '10',
        )

        assert saved[0].id == existing.id
        rows = gateway.find(Attendance, subject='Mathematics')
        assert {(row.student_id, row.status) for row in rows} == {
            (school.ten_students[0], 'present'),
            (school.ten_students[1], 'late'),
        }


def test_attendance_id_from_another_day_is_ignored(app, school):
    with app.app_context():
        gateway = StoreGateway()
        student_id = school.ten_students[0]
        first = save_attendance(gateway, AttendanceDay.from_bs(2081, 1, 1).key(student_id, 'Mathematics'),
                                'present', None, '10')
        second = save_attendance(gateway, AttendanceDay.from_bs(2081, 1, 2).key(student_id, 'Mathematics'),
                                 'absent', None, '10', existing_id=first.id)

        assert second.id != first.id
        rows = {row.bs_date: row.status for row in gateway.find(Attendance, student_id=student_id)}
        assert rows == {'2081-01-01': 'present', '2081-01-02': 'absent'}


def test_batch_keeps_last_status_for_a_repeated_student(app, school):
    with app.app_context():
        gateway = StoreGateway()
        student_id = school.ten_students[0]
        saved = save_attendance_batch(
            gateway, AttendanceDay.parse(bs_date=NEW_YEAR_BS), 'Mathematics',
            [(student_id, 'present'), (school.ten_students[1], 'late'), (student_id, 'absent')],
            None, '10',
        )

        assert len(saved) == 2
        rows = gateway.find(Attendance, student_id=student_id)
        assert [row.status for row in rows] == ['absent']
