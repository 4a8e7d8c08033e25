import pytest

from errors import ValidationFailed
from gateway import StoreGateway
from routines import (
    DIARY_CHECK,
    PERIOD,
    TIFFIN,
    DiaryCheck,
    Period,
    TiffinBreak,
    load_day,
    parse_day,
    save_day,
    validate_grade_day,
)


def period(start, end, subject='English'):
    return {'start_time': start, 'end_time': end, 'subject': subject}


def day_payload(periods):
    return {
        'periods': periods,
        'tiffin': {'start_time': '12:00', 'end_time': '12:30'},
        'diary_check': {'start_time': '15:30', 'end_time': '15:45'},
    }


FIVE_PERIODS = [
    period('10:00', '10:40', 'English'),
    period('10:40', '11:20', 'Nepali'),
    period('11:20', '12:00', 'Mathematics'),
    period('12:30', '13:10', 'Science'),
    period('13:10', '13:50', 'Computer'),
]


def test_tiffin_follows_fourth_period_and_diary_check_comes_last():
    entries = parse_day(day_payload(FIVE_PERIODS))
    kinds = [entry.kind for entry in entries]
    assert kinds == [PERIOD, PERIOD, PERIOD, PERIOD, TIFFIN, PERIOD, DIARY_CHECK]
    assert isinstance(entries[4], TiffinBreak)
    assert isinstance(entries[-1], DiaryCheck)
    assert entries[0] == Period('10:00', '10:40', 'English')


def test_short_day_takes_tiffin_after_last_period():
    entries = parse_day(day_payload(FIVE_PERIODS[:2]))
    assert [entry.kind for entry in entries] == [PERIOD, PERIOD, TIFFIN, DIARY_CHECK]


def test_every_problem_is_reported_at_once():
    payload = day_payload([period('10:00', '10:40'), period('11:00', '10:30', ''), {'subject': 'Nepali'}])
    payload['tiffin'] = {}
    with pytest.raises(ValidationFailed) as excinfo:
        parse_day(payload)
    errors = excinfo.value.errors
    assert 'periods.1' not in errors
    assert errors['periods.2'] == 'Period 2 must end after it starts'
    assert errors['periods.2.subject'] == 'Please select a subject for Period 2'
    assert errors['periods.3'] == 'Please set times for Period 3'
    assert errors['tiffin'] == 'Please set times for Tiffin Break'


def test_day_without_periods_is_rejected():
    with pytest.raises(ValidationFailed) as excinfo:
        parse_day(day_payload([]))
    assert 'periods' in excinfo.value.errors


def test_grade_and_day_are_checked():
    validate_grade_day('5', 'Friday')
    with pytest.raises(ValidationFailed) as excinfo:
        validate_grade_day('', 'Saturday')
    assert set(excinfo.value.errors) == {'grade', 'day'}


def test_saved_day_loads_back_sorted_by_start_time(app):
    with app.app_context():
        gateway = StoreGateway()
        ids = save_day(gateway, '5', 'Monday', parse_day(day_payload(FIVE_PERIODS)))
        assert len(ids) == 7

        routine = load_day(gateway, '5', 'Monday')
        assert [block['start_time'] for block in routine] == sorted(block['start_time'] for block in routine)
        tiffin = [block for block in routine if block['kind'] == TIFFIN]
        assert tiffin == [{'kind': TIFFIN, 'start_time': '12:00', 'end_time': '12:30', 'id': tiffin[0]['id']}]
        assert 'subject' not in tiffin[0]
        assert load_day(gateway, '5', 'Tuesday') == []
