"""Class routines.

A grade's day is an ordered list of blocks of three kinds: teaching periods,
the tiffin break and the diary check. They are modelled as separate entry
types and stored in one table tagged by ``kind``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from catalog import SCHOOL_DAYS
from errors import ValidationFailed
from models import ClassRoutine
from validation import check_time_range, text

PERIOD = 'period'
TIFFIN = 'tiffin'
DIARY_CHECK = 'diary_check'

# The tiffin break follows this many periods.
TIFFIN_AFTER_PERIOD = 4


@dataclass(frozen=True)
class Period:
    start_time: str
    end_time: str
    subject: str
    teacher_id: str = ''
    teacher_name: str = ''
    kind = PERIOD


@dataclass(frozen=True)
class TiffinBreak:
    start_time: str
    end_time: str
    kind = TIFFIN


@dataclass(frozen=True)
class DiaryCheck:
    start_time: str
    end_time: str
    kind = DIARY_CHECK


RoutineEntry = Union[Period, TiffinBreak, DiaryCheck]


def build_day(periods: Sequence[Period], tiffin: TiffinBreak, diary_check: DiaryCheck) -> List[RoutineEntry]:
    """Lay out a day: the tiffin break after the fourth period, diary check last.

    Shorter days take the tiffin break after their last period.
    """
    entries: List[RoutineEntry] = []
    for index, period in enumerate(periods, start=1):
        entries.append(period)
        if index == TIFFIN_AFTER_PERIOD:
            entries.append(tiffin)
    if len(periods) < TIFFIN_AFTER_PERIOD:
        entries.append(tiffin)
    entries.append(diary_check)
    return entries


def parse_day(data: Mapping[str, Any]) -> List[RoutineEntry]:
    """Validate a submitted day and return its entries in order."""
    errors: Dict[str, str] = {}

    tiffin_data = data.get('tiffin') or {}
    diary_data = data.get('diary_check') or {}
    tiffin = TiffinBreak(text(tiffin_data, 'start_time'), text(tiffin_data, 'end_time'))
    diary_check = DiaryCheck(text(diary_data, 'start_time'), text(diary_data, 'end_time'))
    check_time_range(errors, 'tiffin', 'Tiffin Break', tiffin.start_time, tiffin.end_time)
    check_time_range(errors, 'diary_check', 'Diary Check', diary_check.start_time, diary_check.end_time)

    periods = []
    raw_periods = data.get('periods') or []
    if not raw_periods:
        errors['periods'] = 'Add at least one period'
    for number, raw in enumerate(raw_periods, start=1):
        period = Period(
            start_time=text(raw, 'start_time'),
            end_time=text(raw, 'end_time'),
            subject=text(raw, 'subject'),
            teacher_id=text(raw, 'teacher_id'),
            teacher_name=text(raw, 'teacher_name'),
        )
        check_time_range(errors, f"periods.{number}", f"Period {number}", period.start_time, period.end_time)
        if not period.subject:
            errors[f"periods.{number}.subject"] = f"Please select a subject for Period {number}"
        periods.append(period)

    if errors:
        raise ValidationFailed(errors)
    return build_day(periods, tiffin, diary_check)


def validate_grade_day(grade: str, day: str) -> None:
    errors = {}
    if not grade:
        errors['grade'] = 'Please select a grade'
    if day not in SCHOOL_DAYS:
        errors['day'] = f"Day must be one of {', '.join(SCHOOL_DAYS)}"
    if errors:
        raise ValidationFailed(errors)


def to_record(grade: str, day: str, entry: RoutineEntry) -> ClassRoutine:
    record = ClassRoutine(grade=grade, day=day, kind=entry.kind,
                          start_time=entry.start_time, end_time=entry.end_time)
    if isinstance(entry, Period):
        record.subject = entry.subject
        record.teacher_id = entry.teacher_id or None
        record.teacher_name = entry.teacher_name or None
    return record


def from_record(record: ClassRoutine) -> RoutineEntry:
    if record.kind == TIFFIN:
        return TiffinBreak(record.start_time, record.end_time)
    if record.kind == DIARY_CHECK:
        return DiaryCheck(record.start_time, record.end_time)
    return Period(record.start_time, record.end_time, record.subject or '',
                  record.teacher_id or '', record.teacher_name or '')


def entry_to_dict(entry: RoutineEntry, record_id: Optional[str] = None) -> Dict[str, Any]:
    data: Dict[str, Any] = {'kind': entry.kind, 'start_time': entry.start_time, 'end_time': entry.end_time}
    if record_id:
        data['id'] = record_id
    if isinstance(entry, Period):
        data.update(subject=entry.subject, teacher_id=entry.teacher_id, teacher_name=entry.teacher_name)
    return data


def load_day(gateway, grade: str, day: str) -> List[Dict[str, Any]]:
    """Saved blocks of a grade's day ordered by start time."""
    records = gateway.find(ClassRoutine, grade=grade, day=day)
    records.sort(key=lambda record: record.start_time or '')
    return [entry_to_dict(from_record(record), record.id) for record in records]


def save_day(gateway, grade: str, day: str, entries: Sequence[RoutineEntry]) -> List[str]:
    """Write the day's blocks together; a failure saves none of them."""
    return gateway.save_all([to_record(grade, day, entry) for entry in entries])
