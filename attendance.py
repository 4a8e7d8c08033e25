"""Attendance keying, lookup and saving.

An attendance slot is one student, one subject, one day. The day is stored
twice: as the Gregorian ISO date and as the Bikram Sambat date. Lookups try
the BS key first and fall back to the Gregorian key so rows written before the
BS key was introduced are still found. If several rows answer for the same
slot the first one returned by the store wins.

Saving reuses the row found for the slot, which keeps repeated status changes
from piling up duplicate rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from app_logging import get_logger
from errors import ValidationFailed
from models import Attendance
from nepali_calendar import BsDate, from_bs, parse_date_string, to_bs, today_bs
from validation import validate_attendance_status

_logger = get_logger('school.attendance')


@dataclass(frozen=True)
class AttendanceDay:
    """A school day in both calendars."""

    ad: date
    bs: BsDate

    @classmethod
    def from_bs(cls, year: int, month: int, day: int) -> 'AttendanceDay':
        try:
            ad = from_bs(year, month, day)
        except ValueError as exc:
            raise ValidationFailed({'bs_date': 'Enter a valid Bikram Sambat date'}) from exc
        return cls(ad=ad, bs=BsDate(year, month, day))

    @classmethod
    def from_ad(cls, ad: date) -> 'AttendanceDay':
        try:
            bs = to_bs(ad)
        except ValueError as exc:
            raise ValidationFailed({'date': 'Date is outside the supported calendar range'}) from exc
        return cls(ad=ad, bs=bs)

    @classmethod
    def parse(cls, bs_date: Optional[str] = None, ad_date: Optional[str] = None) -> 'AttendanceDay':
        """Day from a ``YYYY-MM-DD`` BS or AD string; today when both are empty."""
        if bs_date:
            parts = parse_date_string(bs_date)
            if parts is None:
                raise ValidationFailed({'bs_date': 'Enter date in YYYY-MM-DD format'})
            return cls.from_bs(*parts)
        if ad_date:
            parts = parse_date_string(ad_date)
            if parts is None:
                raise ValidationFailed({'date': 'Enter date in YYYY-MM-DD format'})
            try:
                return cls.from_ad(date(*parts))
            except ValueError as exc:
                raise ValidationFailed({'date': 'Enter a valid date'}) from exc
        bs = today_bs()
        return cls(ad=bs.to_ad(), bs=bs)

    def key(self, student_id: str, subject: str) -> 'AttendanceKey':
        return AttendanceKey(student_id=student_id, subject=subject, day=self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.ad.isoformat(),
            'bs_date': self.bs.key(),
            'bs_label': self.bs.label(),
            'bs_label_nepali': self.bs.label(nepali_digits=True),
        }


@dataclass(frozen=True)
class AttendanceKey:
    student_id: str
    subject: str
    day: AttendanceDay

    @property
    def bs_date(self) -> str:
        return self.day.bs.key()

    @property
    def ad_date(self) -> str:
        return self.day.ad.isoformat()

    def fields(self) -> Dict[str, Any]:
        """Both calendar keys, as written on every saved row."""
        return {
            'student_id': self.student_id,
            'subject': self.subject,
            'date': self.ad_date,
            'bs_date': self.bs_date,
            'bs_year': self.day.bs.year,
            'bs_month': self.day.bs.month,
            'bs_day': self.day.bs.day,
        }


def find_attendance(gateway, key: AttendanceKey) -> Optional[Attendance]:
    record = gateway.first(Attendance, student_id=key.student_id, bs_date=key.bs_date, subject=key.subject)
    if record is None:
        record = gateway.first(Attendance, student_id=key.student_id, date=key.ad_date, subject=key.subject)
        if record is not None:
            _logger.debug('attendance found by legacy date key', extra={'attendance_id': record.id})
    return record


def _same_slot(record: Attendance, key: AttendanceKey) -> bool:
    if record.student_id != key.student_id or record.subject != key.subject:
        return False
    return record.bs_date == key.bs_date or record.date == key.ad_date


def _resolve_existing(gateway, key: AttendanceKey, existing_id: Optional[str]) -> Optional[Attendance]:
    """Row for the slot; a client-sent id only counts when it names this slot."""
    if existing_id:
        record = gateway.get(Attendance, existing_id)
        if record is not None and _same_slot(record, key):
            return record
    return find_attendance(gateway, key)


def _row_fields(key: AttendanceKey, status: str, teacher, grade: str) -> Dict[str, Any]:
    fields = key.fields()
    fields.update(
        status=status,
        teacher_id=teacher.id if teacher else '',
        teacher_name=teacher.name if teacher else '',
        grade=grade,
    )
    return fields


def save_attendance(gateway, key: AttendanceKey, status: str, teacher, grade: str,
                    existing_id: Optional[str] = None) -> Attendance:
    """Record ``status`` for the slot, updating its row in place when one exists."""
    validate_attendance_status(status)
    fields = _row_fields(key, status, teacher, grade)
    record = _resolve_existing(gateway, key, existing_id)
    if record is not None:
        gateway.update(record, **fields)
        return record
    record = Attendance(**fields)
    gateway.save(record)
    return record


def save_attendance_batch(gateway, day: AttendanceDay, subject: str,
                          entries: Sequence[Tuple[str, str]], teacher, grade: str) -> List[Attendance]:
    """Save ``(student_id, status)`` pairs for one day and subject in one batch.

    Existing rows are resolved first; all inserts and updates are then written
    together, so either every slot is saved or none is. A student listed more
    than once keeps the last status given.
    """
    latest: Dict[str, str] = {}
    for student_id, status in entries:
        validate_attendance_status(status)
        latest[student_id] = status

    keyed = [(day.key(student_id, subject), status) for student_id, status in latest.items()]
    existing = [find_attendance(gateway, key) for key, _ in keyed]

    records = []
    for (key, status), record in zip(keyed, existing):
        fields = _row_fields(key, status, teacher, grade)
        if record is None:
            record = Attendance(**fields)
        else:
            for name, value in fields.items():
                setattr(record, name, value)
        records.append(record)

    gateway.save_all(records)
    return records


def load_day_attendance(gateway, students: Iterable, day: AttendanceDay, subject: str) -> List[Dict[str, Any]]:
    """Attendance sheet rows: each student with the status found for the slot."""
    sheet = []
    for student in students:
        record = find_attendance(gateway, day.key(student.id, subject))
        sheet.append({
            'student_id': student.id,
            'name': student.name,
            'roll_number': student.roll_number,
            'attendance_status': record.status if record else '',
            'attendance_id': record.id if record else '',
        })
    return sheet
