"""Bikram Sambat helpers built on :mod:`nepali_datetime`."""

from __future__ import annotations

import re
from datetime import date
from typing import NamedTuple, Optional

import nepali_datetime

BS_MONTHS = (
    'Baishakh', 'Jestha', 'Ashadh', 'Shrawan', 'Bhadra', 'Ashwin',
    'Kartik', 'Mangsir', 'Poush', 'Magh', 'Falgun', 'Chaitra',
)

_DATE_PATTERN = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')
_NEPALI_DIGITS = str.maketrans('0123456789', '०१२३४५६७८९')


class BsDate(NamedTuple):
    year: int
    month: int
    day: int

    def key(self) -> str:
        """Zero-padded ``YYYY-MM-DD`` form used as the attendance key."""
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    def to_ad(self) -> date:
        return nepali_datetime.date(self.year, self.month, self.day).to_datetime_date()

    def label(self, nepali_digits: bool = False) -> str:
        text = f"{self.year} {BS_MONTHS[self.month - 1]} {self.day}"
        return to_nepali_digits(text) if nepali_digits else text


def to_bs(ad_date: date) -> BsDate:
    """Convert a Gregorian date; raises ``ValueError`` outside the supported range."""
    try:
        converted = nepali_datetime.date.from_datetime_date(ad_date)
    except OverflowError as exc:
        raise ValueError(f"{ad_date.isoformat()} is outside the Bikram Sambat range") from exc
    return BsDate(converted.year, converted.month, converted.day)


def from_bs(year: int, month: int, day: int) -> date:
    """Gregorian date of a BS day; raises ``ValueError`` for invalid days."""
    try:
        return BsDate(year, month, day).to_ad()
    except OverflowError as exc:
        raise ValueError(f"{year}-{month}-{day} is outside the Bikram Sambat range") from exc


def today_bs() -> BsDate:
    return to_bs(date.today())


def parse_date_string(value: str) -> Optional[tuple]:
    """Split ``YYYY-MM-DD`` into integers, or return ``None`` when malformed."""
    match = _DATE_PATTERN.match((value or '').strip())
    if not match:
        return None
    return tuple(int(part) for part in match.groups())


def to_nepali_digits(value) -> str:
    return str(value).translate(_NEPALI_DIGITS)


__all__ = ['BS_MONTHS', 'BsDate', 'from_bs', 'parse_date_string', 'to_bs', 'to_nepali_digits', 'today_bs']
