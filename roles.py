"""Role classification.

A teacher may hold several roles; access is decided by the single highest
ranking one. Principals and computer teachers administer the school and see
everything, class teachers look after one grade, subject teachers act on the
grade/subject pairs assigned to them.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional


class Role(str, Enum):
    PRINCIPAL = 'principal'
    COMPUTER_TEACHER = 'computer_teacher'
    CLASS_TEACHER = 'class_teacher'
    SUBJECT_TEACHER = 'subject_teacher'


class AccessTier(str, Enum):
    PRINCIPAL = 'principal'
    COMPUTER_TEACHER = 'computer_teacher'
    CLASS_TEACHER = 'class_teacher'
    SUBJECT_TEACHER = 'subject_teacher'
    TEACHER = 'teacher'


# Highest priority first.
_PRIORITY = (
    (Role.PRINCIPAL, AccessTier.PRINCIPAL),
    (Role.COMPUTER_TEACHER, AccessTier.COMPUTER_TEACHER),
    (Role.CLASS_TEACHER, AccessTier.CLASS_TEACHER),
    (Role.SUBJECT_TEACHER, AccessTier.SUBJECT_TEACHER),
)

ADMIN_TIERS = frozenset({AccessTier.PRINCIPAL, AccessTier.COMPUTER_TEACHER})

KNOWN_ROLES = frozenset(role.value for role in Role)


def normalize_roles(roles: Optional[Iterable[str]]) -> frozenset:
    """Known role names from ``roles``; unknown strings are dropped."""
    return frozenset(str(role).strip() for role in (roles or ()) if str(role).strip() in KNOWN_ROLES)


def classify(roles: Optional[Iterable[str]]) -> AccessTier:
    held = normalize_roles(roles)
    for role, tier in _PRIORITY:
        if role.value in held:
            return tier
    return AccessTier.TEACHER


def is_admin(tier: AccessTier) -> bool:
    return tier in ADMIN_TIERS


def role_text(roles: Optional[Iterable[str]], assigned_class: str = '') -> str:
    """Dashboard label for the highest ranking role."""
    tier = classify(roles)
    if tier is AccessTier.PRINCIPAL:
        return 'Principal'
    if tier is AccessTier.COMPUTER_TEACHER:
        return 'Computer Teacher'
    if tier is AccessTier.CLASS_TEACHER:
        return f"Class Teacher - Grade {assigned_class}"
    if tier is AccessTier.SUBJECT_TEACHER:
        return 'Subject Teacher'
    return 'Teacher'
