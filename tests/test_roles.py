import pytest

from roles import AccessTier, classify, is_admin, normalize_roles, role_text


@pytest.mark.parametrize('roles, tier', [
    (['subject_teacher', 'principal'], AccessTier.PRINCIPAL),
    (['class_teacher', 'computer_teacher'], AccessTier.COMPUTER_TEACHER),
    (['subject_teacher', 'class_teacher'], AccessTier.CLASS_TEACHER),
    (['subject_teacher'], AccessTier.SUBJECT_TEACHER),
    ([], AccessTier.TEACHER),
    (None, AccessTier.TEACHER),
    (['librarian'], AccessTier.TEACHER),
])
def test_classify_picks_highest_ranking_role(roles, tier):
    assert classify(roles) is tier


def test_unknown_roles_are_ignored():
    assert normalize_roles(['principal', ' class_teacher ', 'janitor']) == {'principal', 'class_teacher'}
    assert classify(['janitor', 'subject_teacher']) is AccessTier.SUBJECT_TEACHER


def test_only_principal_and_computer_teacher_are_admins():
    assert is_admin(AccessTier.PRINCIPAL)
    assert is_admin(AccessTier.COMPUTER_TEACHER)
    assert not is_admin(AccessTier.CLASS_TEACHER)
    assert not is_admin(AccessTier.SUBJECT_TEACHER)
    assert not is_admin(AccessTier.TEACHER)


def test_role_text_labels():
    assert role_text(['principal', 'class_teacher'], '5') == 'Principal'
    assert role_text(['class_teacher'], '5') == 'Class Teacher - Grade 5'
    assert role_text(['subject_teacher']) == 'Subject Teacher'
    assert role_text([]) == 'Teacher'
