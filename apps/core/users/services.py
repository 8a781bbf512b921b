"""Lookups behind the login panel. They select a user; they do not authenticate one."""
import re

from apps.core.dashboard.exceptions import EntityNotFound, InvalidAction
from apps.core.dashboard.models import User, choice_values


_WHITESPACE = re.compile(r'\s+')


def normalize_phone(phone):
    return _WHITESPACE.sub('', str(phone or ''))


def users_for_role(state, role):
    if role not in choice_values(User.ROLE_CHOICES):
        raise InvalidAction(f'Unknown role "{role}".', {'role': role})
    return sorted(
        (user for user in state.users.values() if user.role == role),
        key=lambda user: user.name.lower(),
    )


def find_teacher_user_by_code(state, code):
    code = str(code or '').strip()
    teacher = next(
        (teacher for teacher in state.teachers.values() if code and teacher.telegram_code == code),
        None,
    )
    if teacher is None:
        raise EntityNotFound('teacher', code, 'Invalid Telegram code')

    for user in state.users.values():
        if user.role == User.ROLE_TEACHER and user.related_teacher_id == teacher.id:
            return user
    raise EntityNotFound('user', teacher.id, 'Teacher account not linked')


def find_parent_user_by_phone(state, phone):
    wanted = normalize_phone(phone)
    if wanted:
        for user in state.users.values():
            if user.role == User.ROLE_PARENT and normalize_phone(user.phone) == wanted:
                return user
    raise EntityNotFound('user', phone, 'Parent phone not found')
