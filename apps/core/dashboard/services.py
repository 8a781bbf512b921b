from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from typing import Callable
from uuid import uuid4

from django.conf import settings
from django.utils import timezone

from .actions import (
    AddBranch,
    AddGroup,
    AddStudent,
    AddTeacher,
    AssignTeacher,
    CreateKindergarten,
    RecordAttendance,
    RecordPayment,
    ReviewApplication,
    SendNotification,
    SubmitApplication,
    UpdateSettings,
)
from .exceptions import (
    DashboardError,
    EntityNotFound,
    InvalidAction,
    LoginCodeUnavailable,
    ReferenceMismatch,
)
from .models import (
    AttendanceRecord,
    Branch,
    DashboardState,
    Group,
    Kindergarten,
    KindergartenApplication,
    NotificationEntry,
    PaymentRecord,
    Student,
    Teacher,
    User,
    choice_values,
)


logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid4().hex


@dataclass(frozen=True)
class DispatchContext:
    """Sources of time, identifiers and randomness used while applying actions."""

    clock: Callable = timezone.now
    id_factory: Callable[[], str] = _new_id
    rng: random.Random = field(default_factory=random.SystemRandom)


@dataclass(frozen=True)
class DispatchResult:
    state: DashboardState
    error: DashboardError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _login_code_attempts() -> int:
    return int(getattr(settings, 'DASHBOARD_LOGIN_CODE_ATTEMPTS', 50))


def _require(mapping, entity, entity_id):
    obj = mapping.get(entity_id) if entity_id else None
    if obj is None:
        raise EntityNotFound(entity, entity_id)
    return obj


def _with(mapping, obj):
    return {**mapping, obj.id: obj}


def _require_whole_number(value, field, *, minimum):
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise InvalidAction(
            f'{field.replace("_", " ").capitalize()} must be a whole number of at least {minimum}.',
            {field: value},
        )
    return value


def _require_choice(value, choices, field):
    if value not in choice_values(choices):
        raise InvalidAction(f'Unknown {field.replace("_", " ")} "{value}".', {field: value})
    return value


def _register_kindergarten(state, *, name, director_name, director_email, context, application_id=None):
    kindergarten_id = context.id_factory()
    director_id = context.id_factory()

    kindergarten = Kindergarten(
        id=kindergarten_id,
        name=name,
        director_id=director_id,
        status=Kindergarten.STATUS_ACTIVE,
        application_id=application_id,
    )
    director = User(
        id=director_id,
        role=User.ROLE_DIRECTOR,
        name=director_name,
        email=director_email,
        related_kindergarten_id=kindergarten_id,
    )
    return replace(
        state,
        kindergartens=_with(state.kindergartens, kindergarten),
        users=_with(state.users, director),
    )


def generate_telegram_code(state: DashboardState, name: str, context: DispatchContext) -> str:
    """Build ``FIRSTNAME-NNNN`` and redraw the number until no teacher holds the code."""
    words = name.split()
    prefix = words[0].upper() if words else 'TEACHER'
    taken = {teacher.telegram_code for teacher in state.teachers.values()}

    attempts = _login_code_attempts()
    for _ in range(attempts):
        code = f'{prefix}-{context.rng.randint(1000, 9999)}'
        if code not in taken:
            return code
        logger.debug('Telegram code %s already taken, drawing again.', code)
    raise LoginCodeUnavailable(prefix, attempts)


def _create_kindergarten(state, action: CreateKindergarten, context):
    return _register_kindergarten(
        state,
        name=action.name,
        director_name=action.director_name,
        director_email=action.director_email,
        context=context,
    )


def _submit_application(state, action: SubmitApplication, context):
    application = KindergartenApplication(
        id=context.id_factory(),
        name=action.name,
        director_name=action.director_name,
        director_email=action.director_email,
        submitted_at=context.clock(),
    )
    return replace(state, applications=_with(state.applications, application))


def _review_application(state, action: ReviewApplication, context):
    application = _require(state.applications, 'application', action.application_id)
    if action.status not in KindergartenApplication.REVIEW_STATUSES:
        raise InvalidAction(
            f'Applications can only be approved or rejected, not "{action.status}".',
            {'status': action.status},
        )

    was_reviewed = application.is_reviewed
    reviewed = replace(
        application,
        status=action.status,
        reviewer_id=action.reviewer_id,
        reviewed_at=context.clock(),
        notes=action.notes,
    )
    state = replace(state, applications=_with(state.applications, reviewed))

    # A re-review only rewrites the review metadata.
    if action.status == KindergartenApplication.STATUS_APPROVED and not was_reviewed:
        state = _register_kindergarten(
            state,
            name=application.name,
            director_name=application.director_name,
            director_email=application.director_email,
            context=context,
            application_id=application.id,
        )
    return state


def _add_branch(state, action: AddBranch, context):
    kindergarten = _require(state.kindergartens, 'kindergarten', action.kindergarten_id)
    branch = Branch(
        id=context.id_factory(),
        kindergarten_id=kindergarten.id,
        name=action.name,
        address=action.address,
    )
    kindergarten = replace(kindergarten, branch_ids=kindergarten.branch_ids + (branch.id,))
    return replace(
        state,
        branches=_with(state.branches, branch),
        kindergartens=_with(state.kindergartens, kindergarten),
    )


def _branch_of_kindergarten(state, kindergarten_id, branch_id):
    kindergarten = _require(state.kindergartens, 'kindergarten', kindergarten_id)
    branch = _require(state.branches, 'branch', branch_id)
    if branch.kindergarten_id != kindergarten.id:
        raise ReferenceMismatch(
            f'Branch "{branch.id}" does not belong to kindergarten "{kindergarten.id}".',
            {'branch_id': branch.id, 'kindergarten_id': kindergarten.id},
        )
    return branch


def _add_group(state, action: AddGroup, context):
    branch = _branch_of_kindergarten(state, action.kindergarten_id, action.branch_id)
    group = Group(
        id=context.id_factory(),
        kindergarten_id=branch.kindergarten_id,
        branch_id=branch.id,
        name=action.name,
        age_range=action.age_range,
    )
    branch = replace(branch, group_ids=branch.group_ids + (group.id,))
    return replace(
        state,
        groups=_with(state.groups, group),
        branches=_with(state.branches, branch),
    )


def _add_teacher(state, action: AddTeacher, context):
    branch = _branch_of_kindergarten(state, action.kindergarten_id, action.branch_id)
    teacher = Teacher(
        id=context.id_factory(),
        kindergarten_id=branch.kindergarten_id,
        branch_id=branch.id,
        name=action.name,
        phone=action.phone,
        telegram_code=generate_telegram_code(state, action.name, context),
    )
    teacher_user = User(
        id=teacher.id,
        role=User.ROLE_TEACHER,
        name=teacher.name,
        phone=teacher.phone,
        related_kindergarten_id=teacher.kindergarten_id,
        related_teacher_id=teacher.id,
    )
    return replace(
        state,
        teachers=_with(state.teachers, teacher),
        users=_with(state.users, teacher_user),
    )


def _assign_teacher(state, action: AssignTeacher, context):
    group = _require(state.groups, 'group', action.group_id)
    next_teacher = None
    if action.teacher_id:
        next_teacher = _require(state.teachers, 'teacher', action.teacher_id)

    next_teacher_id = next_teacher.id if next_teacher else None
    teachers = dict(state.teachers)

    previous_teacher = teachers.get(group.teacher_id) if group.teacher_id else None
    if previous_teacher and previous_teacher.id != next_teacher_id:
        teachers[previous_teacher.id] = replace(
            previous_teacher,
            group_ids=tuple(gid for gid in previous_teacher.group_ids if gid != group.id),
        )

    if next_teacher and group.id not in next_teacher.group_ids:
        teachers[next_teacher.id] = replace(
            next_teacher,
            group_ids=next_teacher.group_ids + (group.id,),
        )

    return replace(
        state,
        groups=_with(state.groups, replace(group, teacher_id=next_teacher_id)),
        teachers=teachers,
    )


def _add_student(state, action: AddStudent, context):
    group = _require(state.groups, 'group', action.group_id)
    if group.branch_id != action.branch_id or group.kindergarten_id != action.kindergarten_id:
        raise ReferenceMismatch(
            f'Group "{group.id}" does not belong to branch "{action.branch_id}" '
            f'of kindergarten "{action.kindergarten_id}".',
            {
                'group_id': group.id,
                'branch_id': action.branch_id,
                'kindergarten_id': action.kindergarten_id,
            },
        )
    _require_whole_number(action.age, 'age', minimum=0)
    _require_whole_number(action.base_monthly_fee, 'base_monthly_fee', minimum=0)

    student_id = context.id_factory()
    parent_user_id = context.id_factory()
    student = Student(
        id=student_id,
        kindergarten_id=group.kindergarten_id,
        branch_id=group.branch_id,
        group_id=group.id,
        name=action.name,
        age=action.age,
        parent_name=action.parent_name,
        parent_phone=action.parent_phone,
        parent_user_id=parent_user_id,
        base_monthly_fee=action.base_monthly_fee,
    )
    parent = User(
        id=parent_user_id,
        role=User.ROLE_PARENT,
        name=action.parent_name,
        phone=action.parent_phone,
        related_parent_student_id=student_id,
    )
    group = replace(group, student_ids=group.student_ids + (student_id,))
    return replace(
        state,
        students=_with(state.students, student),
        groups=_with(state.groups, group),
        users=_with(state.users, parent),
    )


def _record_payment(state, action: RecordPayment, context):
    student = _require(state.students, 'student', action.student_id)
    _require_whole_number(action.amount, 'amount', minimum=1)
    _require_choice(action.method, PaymentRecord.METHOD_CHOICES, 'method')

    payment = PaymentRecord(
        id=context.id_factory(),
        student_id=student.id,
        amount=action.amount,
        paid_at=context.clock(),
        method=action.method,
        recorded_by=action.recorded_by,
        memo=action.memo,
    )
    student = replace(student, payments=(payment,) + student.payments)
    return replace(state, students=_with(state.students, student))


def _send_notification(state, action: SendNotification, context):
    _require_choice(action.audience, NotificationEntry.AUDIENCE_CHOICES, 'audience')
    _require_choice(action.sender_role, User.ROLE_CHOICES, 'sender_role')

    notification = NotificationEntry(
        id=context.id_factory(),
        audience=action.audience,
        sender_id=action.sender_id,
        sender_role=action.sender_role,
        message=action.message,
        created_at=context.clock(),
    )
    return replace(state, notifications=(notification,) + state.notifications)


def _merge(current, **values):
    provided = {name: value for name, value in values.items() if value is not None}
    return replace(current, **provided) if provided else current


def _update_settings(state, action: UpdateSettings, context):
    current = state.settings
    updated = replace(
        current,
        branding=_merge(
            current.branding,
            logo_url=action.logo_url,
            primary_color=action.primary_color,
            accent_color=action.accent_color,
        ),
        localization=_merge(
            current.localization,
            language=action.language,
            currency=action.currency,
        ),
    )
    return replace(state, settings=updated)


def _record_attendance(state, action: RecordAttendance, context):
    student = _require(state.students, 'student', action.student_id)
    _require_choice(action.status, AttendanceRecord.STATUS_CHOICES, 'status')

    if student.attendance_on(action.date) is not None:
        attendance = tuple(
            replace(record, status=action.status, note=action.note) if record.date == action.date else record
            for record in student.attendance
        )
    else:
        record = AttendanceRecord(
            id=context.id_factory(),
            student_id=student.id,
            date=action.date,
            status=action.status,
            recorded_by=action.teacher_id,
            note=action.note,
        )
        attendance = (record,) + student.attendance

    student = replace(student, attendance=attendance)
    return replace(state, students=_with(state.students, student))


_HANDLERS = {
    CreateKindergarten: _create_kindergarten,
    SubmitApplication: _submit_application,
    ReviewApplication: _review_application,
    AddBranch: _add_branch,
    AddGroup: _add_group,
    AddTeacher: _add_teacher,
    AssignTeacher: _assign_teacher,
    AddStudent: _add_student,
    RecordPayment: _record_payment,
    SendNotification: _send_notification,
    UpdateSettings: _update_settings,
    RecordAttendance: _record_attendance,
}


def reduce_action(state: DashboardState, action, context: DispatchContext | None = None) -> DashboardState:
    """Return the state after ``action``; raise ``DashboardError`` when it cannot be applied.

    The input state is never modified. Unknown action kinds return ``state`` itself.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        logger.debug('Ignoring unknown dashboard action %r.', action)
        return state
    return handler(state, action, context or DispatchContext())


def dispatch_action(state: DashboardState, action, context: DispatchContext | None = None) -> DispatchResult:
    try:
        return DispatchResult(state=reduce_action(state, action, context))
    except DashboardError as exc:
        logger.warning(
            'Dashboard action %s rejected [%s]: %s',
            getattr(action, 'type', type(action).__name__),
            exc.error_code,
            exc.message,
        )
        return DispatchResult(state=state, error=exc)


def apply_action(state: DashboardState, action, context: DispatchContext | None = None) -> DashboardState:
    """Legacy transition: a rejected action leaves the state unchanged."""
    return dispatch_action(state, action, context).state
