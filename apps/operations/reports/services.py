from __future__ import annotations

import csv
from decimal import Decimal
from io import BytesIO, StringIO

from PIL import Image, ImageDraw
from django.conf import settings

from apps.core.attendance.services import summarize_teacher_attendance
from apps.core.dashboard.exceptions import EntityNotFound
from apps.core.dashboard.models import (
    AttendanceRecord,
    DashboardState,
    Kindergarten,
    KindergartenApplication,
    NotificationEntry,
    User,
)


def _feed_size() -> int:
    return int(getattr(settings, 'DASHBOARD_NOTIFICATION_FEED_SIZE', 5))


def user_count_by_role(state: DashboardState):
    counts = {role: 0 for role, _label in User.ROLE_CHOICES}
    for user in state.users.values():
        counts[user.role] = counts.get(user.role, 0) + 1
    return counts


def pending_applications(state: DashboardState):
    return sorted(
        (
            application for application in state.applications.values()
            if application.status == KindergartenApplication.STATUS_PENDING
        ),
        key=lambda application: application.submitted_at,
    )


def network_overview(state: DashboardState):
    return {
        'active_kindergartens': sum(
            1 for kindergarten in state.kindergartens.values()
            if kindergarten.status == Kindergarten.STATUS_ACTIVE
        ),
        'total_branches': len(state.branches),
        'total_groups': len(state.groups),
        'total_teachers': len(state.teachers),
        'total_students': len(state.students),
        'user_count_by_role': user_count_by_role(state),
        'pending_applications': len(pending_applications(state)),
    }


def kindergarten_overview(state: DashboardState, kindergarten_id):
    kindergarten = state.kindergartens.get(kindergarten_id)
    if kindergarten is None:
        raise EntityNotFound('kindergarten', kindergarten_id)

    teachers = [teacher for teacher in state.teachers.values() if teacher.kindergarten_id == kindergarten.id]
    branches = []
    for branch_id in kindergarten.branch_ids:
        branch = state.branches.get(branch_id)
        if branch is None:
            continue
        branches.append({
            'id': branch.id,
            'name': branch.name,
            'address': branch.address,
            'group_count': sum(1 for group_id in branch.group_ids if group_id in state.groups),
            'teacher_count': sum(1 for teacher in teachers if teacher.branch_id == branch.id),
        })

    students = [
        {
            'id': student.id,
            'name': student.name,
            'parent_name': student.parent_name,
            'base_monthly_fee': student.base_monthly_fee,
            'total_paid': student.total_paid,
        }
        for student in state.students.values()
        if student.kindergarten_id == kindergarten.id
    ]

    director = state.users.get(kindergarten.director_id)
    return {
        'id': kindergarten.id,
        'name': kindergarten.name,
        'status': kindergarten.status,
        'director': director.name if director else None,
        'branches': branches,
        'teacher_count': len(teachers),
        'students': students,
    }


def parent_notification_feed(state: DashboardState, limit=None):
    limit = _feed_size() if limit is None else limit
    feed = [
        notification for notification in state.notifications
        if notification.audience == NotificationEntry.AUDIENCE_PARENTS
    ]
    return feed[:limit]


def notifications_sent_by(state: DashboardState, user_id):
    return [notification for notification in state.notifications if notification.sender_id == user_id]


def student_overview(state: DashboardState, student_id, *, recent_attendance=12):
    """Everything the parent dashboard shows about one child."""
    student = state.students.get(student_id)
    if student is None:
        raise EntityNotFound('student', student_id)

    kindergarten = state.kindergartens.get(student.kindergarten_id)
    branch = state.branches.get(student.branch_id)
    group = state.groups.get(student.group_id)
    teacher = state.teachers.get(group.teacher_id) if group and group.teacher_id else None

    attendance_by_status = {status: 0 for status, _label in AttendanceRecord.STATUS_CHOICES}
    for record in student.attendance:
        attendance_by_status[record.status] = attendance_by_status.get(record.status, 0) + 1

    return {
        'id': student.id,
        'name': student.name,
        'kindergarten': kindergarten.name if kindergarten else None,
        'branch': branch.name if branch else None,
        'group': group.name if group else None,
        'teacher': teacher.name if teacher else None,
        'base_monthly_fee': student.base_monthly_fee,
        'total_paid': student.total_paid,
        'attendance_by_status': attendance_by_status,
        'recent_attendance': list(student.attendance[:recent_attendance]),
        'payments': list(student.payments),
        'notifications': parent_notification_feed(state),
    }


TUITION_REPORT_HEADERS = [
    'Student',
    'Present',
    'Absent',
    'Excused',
    'Expected days',
    'Rate per day',
    'Base fee',
    'Adjusted fee',
]


def tuition_report_rows(state: DashboardState, teacher_id, *, today=None):
    if teacher_id not in state.teachers:
        raise EntityNotFound('teacher', teacher_id)

    rows = []
    for summary in summarize_teacher_attendance(state, teacher_id, today=today):
        student = state.students[summary.student_id]
        rows.append([
            student.name,
            summary.present_days,
            summary.absent_days,
            summary.excused_days,
            summary.expected_days,
            summary.rate_per_day,
            student.base_monthly_fee,
            summary.adjusted_fee,
        ])
    return rows


TUITION_MONEY_COLUMNS = ('Rate per day', 'Base fee', 'Adjusted fee')


def tuition_csv_bytes(rows):
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(TUITION_REPORT_HEADERS)
    writer.writerows(rows)
    return output.getvalue().encode('utf-8')


def format_money(value, currency):
    return f'{Decimal(value):,} {currency}'


def tuition_table_cells(rows, *, currency):
    """Text for every PDF cell: header, one line per student, then the fee totals."""
    money_indexes = {TUITION_REPORT_HEADERS.index(header) for header in TUITION_MONEY_COLUMNS}
    base_index = TUITION_REPORT_HEADERS.index('Base fee')
    adjusted_index = TUITION_REPORT_HEADERS.index('Adjusted fee')

    cells = [list(TUITION_REPORT_HEADERS)]
    for row in rows:
        cells.append([
            format_money(value, currency) if index in money_indexes else str(value)
            for index, value in enumerate(row)
        ])

    totals = [''] * len(TUITION_REPORT_HEADERS)
    totals[0] = 'Total'
    totals[base_index] = format_money(sum(row[base_index] for row in rows), currency)
    totals[adjusted_index] = format_money(sum(row[adjusted_index] for row in rows), currency)
    cells.append(totals)
    return cells


_PAGE_WIDTH = 1400
_MARGIN = 24
_ROW_HEIGHT = 36
_NAME_COLUMN_WIDTH = 300
_HEADER_FILL = '#e5e7eb'


def tuition_pdf_bytes(title, rows, *, currency):
    """Render the tuition table on one page; the name column is left-aligned, figures right-aligned."""
    cells = tuition_table_cells(rows, currency=currency)
    figure_columns = len(TUITION_REPORT_HEADERS) - 1
    figure_width = (_PAGE_WIDTH - 2 * _MARGIN - _NAME_COLUMN_WIDTH) // figure_columns
    columns = [(_MARGIN, _NAME_COLUMN_WIDTH)] + [
        (_MARGIN + _NAME_COLUMN_WIDTH + index * figure_width, figure_width)
        for index in range(figure_columns)
    ]

    height = 2 * _MARGIN + _ROW_HEIGHT * (len(cells) + 1)
    image = Image.new('RGB', (_PAGE_WIDTH, height), 'white')
    draw = ImageDraw.Draw(image)
    draw.text((_MARGIN, _MARGIN + 10), title, fill='black')

    last_row = len(cells) - 1
    y = _MARGIN + _ROW_HEIGHT
    for row_index, row in enumerate(cells):
        shaded = row_index in (0, last_row)
        for (left, width), text in zip(columns, row):
            draw.rectangle(
                (left, y, left + width, y + _ROW_HEIGHT),
                outline='black',
                fill=_HEADER_FILL if shaded else None,
            )
            if left == _MARGIN:
                x = left + 8
            else:
                x = left + width - 8 - draw.textlength(text)
            draw.text((x, y + 12), text, fill='black')
        y += _ROW_HEIGHT

    output = BytesIO()
    image.save(output, format='PDF')
    return output.getvalue()
