from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone

from apps.core.dashboard.models import AttendanceRecord, DashboardState, Student


@dataclass(frozen=True)
class TeacherAttendanceSummary:
    student_id: str
    present_days: int
    absent_days: int
    excused_days: int
    expected_days: int
    rate_per_day: Decimal
    adjusted_fee: int


def _to_decimal(value) -> Decimal:
    return Decimal(str(value or '0'))


def _quantize(value: Decimal, exponent='0.01') -> Decimal:
    return _to_decimal(value).quantize(Decimal(exponent), rounding=ROUND_HALF_UP)


def days_in_month(year, month) -> int:
    return calendar.monthrange(year, month)[1]


def monthly_attendance(student: Student, *, year, month):
    return [
        record for record in student.attendance
        if record.date.year == year and record.date.month == month
    ]


def calculate_student_monthly_summary(student: Student, *, year, month) -> TeacherAttendanceSummary:
    """Count the month's attendance and discount the fee by a per-day rate for each absence.

    Excused days do not reduce the fee. The adjusted fee is rounded half-up to the
    nearest minor unit and never drops below zero.
    """
    records = monthly_attendance(student, year=year, month=month)
    counts = {status: 0 for status, _label in AttendanceRecord.STATUS_CHOICES}
    for record in records:
        counts[record.status] = counts.get(record.status, 0) + 1

    expected_days = days_in_month(year, month)
    base_fee = _to_decimal(student.base_monthly_fee)
    absent_days = counts[AttendanceRecord.STATUS_ABSENT]

    deduction = base_fee * absent_days / expected_days
    adjusted_fee = max(_quantize(base_fee - deduction, '1'), Decimal('0'))

    return TeacherAttendanceSummary(
        student_id=student.id,
        present_days=counts[AttendanceRecord.STATUS_PRESENT],
        absent_days=absent_days,
        excused_days=counts[AttendanceRecord.STATUS_EXCUSED],
        expected_days=expected_days,
        rate_per_day=_quantize(base_fee / expected_days),
        adjusted_fee=int(adjusted_fee),
    )


def teacher_students(state: DashboardState, teacher_id):
    """Yield the students of every group assigned to the teacher, skipping dangling ids."""
    teacher = state.teachers.get(teacher_id)
    if teacher is None:
        return
    for group_id in teacher.group_ids:
        group = state.groups.get(group_id)
        if group is None:
            continue
        for student_id in group.student_ids:
            student = state.students.get(student_id)
            if student is not None:
                yield student


def summarize_teacher_attendance(state: DashboardState, teacher_id, *, today: date | None = None):
    today = today or timezone.localdate()
    return [
        calculate_student_monthly_summary(student, year=today.year, month=today.month)
        for student in teacher_students(state, teacher_id)
    ]
