from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal

from django.test import SimpleTestCase
from django.urls import reverse

from apps.core.dashboard.fixtures import GROUP_ID, SECOND_STUDENT_ID, STUDENT_ID, TEACHER_ID, initial_state
from apps.core.dashboard.models import AttendanceRecord
from apps.core.dashboard.store import reset_store

from .services import calculate_student_monthly_summary, days_in_month, summarize_teacher_attendance


def attendance(student_id, start, statuses):
    """Build newest-first records for consecutive days starting at ``start``."""
    records = [
        AttendanceRecord(
            id=f'attendance-{student_id}-{offset}',
            student_id=student_id,
            date=start + timedelta(days=offset),
            status=status,
            recorded_by=TEACHER_ID,
        )
        for offset, status in enumerate(statuses)
    ]
    return tuple(reversed(records))


class AttendanceBaseTestCase(SimpleTestCase):
    def setUp(self):
        self.today = date(2026, 10, 15)
        self.state = initial_state(today=self.today)
        self.student = self.state.students[STUDENT_ID]


class MonthlySummaryTests(AttendanceBaseTestCase):
    def test_absences_reduce_fee_by_daily_rate(self):
        student = replace(
            self.student,
            base_monthly_fee=700_000,
            attendance=attendance(STUDENT_ID, date(2026, 9, 1), ['absent'] * 3 + ['present'] * 10),
        )

        summary = calculate_student_monthly_summary(student, year=2026, month=9)

        self.assertEqual(summary.expected_days, 30)
        self.assertEqual(summary.present_days, 10)
        self.assertEqual(summary.absent_days, 3)
        self.assertEqual(summary.rate_per_day, Decimal('23333.33'))
        self.assertEqual(summary.adjusted_fee, 630_000)

    def test_excused_days_do_not_reduce_fee(self):
        student = replace(
            self.student,
            base_monthly_fee=700_000,
            attendance=attendance(STUDENT_ID, date(2026, 9, 1), ['excused'] * 5),
        )

        summary = calculate_student_monthly_summary(student, year=2026, month=9)

        self.assertEqual(summary.excused_days, 5)
        self.assertEqual(summary.adjusted_fee, 700_000)

    def test_adjusted_fee_rounds_half_up_to_whole_units(self):
        summary = calculate_student_monthly_summary(self.student, year=2026, month=10)

        # 1 200 000 - 1 200 000 / 31 = 1 161 290.32...
        self.assertEqual(summary.absent_days, 1)
        self.assertEqual(summary.present_days, 1)
        self.assertEqual(summary.rate_per_day, Decimal('38709.68'))
        self.assertEqual(summary.adjusted_fee, 1_161_290)

    def test_absent_every_day_costs_nothing(self):
        student = replace(
            self.student,
            attendance=attendance(STUDENT_ID, date(2026, 2, 1), ['absent'] * 28),
        )

        summary = calculate_student_monthly_summary(student, year=2026, month=2)

        self.assertEqual(summary.expected_days, 28)
        self.assertEqual(summary.adjusted_fee, 0)

    def test_records_from_other_months_are_ignored(self):
        student = replace(
            self.student,
            attendance=attendance(STUDENT_ID, date(2026, 9, 28), ['absent'] * 6),
        )

        summary = calculate_student_monthly_summary(student, year=2026, month=10)

        self.assertEqual(summary.absent_days, 3)
        self.assertEqual(summary.expected_days, 31)

    def test_zero_fee_stays_zero(self):
        student = replace(self.student, base_monthly_fee=0)

        summary = calculate_student_monthly_summary(student, year=2026, month=10)

        self.assertEqual(summary.rate_per_day, Decimal('0.00'))
        self.assertEqual(summary.adjusted_fee, 0)

    def test_days_in_month_handles_leap_years(self):
        self.assertEqual(days_in_month(2028, 2), 29)
        self.assertEqual(days_in_month(2026, 2), 28)


class TeacherSummaryTests(AttendanceBaseTestCase):
    def test_summaries_follow_group_student_order(self):
        summaries = summarize_teacher_attendance(self.state, TEACHER_ID, today=self.today)

        self.assertEqual([summary.student_id for summary in summaries], [STUDENT_ID, SECOND_STUDENT_ID])
        self.assertEqual(summaries[1].excused_days, 1)
        self.assertEqual(summaries[1].adjusted_fee, 1_000_000)

    def test_unknown_teacher_has_no_summaries(self):
        self.assertEqual(summarize_teacher_attendance(self.state, 'teacher-missing', today=self.today), [])

    def test_dangling_student_ids_are_skipped(self):
        group = self.state.groups[GROUP_ID]
        state = replace(
            self.state,
            groups={
                **self.state.groups,
                GROUP_ID: replace(group, student_ids=group.student_ids + ('student-missing',)),
            },
        )

        summaries = summarize_teacher_attendance(state, TEACHER_ID, today=self.today)

        self.assertEqual(len(summaries), 2)


class TeacherAttendanceSummaryViewTests(SimpleTestCase):
    def setUp(self):
        self.state = initial_state(today=date(2026, 10, 15))
        reset_store(self.state)

    def test_summary_for_requested_month(self):
        response = self.client.get(
            reverse('attendance_teacher_summary', args=[TEACHER_ID]),
            {'year': 2026, 'month': 10},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['teacher_id'], TEACHER_ID)
        self.assertEqual(body['summaries'][0]['student_id'], STUDENT_ID)
        self.assertEqual(body['summaries'][0]['rate_per_day'], '38709.68')
        self.assertEqual(body['summaries'][0]['adjusted_fee'], 1_161_290)

    def test_month_without_records_charges_full_fee(self):
        response = self.client.get(
            reverse('attendance_teacher_summary', args=[TEACHER_ID]),
            {'year': 2026, 'month': 3},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            [summary['adjusted_fee'] for summary in response.json()['summaries']],
            [1_200_000, 1_000_000],
        )

    def test_invalid_month_is_rejected(self):
        url = reverse('attendance_teacher_summary', args=[TEACHER_ID])

        self.assertEqual(self.client.get(url, {'year': 2026, 'month': 13}).status_code, 400)
        self.assertEqual(self.client.get(url, {'year': 2026}).status_code, 400)

    def test_unknown_teacher_is_not_found(self):
        response = self.client.get(reverse('attendance_teacher_summary', args=['teacher-missing']))

        self.assertEqual(response.status_code, 404)
