import csv
from dataclasses import replace
from datetime import date, datetime, timezone as dt_timezone
from io import StringIO

from django.test import SimpleTestCase, override_settings
from django.urls import reverse

from apps.core.dashboard.exceptions import EntityNotFound
from apps.core.dashboard.fixtures import (
    DIRECTOR_ID,
    KINDERGARTEN_ID,
    PENDING_APPLICATION_ID,
    STUDENT_ID,
    TEACHER_ID,
    initial_state,
)
from apps.core.dashboard.models import KindergartenApplication, NotificationEntry, User
from apps.core.dashboard.store import reset_store

from .services import (
    TUITION_REPORT_HEADERS,
    kindergarten_overview,
    network_overview,
    notifications_sent_by,
    parent_notification_feed,
    pending_applications,
    student_overview,
    tuition_pdf_bytes,
    tuition_report_rows,
    tuition_table_cells,
)


def notification(index, audience=NotificationEntry.AUDIENCE_PARENTS, sender_id=DIRECTOR_ID):
    return NotificationEntry(
        id=f'notification-{index}',
        audience=audience,
        sender_id=sender_id,
        sender_role=User.ROLE_DIRECTOR,
        message=f'Message {index}',
        created_at=datetime(2026, 10, index, 8, 0, tzinfo=dt_timezone.utc),
    )


class ReportsBaseTestCase(SimpleTestCase):
    def setUp(self):
        self.today = date(2026, 10, 15)
        self.state = initial_state(today=self.today)


class OverviewTests(ReportsBaseTestCase):
    def test_network_overview_counts(self):
        overview = network_overview(self.state)

        self.assertEqual(overview['active_kindergartens'], 1)
        self.assertEqual(overview['total_branches'], 1)
        self.assertEqual(overview['total_groups'], 2)
        self.assertEqual(overview['total_teachers'], 1)
        self.assertEqual(overview['total_students'], 2)
        self.assertEqual(overview['pending_applications'], 1)
        self.assertEqual(
            overview['user_count_by_role'],
            {'super_admin': 1, 'director': 1, 'teacher': 1, 'parent': 2},
        )

    def test_pending_applications_oldest_first(self):
        newer = KindergartenApplication(
            id='application-newer',
            name='Blue Sky',
            director_name='Akmal Ismoilov',
            director_email='akmal@bluesky.uz',
            submitted_at=datetime(2026, 10, 14, tzinfo=dt_timezone.utc),
        )
        reviewed = replace(newer, id='application-reviewed', status=KindergartenApplication.STATUS_REJECTED)
        state = replace(
            self.state,
            applications={**self.state.applications, newer.id: newer, reviewed.id: reviewed},
        )

        self.assertEqual(
            [application.id for application in pending_applications(state)],
            [PENDING_APPLICATION_ID, 'application-newer'],
        )

    def test_kindergarten_overview(self):
        overview = kindergarten_overview(self.state, KINDERGARTEN_ID)

        self.assertEqual(overview['director'], 'Nodira Alimova')
        self.assertEqual(overview['teacher_count'], 1)
        self.assertEqual(overview['branches'][0]['group_count'], 2)
        self.assertEqual(overview['branches'][0]['teacher_count'], 1)
        aziz = next(student for student in overview['students'] if student['id'] == STUDENT_ID)
        self.assertEqual(aziz['total_paid'], 600_000)

    def test_kindergarten_overview_unknown(self):
        with self.assertRaises(EntityNotFound):
            kindergarten_overview(self.state, 'kg-missing')

    def test_student_overview(self):
        overview = student_overview(self.state, STUDENT_ID)

        self.assertEqual(overview['teacher'], 'Malika Karimova')
        self.assertEqual(overview['group'], 'Busy Bees')
        self.assertEqual(overview['attendance_by_status'], {'present': 1, 'absent': 1, 'excused': 0})
        self.assertEqual(overview['recent_attendance'][0].date, date(2026, 10, 2))
        self.assertEqual([payment.id for payment in overview['payments']], ['payment-aziz-1'])
        self.assertEqual([entry.id for entry in overview['notifications']], ['notification-welcome'])

    def test_student_overview_unknown(self):
        with self.assertRaises(EntityNotFound):
            student_overview(self.state, 'student-missing')


class NotificationFeedTests(ReportsBaseTestCase):
    def setUp(self):
        super().setUp()
        entries = [notification(index) for index in range(9, 1, -1)]
        entries.insert(2, notification(1, audience=NotificationEntry.AUDIENCE_TEACHERS, sender_id=TEACHER_ID))
        self.state = replace(self.state, notifications=tuple(entries) + self.state.notifications)

    def test_parent_feed_is_newest_first_and_limited(self):
        feed = parent_notification_feed(self.state)

        self.assertEqual([entry.id for entry in feed], [f'notification-{index}' for index in (9, 8, 7, 6, 5)])

    @override_settings(DASHBOARD_NOTIFICATION_FEED_SIZE=2)
    def test_feed_size_setting(self):
        self.assertEqual(len(parent_notification_feed(self.state)), 2)

    def test_explicit_limit(self):
        self.assertEqual(len(parent_notification_feed(self.state, limit=50)), 9)

    def test_notifications_sent_by(self):
        sent = notifications_sent_by(self.state, TEACHER_ID)

        self.assertEqual([entry.id for entry in sent], ['notification-1'])


class TuitionReportTests(ReportsBaseTestCase):
    def test_rows_follow_headers(self):
        rows = tuition_report_rows(self.state, TEACHER_ID, today=self.today)

        self.assertEqual(len(rows), 2)
        self.assertEqual(len(rows[0]), len(TUITION_REPORT_HEADERS))
        self.assertEqual(rows[0][0], 'Aziz Rahimov')
        self.assertEqual(rows[0][6:], [1_200_000, 1_161_290])

    def test_unknown_teacher(self):
        with self.assertRaises(EntityNotFound):
            tuition_report_rows(self.state, 'teacher-missing', today=self.today)

    def test_pdf_cells_format_money_and_add_totals(self):
        rows = tuition_report_rows(self.state, TEACHER_ID, today=self.today)

        cells = tuition_table_cells(rows, currency='UZS')

        self.assertEqual(cells[0], TUITION_REPORT_HEADERS)
        self.assertEqual(cells[1][:5], ['Aziz Rahimov', '1', '1', '0', '31'])
        self.assertEqual(cells[1][5:], ['38,709.68 UZS', '1,200,000 UZS', '1,161,290 UZS'])
        self.assertEqual(cells[-1][0], 'Total')
        self.assertEqual(cells[-1][6:], ['2,200,000 UZS', '2,161,290 UZS'])

    def test_empty_tuition_table_still_renders(self):
        self.assertEqual(tuition_table_cells([], currency='USD')[-1][6:], ['0 USD', '0 USD'])
        self.assertTrue(tuition_pdf_bytes('Monthly tuition', [], currency='USD').startswith(b'%PDF'))


class ReportViewTests(SimpleTestCase):
    def setUp(self):
        reset_store(initial_state())

    def test_network_report(self):
        response = self.client.get(reverse('reports_network'))

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['overview']['total_students'], 2)
        self.assertEqual(body['pending_applications'][0]['id'], PENDING_APPLICATION_ID)

    def test_kindergarten_report(self):
        response = self.client.get(reverse('reports_kindergarten', args=[KINDERGARTEN_ID]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['sent_notifications'][0]['id'], 'notification-welcome')

    def test_student_report(self):
        response = self.client.get(reverse('reports_student', args=[STUDENT_ID]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['payments'][0]['amount'], 600_000)

    def test_unknown_ids_are_not_found(self):
        for url in (
            reverse('reports_kindergarten', args=['kg-missing']),
            reverse('reports_student', args=['student-missing']),
            reverse('reports_tuition_csv', args=['teacher-missing']),
            reverse('reports_tuition_pdf', args=['teacher-missing']),
        ):
            with self.subTest(url=url):
                response = self.client.get(url)
                self.assertEqual(response.status_code, 404)
                self.assertEqual(response.json()['error'], 'NOT_FOUND')

    def test_tuition_csv_export(self):
        response = self.client.get(reverse('reports_tuition_csv', args=[TEACHER_ID]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'text/csv')
        self.assertIn('tuition_teacher-malika.csv', response['Content-Disposition'])
        rows = list(csv.reader(StringIO(response.content.decode('utf-8'))))
        self.assertEqual(rows[0], TUITION_REPORT_HEADERS)
        self.assertEqual([row[0] for row in rows[1:]], ['Aziz Rahimov', 'Laylo Usmonova'])

    def test_tuition_pdf_export(self):
        response = self.client.get(reverse('reports_tuition_pdf', args=[TEACHER_ID]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))
