import json
import os
import random
import tempfile
from datetime import date, datetime, timezone as dt_timezone
from io import StringIO
from itertools import count

from django.core.management import call_command
from django.test import SimpleTestCase, override_settings
from django.urls import reverse

from . import actions
from .exceptions import EntityNotFound, InvalidAction, LoginCodeUnavailable, ReferenceMismatch
from .fixtures import (
    BRANCH_ID,
    DIRECTOR_ID,
    GROUP_ID,
    KINDERGARTEN_ID,
    PENDING_APPLICATION_ID,
    SECOND_GROUP_ID,
    STUDENT_ID,
    TEACHER_ID,
    initial_state,
)
from .forms import build_action
from .models import AttendanceRecord, Kindergarten, KindergartenApplication, User
from .serializers import serialize_state
from .services import DispatchContext, apply_action, dispatch_action, reduce_action
from .store import DashboardStore, get_store, reset_store


FIXED_NOW = datetime(2026, 10, 15, 9, 30, tzinfo=dt_timezone.utc)
TODAY = date(2026, 10, 15)


class SequentialIds:
    def __init__(self, prefix='id'):
        self.prefix = prefix
        self._counter = count(1)

    def __call__(self):
        return f'{self.prefix}-{next(self._counter)}'


class ScriptedRandom:
    """Returns the given numbers from ``randint`` in order."""

    def __init__(self, values):
        self._values = iter(values)

    def randint(self, low, high):
        return next(self._values)


def make_context(rng_values=None):
    rng = ScriptedRandom(rng_values) if rng_values is not None else random.Random(7)
    return DispatchContext(clock=lambda: FIXED_NOW, id_factory=SequentialIds(), rng=rng)


class DashboardReducerBaseTestCase(SimpleTestCase):
    def setUp(self):
        self.state = initial_state(today=TODAY)
        self.context = make_context()

    def reduce(self, state, action, context=None):
        return reduce_action(state, action, context or self.context)

    def add_teacher(self, state, name='Anvar Tursunov', code_number=1234):
        context = DispatchContext(
            clock=lambda: FIXED_NOW,
            id_factory=SequentialIds('teacher'),
            rng=ScriptedRandom([code_number]),
        )
        return reduce_action(
            state,
            actions.AddTeacher(
                kindergarten_id=KINDERGARTEN_ID,
                branch_id=BRANCH_ID,
                name=name,
                phone='+998 90 000 00 00',
            ),
            context,
        )


class KindergartenActionTests(DashboardReducerBaseTestCase):
    def test_create_kindergarten_adds_active_kindergarten_and_linked_director(self):
        state = self.reduce(self.state, actions.CreateKindergarten(
            name='Happy Steps',
            director_name='Gulnora Saidova',
            director_email='gulnora@happysteps.uz',
        ))

        kindergarten = state.kindergartens['id-1']
        director = state.users['id-2']
        self.assertEqual(kindergarten.status, Kindergarten.STATUS_ACTIVE)
        self.assertEqual(kindergarten.branch_ids, ())
        self.assertIsNone(kindergarten.application_id)
        self.assertEqual(kindergarten.director_id, director.id)
        self.assertEqual(director.role, User.ROLE_DIRECTOR)
        self.assertEqual(director.email, 'gulnora@happysteps.uz')
        self.assertEqual(director.related_kindergarten_id, kindergarten.id)
        self.assertNotIn('id-1', self.state.kindergartens)

    def test_submit_application_creates_pending_application(self):
        state = self.reduce(self.state, actions.SubmitApplication(
            name='Little Stars',
            director_name='Kamola Yusupova',
            director_email='kamola@stars.uz',
        ))

        application = state.applications['id-1']
        self.assertEqual(application.status, KindergartenApplication.STATUS_PENDING)
        self.assertEqual(application.submitted_at, FIXED_NOW)
        self.assertIsNone(application.reviewed_at)

    def test_approving_pending_application_creates_one_kindergarten_and_director(self):
        state = self.reduce(self.state, actions.ReviewApplication(
            application_id=PENDING_APPLICATION_ID,
            status=KindergartenApplication.STATUS_APPROVED,
            reviewer_id='user-super-admin',
            notes='Documents complete',
        ))

        self.assertEqual(len(state.kindergartens), len(self.state.kindergartens) + 1)
        self.assertEqual(len(state.users), len(self.state.users) + 1)

        application = state.applications[PENDING_APPLICATION_ID]
        self.assertEqual(application.status, KindergartenApplication.STATUS_APPROVED)
        self.assertEqual(application.reviewer_id, 'user-super-admin')
        self.assertEqual(application.reviewed_at, FIXED_NOW)
        self.assertEqual(application.notes, 'Documents complete')

        kindergarten = state.kindergartens['id-1']
        self.assertEqual(kindergarten.name, 'Rainbow Garden')
        self.assertEqual(kindergarten.application_id, PENDING_APPLICATION_ID)
        director = state.users[kindergarten.director_id]
        self.assertEqual(director.name, 'Shahlo Ergasheva')
        self.assertEqual(director.related_kindergarten_id, kindergarten.id)

    def test_re_reviewing_application_only_overwrites_review_metadata(self):
        approved = self.reduce(self.state, actions.ReviewApplication(
            application_id=PENDING_APPLICATION_ID,
            status=KindergartenApplication.STATUS_APPROVED,
            reviewer_id='user-super-admin',
        ))
        reviewed_again = self.reduce(approved, actions.ReviewApplication(
            application_id=PENDING_APPLICATION_ID,
            status=KindergartenApplication.STATUS_APPROVED,
            reviewer_id='user-other-admin',
            notes='Checked twice',
        ))
        rejected = self.reduce(reviewed_again, actions.ReviewApplication(
            application_id=PENDING_APPLICATION_ID,
            status=KindergartenApplication.STATUS_REJECTED,
            reviewer_id='user-other-admin',
        ))

        self.assertEqual(len(reviewed_again.kindergartens), len(approved.kindergartens))
        self.assertEqual(len(rejected.kindergartens), len(approved.kindergartens))
        self.assertEqual(len(rejected.users), len(approved.users))
        self.assertEqual(reviewed_again.applications[PENDING_APPLICATION_ID].reviewer_id, 'user-other-admin')
        self.assertEqual(reviewed_again.applications[PENDING_APPLICATION_ID].notes, 'Checked twice')
        self.assertEqual(
            rejected.applications[PENDING_APPLICATION_ID].status,
            KindergartenApplication.STATUS_REJECTED,
        )

    def test_rejecting_application_creates_no_kindergarten(self):
        state = self.reduce(self.state, actions.ReviewApplication(
            application_id=PENDING_APPLICATION_ID,
            status=KindergartenApplication.STATUS_REJECTED,
            reviewer_id='user-super-admin',
        ))

        self.assertEqual(state.kindergartens, self.state.kindergartens)
        self.assertEqual(state.applications[PENDING_APPLICATION_ID].status, KindergartenApplication.STATUS_REJECTED)

    def test_reviewing_unknown_application_is_a_noop(self):
        action = actions.ReviewApplication(
            application_id='application-missing',
            status=KindergartenApplication.STATUS_APPROVED,
            reviewer_id='user-super-admin',
        )

        self.assertIs(apply_action(self.state, action, self.context), self.state)
        result = dispatch_action(self.state, action, self.context)
        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, EntityNotFound)
        self.assertIs(result.state, self.state)

    def test_review_must_approve_or_reject(self):
        with self.assertRaises(InvalidAction):
            self.reduce(self.state, actions.ReviewApplication(
                application_id=PENDING_APPLICATION_ID,
                status=KindergartenApplication.STATUS_PENDING,
                reviewer_id='user-super-admin',
            ))


class BranchAndGroupActionTests(DashboardReducerBaseTestCase):
    def test_branches_are_appended_in_call_order(self):
        state = self.state
        for name in ('North', 'South', 'East'):
            state = self.reduce(state, actions.AddBranch(
                kindergarten_id=KINDERGARTEN_ID,
                name=name,
                address=f'{name} street 1',
            ))

        self.assertEqual(state.kindergartens[KINDERGARTEN_ID].branch_ids, (BRANCH_ID, 'id-1', 'id-2', 'id-3'))
        self.assertEqual([state.branches[f'id-{index}'].name for index in (1, 2, 3)], ['North', 'South', 'East'])
        self.assertEqual(state.branches['id-1'].group_ids, ())

    def test_add_branch_to_unknown_kindergarten_is_rejected(self):
        result = dispatch_action(self.state, actions.AddBranch(
            kindergarten_id='kg-missing',
            name='Ghost',
            address='Nowhere',
        ), self.context)

        self.assertEqual(result.error.error_code, 'NOT_FOUND')
        self.assertIs(result.state, self.state)
        self.assertNotIn('kg-missing', result.state.kindergartens)

    def test_add_group_appends_unassigned_group_to_branch(self):
        state = self.reduce(self.state, actions.AddGroup(
            kindergarten_id=KINDERGARTEN_ID,
            branch_id=BRANCH_ID,
            name='Little Foxes',
            age_range='2-3',
        ))

        group = state.groups['id-1']
        self.assertIsNone(group.teacher_id)
        self.assertEqual(group.student_ids, ())
        self.assertEqual(state.branches[BRANCH_ID].group_ids, (GROUP_ID, SECOND_GROUP_ID, 'id-1'))

    def test_add_group_rejects_branch_of_another_kindergarten(self):
        state = self.reduce(self.state, actions.CreateKindergarten(
            name='Other', director_name='Director', director_email='d@other.uz',
        ))

        with self.assertRaises(ReferenceMismatch):
            self.reduce(state, actions.AddGroup(
                kindergarten_id='id-1',
                branch_id=BRANCH_ID,
                name='Misplaced',
                age_range='3-4',
            ))

    def test_add_group_to_unknown_branch_is_rejected(self):
        with self.assertRaises(EntityNotFound):
            self.reduce(self.state, actions.AddGroup(
                kindergarten_id=KINDERGARTEN_ID,
                branch_id='branch-missing',
                name='Nowhere',
                age_range='3-4',
            ))


class TeacherActionTests(DashboardReducerBaseTestCase):
    def test_add_teacher_generates_code_and_linked_user(self):
        state = self.add_teacher(self.state, name='Anvar Tursunov', code_number=1234)

        teacher = state.teachers['teacher-1']
        self.assertEqual(teacher.telegram_code, 'ANVAR-1234')
        self.assertEqual(teacher.group_ids, ())
        user = state.users[teacher.id]
        self.assertEqual(user.role, User.ROLE_TEACHER)
        self.assertEqual(user.related_teacher_id, teacher.id)
        self.assertEqual(user.related_kindergarten_id, KINDERGARTEN_ID)

    def test_random_telegram_code_has_four_digit_suffix(self):
        state = self.reduce(self.state, actions.AddTeacher(
            kindergarten_id=KINDERGARTEN_ID,
            branch_id=BRANCH_ID,
            name='zarina Qodirova',
            phone='+998 90 000 00 01',
        ))

        self.assertRegex(state.teachers['id-1'].telegram_code, r'^ZARINA-[1-9]\d{3}$')

    def test_colliding_telegram_code_is_drawn_again(self):
        state = self.reduce(self.state, actions.AddTeacher(
            kindergarten_id=KINDERGARTEN_ID,
            branch_id=BRANCH_ID,
            name='Malika Azimova',
            phone='+998 90 000 00 02',
        ), make_context([4821, 5555]))

        self.assertEqual(state.teachers['id-1'].telegram_code, 'MALIKA-5555')

    @override_settings(DASHBOARD_LOGIN_CODE_ATTEMPTS=3)
    def test_exhausted_telegram_codes_reject_the_teacher(self):
        action = actions.AddTeacher(
            kindergarten_id=KINDERGARTEN_ID,
            branch_id=BRANCH_ID,
            name='Malika Azimova',
            phone='+998 90 000 00 02',
        )

        with self.assertRaises(LoginCodeUnavailable):
            self.reduce(self.state, action, make_context([4821, 4821, 4821]))
        self.assertIs(apply_action(self.state, action, make_context([4821, 4821, 4821])), self.state)

    def test_blank_teacher_name_uses_default_code_prefix(self):
        state = self.reduce(self.state, actions.AddTeacher(
            kindergarten_id=KINDERGARTEN_ID,
            branch_id=BRANCH_ID,
            name='',
            phone='+998 90 000 00 03',
        ), make_context([1000]))

        self.assertEqual(state.teachers['id-1'].telegram_code, 'TEACHER-1000')

    def test_assign_teacher_twice_matches_assigning_once(self):
        state = self.add_teacher(self.state)
        action = actions.AssignTeacher(group_id=SECOND_GROUP_ID, teacher_id='teacher-1')

        once = self.reduce(state, action)
        twice = self.reduce(once, action)

        self.assertEqual(twice.groups, once.groups)
        self.assertEqual(twice.teachers, once.teachers)
        self.assertEqual(once.teachers['teacher-1'].group_ids, (SECOND_GROUP_ID,))

    def test_reassigning_group_moves_it_between_teachers(self):
        state = self.add_teacher(self.state)
        state = self.reduce(state, actions.AssignTeacher(group_id=SECOND_GROUP_ID, teacher_id=TEACHER_ID))
        self.assertEqual(state.teachers[TEACHER_ID].group_ids, (GROUP_ID, SECOND_GROUP_ID))

        state = self.reduce(state, actions.AssignTeacher(group_id=GROUP_ID, teacher_id='teacher-1'))

        self.assertEqual(state.groups[GROUP_ID].teacher_id, 'teacher-1')
        self.assertEqual(state.teachers[TEACHER_ID].group_ids, (SECOND_GROUP_ID,))
        self.assertEqual(state.teachers['teacher-1'].group_ids, (GROUP_ID,))
        self.assertEqual(state.groups[SECOND_GROUP_ID].teacher_id, TEACHER_ID)

    def test_assigning_empty_teacher_unassigns_group(self):
        for teacher_id in (None, ''):
            state = self.reduce(self.state, actions.AssignTeacher(group_id=GROUP_ID, teacher_id=teacher_id))

            self.assertIsNone(state.groups[GROUP_ID].teacher_id)
            self.assertEqual(state.teachers[TEACHER_ID].group_ids, ())

    def test_assigning_unknown_group_or_teacher_is_a_noop(self):
        missing_group = actions.AssignTeacher(group_id='group-missing', teacher_id=TEACHER_ID)
        missing_teacher = actions.AssignTeacher(group_id=GROUP_ID, teacher_id='teacher-missing')

        self.assertIs(apply_action(self.state, missing_group, self.context), self.state)
        self.assertIs(apply_action(self.state, missing_teacher, self.context), self.state)
        self.assertEqual(self.state.groups[GROUP_ID].teacher_id, TEACHER_ID)


class StudentActionTests(DashboardReducerBaseTestCase):
    def add_student_action(self, **overrides):
        values = {
            'kindergarten_id': KINDERGARTEN_ID,
            'branch_id': BRANCH_ID,
            'group_id': SECOND_GROUP_ID,
            'name': 'Otabek',
            'age': 5,
            'parent_name': 'Sardor Nazarov',
            'parent_phone': '+998 97 123 00 11',
            'base_monthly_fee': 900_000,
        }
        values.update(overrides)
        return actions.AddStudent(**values)

    def test_add_student_creates_linked_parent_and_joins_group(self):
        state = self.reduce(self.state, self.add_student_action())

        student = state.students['id-1']
        parent = state.users['id-2']
        self.assertEqual(student.parent_user_id, parent.id)
        self.assertEqual(student.attendance, ())
        self.assertEqual(student.payments, ())
        self.assertEqual(parent.role, User.ROLE_PARENT)
        self.assertEqual(parent.phone, '+998 97 123 00 11')
        self.assertEqual(parent.related_parent_student_id, student.id)
        self.assertEqual(state.groups[SECOND_GROUP_ID].student_ids, ('id-1',))

    def test_add_student_to_unknown_group_is_a_noop(self):
        action = self.add_student_action(group_id='group-missing')

        self.assertIs(apply_action(self.state, action, self.context), self.state)
        self.assertIsInstance(dispatch_action(self.state, action, self.context).error, EntityNotFound)

    def test_add_student_rejects_group_outside_branch(self):
        with self.assertRaises(ReferenceMismatch):
            self.reduce(self.state, self.add_student_action(branch_id='branch-elsewhere'))

    def test_payments_are_prepended_without_touching_prior_records(self):
        original_payment = self.state.students[STUDENT_ID].payments[0]

        state = self.reduce(self.state, actions.RecordPayment(
            student_id=STUDENT_ID, amount=300_000, method='cash', recorded_by=DIRECTOR_ID,
        ))
        state = self.reduce(state, actions.RecordPayment(
            student_id=STUDENT_ID, amount=300_000, method='transfer', recorded_by=DIRECTOR_ID, memo='Balance',
        ))

        payments = state.students[STUDENT_ID].payments
        self.assertEqual([payment.id for payment in payments], ['id-2', 'id-1', original_payment.id])
        self.assertIs(payments[2], original_payment)
        self.assertEqual(payments[0].memo, 'Balance')
        self.assertEqual(payments[0].paid_at, FIXED_NOW)
        self.assertEqual(len(self.state.students[STUDENT_ID].payments), 1)

    def test_add_student_rejects_invalid_fee_and_age(self):
        for overrides in (
            {'base_monthly_fee': -500_000},
            {'base_monthly_fee': '1000'},
            {'base_monthly_fee': True},
            {'age': -3},
            {'age': 4.5},
        ):
            with self.subTest(**overrides):
                result = dispatch_action(self.state, self.add_student_action(**overrides), self.context)

                self.assertIsInstance(result.error, InvalidAction)
                self.assertIs(result.state, self.state)

    def test_add_student_accepts_free_place(self):
        state = self.reduce(self.state, self.add_student_action(base_monthly_fee=0, age=0))

        self.assertEqual(state.students['id-1'].base_monthly_fee, 0)

    def test_invalid_payments_are_rejected(self):
        unknown_student = actions.RecordPayment(
            student_id='student-missing', amount=100, method='cash', recorded_by=DIRECTOR_ID,
        )
        self.assertIs(apply_action(self.state, unknown_student, self.context), self.state)

        for amount, method in ((0, 'cash'), (-5, 'card'), (100, 'crypto')):
            with self.assertRaises(InvalidAction):
                self.reduce(self.state, actions.RecordPayment(
                    student_id=STUDENT_ID, amount=amount, method=method, recorded_by=DIRECTOR_ID,
                ))

    def test_recording_attendance_twice_for_a_date_keeps_one_record(self):
        day = date(2026, 10, 7)
        state = self.reduce(self.state, actions.RecordAttendance(
            student_id=STUDENT_ID, teacher_id=TEACHER_ID, date=day, status='present',
        ))
        state = self.reduce(state, actions.RecordAttendance(
            student_id=STUDENT_ID, teacher_id=TEACHER_ID, date=day, status='absent', note='Fever',
        ))

        attendance = state.students[STUDENT_ID].attendance
        on_day = [record for record in attendance if record.date == day]
        self.assertEqual(len(on_day), 1)
        self.assertEqual(on_day[0].status, AttendanceRecord.STATUS_ABSENT)
        self.assertEqual(on_day[0].note, 'Fever')
        self.assertEqual(len(attendance), len(self.state.students[STUDENT_ID].attendance) + 1)

    def test_attendance_upsert_keeps_record_position_and_id(self):
        existing = self.state.students[STUDENT_ID].attendance
        first_day = existing[1]

        state = self.reduce(self.state, actions.RecordAttendance(
            student_id=STUDENT_ID, teacher_id='teacher-other', date=first_day.date, status='excused',
        ))

        updated = state.students[STUDENT_ID].attendance
        self.assertEqual(len(updated), len(existing))
        self.assertEqual(updated[1].id, first_day.id)
        self.assertEqual(updated[1].status, AttendanceRecord.STATUS_EXCUSED)
        self.assertEqual(updated[1].recorded_by, TEACHER_ID)
        self.assertIs(updated[0], existing[0])

    def test_new_attendance_date_is_prepended(self):
        state = self.reduce(self.state, actions.RecordAttendance(
            student_id=STUDENT_ID, teacher_id=TEACHER_ID, date=date(2026, 10, 9), status='present',
        ))

        newest = state.students[STUDENT_ID].attendance[0]
        self.assertEqual(newest.id, 'id-1')
        self.assertEqual(newest.date, date(2026, 10, 9))
        self.assertEqual(newest.recorded_by, TEACHER_ID)

    def test_attendance_for_unknown_student_or_status_is_rejected(self):
        unknown_student = actions.RecordAttendance(
            student_id='student-missing', teacher_id=TEACHER_ID, date=TODAY, status='present',
        )
        self.assertIs(apply_action(self.state, unknown_student, self.context), self.state)

        with self.assertRaises(InvalidAction):
            self.reduce(self.state, actions.RecordAttendance(
                student_id=STUDENT_ID, teacher_id=TEACHER_ID, date=TODAY, status='late',
            ))


class NotificationAndSettingsTests(DashboardReducerBaseTestCase):
    def test_notifications_are_prepended(self):
        state = self.reduce(self.state, actions.SendNotification(
            audience='teachers', sender_id=DIRECTOR_ID, sender_role='director', message='Staff meeting at 5',
        ))

        self.assertEqual(len(state.notifications), len(self.state.notifications) + 1)
        self.assertEqual(state.notifications[0].message, 'Staff meeting at 5')
        self.assertEqual(state.notifications[0].created_at, FIXED_NOW)
        self.assertEqual(state.notifications[1:], self.state.notifications)

    def test_notification_audience_and_sender_role_are_validated(self):
        for audience, sender_role in (('everyone', 'director'), ('parents', 'janitor')):
            with self.subTest(audience=audience, sender_role=sender_role):
                action = actions.SendNotification(
                    audience=audience, sender_id=DIRECTOR_ID, sender_role=sender_role, message='Hello',
                )

                with self.assertRaises(InvalidAction):
                    self.reduce(self.state, action)
                self.assertIs(apply_action(self.state, action, self.context), self.state)

    def test_update_settings_merges_only_provided_fields(self):
        state = self.reduce(self.state, actions.UpdateSettings(primary_color='#111111', currency='USD'))

        self.assertEqual(state.settings.branding.primary_color, '#111111')
        self.assertEqual(state.settings.localization.currency, 'USD')
        self.assertEqual(state.settings.branding.accent_color, self.state.settings.branding.accent_color)
        self.assertEqual(state.settings.branding.logo_url, self.state.settings.branding.logo_url)
        self.assertEqual(state.settings.localization.language, self.state.settings.localization.language)

    def test_empty_settings_update_changes_nothing(self):
        state = self.reduce(self.state, actions.UpdateSettings())

        self.assertEqual(state.settings, self.state.settings)


class ReducerContractTests(DashboardReducerBaseTestCase):
    def test_unknown_action_returns_input_state(self):
        self.assertIs(reduce_action(self.state, object(), self.context), self.state)
        self.assertIs(apply_action(self.state, 'NOT_AN_ACTION', self.context), self.state)

    def test_reducer_never_mutates_the_input_snapshot(self):
        before = serialize_state(self.state)
        state = self.state
        for action in (
            actions.AddBranch(kindergarten_id=KINDERGARTEN_ID, name='West', address='West 1'),
            actions.AssignTeacher(group_id=SECOND_GROUP_ID, teacher_id=TEACHER_ID),
            actions.RecordAttendance(student_id=STUDENT_ID, teacher_id=TEACHER_ID, date=TODAY, status='present'),
            actions.RecordPayment(student_id=STUDENT_ID, amount=1, method='cash', recorded_by=DIRECTOR_ID),
            actions.UpdateSettings(language='uz'),
        ):
            state = self.reduce(state, action)

        self.assertEqual(serialize_state(self.state), before)
        self.assertNotEqual(serialize_state(state), before)


class DashboardStoreTests(DashboardReducerBaseTestCase):
    def test_dispatch_replaces_snapshot(self):
        store = DashboardStore(self.state, self.context)

        state = store.dispatch(actions.UpdateSettings(language='ru'))

        self.assertIs(store.state, state)
        self.assertEqual(state.settings.localization.language, 'ru')
        self.assertEqual(self.state.settings.localization.language, 'en')

    def test_rejected_dispatch_keeps_snapshot_and_reports_error(self):
        store = DashboardStore(self.state, self.context)

        result = store.try_dispatch(actions.AddBranch(kindergarten_id='kg-missing', name='X', address='Y'))

        self.assertFalse(result.ok)
        self.assertIs(store.state, self.state)
        self.assertIs(store.dispatch(actions.AddBranch(kindergarten_id='kg-missing', name='X', address='Y')), self.state)

    def test_store_exposes_teacher_attendance_summary(self):
        store = DashboardStore(self.state, self.context)

        summaries = store.get_attendance_summary_for_teacher(TEACHER_ID, today=TODAY)

        self.assertEqual([summary.student_id for summary in summaries], ['student-aziz', 'student-laylo'])

    def test_reset_store_replaces_process_store(self):
        store = reset_store(self.state, self.context)

        self.assertIs(get_store(), store)
        self.assertIs(get_store().state, self.state)


class ActionFormTests(SimpleTestCase):
    def test_valid_attendance_payload_builds_action(self):
        action, errors = build_action('RECORD_ATTENDANCE', {
            'student_id': STUDENT_ID,
            'teacher_id': TEACHER_ID,
            'date': '2026-10-03',
            'status': 'present',
        })

        self.assertIsNone(errors)
        self.assertEqual(action, actions.RecordAttendance(
            student_id=STUDENT_ID, teacher_id=TEACHER_ID, date=date(2026, 10, 3), status='present', note=None,
        ))

    def test_unknown_action_type_is_reported(self):
        action, errors = build_action('DELETE_EVERYTHING', {})

        self.assertIsNone(action)
        self.assertIn('type', errors)

    def test_invalid_values_are_reported_per_field(self):
        action, errors = build_action('ADD_STUDENT', {
            'kindergarten_id': KINDERGARTEN_ID,
            'branch_id': BRANCH_ID,
            'group_id': GROUP_ID,
            'name': 'Timur',
            'age': 'four',
            'parent_name': 'Parent',
            'parent_phone': '+998',
            'base_monthly_fee': -1,
        })

        self.assertIsNone(action)
        self.assertEqual(set(errors), {'age', 'base_monthly_fee'})

    def test_settings_form_leaves_missing_fields_unset(self):
        action, errors = build_action('UPDATE_SETTINGS', {'currency': 'EUR'})

        self.assertIsNone(errors)
        self.assertEqual(action, actions.UpdateSettings(currency='EUR'))

    def test_settings_form_validates_colours(self):
        action, errors = build_action('UPDATE_SETTINGS', {'primary_color': 'blue'})

        self.assertIsNone(action)
        self.assertIn('primary_color', errors)

    def test_settings_form_assumes_https_for_bare_logo_host(self):
        action, errors = build_action('UPDATE_SETTINGS', {'logo_url': 'cdn.kinderhub.uz/logo.png'})

        self.assertIsNone(errors)
        self.assertEqual(action.logo_url, 'https://cdn.kinderhub.uz/logo.png')

    def test_blank_teacher_in_assignment_means_unassign(self):
        action, errors = build_action('ASSIGN_TEACHER', {'group_id': GROUP_ID, 'teacher_id': ''})

        self.assertIsNone(errors)
        self.assertIsNone(action.teacher_id)

    def test_review_form_rejects_pending_status(self):
        action, errors = build_action('REVIEW_APPLICATION', {
            'application_id': PENDING_APPLICATION_ID,
            'status': 'pending',
            'reviewer_id': 'user-super-admin',
        })

        self.assertIsNone(action)
        self.assertIn('status', errors)


class DashboardViewTests(SimpleTestCase):
    def setUp(self):
        reset_store(initial_state(), make_context([2468]))

    def post_action(self, action_type, payload):
        return self.client.post(
            reverse('dashboard_dispatch'),
            data=json.dumps({'type': action_type, 'payload': payload}),
            content_type='application/json',
        )

    def test_state_endpoint_returns_serialized_tree(self):
        response = self.client.get(reverse('dashboard_state'))

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertIn(KINDERGARTEN_ID, body['kindergartens'])
        self.assertEqual(body['kindergartens'][KINDERGARTEN_ID]['branch_ids'], [BRANCH_ID])

    def test_dispatch_applies_action_and_returns_new_state(self):
        response = self.post_action('ADD_TEACHER', {
            'kindergarten_id': KINDERGARTEN_ID,
            'branch_id': BRANCH_ID,
            'name': 'Jasur Aliev',
            'phone': '+998 90 765 43 21',
        })

        self.assertEqual(response.status_code, 200)
        teacher = response.json()['state']['teachers']['id-1']
        self.assertEqual(teacher['telegram_code'], 'JASUR-2468')
        self.assertIn('id-1', get_store().state.teachers)

    def test_dispatch_reports_domain_errors(self):
        response = self.post_action('ADD_BRANCH', {
            'kindergarten_id': 'kg-missing',
            'name': 'Ghost',
            'address': 'Nowhere',
        })

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error'], 'NOT_FOUND')

    def test_dispatch_reports_invalid_payloads(self):
        response = self.post_action('RECORD_ATTENDANCE', {'student_id': STUDENT_ID, 'status': 'late'})

        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body['error'], 'INVALID_PAYLOAD')
        self.assertIn('status', body['details'])
        self.assertIn('date', body['details'])

    def test_dispatch_rejects_non_json_body(self):
        response = self.client.post(reverse('dashboard_dispatch'), data='not json', content_type='application/json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'INVALID_JSON')

    def test_dispatch_requires_post(self):
        self.assertEqual(self.client.get(reverse('dashboard_dispatch')).status_code, 405)


class SeedDashboardCommandTests(SimpleTestCase):
    def tearDown(self):
        reset_store()

    def test_seed_builds_network_through_actions(self):
        out = StringIO()
        with tempfile.TemporaryDirectory() as tmp_dir:
            output = os.path.join(tmp_dir, 'state.json')
            call_command(
                'seed_dashboard',
                kindergartens=1,
                branches=1,
                groups=2,
                students=3,
                seed=11,
                output=output,
                stdout=out,
            )
            with open(output, encoding='utf-8') as handle:
                dumped = json.load(handle)

        state = get_store().state
        self.assertIn('Dashboard ready', out.getvalue())
        self.assertEqual(len(state.kindergartens), 2)
        self.assertEqual(len(state.teachers), 3)
        self.assertEqual(len(state.students), 2 + 6)
        self.assertEqual(len(state.applications), 2)
        self.assertEqual(set(dumped['students']), set(state.students))
        for teacher in state.teachers.values():
            self.assertTrue(teacher.group_ids)

    def test_same_seed_rebuilds_same_network(self):
        def seeded_network():
            call_command(
                'seed_dashboard',
                kindergartens=1,
                branches=1,
                groups=1,
                students=2,
                seed=5,
                stdout=StringIO(),
            )
            state = get_store().state
            return (
                sorted(state.kindergartens),
                sorted((student.id, student.name, student.base_monthly_fee) for student in state.students.values()),
                sorted(teacher.telegram_code for teacher in state.teachers.values()),
            )

        self.assertEqual(seeded_network(), seeded_network())
