import json
import random
import uuid
from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from faker import Faker

from apps.core.dashboard import actions
from apps.core.dashboard.models import AttendanceRecord, NotificationEntry, PaymentRecord, User
from apps.core.dashboard.serializers import serialize_state
from apps.core.dashboard.services import DispatchContext
from apps.core.dashboard.store import reset_store


class Command(BaseCommand):
    help = 'Builds a random kindergarten network by dispatching dashboard actions.'

    def add_arguments(self, parser):
        parser.add_argument('--kindergartens', type=int, default=2)
        parser.add_argument('--branches', type=int, default=2, help='Branches per kindergarten.')
        parser.add_argument('--groups', type=int, default=2, help='Groups per branch.')
        parser.add_argument('--students', type=int, default=8, help='Students per group.')
        parser.add_argument('--seed', type=int, default=None, help='Seed for reproducible data.')
        parser.add_argument('--output', default=None, help='Write the resulting state as JSON to this file.')

    def handle(self, *args, **options):
        for name in ('kindergartens', 'branches', 'groups', 'students'):
            if options[name] < 0:
                raise CommandError(f'--{name} must not be negative.')

        fake = Faker()
        rng = random.Random(options['seed'])
        if options['seed'] is not None:
            fake.seed_instance(options['seed'])

        # Ids come from the same generator so a seeded run rebuilds the same tree.
        store = reset_store(context=DispatchContext(
            id_factory=lambda: uuid.UUID(int=rng.getrandbits(128), version=4).hex,
            rng=rng,
        ))
        admin_id = next(
            user.id for user in store.state.users.values() if user.role == User.ROLE_SUPER_ADMIN
        )
        today = timezone.localdate()

        self.stdout.write('Seeding dashboard...')

        for _ in range(options['kindergartens']):
            before = store.state.kindergartens
            self._dispatch(store, actions.CreateKindergarten(
                name=f'{fake.last_name()} Kindergarten',
                director_name=fake.name(),
                director_email=fake.email(),
            ))
            kindergarten_id = self._added_id(before, store.state.kindergartens)
            director_id = store.state.kindergartens[kindergarten_id].director_id
            self.stdout.write(self.style.SUCCESS(
                f'Created kindergarten: {store.state.kindergartens[kindergarten_id].name}'
            ))

            for _ in range(options['branches']):
                branch_id = self._add_branch(store, fake, kindergarten_id)
                for group_index in range(options['groups']):
                    group_id = self._add_group(store, kindergarten_id, branch_id, group_index)
                    teacher_id = self._add_teacher(store, fake, kindergarten_id, branch_id)
                    self._dispatch(store, actions.AssignTeacher(group_id=group_id, teacher_id=teacher_id))

                    for _ in range(options['students']):
                        student_id = self._add_student(store, fake, rng, kindergarten_id, branch_id, group_id)
                        self._record_month(store, rng, student_id, teacher_id, director_id, today)

            self._dispatch(store, actions.SendNotification(
                audience=NotificationEntry.AUDIENCE_PARENTS,
                sender_id=director_id,
                sender_role=User.ROLE_DIRECTOR,
                message=fake.sentence(nb_words=12),
            ))

        self._dispatch(store, actions.SubmitApplication(
            name=f'{fake.last_name()} Little Stars',
            director_name=fake.name(),
            director_email=fake.email(),
        ))

        state = store.state
        self.stdout.write(self.style.SUCCESS(
            f'Dashboard ready: {len(state.kindergartens)} kindergartens, {len(state.branches)} branches, '
            f'{len(state.groups)} groups, {len(state.teachers)} teachers, {len(state.students)} students. '
            f'Super admin: {admin_id}'
        ))

        if options['output']:
            with open(options['output'], 'w', encoding='utf-8') as handle:
                json.dump(serialize_state(state), handle, indent=2)
            self.stdout.write(self.style.SUCCESS(f'State written to {options["output"]}'))

    def _dispatch(self, store, action):
        result = store.try_dispatch(action)
        if not result.ok:
            raise CommandError(f'{action.type} failed: {result.error.message}')

    def _added_id(self, before, after):
        return (set(after) - set(before)).pop()

    def _add_branch(self, store, fake, kindergarten_id):
        before = store.state.branches
        self._dispatch(store, actions.AddBranch(
            kindergarten_id=kindergarten_id,
            name=f'{fake.city()} branch',
            address=fake.street_address(),
        ))
        return self._added_id(before, store.state.branches)

    def _add_group(self, store, kindergarten_id, branch_id, group_index):
        before = store.state.groups
        youngest = 2 + group_index % 4
        self._dispatch(store, actions.AddGroup(
            kindergarten_id=kindergarten_id,
            branch_id=branch_id,
            name=f'Group {group_index + 1}',
            age_range=f'{youngest}-{youngest + 1}',
        ))
        return self._added_id(before, store.state.groups)

    def _add_teacher(self, store, fake, kindergarten_id, branch_id):
        before = store.state.teachers
        self._dispatch(store, actions.AddTeacher(
            kindergarten_id=kindergarten_id,
            branch_id=branch_id,
            name=fake.name(),
            phone=fake.phone_number(),
        ))
        return self._added_id(before, store.state.teachers)

    def _add_student(self, store, fake, rng, kindergarten_id, branch_id, group_id):
        before = store.state.students
        self._dispatch(store, actions.AddStudent(
            kindergarten_id=kindergarten_id,
            branch_id=branch_id,
            group_id=group_id,
            name=fake.first_name(),
            age=rng.randint(2, 6),
            parent_name=fake.name(),
            parent_phone=fake.phone_number(),
            base_monthly_fee=rng.choice([800_000, 1_000_000, 1_200_000]),
        ))
        return self._added_id(before, store.state.students)

    def _record_month(self, store, rng, student_id, teacher_id, director_id, today):
        statuses = [status for status, _label in AttendanceRecord.STATUS_CHOICES]
        month_start = today.replace(day=1)
        for offset in range(today.day):
            self._dispatch(store, actions.RecordAttendance(
                student_id=student_id,
                teacher_id=teacher_id,
                date=month_start + timedelta(days=offset),
                status=rng.choices(statuses, weights=[8, 1, 1])[0],
            ))

        if rng.random() < 0.7:
            fee = store.state.students[student_id].base_monthly_fee
            self._dispatch(store, actions.RecordPayment(
                student_id=student_id,
                amount=fee,
                method=rng.choice([method for method, _label in PaymentRecord.METHOD_CHOICES]),
                recorded_by=director_id,
            ))
