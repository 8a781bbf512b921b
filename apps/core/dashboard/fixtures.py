"""Sample network the dashboard starts with."""
from __future__ import annotations

from datetime import datetime, time, timedelta

from django.utils import timezone

from .models import (
    AttendanceRecord,
    Branch,
    Branding,
    DashboardState,
    Group,
    Kindergarten,
    KindergartenApplication,
    Localization,
    NotificationEntry,
    PaymentRecord,
    Student,
    SystemSettings,
    Teacher,
    User,
)


SUPER_ADMIN_ID = 'user-super-admin'
KINDERGARTEN_ID = 'kg-sunshine'
DIRECTOR_ID = 'user-director-sunshine'
BRANCH_ID = 'branch-sunshine-central'
GROUP_ID = 'group-sunshine-bees'
SECOND_GROUP_ID = 'group-sunshine-owls'
TEACHER_ID = 'teacher-malika'
TEACHER_CODE = 'MALIKA-4821'
STUDENT_ID = 'student-aziz'
SECOND_STUDENT_ID = 'student-laylo'
PARENT_ID = 'user-parent-aziz'
SECOND_PARENT_ID = 'user-parent-laylo'
PENDING_APPLICATION_ID = 'application-rainbow'


def _at(day, hour):
    return timezone.make_aware(datetime.combine(day, time(hour)), timezone.get_default_timezone())


def initial_state(today=None) -> DashboardState:
    """Return the seed dashboard; attendance and payments are dated in ``today``'s month."""
    today = today or timezone.localdate()
    month_start = today.replace(day=1)
    second_day = month_start + timedelta(days=1)

    kindergarten = Kindergarten(
        id=KINDERGARTEN_ID,
        name='Sunshine Kids',
        director_id=DIRECTOR_ID,
        branch_ids=(BRANCH_ID,),
    )
    branch = Branch(
        id=BRANCH_ID,
        kindergarten_id=KINDERGARTEN_ID,
        name='Central',
        address='12 Amir Temur Avenue, Tashkent',
        group_ids=(GROUP_ID, SECOND_GROUP_ID),
    )
    groups = [
        Group(
            id=GROUP_ID,
            kindergarten_id=KINDERGARTEN_ID,
            branch_id=BRANCH_ID,
            name='Busy Bees',
            age_range='3-4',
            teacher_id=TEACHER_ID,
            student_ids=(STUDENT_ID, SECOND_STUDENT_ID),
        ),
        Group(
            id=SECOND_GROUP_ID,
            kindergarten_id=KINDERGARTEN_ID,
            branch_id=BRANCH_ID,
            name='Wise Owls',
            age_range='5-6',
        ),
    ]
    teacher = Teacher(
        id=TEACHER_ID,
        kindergarten_id=KINDERGARTEN_ID,
        branch_id=BRANCH_ID,
        name='Malika Karimova',
        phone='+998 90 123 45 67',
        telegram_code=TEACHER_CODE,
        group_ids=(GROUP_ID,),
    )
    students = [
        Student(
            id=STUDENT_ID,
            kindergarten_id=KINDERGARTEN_ID,
            branch_id=BRANCH_ID,
            group_id=GROUP_ID,
            name='Aziz Rahimov',
            age=4,
            parent_name='Dilnoza Rahimova',
            parent_phone='+998 91 555 01 02',
            parent_user_id=PARENT_ID,
            base_monthly_fee=1_200_000,
            attendance=(
                AttendanceRecord(
                    id='attendance-aziz-2',
                    student_id=STUDENT_ID,
                    date=second_day,
                    status=AttendanceRecord.STATUS_ABSENT,
                    recorded_by=TEACHER_ID,
                    note='Cold',
                ),
                AttendanceRecord(
                    id='attendance-aziz-1',
                    student_id=STUDENT_ID,
                    date=month_start,
                    status=AttendanceRecord.STATUS_PRESENT,
                    recorded_by=TEACHER_ID,
                ),
            ),
            payments=(
                PaymentRecord(
                    id='payment-aziz-1',
                    student_id=STUDENT_ID,
                    amount=600_000,
                    paid_at=_at(month_start, 10),
                    method=PaymentRecord.METHOD_CARD,
                    recorded_by=DIRECTOR_ID,
                    memo='First half',
                ),
            ),
        ),
        Student(
            id=SECOND_STUDENT_ID,
            kindergarten_id=KINDERGARTEN_ID,
            branch_id=BRANCH_ID,
            group_id=GROUP_ID,
            name='Laylo Usmonova',
            age=3,
            parent_name='Bekzod Usmonov',
            parent_phone='+998 93 777 10 20',
            parent_user_id=SECOND_PARENT_ID,
            base_monthly_fee=1_000_000,
            attendance=(
                AttendanceRecord(
                    id='attendance-laylo-1',
                    student_id=SECOND_STUDENT_ID,
                    date=month_start,
                    status=AttendanceRecord.STATUS_EXCUSED,
                    recorded_by=TEACHER_ID,
                    note='Family trip',
                ),
            ),
        ),
    ]
    users = [
        User(id=SUPER_ADMIN_ID, role=User.ROLE_SUPER_ADMIN, name='Platform Admin', email='admin@kinderhub.uz'),
        User(
            id=DIRECTOR_ID,
            role=User.ROLE_DIRECTOR,
            name='Nodira Alimova',
            email='nodira@sunshine.uz',
            related_kindergarten_id=KINDERGARTEN_ID,
        ),
        User(
            id=TEACHER_ID,
            role=User.ROLE_TEACHER,
            name=teacher.name,
            phone=teacher.phone,
            related_kindergarten_id=KINDERGARTEN_ID,
            related_teacher_id=TEACHER_ID,
        ),
        User(
            id=PARENT_ID,
            role=User.ROLE_PARENT,
            name='Dilnoza Rahimova',
            phone='+998 91 555 01 02',
            related_parent_student_id=STUDENT_ID,
        ),
        User(
            id=SECOND_PARENT_ID,
            role=User.ROLE_PARENT,
            name='Bekzod Usmonov',
            phone='+998 93 777 10 20',
            related_parent_student_id=SECOND_STUDENT_ID,
        ),
    ]
    application = KindergartenApplication(
        id=PENDING_APPLICATION_ID,
        name='Rainbow Garden',
        director_name='Shahlo Ergasheva',
        director_email='shahlo@rainbow.uz',
        submitted_at=_at(month_start, 9),
    )
    welcome = NotificationEntry(
        id='notification-welcome',
        audience=NotificationEntry.AUDIENCE_PARENTS,
        sender_id=DIRECTOR_ID,
        sender_role=User.ROLE_DIRECTOR,
        message='Welcome to the new school month at Sunshine Kids!',
        created_at=_at(month_start, 8),
    )

    return DashboardState(
        settings=SystemSettings(
            branding=Branding(
                logo_url='https://kinderhub.uz/static/logo.svg',
                primary_color='#4f46e5',
                accent_color='#10b981',
            ),
            localization=Localization(language='en', currency='UZS'),
        ),
        kindergartens={kindergarten.id: kindergarten},
        branches={branch.id: branch},
        groups={group.id: group for group in groups},
        teachers={teacher.id: teacher},
        students={student.id: student for student in students},
        users={user.id: user for user in users},
        applications={application.id: application},
        notifications=(welcome,),
    )
