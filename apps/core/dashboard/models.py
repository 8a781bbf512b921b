"""In-memory data model of the kindergarten network dashboard.

Every entity is an immutable dataclass. ``DashboardState`` is the single tree
the reducer in ``services.py`` transitions from one snapshot to the next.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass(frozen=True)
class Branding:
    logo_url: str = ''
    primary_color: str = '#4f46e5'
    accent_color: str = '#10b981'


@dataclass(frozen=True)
class Localization:
    language: str = 'en'
    currency: str = 'UZS'


@dataclass(frozen=True)
class SystemSettings:
    branding: Branding = field(default_factory=Branding)
    localization: Localization = field(default_factory=Localization)


@dataclass(frozen=True)
class Kindergarten:
    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_DRAFT = 'draft'
    STATUS_CHOICES = (
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
        (STATUS_DRAFT, 'Draft'),
    )

    id: str
    name: str
    director_id: str
    status: str = STATUS_ACTIVE
    application_id: str | None = None
    branch_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Branch:
    id: str
    kindergarten_id: str
    name: str
    address: str
    group_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Group:
    id: str
    kindergarten_id: str
    branch_id: str
    name: str
    age_range: str
    teacher_id: str | None = None
    student_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Teacher:
    id: str
    kindergarten_id: str
    branch_id: str
    name: str
    phone: str
    telegram_code: str
    # Set semantics: the reducer never stores a group id twice.
    group_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class AttendanceRecord:
    STATUS_PRESENT = 'present'
    STATUS_ABSENT = 'absent'
    STATUS_EXCUSED = 'excused'
    STATUS_CHOICES = (
        (STATUS_PRESENT, 'Present'),
        (STATUS_ABSENT, 'Absent'),
        (STATUS_EXCUSED, 'Excused'),
    )

    id: str
    student_id: str
    date: date
    status: str
    recorded_by: str
    note: str | None = None


@dataclass(frozen=True)
class PaymentRecord:
    METHOD_CASH = 'cash'
    METHOD_CARD = 'card'
    METHOD_TRANSFER = 'transfer'
    METHOD_CHOICES = (
        (METHOD_CASH, 'Cash'),
        (METHOD_CARD, 'Card'),
        (METHOD_TRANSFER, 'Bank transfer'),
    )

    id: str
    student_id: str
    amount: int
    paid_at: datetime
    method: str
    recorded_by: str
    memo: str | None = None


@dataclass(frozen=True)
class Student:
    id: str
    kindergarten_id: str
    branch_id: str
    group_id: str
    name: str
    age: int
    parent_name: str
    parent_phone: str
    parent_user_id: str
    base_monthly_fee: int
    # Both sequences are newest first.
    attendance: tuple[AttendanceRecord, ...] = ()
    payments: tuple[PaymentRecord, ...] = ()

    def attendance_on(self, day: date) -> AttendanceRecord | None:
        for record in self.attendance:
            if record.date == day:
                return record
        return None

    @property
    def total_paid(self) -> int:
        return sum(payment.amount for payment in self.payments)


@dataclass(frozen=True)
class User:
    ROLE_SUPER_ADMIN = 'super_admin'
    ROLE_DIRECTOR = 'director'
    ROLE_TEACHER = 'teacher'
    ROLE_PARENT = 'parent'
    ROLE_CHOICES = (
        (ROLE_SUPER_ADMIN, 'Super Admin'),
        (ROLE_DIRECTOR, 'Director'),
        (ROLE_TEACHER, 'Teacher'),
        (ROLE_PARENT, 'Parent'),
    )

    id: str
    role: str
    name: str
    email: str | None = None
    phone: str | None = None
    related_kindergarten_id: str | None = None
    related_teacher_id: str | None = None
    related_parent_student_id: str | None = None


@dataclass(frozen=True)
class KindergartenApplication:
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    )
    REVIEW_STATUSES = (STATUS_APPROVED, STATUS_REJECTED)

    id: str
    name: str
    director_name: str
    director_email: str
    submitted_at: datetime
    status: str = STATUS_PENDING
    reviewed_at: datetime | None = None
    reviewer_id: str | None = None
    notes: str | None = None

    @property
    def is_reviewed(self) -> bool:
        return self.status in self.REVIEW_STATUSES


@dataclass(frozen=True)
class NotificationEntry:
    AUDIENCE_TEACHERS = 'teachers'
    AUDIENCE_PARENTS = 'parents'
    AUDIENCE_CHOICES = (
        (AUDIENCE_TEACHERS, 'Teachers'),
        (AUDIENCE_PARENTS, 'Parents'),
    )

    id: str
    audience: str
    sender_id: str
    sender_role: str
    message: str
    created_at: datetime


@dataclass(frozen=True)
class DashboardState:
    settings: SystemSettings = field(default_factory=SystemSettings)
    kindergartens: dict[str, Kindergarten] = field(default_factory=dict)
    branches: dict[str, Branch] = field(default_factory=dict)
    groups: dict[str, Group] = field(default_factory=dict)
    teachers: dict[str, Teacher] = field(default_factory=dict)
    students: dict[str, Student] = field(default_factory=dict)
    users: dict[str, User] = field(default_factory=dict)
    applications: dict[str, KindergartenApplication] = field(default_factory=dict)
    # Newest first.
    notifications: tuple[NotificationEntry, ...] = ()


def choice_values(choices):
    return tuple(value for value, _label in choices)
