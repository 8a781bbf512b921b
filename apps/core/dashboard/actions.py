"""Actions accepted by the dashboard reducer.

Each action is an immutable payload; ``type`` is a class constant, not a field.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class CreateKindergarten:
    type = 'CREATE_KINDERGARTEN'

    name: str
    director_name: str
    director_email: str


@dataclass(frozen=True)
class SubmitApplication:
    type = 'SUBMIT_APPLICATION'

    name: str
    director_name: str
    director_email: str


@dataclass(frozen=True)
class ReviewApplication:
    type = 'REVIEW_APPLICATION'

    application_id: str
    status: str
    reviewer_id: str
    notes: str | None = None


@dataclass(frozen=True)
class AddBranch:
    type = 'ADD_BRANCH'

    kindergarten_id: str
    name: str
    address: str


@dataclass(frozen=True)
class AddGroup:
    type = 'ADD_GROUP'

    kindergarten_id: str
    branch_id: str
    name: str
    age_range: str


@dataclass(frozen=True)
class AddTeacher:
    type = 'ADD_TEACHER'

    kindergarten_id: str
    branch_id: str
    name: str
    phone: str


@dataclass(frozen=True)
class AssignTeacher:
    type = 'ASSIGN_TEACHER'

    group_id: str
    # Empty or None unassigns the group.
    teacher_id: str | None = None


@dataclass(frozen=True)
class AddStudent:
    type = 'ADD_STUDENT'

    kindergarten_id: str
    branch_id: str
    group_id: str
    name: str
    age: int
    parent_name: str
    parent_phone: str
    base_monthly_fee: int


@dataclass(frozen=True)
class RecordPayment:
    type = 'RECORD_PAYMENT'

    student_id: str
    amount: int
    method: str
    recorded_by: str
    memo: str | None = None


@dataclass(frozen=True)
class SendNotification:
    type = 'SEND_NOTIFICATION'

    audience: str
    sender_id: str
    sender_role: str
    message: str


@dataclass(frozen=True)
class UpdateSettings:
    type = 'UPDATE_SETTINGS'

    logo_url: str | None = None
    primary_color: str | None = None
    accent_color: str | None = None
    language: str | None = None
    currency: str | None = None


@dataclass(frozen=True)
class RecordAttendance:
    type = 'RECORD_ATTENDANCE'

    student_id: str
    teacher_id: str
    date: date
    status: str
    note: str | None = None
