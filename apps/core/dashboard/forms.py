from django import forms
from django.core.validators import RegexValidator

from . import actions
from .models import (
    AttendanceRecord,
    KindergartenApplication,
    NotificationEntry,
    PaymentRecord,
    User,
)


hex_color_validator = RegexValidator(r'^#[0-9a-fA-F]{6}$', 'Enter a colour as #RRGGBB.')
currency_validator = RegexValidator(r'^[A-Z]{3}$', 'Enter a three-letter ISO currency code.')


def _optional_text(**kwargs):
    return forms.CharField(required=False, empty_value=None, **kwargs)


class ActionForm(forms.Form):
    """Validates one action payload; ``to_action`` builds the reducer action from cleaned data."""

    action_class = None

    def to_action(self):
        return self.action_class(**self.cleaned_data)


class CreateKindergartenForm(ActionForm):
    action_class = actions.CreateKindergarten

    name = forms.CharField(max_length=150)
    director_name = forms.CharField(max_length=150)
    director_email = forms.EmailField()


class SubmitApplicationForm(CreateKindergartenForm):
    action_class = actions.SubmitApplication


class ReviewApplicationForm(ActionForm):
    action_class = actions.ReviewApplication

    application_id = forms.CharField(max_length=64)
    status = forms.ChoiceField(
        choices=[
            choice for choice in KindergartenApplication.STATUS_CHOICES
            if choice[0] in KindergartenApplication.REVIEW_STATUSES
        ]
    )
    reviewer_id = forms.CharField(max_length=64)
    notes = _optional_text()


class AddBranchForm(ActionForm):
    action_class = actions.AddBranch

    kindergarten_id = forms.CharField(max_length=64)
    name = forms.CharField(max_length=150)
    address = forms.CharField(max_length=255)


class AddGroupForm(ActionForm):
    action_class = actions.AddGroup

    kindergarten_id = forms.CharField(max_length=64)
    branch_id = forms.CharField(max_length=64)
    name = forms.CharField(max_length=100)
    age_range = forms.CharField(max_length=20)


class AddTeacherForm(ActionForm):
    action_class = actions.AddTeacher

    kindergarten_id = forms.CharField(max_length=64)
    branch_id = forms.CharField(max_length=64)
    name = forms.CharField(max_length=150)
    phone = forms.CharField(max_length=32)


class AssignTeacherForm(ActionForm):
    action_class = actions.AssignTeacher

    group_id = forms.CharField(max_length=64)
    teacher_id = _optional_text(max_length=64)


class AddStudentForm(ActionForm):
    action_class = actions.AddStudent

    kindergarten_id = forms.CharField(max_length=64)
    branch_id = forms.CharField(max_length=64)
    group_id = forms.CharField(max_length=64)
    name = forms.CharField(max_length=150)
    age = forms.IntegerField(min_value=0, max_value=10)
    parent_name = forms.CharField(max_length=150)
    parent_phone = forms.CharField(max_length=32)
    base_monthly_fee = forms.IntegerField(min_value=0)


class RecordPaymentForm(ActionForm):
    action_class = actions.RecordPayment

    student_id = forms.CharField(max_length=64)
    amount = forms.IntegerField(min_value=1)
    method = forms.ChoiceField(choices=PaymentRecord.METHOD_CHOICES)
    recorded_by = forms.CharField(max_length=64)
    memo = _optional_text(max_length=255)


class SendNotificationForm(ActionForm):
    action_class = actions.SendNotification

    audience = forms.ChoiceField(choices=NotificationEntry.AUDIENCE_CHOICES)
    sender_id = forms.CharField(max_length=64)
    sender_role = forms.ChoiceField(choices=User.ROLE_CHOICES)
    message = forms.CharField(max_length=2000)


class UpdateSettingsForm(ActionForm):
    action_class = actions.UpdateSettings

    logo_url = forms.URLField(required=False, empty_value=None, assume_scheme='https')
    primary_color = _optional_text(validators=[hex_color_validator])
    accent_color = _optional_text(validators=[hex_color_validator])
    language = _optional_text(max_length=10)
    currency = _optional_text(validators=[currency_validator])


class RecordAttendanceForm(ActionForm):
    action_class = actions.RecordAttendance

    student_id = forms.CharField(max_length=64)
    teacher_id = forms.CharField(max_length=64)
    date = forms.DateField(input_formats=['%Y-%m-%d'])
    status = forms.ChoiceField(choices=AttendanceRecord.STATUS_CHOICES)
    note = _optional_text(max_length=255)


ACTION_FORMS = {
    form_class.action_class.type: form_class
    for form_class in (
        CreateKindergartenForm,
        SubmitApplicationForm,
        ReviewApplicationForm,
        AddBranchForm,
        AddGroupForm,
        AddTeacherForm,
        AssignTeacherForm,
        AddStudentForm,
        RecordPaymentForm,
        SendNotificationForm,
        UpdateSettingsForm,
        RecordAttendanceForm,
    )
}


def build_action(action_type, payload):
    """Return ``(action, None)`` for a valid payload or ``(None, errors)`` otherwise."""
    form_class = ACTION_FORMS.get(action_type)
    if form_class is None:
        return None, {'type': [f'Unknown action type "{action_type}".']}

    form = form_class(data=payload or {})
    if not form.is_valid():
        return None, form.errors.get_json_data()
    return form.to_action(), None
