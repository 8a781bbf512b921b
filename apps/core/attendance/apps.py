from django.apps import AppConfig


class AttendanceConfig(AppConfig):
    name = 'apps.core.attendance'
    label = 'core_attendance'
