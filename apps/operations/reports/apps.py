from django.apps import AppConfig


class ReportsConfig(AppConfig):
    name = 'apps.operations.reports'
    label = 'operations_reports'
