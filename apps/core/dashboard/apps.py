from django.apps import AppConfig


class DashboardConfig(AppConfig):
    name = 'apps.core.dashboard'
    label = 'core_dashboard'
    verbose_name = 'Kindergarten dashboard'
