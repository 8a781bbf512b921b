from django.urls import path

from .views import dashboard_dispatch, dashboard_state

urlpatterns = [
    path('state/', dashboard_state, name='dashboard_state'),
    path('actions/', dashboard_dispatch, name='dashboard_dispatch'),
]
