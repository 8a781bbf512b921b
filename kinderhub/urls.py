from django.urls import path, include

urlpatterns = [
    path('dashboard/', include('apps.core.dashboard.urls')),
    path('attendance/', include('apps.core.attendance.urls')),
    path('users/', include('apps.core.users.urls')),
    path('reports/', include('apps.operations.reports.urls')),
]
