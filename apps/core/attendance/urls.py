from django.urls import path

from .views import teacher_attendance_summary

urlpatterns = [
    path('teachers/<str:teacher_id>/summary/', teacher_attendance_summary, name='attendance_teacher_summary'),
]
