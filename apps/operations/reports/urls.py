from django.urls import path

from .views import (
    reports_kindergarten,
    reports_network,
    reports_student,
    reports_tuition_csv,
    reports_tuition_pdf,
)

urlpatterns = [
    path('network/', reports_network, name='reports_network'),
    path('kindergartens/<str:kindergarten_id>/', reports_kindergarten, name='reports_kindergarten'),
    path('students/<str:student_id>/', reports_student, name='reports_student'),
    path('teachers/<str:teacher_id>/tuition.csv', reports_tuition_csv, name='reports_tuition_csv'),
    path('teachers/<str:teacher_id>/tuition.pdf', reports_tuition_pdf, name='reports_tuition_pdf'),
]
