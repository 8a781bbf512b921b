from django.urls import path

from .views import parent_phone_login, teacher_code_login, user_list

urlpatterns = [
    path('', user_list, name='user_list'),
    path('login/teacher/', teacher_code_login, name='user_login_teacher'),
    path('login/parent/', parent_phone_login, name='user_login_parent'),
]
