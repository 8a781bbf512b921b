import json
from dataclasses import replace

from django.test import SimpleTestCase
from django.urls import reverse

from apps.core.dashboard.exceptions import EntityNotFound, InvalidAction
from apps.core.dashboard.fixtures import PARENT_ID, SECOND_PARENT_ID, TEACHER_CODE, TEACHER_ID, initial_state
from apps.core.dashboard.models import User
from apps.core.dashboard.store import reset_store

from .services import find_parent_user_by_phone, find_teacher_user_by_code, normalize_phone, users_for_role


class LoginLookupTests(SimpleTestCase):
    def setUp(self):
        self.state = initial_state()

    def test_teacher_code_selects_linked_teacher_user(self):
        user = find_teacher_user_by_code(self.state, f'  {TEACHER_CODE} ')

        self.assertEqual(user.id, TEACHER_ID)
        self.assertEqual(user.role, User.ROLE_TEACHER)

    def test_unknown_teacher_code_is_rejected(self):
        for code in ('MALIKA-0000', '', None):
            with self.assertRaisesMessage(EntityNotFound, 'Invalid Telegram code'):
                find_teacher_user_by_code(self.state, code)

    def test_teacher_without_user_account_is_reported(self):
        users = {key: user for key, user in self.state.users.items() if key != TEACHER_ID}
        state = replace(self.state, users=users)

        with self.assertRaisesMessage(EntityNotFound, 'Teacher account not linked'):
            find_teacher_user_by_code(state, TEACHER_CODE)

    def test_parent_phone_ignores_whitespace(self):
        self.assertEqual(find_parent_user_by_phone(self.state, '+998915550102').id, PARENT_ID)
        self.assertEqual(find_parent_user_by_phone(self.state, '+998 93 777 10 20').id, SECOND_PARENT_ID)

    def test_unknown_parent_phone_is_rejected(self):
        for phone in ('+998 99 000 00 00', '   '):
            with self.assertRaisesMessage(EntityNotFound, 'Parent phone not found'):
                find_parent_user_by_phone(self.state, phone)

    def test_teacher_phone_does_not_log_in_as_parent(self):
        with self.assertRaises(EntityNotFound):
            find_parent_user_by_phone(self.state, '+998 90 123 45 67')

    def test_normalize_phone(self):
        self.assertEqual(normalize_phone(' +998 90\t123 45 67 '), '+998901234567')
        self.assertEqual(normalize_phone(None), '')

    def test_users_for_role_sorted_by_name(self):
        parents = users_for_role(self.state, User.ROLE_PARENT)

        self.assertEqual([user.name for user in parents], ['Bekzod Usmonov', 'Dilnoza Rahimova'])
        self.assertEqual(len(users_for_role(self.state, User.ROLE_SUPER_ADMIN)), 1)

    def test_users_for_unknown_role(self):
        with self.assertRaises(InvalidAction):
            users_for_role(self.state, 'janitor')


class LoginViewTests(SimpleTestCase):
    def setUp(self):
        reset_store(initial_state())

    def post_json(self, url_name, payload):
        return self.client.post(reverse(url_name), data=json.dumps(payload), content_type='application/json')

    def test_user_list_filters_by_role(self):
        response = self.client.get(reverse('user_list'), {'role': 'teacher'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([user['id'] for user in response.json()['users']], [TEACHER_ID])

    def test_user_list_rejects_unknown_role(self):
        response = self.client.get(reverse('user_list'), {'role': 'janitor'})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'INVALID_ACTION')

    def test_teacher_login_with_code(self):
        response = self.post_json('user_login_teacher', {'code': TEACHER_CODE})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['user']['related_teacher_id'], TEACHER_ID)

    def test_teacher_login_with_wrong_code(self):
        response = self.post_json('user_login_teacher', {'code': 'NOPE-1111'})

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['message'], 'Invalid Telegram code')

    def test_parent_login_with_phone(self):
        response = self.post_json('user_login_parent', {'phone': '+998 91 555 01 02'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['user']['id'], PARENT_ID)

    def test_parent_login_with_unknown_phone(self):
        response = self.post_json('user_login_parent', {'phone': '+1 555 0100'})

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['message'], 'Parent phone not found')

    def test_login_requires_json_object(self):
        response = self.client.post(reverse('user_login_parent'), data='[]', content_type='application/json')

        self.assertEqual(response.status_code, 400)
