from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse

from audit_log.models import LoginLog
from dentists.decorators import SESSION_DENTIST_ID
from dentists.forms import DentistForm
from dentists.models import Dentist, DUPLICATE_NAME_MESSAGE

User = get_user_model()


class DentistRepositoryTestSuite(TestCase):

    def test_add_dentist_hashes_password_and_sets_welcome(self):
        dentist = Dentist.objects.add_dentist('Dr. Rami', 'secret123')
        self.assertNotEqual(dentist.password, 'secret123')
        self.assertTrue(dentist.check_password('secret123'))
        self.assertEqual(dentist.welcome_message, 'Welcome, Dr. Rami')

    def test_add_rejects_duplicate_name_case_insensitively(self):
        Dentist.objects.add_dentist('Dr. Rami', 'secret123')
        with self.assertRaises(ValidationError) as ctx:
            Dentist.objects.add_dentist('dr. rami', 'other')
        self.assertIn(DUPLICATE_NAME_MESSAGE, ctx.exception.message_dict['name'])
        self.assertEqual(Dentist.objects.count(), 1)

    def test_update_checks_name_uniqueness(self):
        Dentist.objects.add_dentist('Dr. Rami', 'secret123')
        lina = Dentist.objects.add_dentist('Dr. Lina', 'secret123')
        with self.assertRaises(ValidationError):
            Dentist.objects.update_dentist(lina.pk, name='DR. RAMI')
        lina.refresh_from_db()
        self.assertEqual(lina.name, 'Dr. Lina')

    def test_update_allows_case_change_of_own_name_and_password(self):
        lina = Dentist.objects.add_dentist('Dr. Lina', 'secret123')
        updated = Dentist.objects.update_dentist(lina.pk, name='DR. LINA', password='newpass')
        self.assertEqual(updated.name, 'DR. LINA')
        self.assertTrue(updated.check_password('newpass'))

    def test_rename_refreshes_default_welcome_only(self):
        lina = Dentist.objects.add_dentist('Dr. Lina', 'secret123')
        renamed = Dentist.objects.update_dentist(lina.pk, name='Dr. Lina Haddad')
        self.assertEqual(renamed.welcome_message, 'Welcome, Dr. Lina Haddad')

        rami = Dentist.objects.add_dentist('Dr. Rami', 'secret123', welcome_message='Good morning!')
        renamed = Dentist.objects.update_dentist(rami.pk, name='Dr. Rami Saleh')
        self.assertEqual(renamed.welcome_message, 'Good morning!')

    def test_form_rename_with_default_welcome_left_in_place(self):
        lina = Dentist.objects.add_dentist('Dr. Lina', 'secret123')
        form = DentistForm(
            data={'name': 'Dr. Lina Haddad', 'password': '', 'welcome_message': 'Welcome, Dr. Lina', 'is_active': True},
            instance=lina
        )
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.save().welcome_message, 'Welcome, Dr. Lina Haddad')

    def test_verify(self):
        Dentist.objects.add_dentist('Dr. Rami', 'secret123')
        Dentist.objects.add_dentist('Dr. Old', 'secret123', is_active=False)
        self.assertEqual(Dentist.objects.verify('dr. rami', 'secret123').name, 'Dr. Rami')
        self.assertIsNone(Dentist.objects.verify('Dr. Rami', 'wrong'))
        self.assertIsNone(Dentist.objects.verify('Dr. Rami', ''))
        self.assertIsNone(Dentist.objects.verify('Dr. Nobody', 'secret123'))
        self.assertIsNone(Dentist.objects.verify('Dr. Old', 'secret123'))

    def test_form_requires_password_only_on_create(self):
        form = DentistForm(data={'name': 'Dr. Rami', 'password': '', 'is_active': True})
        self.assertIn('password', form.errors)

        dentist = Dentist.objects.add_dentist('Dr. Rami', 'secret123')
        form = DentistForm(data={'name': 'Dr. Rami', 'password': '', 'welcome_message': 'Hi', 'is_active': True}, instance=dentist)
        self.assertTrue(form.is_valid(), form.errors)
        form.save()
        dentist.refresh_from_db()
        self.assertTrue(dentist.check_password('secret123'))
        self.assertEqual(dentist.welcome_message, 'Hi')

    def test_form_rejects_duplicate_and_short_names(self):
        Dentist.objects.add_dentist('Dr. Rami', 'secret123')
        form = DentistForm(data={'name': 'DR. RAMI', 'password': 'x1', 'is_active': True})
        self.assertIn(DUPLICATE_NAME_MESSAGE, form.errors['name'])
        form = DentistForm(data={'name': 'R', 'password': 'x1', 'is_active': True})
        self.assertIn('name', form.errors)

    def test_owner_group_created_with_permissions(self):
        group = Group.objects.get(name=settings.OWNER_GROUP_NAME)
        codenames = set(group.permissions.values_list('codename', flat=True))
        self.assertIn('view_dentalcase', codenames)
        self.assertIn('add_invoice', codenames)
        self.assertIn('view_loginlog', codenames)


class DentistViewsTestSuite(TestCase):

    def setUp(self):
        self.owner = User.objects.create_superuser(username='owner', password='test', email='owner@example.com')
        self.dentist = Dentist.objects.add_dentist('Dr. Rami', 'secret123', welcome_message='Hello Dr. Rami!')

    def test_login_success_records_log_and_redirects(self):
        response = self.client.post(reverse('dentists:login'), {'name': 'dr. rami', 'password': 'secret123'})
        self.assertRedirects(response, reverse('lab_cases:doctor_portal'), fetch_redirect_response=False)
        self.assertEqual(self.client.session[SESSION_DENTIST_ID], self.dentist.pk)
        self.assertTrue(LoginLog.objects.filter(dentist_name='Dr. Rami').exists())
        response = self.client.get(reverse('lab_cases:doctor_portal'))
        self.assertContains(response, 'Hello Dr. Rami!')

    def test_login_failure(self):
        response = self.client.post(reverse('dentists:login'), {'name': 'Dr. Rami', 'password': 'nope'})
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Incorrect name or password')
        self.assertNotIn(SESSION_DENTIST_ID, self.client.session)
        self.assertFalse(LoginLog.objects.exists())

    def test_login_honours_safe_next_only(self):
        history = reverse('lab_cases:doctor_case_history')
        response = self.client.post(reverse('dentists:login') + f'?next={history}', {'name': 'Dr. Rami', 'password': 'secret123'})
        self.assertRedirects(response, history)
        self.client.post(reverse('dentists:logout'))
        response = self.client.post(
            reverse('dentists:login'),
            {'name': 'Dr. Rami', 'password': 'secret123', 'next': 'https://evil.example.com/'}
        )
        self.assertRedirects(response, reverse('lab_cases:doctor_portal'))

    def test_logout(self):
        self.client.post(reverse('dentists:login'), {'name': 'Dr. Rami', 'password': 'secret123'})
        response = self.client.post(reverse('dentists:logout'))
        self.assertRedirects(response, reverse('dentists:login'))
        self.assertNotIn(SESSION_DENTIST_ID, self.client.session)

    def test_deactivated_dentist_is_signed_out(self):
        self.client.post(reverse('dentists:login'), {'name': 'Dr. Rami', 'password': 'secret123'})
        Dentist.objects.filter(pk=self.dentist.pk).update(is_active=False)
        response = self.client.get(reverse('lab_cases:doctor_portal'))
        self.assertEqual(response.status_code, 302)
        self.assertTrue(response.url.startswith(reverse('dentists:login')))

    def test_owner_manages_dentists(self):
        self.client.force_login(self.owner)
        response = self.client.post(reverse('dentists:add_dentist'), {
            'name': 'Dr. Lina', 'password': 'pass1234', 'welcome_message': '', 'contact_number': '+962791234567', 'is_active': 'on'
        })
        self.assertRedirects(response, reverse('dentists:dentist_list'))
        lina = Dentist.objects.get(name='Dr. Lina')
        self.assertEqual(lina.welcome_message, 'Welcome, Dr. Lina')
        self.assertEqual(str(lina.contact_number), '+962791234567')

        response = self.client.post(reverse('dentists:edit_dentist', args=[lina.pk]), {
            'name': 'dr. rami', 'password': '', 'welcome_message': '', 'contact_number': '', 'is_active': 'on'
        })
        self.assertEqual(response.status_code, 200)
        self.assertIn('name', response.context['form'].errors)

        response = self.client.post(reverse('dentists:delete_dentist', args=[lina.pk]))
        self.assertRedirects(response, reverse('dentists:dentist_list'))
        self.assertFalse(Dentist.objects.filter(pk=lina.pk).exists())

    def test_dentist_list_requires_owner(self):
        response = self.client.get(reverse('dentists:dentist_list'))
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse('login'), response.url)
