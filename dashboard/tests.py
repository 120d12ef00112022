from decimal import Decimal

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.conf import settings
from django.test import TestCase, override_settings
from django.urls import reverse

from dashboard.templatetags.dashboard_extras import format_currency
from dentists.decorators import SESSION_DENTIST_ID, SESSION_DENTIST_NAME
from dentists.models import Dentist
from lab_cases.models import DentalCase
from notifications.models import Notification, OWNER_RECIPIENT

User = get_user_model()


class DashboardTestSuite(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(username='owner', password='test')
        self.owner.groups.add(Group.objects.get(name=settings.OWNER_GROUP_NAME))

    def test_home_for_anonymous_visitor(self):
        response = self.client.get(reverse('dashboard:home'))
        self.assertContains(response, 'Doctor Portal')

    def test_home_redirects_owner_and_dentist(self):
        self.client.force_login(self.owner)
        self.assertRedirects(self.client.get(reverse('dashboard:home')), reverse('dashboard:owner_dashboard'))
        self.client.logout()

        dentist = Dentist.objects.add_dentist('Dr. Rami', 'secret123')
        session = self.client.session
        session[SESSION_DENTIST_ID] = dentist.pk
        session[SESSION_DENTIST_NAME] = dentist.name
        session.save()
        self.assertRedirects(self.client.get(reverse('dashboard:home')), reverse('lab_cases:doctor_portal'))

    def test_owner_dashboard_counts_and_notification(self):
        DentalCase.objects.create(
            patient_name='Omar Khalil', dentist_name='Dr. Rami', tooth_numbers='11',
            prosthesis_type='Separate', material='Zolid', shade='A1', deletion_requested=True,
        )
        self.client.force_login(self.owner)
        response = self.client.get(reverse('dashboard:owner_dashboard'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['todays_cases_count'], 1)
        self.assertEqual(response.context['pending_deletion_count'], 1)
        self.assertTrue(response.context['is_owner'])
        self.assertEqual(response.context['notification'].message, 'New Case From Dr. Rami')
        self.assertEqual(Notification.objects.filter(recipient=OWNER_RECIPIENT).count(), 1)

    def test_owner_dashboard_forbidden_without_group(self):
        self.client.force_login(User.objects.create_user(username='clerk', password='test'))
        response = self.client.get(reverse('dashboard:owner_dashboard'))
        self.assertEqual(response.status_code, 403)
        self.assertContains(response, settings.PERMISSION_HELP_URL, status_code=403)

    @override_settings(INVOICE_CURRENCY='JOD', CURRENCY_LOCALE='en_US')
    def test_format_currency(self):
        formatted = format_currency(Decimal('1234.5'))
        self.assertIn('JOD', formatted)
        self.assertIn('1,234.500', formatted)
        self.assertEqual(format_currency(None), '')
        self.assertEqual(format_currency('n/a'), 'n/a')

