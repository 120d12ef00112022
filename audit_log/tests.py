from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from audit_log.models import LoginLog

User = get_user_model()


class AuditLogTestSuite(TestCase):

    def setUp(self):
        self.user = User.objects.create_superuser(username='owner', password='test', email='owner@example.com')
        self.client.force_login(self.user)

    def test_recent_prunes_entries_older_than_a_day(self):
        now = timezone.now()
        LoginLog.objects.create(dentist_name='Dr. Old', timestamp=now - timedelta(hours=25))
        LoginLog.objects.create(dentist_name='Dr. Recent', timestamp=now - timedelta(hours=23))
        recent = LoginLog.recent(now=now)
        self.assertEqual([log.dentist_name for log in recent], ['Dr. Recent'])
        self.assertFalse(LoginLog.objects.filter(dentist_name='Dr. Old').exists())

    def test_login_log_view(self):
        LoginLog.record('Dr. Rami')
        response = self.client.get(reverse('audit_log:login_log'))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Dr. Rami')

    def test_login_log_view_requires_permission(self):
        self.client.force_login(User.objects.create_user(username='clerk', password='test'))
        response = self.client.get(reverse('audit_log:login_log'))
        self.assertEqual(response.status_code, 403)
