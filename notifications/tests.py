from unittest import mock

import httpx
from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase, override_settings
from django.urls import reverse

from dentists.decorators import SESSION_DENTIST_ID, SESSION_DENTIST_NAME
from dentists.models import Dentist
from lab_cases.models import DentalCase
from notifications import services
from notifications.models import Notification, OWNER_RECIPIENT

User = get_user_model()

TWILIO_SETTINGS = {
    'TWILIO_ACCOUNT_SID': 'AC123',
    'TWILIO_AUTH_TOKEN': 'token',
    'TWILIO_WHATSAPP_FROM': '+14155238886',
    'TWILIO_API_BASE_URL': 'https://api.twilio.test/2010-04-01',
}
EMAIL_SETTINGS = {
    'SENDGRID_API_KEY': 'SG.key',
    'SENDER_EMAIL': 'lab@example.com',
}


def twilio_client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def make_case(**overrides):
    data = {
        'patient_name': 'Omar Khalil',
        'dentist_name': 'Dr. Rami',
        'tooth_numbers': '11,12,13',
        'prosthesis_type': 'Bridge',
        'material': 'Zirconia',
        'shade': 'A2',
        'notes': 'Check occlusion',
    }
    data.update(overrides)
    return DentalCase.objects.create(**data)


class SendTestSuite(TestCase):

    @override_settings(**TWILIO_SETTINGS)
    def test_whatsapp_success(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(201, json={'sid': 'SM123'})

        with mock.patch('notifications.services.get_twilio_client', return_value=twilio_client(handler)):
            results = services.send(services.WHATSAPP, ['+962791234567'], 'Hello')

        self.assertEqual(results, [{'recipient': '+962791234567', 'success': True, 'sid': 'SM123'}])
        self.assertEqual(requests[0].url.path, '/2010-04-01/Accounts/AC123/Messages.json')
        body = requests[0].content.decode()
        self.assertIn('whatsapp%3A%2B962791234567', body)
        self.assertIn('whatsapp%3A%2B14155238886', body)

    @override_settings(**TWILIO_SETTINGS)
    def test_whatsapp_auth_failure_is_reported(self):
        def handler(request):
            return httpx.Response(401, json={'code': 20003, 'message': 'Authenticate'})

        with mock.patch('notifications.services.get_twilio_client', return_value=twilio_client(handler)):
            results = services.send(services.WHATSAPP, ['+962791234567'], 'Hello')

        self.assertFalse(results[0]['success'])
        self.assertIn('20003', results[0]['error'])
        self.assertIn('authentication failed', results[0]['error'])

    @override_settings(**TWILIO_SETTINGS)
    def test_whatsapp_invalid_number_and_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with mock.patch('notifications.services.get_twilio_client', return_value=twilio_client(handler)):
            results = services.send(services.WHATSAPP, ['12345', '+962791234567'], 'Hello')

        self.assertEqual(len(results), 2)
        self.assertEqual(results[0]['error'], 'Invalid phone number.')
        self.assertFalse(results[1]['success'])
        self.assertIn('connection refused', results[1]['error'])

    @override_settings(TWILIO_ACCOUNT_SID='', TWILIO_AUTH_TOKEN='', TWILIO_WHATSAPP_FROM='')
    def test_whatsapp_missing_credentials(self):
        with mock.patch('notifications.services.get_twilio_client') as client:
            results = services.send(services.WHATSAPP, ['+962791234567'], 'Hello')
        client.assert_not_called()
        self.assertFalse(results[0]['success'])
        self.assertIn('TWILIO_ACCOUNT_SID', results[0]['error'])

    @override_settings(**TWILIO_SETTINGS)
    def test_whatsapp_without_recipients(self):
        results = services.send(services.WHATSAPP, [], 'Hello')
        self.assertEqual(results[0]['recipient'], None)
        self.assertFalse(results[0]['success'])

    @override_settings(**EMAIL_SETTINGS)
    def test_email_success(self):
        results = services.send(services.EMAIL, ['owner@example.com'], '<p>Hello</p>', subject='New case')
        self.assertEqual(results, [{'recipient': 'owner@example.com', 'success': True}])
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, 'New case')
        self.assertEqual(mail.outbox[0].from_email, 'lab@example.com')
        self.assertEqual(mail.outbox[0].alternatives[0][0], '<p>Hello</p>')

    @override_settings(SENDGRID_API_KEY='', SENDER_EMAIL='')
    def test_email_missing_credentials(self):
        results = services.send(services.EMAIL, ['owner@example.com'], 'Hello')
        self.assertFalse(results[0]['success'])
        self.assertIn('SENDGRID_API_KEY', results[0]['error'])
        self.assertEqual(len(mail.outbox), 0)

    @override_settings(**EMAIL_SETTINGS)
    def test_email_send_failure_never_raises(self):
        with mock.patch('notifications.services.EmailMultiAlternatives.send', side_effect=OSError('refused')):
            results = services.send(services.EMAIL, ['owner@example.com'], 'Hello')
        self.assertEqual(results[0]['error'], 'Failed to send email notification.')

    def test_unknown_channel(self):
        results = services.send('sms', ['+962791234567'], 'Hello')
        self.assertFalse(results[0]['success'])
        self.assertIn("Unknown notification channel", results[0]['error'])

    @override_settings(**TWILIO_SETTINGS)
    def test_unexpected_error_is_contained(self):
        with mock.patch('notifications.services.get_twilio_client', side_effect=RuntimeError('boom')):
            results = services.send(services.WHATSAPP, ['+962791234567'], 'Hello')
        self.assertEqual(results, [{'recipient': '+962791234567', 'success': False, 'error': 'boom'}])


class NewCaseAlertTestSuite(TestCase):

    def test_case_creation_notifies_owner(self):
        make_case()
        notification = Notification.objects.get(recipient=OWNER_RECIPIENT)
        self.assertEqual(notification.message, 'New Case From Dr. Rami')
        self.assertFalse(notification.read)

    def test_alerts_sent_after_commit_only_for_new_cases(self):
        with mock.patch('notifications.signals.notify_new_case') as notify:
            with self.captureOnCommitCallbacks(execute=True):
                case = make_case()
            notify.assert_called_once_with(case)
            with self.captureOnCommitCallbacks(execute=True):
                case.shade = 'A3'
                case.save()
            notify.assert_called_once()

    @override_settings(
        WHATSAPP_RECIPIENT_NUMBER=['+962791234567'],
        RECIPIENT_EMAIL=['owner@example.com'],
        **TWILIO_SETTINGS, **EMAIL_SETTINGS
    )
    def test_notify_new_case_uses_both_channels(self):
        def handler(request):
            return httpx.Response(201, json={'sid': 'SM999'})

        with mock.patch('notifications.services.get_twilio_client', return_value=twilio_client(handler)):
            results = services.notify_new_case(make_case())

        self.assertTrue(results[services.WHATSAPP][0]['success'])
        self.assertTrue(results[services.EMAIL][0]['success'])
        self.assertIn('Omar Khalil', mail.outbox[0].subject)
        self.assertIn('Check occlusion', mail.outbox[0].alternatives[0][0])

    @override_settings(WHATSAPP_RECIPIENT_NUMBER=[], RECIPIENT_EMAIL=[], TWILIO_ACCOUNT_SID='', SENDGRID_API_KEY='')
    def test_notify_new_case_without_configuration(self):
        results = services.notify_new_case(make_case())
        self.assertFalse(results[services.WHATSAPP][0]['success'])
        self.assertFalse(results[services.EMAIL][0]['success'])

    def test_notify_new_case_contains_message_build_errors(self):
        case = make_case()
        with mock.patch('notifications.services.render_to_string', side_effect=ValueError('template broke')):
            results = services.notify_new_case(case)
        self.assertEqual(results[services.WHATSAPP][0]['error'], 'template broke')
        self.assertFalse(results[services.EMAIL][0]['success'])
        self.assertEqual(len(mail.outbox), 0)

    def test_case_creation_survives_alert_errors(self):
        with mock.patch('notifications.services.build_whatsapp_message', side_effect=KeyError('LAB_NAME')):
            with self.captureOnCommitCallbacks(execute=True):
                case = make_case()
        self.assertTrue(DentalCase.objects.filter(pk=case.pk).exists())

    def test_whatsapp_message_lists_case_details(self):
        message = services.build_whatsapp_message(make_case())
        self.assertIn('Patient: Omar Khalil', message)
        self.assertIn('Units: 3 (11,12,13)', message)
        self.assertIn('Delivery Date: N/A', message)


class InAppNotificationTestSuite(TestCase):

    def setUp(self):
        self.owner = User.objects.create_superuser(username='owner', password='test', email='owner@example.com')
        self.dentist = Dentist.objects.add_dentist('Dr. Rami', 'secret123')

    def _dentist_session(self):
        session = self.client.session
        session[SESSION_DENTIST_ID] = self.dentist.pk
        session[SESSION_DENTIST_NAME] = self.dentist.name
        session.save()

    def test_unread_and_mark_read(self):
        first = services.create_notification('Dr. Rami', 'First')
        services.create_notification('Dr. Lina', 'Other')
        self.assertEqual([n.message for n in services.unread_for('Dr. Rami')], ['First'])
        self.assertTrue(services.mark_read(first.pk))
        self.assertFalse(services.mark_read(first.pk))
        self.assertEqual(services.unread_for('Dr. Rami'), [])

    def test_owner_acknowledges(self):
        notification = services.notify_owner('Hello owner')
        self.client.force_login(self.owner)
        response = self.client.post(reverse('notifications:acknowledge', args=[notification.pk]))
        self.assertRedirects(response, reverse('dashboard:owner_dashboard'))
        notification.refresh_from_db()
        self.assertTrue(notification.read)

    def test_dentist_acknowledges_own_notification(self):
        notification = services.create_notification('Dr. Rami', 'Approved')
        self._dentist_session()
        response = self.client.post(reverse('notifications:acknowledge', args=[notification.pk]))
        self.assertRedirects(response, reverse('lab_cases:doctor_portal'))
        notification.refresh_from_db()
        self.assertTrue(notification.read)

    def test_dentist_cannot_acknowledge_others(self):
        owner_note = services.notify_owner('Owner only')
        other_note = services.create_notification('Dr. Lina', 'Not yours')
        self._dentist_session()
        for notification in (owner_note, other_note):
            response = self.client.post(reverse('notifications:acknowledge', args=[notification.pk]))
            self.assertEqual(response.status_code, 404)
            notification.refresh_from_db()
            self.assertFalse(notification.read)
