from datetime import datetime, timedelta
from decimal import Decimal
from urllib.parse import urlencode

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from dentists.decorators import SESSION_DENTIST_ID, SESSION_DENTIST_NAME
from dentists.models import Dentist
from lab_cases.forms import DentalCaseForm, is_valid_fdi_tooth
from lab_cases.models import DentalCase
from notifications.models import Notification, OWNER_RECIPIENT

User = get_user_model()


class LabCasesTestSuite(TestCase):

    def setUp(self):
        self.user = User.objects.create_superuser(username='owner', password='test', email='owner@example.com')
        self.client.force_login(self.user)
        self.case_data = {
            'patient_name': 'Omar Khalil',
            'dentist_name': 'Dr. Rami',
            'tooth_numbers': '11,12,13',
            'prosthesis_type': 'Bridge',
            'material': 'Zirconia',
            'shade': 'A2',
        }
        self.form_data = {
            'patient_name': 'Omar Khalil',
            'patient_number': '',
            'dentist_name': 'Dr. Rami',
            'tooth_numbers': '11, 12, 13',
            'prosthesis_type': 'Bridge',
            'material': ['Zirconia', 'Implant'],
            'shade': 'A2',
            'delivery_date': '',
            'notes': '',
        }

    def test_case_derived_fields(self):
        case = DentalCase.objects.create(**dict(self.case_data, material='Zirconia, Implant', unit_price=Decimal('30')))
        self.assertEqual(case.tooth_count, 3)
        self.assertEqual(case.material_list, ['Zirconia', 'Implant'])
        self.assertEqual(case.line_total, Decimal('90'))
        self.assertEqual(case.source, 'Desktop')
        self.assertFalse(case.is_deleted)
        self.assertFalse(case.deletion_requested)

    def test_deletion_flags_lifecycle(self):
        case = DentalCase.objects.create(**self.case_data)
        case.request_deletion()
        self.assertIn(case, DentalCase.objects.pending_deletion())
        case.approve_deletion()
        self.assertNotIn(case, DentalCase.objects.active())
        self.assertNotIn(case, DentalCase.objects.visible_to_dentist())
        case.restore()
        case.refresh_from_db()
        self.assertFalse(case.is_deleted)
        self.assertFalse(case.deletion_requested)

    def test_owner_soft_delete_without_request_stays_visible_to_dentist(self):
        case = DentalCase.objects.create(**self.case_data)
        case.approve_deletion()
        self.assertIn(case, DentalCase.objects.visible_to_dentist())

    def test_fdi_tooth_validation(self):
        for token in ('11', '18', '48', '51', '85'):
            self.assertTrue(is_valid_fdi_tooth(token), token)
        for token in ('10', '19', '56', '91', '1', '111', 'ab'):
            self.assertFalse(is_valid_fdi_tooth(token), token)

    def test_form_normalizes_teeth_and_materials(self):
        form = DentalCaseForm(data=self.form_data)
        self.assertTrue(form.is_valid(), form.errors)
        case = form.save()
        self.assertEqual(case.tooth_numbers, '11,12,13')
        self.assertEqual(case.material, 'Zirconia, Implant')

    def test_form_rejects_invalid_input(self):
        data = dict(self.form_data, patient_name='A', tooth_numbers='11,99,11', material=[], shade='')
        form = DentalCaseForm(data=data)
        self.assertFalse(form.is_valid())
        for field in ('patient_name', 'tooth_numbers', 'material', 'shade'):
            self.assertIn(field, form.errors)

    def test_form_rejects_duplicate_teeth(self):
        form = DentalCaseForm(data=dict(self.form_data, tooth_numbers='11,12,11'))
        self.assertFalse(form.is_valid())
        self.assertIn('more than once', form.errors['tooth_numbers'][0])

    def test_locked_dentist_name_ignores_posted_value(self):
        form = DentalCaseForm(data=dict(self.form_data, dentist_name='Dr. Lina'), dentist_name='Dr. Rami')
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.save().dentist_name, 'Dr. Rami')

    def test_case_list_search_and_pending_count(self):
        DentalCase.objects.create(**self.case_data)
        DentalCase.objects.create(**dict(self.case_data, patient_name='Sara Nasser', dentist_name='Dr. Lina', deletion_requested=True))
        response = self.client.get(reverse('lab_cases:case_list'), {'q': 'lina'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([c.patient_name for c in response.context['cases_list']], ['Sara Nasser'])
        self.assertEqual(response.context['pending_deletion_count'], 1)

    def test_cases_listed_newest_first(self):
        DentalCase.objects.create(**dict(self.case_data, patient_name='Older', created_at=timezone.now() - timedelta(days=2)))
        DentalCase.objects.create(**dict(self.case_data, patient_name='Newer'))
        response = self.client.get(reverse('lab_cases:case_list'))
        self.assertEqual([c.patient_name for c in response.context['cases_list']], ['Newer', 'Older'])

    def test_add_edit_and_delete_case_views(self):
        response = self.client.post(reverse('lab_cases:add_case'), self.form_data)
        case = DentalCase.objects.get()
        self.assertRedirects(response, reverse('lab_cases:case_detail', args=[case.pk]))

        data = dict(self.form_data, shade='B1', dentist_name='Someone Else')
        response = self.client.post(reverse('lab_cases:edit_case', args=[case.pk]), data)
        self.assertRedirects(response, reverse('lab_cases:case_detail', args=[case.pk]))
        case.refresh_from_db()
        self.assertEqual(case.shade, 'B1')
        self.assertEqual(case.dentist_name, 'Dr. Rami')

        response = self.client.post(reverse('lab_cases:delete_case', args=[case.pk]))
        self.assertRedirects(response, reverse('lab_cases:case_list'))
        self.assertFalse(DentalCase.objects.exists())

    def test_bulk_delete(self):
        first = DentalCase.objects.create(**self.case_data)
        second = DentalCase.objects.create(**self.case_data)
        keep = DentalCase.objects.create(**self.case_data)
        response = self.client.post(reverse('lab_cases:bulk_delete_cases'), {'case_ids': [first.pk, second.pk]})
        self.assertRedirects(response, reverse('lab_cases:case_list'))
        self.assertEqual(list(DentalCase.objects.values_list('pk', flat=True)), [keep.pk])

    def test_approve_deletion_notifies_dentist(self):
        case = DentalCase.objects.create(**dict(self.case_data, deletion_requested=True))
        self.client.post(reverse('lab_cases:approve_deletion', args=[case.pk]))
        case.refresh_from_db()
        self.assertTrue(case.is_deleted)
        self.assertTrue(Notification.objects.filter(recipient='Dr. Rami', message__icontains='approved').exists())

    def test_restore_case(self):
        case = DentalCase.objects.create(**dict(self.case_data, deletion_requested=True, is_deleted=True))
        self.client.post(reverse('lab_cases:restore_case', args=[case.pk]))
        case.refresh_from_db()
        self.assertFalse(case.is_deleted)
        self.assertFalse(case.deletion_requested)

    def test_set_unit_price_ignores_non_numeric(self):
        case = DentalCase.objects.create(**self.case_data)
        url = reverse('lab_cases:set_unit_price', args=[case.pk])
        self.client.post(url, {'unit_price': '25.5'})
        case.refresh_from_db()
        self.assertEqual(case.unit_price, Decimal('25.5'))
        self.client.post(url, {'unit_price': 'twenty'})
        case.refresh_from_db()
        self.assertEqual(case.unit_price, Decimal('25.5'))

    def test_owner_views_require_permission(self):
        staff = User.objects.create_user(username='clerk', password='test')
        self.client.force_login(staff)
        response = self.client.get(reverse('lab_cases:case_list'))
        self.assertEqual(response.status_code, 403)
        self.assertContains(response, 'Fix Permissions', status_code=403)


class DoctorPortalTestSuite(TestCase):

    def setUp(self):
        self.dentist = Dentist.objects.add_dentist('Dr. Rami', 'secret123')
        session = self.client.session
        session[SESSION_DENTIST_ID] = self.dentist.pk
        session[SESSION_DENTIST_NAME] = self.dentist.name
        session.save()
        self.form_data = {
            'patient_name': 'Omar Khalil',
            'tooth_numbers': '11,12',
            'prosthesis_type': 'Separate',
            'material': ['Zolid'],
            'shade': 'A1',
        }

    def _case(self, **overrides):
        data = {
            'patient_name': 'Omar Khalil',
            'dentist_name': 'Dr. Rami',
            'tooth_numbers': '11',
            'prosthesis_type': 'Separate',
            'material': 'Zolid',
            'shade': 'A1',
        }
        data.update(overrides)
        return DentalCase.objects.create(**data)

    def test_portal_requires_login(self):
        self.client.cookies.clear()
        response = self.client.get(reverse('lab_cases:doctor_portal'))
        expected = f"{reverse('dentists:login')}?{urlencode({'next': reverse('lab_cases:doctor_portal')})}"
        self.assertRedirects(response, expected)

    def test_submit_case_from_mobile(self):
        url = reverse('lab_cases:doctor_portal') + '?source=mobile'
        response = self.client.post(url, dict(self.form_data, dentist_name='Dr. Lina'))
        self.assertRedirects(response, url)
        case = DentalCase.objects.get()
        self.assertEqual(case.dentist_name, 'Dr. Rami')
        self.assertEqual(case.source, 'Mobile')
        self.assertTrue(Notification.objects.filter(recipient=OWNER_RECIPIENT, message='New Case From Dr. Rami').exists())

    def test_portal_shows_oldest_unread_notification(self):
        Notification.objects.create(recipient='Dr. Rami', message='First note')
        Notification.objects.create(recipient='Dr. Rami', message='Second note')
        response = self.client.get(reverse('lab_cases:doctor_portal'))
        self.assertEqual(response.context['notification'].message, 'First note')

    def test_history_hides_approved_deletions_and_other_dentists(self):
        self._case(patient_name='Visible')
        self._case(patient_name='Requested', deletion_requested=True)
        self._case(patient_name='Gone', deletion_requested=True, is_deleted=True)
        self._case(patient_name='Someone Else', dentist_name='Dr. Lina')
        response = self.client.get(reverse('lab_cases:doctor_case_history'))
        names = {c.patient_name for c in response.context['cases_list']}
        self.assertEqual(names, {'Visible', 'Requested'})

    def test_history_search_and_month_filter(self):
        self._case(patient_name='Maya', created_at=timezone.make_aware(datetime(2024, 3, 5, 10, 0)))
        self._case(patient_name='Maher', created_at=timezone.make_aware(datetime(2024, 4, 5, 10, 0)))
        self._case(patient_name='Yousef', created_at=timezone.make_aware(datetime(2024, 4, 9, 10, 0)))
        url = reverse('lab_cases:doctor_case_history')

        response = self.client.get(url, {'q': 'ma'})
        self.assertEqual({c.patient_name for c in response.context['cases_list']}, {'Maya', 'Maher'})

        response = self.client.get(url, {'month': '2024-04'})
        self.assertEqual({c.patient_name for c in response.context['cases_list']}, {'Maher', 'Yousef'})

        response = self.client.get(url, {'q': 'ma', 'month': '2024-04'})
        self.assertEqual([c.patient_name for c in response.context['cases_list']], ['Maher'])

    def test_request_deletion_notifies_owner(self):
        case = self._case()
        Notification.objects.all().delete()
        response = self.client.post(reverse('lab_cases:request_deletion', args=[case.pk]))
        self.assertRedirects(response, reverse('lab_cases:doctor_case_history'))
        case.refresh_from_db()
        self.assertTrue(case.deletion_requested)
        self.assertFalse(case.is_deleted)
        self.assertEqual(Notification.objects.filter(recipient=OWNER_RECIPIENT).count(), 1)

    def test_cannot_request_deletion_of_other_dentists_case(self):
        case = self._case(dentist_name='Dr. Lina')
        response = self.client.post(reverse('lab_cases:request_deletion', args=[case.pk]))
        self.assertEqual(response.status_code, 404)
        case.refresh_from_db()
        self.assertFalse(case.deletion_requested)
