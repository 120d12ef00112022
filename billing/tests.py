from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase, SimpleTestCase
from django.urls import reverse
from django.utils import timezone

from billing.calculator import (
    DEFAULT_MATERIAL_PRICES, MATERIAL_NAMES, build_price_table, compute_invoice,
    count_teeth, filter_cases, resolve_price, summarize_materials
)
from billing.forms import price_field_name
from billing.models import Invoice
from billing.views import INVOICE_TOO_LARGE_MESSAGE
from dentists.decorators import SESSION_DENTIST_ID, SESSION_DENTIST_NAME
from dentists.models import Dentist
from lab_cases.models import DentalCase

User = get_user_model()


def local_dt(year, month, day, hour=12, minute=0):
    return timezone.make_aware(datetime(year, month, day, hour, minute))


def make_case(**overrides):
    data = {
        'dentist_name': 'Dr. Rami',
        'patient_name': 'Omar',
        'tooth_numbers': '11,12,13',
        'material': 'Zirconia',
        'is_deleted': False,
        'created_at': local_dt(2024, 5, 10),
    }
    data.update(overrides)
    return SimpleNamespace(**data)


class InvoiceCalculatorTestSuite(SimpleTestCase):

    def test_count_teeth_ignores_blank_tokens(self):
        self.assertEqual(count_teeth('11,12,13'), 3)
        self.assertEqual(count_teeth(' 11, ,12,,'), 2)
        self.assertEqual(count_teeth(''), 0)
        self.assertEqual(count_teeth(None), 0)

    def test_single_zirconia_case(self):
        invoice = compute_invoice([make_case()], 'Dr. Rami', prices={'Zirconia': Decimal('30')})
        self.assertEqual(invoice['summary']['Zirconia']['tooth_count'], 3)
        self.assertEqual(invoice['summary']['Zirconia']['total'], Decimal('90'))
        self.assertEqual(invoice['subtotal'], Decimal('90'))
        self.assertEqual(invoice['grand_total'], Decimal('90'))

    def test_subtotal_is_sum_of_material_totals(self):
        cases = [
            make_case(material='Zolid', tooth_numbers='21,22'),
            make_case(material='Implant', tooth_numbers='36'),
            make_case(material='MookUp', tooth_numbers='11,12,13,14'),
        ]
        invoice = compute_invoice(cases, 'Dr. Rami')
        totals = sum((entry['total'] for entry in invoice['summary'].values()), Decimal('0'))
        self.assertEqual(invoice['subtotal'], totals)
        self.assertEqual(invoice['subtotal'], Decimal('2') * 25 + Decimal('1') * 50 + Decimal('4') * 10)
        for entry in invoice['summary'].values():
            self.assertEqual(entry['total'], entry['tooth_count'] * entry['price'])

    def test_summary_covers_every_material(self):
        invoice = compute_invoice([make_case()], 'Dr. Rami')
        self.assertEqual(list(invoice['summary']), MATERIAL_NAMES)
        self.assertEqual(invoice['summary']['Zolid']['tooth_count'], 0)

    def test_multi_material_case_credits_full_count_to_each(self):
        summary = summarize_materials(
            [make_case(material='Zirconia, Implant', tooth_numbers='11,12')],
            DEFAULT_MATERIAL_PRICES
        )
        self.assertEqual(summary['Zirconia']['tooth_count'], 2)
        self.assertEqual(summary['Implant']['tooth_count'], 2)
        self.assertEqual(summary['Zirconia']['total'], Decimal('60'))
        self.assertEqual(summary['Implant']['total'], Decimal('100'))

    def test_unknown_material_is_ignored(self):
        summary = summarize_materials([make_case(material='Gold')], DEFAULT_MATERIAL_PRICES)
        self.assertNotIn('Gold', summary)
        self.assertTrue(all(entry['tooth_count'] == 0 for entry in summary.values()))

    def test_paid_amount_can_make_grand_total_negative(self):
        invoice = compute_invoice([make_case()], 'Dr. Rami', paid_amount='120')
        self.assertEqual(invoice['subtotal'], Decimal('90'))
        self.assertEqual(invoice['paid_amount'], Decimal('120'))
        self.assertEqual(invoice['grand_total'], Decimal('-30'))

    def test_non_numeric_paid_amount_counts_as_zero(self):
        invoice = compute_invoice([make_case()], 'Dr. Rami', paid_amount='abc')
        self.assertEqual(invoice['paid_amount'], Decimal('0'))
        self.assertEqual(invoice['grand_total'], invoice['subtotal'])

    def test_date_bounds_are_whole_days(self):
        cases = [
            make_case(patient_name='Early', created_at=local_dt(2024, 5, 1, 0, 0)),
            make_case(patient_name='Late', created_at=local_dt(2024, 5, 31, 23, 59)),
            make_case(patient_name='Before', created_at=local_dt(2024, 4, 30, 23, 59)),
            make_case(patient_name='After', created_at=local_dt(2024, 6, 1, 0, 0)),
        ]
        selected = filter_cases(cases, 'Dr. Rami', date(2024, 5, 1), date(2024, 5, 31))
        self.assertEqual([c.patient_name for c in selected], ['Early', 'Late'])

    def test_missing_bound_is_open(self):
        cases = [
            make_case(patient_name='Old', created_at=local_dt(2020, 1, 1)),
            make_case(patient_name='New', created_at=local_dt(2024, 5, 10)),
        ]
        self.assertEqual(len(filter_cases(cases, 'Dr. Rami', to_date=date(2024, 5, 10))), 2)
        self.assertEqual(len(filter_cases(cases, 'Dr. Rami', from_date=date(2021, 1, 1))), 1)

    def test_other_dentists_and_deleted_cases_are_excluded(self):
        cases = [
            make_case(),
            make_case(dentist_name='Dr. Lina'),
            make_case(is_deleted=True),
        ]
        self.assertEqual(len(filter_cases(cases, 'Dr. Rami')), 1)

    def test_no_matching_cases_returns_none(self):
        self.assertIsNone(compute_invoice([make_case()], 'Dr. Lina'))
        self.assertIsNone(compute_invoice([], 'Dr. Rami'))

    def test_resolve_price_keeps_previous_for_bad_input(self):
        self.assertEqual(resolve_price('abc', Decimal('30')), Decimal('30'))
        self.assertEqual(resolve_price('', Decimal('30')), Decimal('30'))
        self.assertEqual(resolve_price('NaN', Decimal('30')), Decimal('30'))
        self.assertEqual(resolve_price(' 42.5 ', Decimal('30')), Decimal('42.5'))

    def test_resolve_price_rounds_to_fils_and_ignores_oversized_input(self):
        self.assertEqual(str(resolve_price('12.3456', Decimal('30'))), '12.346')
        self.assertEqual(str(resolve_price(Decimal('7'), Decimal('30'))), '7.000')
        self.assertEqual(resolve_price('1e15', Decimal('30')), Decimal('30'))
        self.assertEqual(resolve_price('-1e9', Decimal('30')), Decimal('30'))

    def test_build_price_table_overrides_known_materials_only(self):
        table = build_price_table({'Zirconia': '35', 'Zolid': 'oops', 'Gold': '99'})
        self.assertEqual(table['Zirconia'], Decimal('35'))
        self.assertEqual(table['Zolid'], DEFAULT_MATERIAL_PRICES['Zolid'])
        self.assertNotIn('Gold', table)


class BillingTestSuite(TestCase):

    def setUp(self):
        self.user = User.objects.create_superuser(username='owner', password='test', email='owner@example.com')
        self.client.force_login(self.user)
        self.case = DentalCase.objects.create(
            patient_name='Omar Khalil',
            dentist_name='Dr. Rami',
            tooth_numbers='11,12,13',
            prosthesis_type='Bridge',
            material='Zirconia',
            shade='A2',
            created_at=local_dt(2024, 5, 10),
        )

    def _generate_data(self, **overrides):
        data = {
            'dentist_name': 'Dr. Rami',
            'from_date': '2024-05-01',
            'to_date': '2024-05-31',
            'paid_amount': '',
        }
        for material, price in DEFAULT_MATERIAL_PRICES.items():
            data[price_field_name(material)] = str(price)
        data.update(overrides)
        return data

    def _saved_invoice(self):
        invoice = Invoice.from_summary(compute_invoice([self.case], 'Dr. Rami', paid_amount='10'))
        invoice.save()
        return invoice

    def test_invoice_number_sequence(self):
        first = self._saved_invoice()
        second = self._saved_invoice()
        prefix = f"INV-{timezone.now().strftime('%y%m%d')}-"
        self.assertEqual(first.invoice_number, f"{prefix}0001")
        self.assertEqual(second.invoice_number, f"{prefix}0002")

    def test_saved_invoice_is_immutable(self):
        invoice = self._saved_invoice()
        invoice.paid_amount = Decimal('50')
        with self.assertRaises(ValidationError):
            invoice.save()
        invoice.refresh_from_db()
        self.assertEqual(invoice.paid_amount, Decimal('10'))

    def test_snapshot_survives_case_changes(self):
        invoice = self._saved_invoice()
        self.case.tooth_numbers = '11'
        self.case.save()
        invoice.refresh_from_db()
        self.assertEqual(invoice.cases[0]['tooth_numbers'], '11,12,13')
        self.assertEqual(invoice.summary_rows[1]['material'], 'Zirconia')
        self.assertEqual(invoice.summary_rows[1]['total'], Decimal('90'))
        self.assertEqual(invoice.grand_total, Decimal('80'))

    def test_generate_preview_does_not_save(self):
        response = self.client.post(reverse('billing:generate_invoice'), self._generate_data(action='preview'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['invoice_data']['subtotal'], Decimal('90'))
        self.assertFalse(Invoice.objects.exists())

    def test_generate_and_save_invoice(self):
        data = self._generate_data(action='save', paid_amount='100')
        data[price_field_name('Zirconia')] = '40'
        response = self.client.post(reverse('billing:generate_invoice'), data)
        invoice = Invoice.objects.get()
        self.assertRedirects(response, reverse('billing:invoice_detail', args=[invoice.pk]))
        self.assertEqual(invoice.subtotal, Decimal('120'))
        self.assertEqual(invoice.grand_total, Decimal('20'))
        self.assertEqual(len(invoice.cases), 1)

    def test_generate_with_bad_price_keeps_default(self):
        data = self._generate_data(action='preview')
        data[price_field_name('Zirconia')] = 'thirty'
        response = self.client.post(reverse('billing:generate_invoice'), data)
        self.assertEqual(response.context['invoice_data']['summary']['Zirconia']['price'], Decimal('30'))

    def test_fractional_price_is_saved_to_the_fils(self):
        data = self._generate_data(action='save', paid_amount='0.5')
        data[price_field_name('Zirconia')] = '12.345'
        self.client.post(reverse('billing:generate_invoice'), data)
        invoice = Invoice.objects.get()
        totals = sum((row['total'] for row in invoice.summary_rows), Decimal('0'))
        self.assertEqual(invoice.subtotal, Decimal('37.035'))
        self.assertEqual(invoice.subtotal, totals)
        self.assertEqual(invoice.grand_total, Decimal('36.535'))
        self.assertEqual(invoice.summary['Zirconia']['price'], '12.345')

    def test_oversized_amounts_are_ignored(self):
        data = self._generate_data(action='save', paid_amount='1e15')
        data[price_field_name('Zirconia')] = '1e15'
        response = self.client.post(reverse('billing:generate_invoice'), data)
        invoice = Invoice.objects.get()
        self.assertRedirects(response, reverse('billing:invoice_detail', args=[invoice.pk]))
        self.assertEqual(invoice.subtotal, Decimal('90'))
        self.assertEqual(invoice.paid_amount, Decimal('0'))
        self.assertEqual(self.client.get(reverse('billing:invoice_list')).status_code, 200)
        self.assertEqual(self.client.get(reverse('billing:invoice_detail', args=[invoice.pk])).status_code, 200)

    def test_invoice_too_large_for_storage_is_not_saved(self):
        invoice_data = compute_invoice([self.case], 'Dr. Rami')
        invoice_data['subtotal'] = invoice_data['grand_total'] = Decimal('1e16')
        with mock.patch('billing.views.compute_invoice', return_value=invoice_data):
            response = self.client.post(reverse('billing:generate_invoice'), self._generate_data(action='save'))
        self.assertContains(response, INVOICE_TOO_LARGE_MESSAGE)
        self.assertFalse(Invoice.objects.exists())

    def test_detail_lists_only_materials_with_teeth(self):
        invoice = self._saved_invoice()
        response = self.client.get(reverse('billing:invoice_detail', args=[invoice.pk]))
        self.assertContains(response, 'Zirconia')
        self.assertNotContains(response, 'Zolid')

    def test_generate_with_no_cases_in_range(self):
        response = self.client.post(
            reverse('billing:generate_invoice'),
            self._generate_data(action='save', from_date='2023-01-01', to_date='2023-01-31')
        )
        self.assertContains(response, "No cases found for the selected date range.")
        self.assertFalse(Invoice.objects.exists())

    def test_generate_rejects_reversed_range(self):
        response = self.client.post(
            reverse('billing:generate_invoice'),
            self._generate_data(from_date='2024-06-01', to_date='2024-05-01')
        )
        self.assertIn('__all__', response.context['form'].errors)

    def test_invoice_list_filters_by_dentist(self):
        self._saved_invoice()
        response = self.client.get(reverse('billing:invoice_list'), {'dentist': 'Dr. Lina'})
        self.assertEqual(len(response.context['invoices_list']), 0)
        response = self.client.get(reverse('billing:invoice_list'), {'dentist': 'Dr. Rami'})
        self.assertEqual(len(response.context['invoices_list']), 1)

    def test_print_and_pdf(self):
        invoice = self._saved_invoice()
        response = self.client.get(reverse('billing:print_invoice', args=[invoice.pk]))
        self.assertContains(response, invoice.invoice_number)
        response = self.client.get(reverse('billing:invoice_pdf', args=[invoice.pk]))
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))

    def test_delete_invoice(self):
        invoice = self._saved_invoice()
        response = self.client.post(reverse('billing:delete_invoice', args=[invoice.pk]))
        self.assertRedirects(response, reverse('billing:invoice_list'))
        self.assertFalse(Invoice.objects.filter(pk=invoice.pk).exists())


class DoctorInvoiceTestSuite(TestCase):

    def setUp(self):
        self.dentist = Dentist.objects.add_dentist('Dr. Rami', 'secret123')
        session = self.client.session
        session[SESSION_DENTIST_ID] = self.dentist.pk
        session[SESSION_DENTIST_NAME] = self.dentist.name
        session.save()
        DentalCase.objects.create(
            patient_name='Omar Khalil', dentist_name='Dr. Rami', tooth_numbers='11,12',
            prosthesis_type='Separate', material='Zolid', shade='A1', created_at=local_dt(2024, 5, 10),
        )

    def test_preview_uses_default_prices(self):
        response = self.client.get(reverse('billing:doctor_invoice_preview'), {'from_date': '2024-05-01', 'to_date': '2024-05-31'})
        self.assertEqual(response.context['invoice_data']['subtotal'], Decimal('50'))
        self.assertFalse(Invoice.objects.exists())

    def test_doctor_sees_only_own_invoices(self):
        for name in ('Dr. Rami', 'Dr. Lina'):
            Invoice.objects.create(dentist_name=name, subtotal=Decimal('10'), grand_total=Decimal('10'))
        response = self.client.get(reverse('billing:doctor_invoice_list'))
        self.assertEqual([i.dentist_name for i in response.context['invoices_list']], ['Dr. Rami'])
        other = Invoice.objects.get(dentist_name='Dr. Lina')
        response = self.client.get(reverse('billing:doctor_invoice_print', args=[other.pk]))
        self.assertEqual(response.status_code, 404)

    def test_requires_doctor_session(self):
        self.client.cookies.clear()
        response = self.client.get(reverse('billing:doctor_invoice_list'))
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse('dentists:login'), response.url)
