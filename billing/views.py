# billing/views.py

import logging

from django.shortcuts import render, redirect, get_object_or_404
from django.contrib.auth.decorators import login_required, permission_required
from django.contrib import messages
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.http import HttpResponse

from dentists.decorators import dentist_login_required
from dlms_project.errors import report_database_error
from lab_cases.models import DentalCase
from .calculator import NO_CASES_MESSAGE, build_price_table, compute_invoice, summary_as_rows
from .forms import InvoiceGenerateForm, DateRangeForm, get_dentist_choices
from .models import Invoice
from .pdf import render_invoice_pdf

logger = logging.getLogger(__name__)

INVOICE_TOO_LARGE_MESSAGE = "The invoice amounts are too large to be saved."


def _cases_for(dentist_name):
    return list(DentalCase.objects.for_dentist(dentist_name).active())


# =============== OWNER INVOICE VIEWS ===============

@login_required
@permission_required('billing.add_invoice', raise_exception=True)
def generate_invoice_view(request):
    """
    Builds an invoice preview from the submitted range and prices. The same
    form posted with ``action=save`` stores the invoice.
    """
    invoice_data = None
    form = InvoiceGenerateForm(request.POST or None)

    if request.method == 'POST' and form.is_valid():
        invoice_data = compute_invoice(
            _cases_for(form.cleaned_data['dentist_name']),
            form.cleaned_data['dentist_name'],
            from_date=form.cleaned_data.get('from_date'),
            to_date=form.cleaned_data.get('to_date'),
            prices=build_price_table(form.price_inputs()),
            paid_amount=form.cleaned_data.get('paid_amount'),
        )
        if invoice_data is None:
            messages.warning(request, NO_CASES_MESSAGE)
        elif request.POST.get('action') == 'save':
            invoice = Invoice.from_summary(invoice_data)
            try:
                invoice.full_clean(exclude=['invoice_number'])
                invoice.save()
            except ValidationError as e:
                logger.warning("Rejected invoice for '%s': %s", invoice.dentist_name, e.message_dict)
                messages.error(request, INVOICE_TOO_LARGE_MESSAGE)
            except DatabaseError as e:
                report_database_error(request, e, "Could not save the invoice. Please try again.")
            else:
                logger.info("Saved invoice %s for '%s'", invoice.invoice_number, invoice.dentist_name)
                messages.success(request, f"Invoice {invoice.invoice_number} saved successfully.")
                return redirect('billing:invoice_detail', pk=invoice.pk)

    context = {
        'form': form,
        'invoice_data': invoice_data,
        'summary_rows': summary_as_rows(invoice_data['summary']) if invoice_data else [],
        'page_title': 'Generate Invoice'
    }
    return render(request, 'billing/invoice_generate.html', context)

@login_required
@permission_required('billing.view_invoice', raise_exception=True)
def invoice_list_view(request):
    invoices = Invoice.objects.all()
    dentist_filter = request.GET.get('dentist', '').strip()
    if dentist_filter:
        invoices = invoices.for_dentist(dentist_filter)
    context = {
        'invoices_list': invoices,
        'dentist_choices': get_dentist_choices()[1:],
        'dentist_filter': dentist_filter,
        'page_title': 'Invoices'
    }
    return render(request, 'billing/invoice_list.html', context)

@login_required
@permission_required('billing.view_invoice', raise_exception=True)
def invoice_detail_view(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk)
    return render(request, 'billing/invoice_detail.html', {'invoice': invoice, 'page_title': f'Invoice: {invoice.invoice_number}'})

@login_required
@permission_required('billing.view_invoice', raise_exception=True)
def print_invoice_view(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk)
    return render(request, 'billing/invoice_print.html', {'invoice': invoice, 'page_title': f'Print Invoice: {invoice.invoice_number}'})

@login_required
@permission_required('billing.view_invoice', raise_exception=True)
def invoice_pdf_view(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk)
    response = HttpResponse(render_invoice_pdf(invoice), content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{invoice.invoice_number}.pdf"'
    return response

@login_required
@permission_required('billing.delete_invoice', raise_exception=True)
def delete_invoice_view(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk)
    if request.method == 'POST':
        invoice.delete()
        messages.success(request, f'Invoice {invoice.invoice_number} deleted successfully!')
        return redirect('billing:invoice_list')
    return render(request, 'billing/invoice_confirm_delete.html', {'invoice': invoice, 'page_title': f'Confirm Delete: {invoice.invoice_number}'})


# =============== DOCTOR INVOICE VIEWS ===============

@dentist_login_required
def doctor_invoice_preview_view(request):
    dentist = request.dentist
    invoice_data = None
    form = DateRangeForm(request.GET or None)

    if form.is_bound and form.is_valid():
        invoice_data = compute_invoice(
            _cases_for(dentist.name),
            dentist.name,
            from_date=form.cleaned_data.get('from_date'),
            to_date=form.cleaned_data.get('to_date'),
        )
        if invoice_data is None:
            messages.warning(request, NO_CASES_MESSAGE)

    context = {
        'form': form,
        'invoice_data': invoice_data,
        'summary_rows': summary_as_rows(invoice_data['summary']) if invoice_data else [],
        'dentist': dentist,
        'page_title': 'Invoice Preview'
    }
    return render(request, 'billing/doctor_invoice_preview.html', context)

@dentist_login_required
def doctor_invoice_list_view(request):
    context = {
        'invoices_list': Invoice.objects.for_dentist(request.dentist.name),
        'dentist': request.dentist,
        'page_title': 'My Invoices'
    }
    return render(request, 'billing/doctor_invoice_list.html', context)

@dentist_login_required
def doctor_invoice_print_view(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk, dentist_name=request.dentist.name)
    return render(request, 'billing/invoice_print.html', {'invoice': invoice, 'page_title': f'Invoice: {invoice.invoice_number}'})
