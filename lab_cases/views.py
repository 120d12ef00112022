# DENTALLABPORTAL/lab_cases/views.py

import logging

from django.shortcuts import render, redirect, get_object_or_404
from django.contrib.auth.decorators import login_required, permission_required
from django.contrib import messages
from django.db import DatabaseError
from django.db.models import Q
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST

from billing.calculator import resolve_price
from dentists.decorators import dentist_login_required
from dlms_project.errors import report_database_error
from notifications.services import create_notification, notify_owner, unread_for
from .forms import DentalCaseForm, CaseSearchForm, DoctorCaseFilterForm, BulkDeleteForm
from .models import DentalCase

logger = logging.getLogger(__name__)


# =============== OWNER VIEWS ===============

@login_required
@permission_required('lab_cases.view_dentalcase', raise_exception=True)
def case_list_view(request):
    all_cases = DentalCase.objects.all()

    search_form = CaseSearchForm(request.GET)
    if search_form.is_valid():
        query = search_form.cleaned_data.get('q')
        if query:
            all_cases = all_cases.filter(
                Q(dentist_name__icontains=query) | Q(patient_name__icontains=query)
            )

    context = {
        'cases_list': all_cases,
        'search_form': search_form,
        'pending_deletion_count': DentalCase.objects.pending_deletion().count(),
        'page_title': 'All Cases',
    }
    return render(request, 'lab_cases/case_list.html', context)

@login_required
@permission_required('lab_cases.add_dentalcase', raise_exception=True)
def add_case_view(request):
    if request.method == 'POST':
        form = DentalCaseForm(request.POST)
        if form.is_valid():
            try:
                new_case = form.save()
            except DatabaseError as e:
                report_database_error(request, e, "Could not add the case. Please try again.")
            else:
                messages.success(request, f"Case for {new_case.patient_name} has been successfully added.")
                return redirect('lab_cases:case_detail', pk=new_case.pk)
    else:
        form = DentalCaseForm()

    context = {
        'form': form,
        'page_title': 'Add New Case'
    }
    return render(request, 'lab_cases/case_form.html', context)

@login_required
@permission_required('lab_cases.view_dentalcase', raise_exception=True)
def case_detail_view(request, pk):
    dental_case = get_object_or_404(DentalCase, pk=pk)
    context = {
        'case': dental_case,
        'page_title': f"Case for {dental_case.patient_name} ({dental_case.dentist_name})"
    }
    return render(request, 'lab_cases/case_detail.html', context)

@login_required
@permission_required('lab_cases.change_dentalcase', raise_exception=True)
def edit_case_view(request, pk):
    case_to_edit = get_object_or_404(DentalCase, pk=pk)

    if request.method == 'POST':
        form = DentalCaseForm(request.POST, instance=case_to_edit)
        if form.is_valid():
            try:
                form.save()
            except DatabaseError as e:
                report_database_error(request, e)
            else:
                messages.success(request, f"Case for {case_to_edit.patient_name} has been successfully updated.")
                return redirect('lab_cases:case_detail', pk=case_to_edit.pk)
    else:
        form = DentalCaseForm(instance=case_to_edit)

    context = {
        'form': form,
        'case': case_to_edit,
        'page_title': f'Edit Case for {case_to_edit.patient_name}'
    }
    return render(request, 'lab_cases/case_form.html', context)

@login_required
@permission_required('lab_cases.delete_dentalcase', raise_exception=True)
def delete_case_view(request, pk):
    case_to_delete = get_object_or_404(DentalCase, pk=pk)

    if request.method == 'POST':
        case_to_delete.delete()
        messages.success(request, "Case deleted successfully.")
        return redirect('lab_cases:case_list')

    context = {
        'case': case_to_delete,
        'page_title': f'Confirm Delete Case for {case_to_delete.patient_name}'
    }
    return render(request, 'lab_cases/case_confirm_delete.html', context)

@login_required
@permission_required('lab_cases.delete_dentalcase', raise_exception=True)
@require_POST
def bulk_delete_cases_view(request):
    form = BulkDeleteForm(request.POST)
    if form.is_valid():
        selected = form.cleaned_data['case_ids']
        count = len(selected)
        try:
            DentalCase.objects.filter(pk__in=[c.pk for c in selected]).delete()
        except DatabaseError as e:
            report_database_error(request, e)
        else:
            messages.success(request, f"{count} selected case(s) have been successfully deleted.")
    else:
        for error in form.errors.get('case_ids', []):
            messages.error(request, error)
    return redirect('lab_cases:case_list')

@login_required
@permission_required('lab_cases.change_dentalcase', raise_exception=True)
@require_POST
def approve_deletion_view(request, pk):
    dental_case = get_object_or_404(DentalCase, pk=pk)
    dental_case.approve_deletion()
    if dental_case.deletion_requested:
        create_notification(
            dental_case.dentist_name,
            f"Your request to delete the case for {dental_case.patient_name} has been approved."
        )
    messages.success(request, f"Case for {dental_case.patient_name} marked as deleted.")
    return redirect('lab_cases:case_list')

@login_required
@permission_required('lab_cases.change_dentalcase', raise_exception=True)
@require_POST
def restore_case_view(request, pk):
    dental_case = get_object_or_404(DentalCase, pk=pk)
    dental_case.restore()
    messages.success(request, f"Case for {dental_case.patient_name} has been restored.")
    return redirect('lab_cases:case_detail', pk=dental_case.pk)

@login_required
@permission_required('lab_cases.change_dentalcase', raise_exception=True)
@require_POST
def set_unit_price_view(request, pk):
    dental_case = get_object_or_404(DentalCase, pk=pk)
    new_price = resolve_price(request.POST.get('unit_price'), dental_case.unit_price)
    if new_price is not None and new_price < 0:
        messages.error(request, "The unit price cannot be negative.")
    elif new_price != dental_case.unit_price:
        dental_case.unit_price = new_price
        dental_case.save(update_fields=['unit_price', 'updated_at'])
        messages.success(request, f"Unit price for {dental_case.patient_name} set to {new_price}.")
    next_url = request.POST.get('next')
    if next_url and url_has_allowed_host_and_scheme(next_url, allowed_hosts={request.get_host()}):
        return redirect(next_url)
    return redirect('lab_cases:case_list')


# =============== DOCTOR PORTAL VIEWS ===============

@dentist_login_required
def doctor_portal_view(request):
    dentist = request.dentist
    source = 'Mobile' if request.GET.get('source', '').lower() == 'mobile' else 'Desktop'

    if request.method == 'POST':
        form = DentalCaseForm(request.POST, dentist_name=dentist.name)
        if form.is_valid():
            new_case = form.save(commit=False)
            new_case.source = source
            try:
                new_case.save()
            except DatabaseError as e:
                report_database_error(request, e, "Could not add the case. Please check the error message and try again.")
            else:
                logger.info("Dentist '%s' submitted case #%s", dentist.name, new_case.pk)
                messages.success(request, f"Case for {new_case.patient_name} has been successfully added.")
                return redirect(request.get_full_path())
    else:
        form = DentalCaseForm(dentist_name=dentist.name)

    notifications = unread_for(dentist.name)
    context = {
        'form': form,
        'dentist': dentist,
        'source': source,
        'notification': notifications[-1] if notifications else None,
        'recent_cases': DentalCase.objects.for_dentist(dentist.name).visible_to_dentist()[:5],
        'page_title': 'Doctor Portal'
    }
    return render(request, 'lab_cases/doctor_portal.html', context)

@dentist_login_required
def doctor_case_history_view(request):
    dentist = request.dentist
    own_cases = DentalCase.objects.for_dentist(dentist.name).visible_to_dentist()
    months = own_cases.dates('created_at', 'month', order='DESC')

    filter_form = DoctorCaseFilterForm(request.GET, months=months)
    cases = own_cases
    if filter_form.is_valid():
        query = filter_form.cleaned_data.get('q')
        month = filter_form.cleaned_data.get('month')
        if query:
            cases = cases.filter(patient_name__icontains=query)
        if month:
            year, month_number = month.split('-')
            cases = cases.filter(created_at__year=int(year), created_at__month=int(month_number))

    context = {
        'cases_list': cases,
        'filter_form': filter_form,
        'dentist': dentist,
        'page_title': f'Cases for {dentist.name}'
    }
    return render(request, 'lab_cases/doctor_case_history.html', context)

@dentist_login_required
@require_POST
def request_deletion_view(request, pk):
    dental_case = get_object_or_404(DentalCase, pk=pk, dentist_name=request.dentist.name)
    if dental_case.deletion_requested:
        messages.info(request, "Deletion has already been requested for this case.")
    else:
        dental_case.request_deletion()
        notify_owner(f"{dental_case.dentist_name} requested to delete the case for {dental_case.patient_name}.")
        messages.success(request, "The owner has been notified of your request to delete this case.")
    return redirect('lab_cases:doctor_case_history')
