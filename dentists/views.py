# DENTALLABPORTAL/dentists/views.py

import logging

from django.shortcuts import render, redirect, get_object_or_404
from django.contrib.auth.decorators import login_required, permission_required
from django.contrib import messages
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.utils.http import url_has_allowed_host_and_scheme

from audit_log.models import LoginLog
from dlms_project.errors import report_database_error
from .decorators import log_dentist_in, log_dentist_out
from .forms import DentistForm, DentistLoginForm
from .models import Dentist

logger = logging.getLogger(__name__)


def dentist_login_view(request):
    if request.method == 'POST':
        form = DentistLoginForm(request.POST)
        if form.is_valid():
            dentist = form.dentist
            log_dentist_in(request, dentist)
            LoginLog.record(dentist.name)
            logger.info("Dentist '%s' signed in", dentist.name)
            messages.success(request, dentist.welcome_message)

            next_url = request.POST.get('next') or request.GET.get('next')
            if next_url and url_has_allowed_host_and_scheme(next_url, allowed_hosts={request.get_host()}):
                return redirect(next_url)
            return redirect('lab_cases:doctor_portal')
    else:
        form = DentistLoginForm()

    context = {
        'form': form,
        'next': request.GET.get('next', ''),
        'page_title': 'Doctor Portal Login'
    }
    return render(request, 'dentists/login.html', context)

def dentist_logout_view(request):
    if request.method == 'POST':
        log_dentist_out(request)
        messages.info(request, "You have been logged out.")
    return redirect('dentists:login')

@login_required
@permission_required('dentists.view_dentist', raise_exception=True)
def dentist_list_view(request):
    context = {
        'dentists_list': Dentist.objects.all(),
        'page_title': 'Dentist Accounts'
    }
    return render(request, 'dentists/dentist_list.html', context)

@login_required
@permission_required('dentists.add_dentist', raise_exception=True)
def add_dentist_view(request):
    if request.method == 'POST':
        form = DentistForm(request.POST)
        if form.is_valid():
            try:
                dentist = form.save()
            except ValidationError as e:
                form.add_error(None, e)
            else:
                messages.success(request, f"Dentist '{dentist.name}' added successfully!")
                return redirect('dentists:dentist_list')
    else:
        form = DentistForm()

    context = {
        'form': form,
        'page_title': 'Add New Dentist'
    }
    return render(request, 'dentists/dentist_form.html', context)

@login_required
@permission_required('dentists.change_dentist', raise_exception=True)
def edit_dentist_view(request, pk):
    dentist_to_edit = get_object_or_404(Dentist, pk=pk)

    if request.method == 'POST':
        form = DentistForm(request.POST, instance=dentist_to_edit)
        if form.is_valid():
            try:
                dentist = form.save()
            except ValidationError as e:
                form.add_error(None, e)
            except DatabaseError as e:
                report_database_error(request, e)
            else:
                messages.success(request, f"'{dentist.name}' updated successfully!")
                return redirect('dentists:dentist_list')
    else:
        form = DentistForm(instance=dentist_to_edit)

    context = {
        'form': form,
        'dentist': dentist_to_edit,
        'page_title': f'Edit Dentist: {dentist_to_edit.name}'
    }
    return render(request, 'dentists/dentist_form.html', context)

@login_required
@permission_required('dentists.delete_dentist', raise_exception=True)
def delete_dentist_view(request, pk):
    dentist_to_delete = get_object_or_404(Dentist, pk=pk)

    if request.method == 'POST':
        dentist_to_delete.delete()
        messages.success(request, f"The dentist '{dentist_to_delete.name}' was deleted successfully.")
        return redirect('dentists:dentist_list')

    context = {
        'dentist': dentist_to_delete,
        'page_title': f'Confirm Delete: {dentist_to_delete.name}'
    }
    return render(request, 'dentists/dentist_confirm_delete.html', context)
