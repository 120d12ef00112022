# DENTALLABPORTAL/dashboard/views.py

from django.conf import settings
from django.contrib.auth.decorators import login_required, permission_required
from django.shortcuts import render, redirect
from django.utils import timezone

from billing.models import Invoice
from dentists.decorators import get_session_dentist
from dentists.models import Dentist
from lab_cases.models import DentalCase
from notifications.models import OWNER_RECIPIENT
from notifications.services import unread_for


def home_view(request):
    """Landing page: sends a signed-in owner or dentist to their own area."""
    if request.user.is_authenticated and request.user.has_perm('lab_cases.view_dentalcase'):
        return redirect('dashboard:owner_dashboard')
    if get_session_dentist(request) is not None:
        return redirect('lab_cases:doctor_portal')
    return render(request, 'dashboard/home.html', {'page_title': 'Welcome'})

@login_required
@permission_required('lab_cases.view_dentalcase', raise_exception=True)
def owner_dashboard_view(request):
    all_cases = DentalCase.objects.all()
    today = timezone.localdate()
    month_start = today.replace(day=1)
    unread = unread_for(OWNER_RECIPIENT)

    context = {
        'page_title': 'Dashboard',
        'total_cases_count': all_cases.active().count(),
        'todays_cases_count': all_cases.active().filter(created_at__date=today).count(),
        'month_cases_count': all_cases.active().filter(created_at__date__gte=month_start).count(),
        'pending_deletion_count': all_cases.pending_deletion().count(),
        'due_today_count': all_cases.active().filter(delivery_date=today).count(),
        'dentists_count': Dentist.objects.filter(is_active=True).count(),
        'invoices_count': Invoice.objects.count(),
        'recent_cases': all_cases[:10],
        # Oldest first, one at a time, until acknowledged.
        'notification': unread[-1] if unread else None,
        'unread_count': len(unread),
    }
    return render(request, 'dashboard/owner_dashboard.html', context)


def custom_permission_denied_view(request, exception=None):
    context = {
        'page_title': 'Permission Denied',
        'permission_help_url': settings.PERMISSION_HELP_URL,
    }
    return render(request, "403.html", context, status=403)
