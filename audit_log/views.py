# audit_log/views.py

from django.shortcuts import render
from django.contrib.auth.decorators import login_required, permission_required
from .models import LoginLog

@login_required
@permission_required('audit_log.view_loginlog', raise_exception=True)
def login_log_view(request):
    """
    Displays the dentist logins of the last 24 hours.
    """
    context = {
        'logs': LoginLog.recent(),
        'page_title': 'Dentist Logins (last 24 hours)'
    }
    return render(request, 'audit_log/login_log.html', context)
