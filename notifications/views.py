# notifications/views.py

from django.contrib import messages
from django.http import Http404
from django.shortcuts import redirect, get_object_or_404
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST

from dentists.decorators import get_session_dentist
from .models import Notification, OWNER_RECIPIENT
from .services import mark_read


def _can_acknowledge(request, notification):
    if notification.recipient == OWNER_RECIPIENT:
        return request.user.is_authenticated and request.user.has_perm('notifications.change_notification')
    dentist = get_session_dentist(request)
    return dentist is not None and dentist.name == notification.recipient


@require_POST
def acknowledge_notification_view(request, pk):
    """Marks one in-app notification as read for the owner or its dentist."""
    notification = get_object_or_404(Notification, pk=pk)
    if not _can_acknowledge(request, notification):
        raise Http404("No notification found.")

    if not mark_read(notification.pk):
        messages.info(request, "This notification was already acknowledged.")

    next_url = request.POST.get('next')
    if next_url and url_has_allowed_host_and_scheme(next_url, allowed_hosts={request.get_host()}):
        return redirect(next_url)
    if notification.recipient == OWNER_RECIPIENT:
        return redirect('dashboard:owner_dashboard')
    return redirect('lab_cases:doctor_portal')
