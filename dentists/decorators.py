from functools import wraps
from urllib.parse import urlencode

from django.shortcuts import redirect
from django.urls import reverse

from .models import Dentist

SESSION_DENTIST_ID = 'dentist_id'
SESSION_DENTIST_NAME = 'dentist_name'


def log_dentist_in(request, dentist):
    request.session.cycle_key()
    request.session[SESSION_DENTIST_ID] = dentist.pk
    request.session[SESSION_DENTIST_NAME] = dentist.name


def log_dentist_out(request):
    request.session.pop(SESSION_DENTIST_ID, None)
    request.session.pop(SESSION_DENTIST_NAME, None)


def get_session_dentist(request):
    dentist_id = request.session.get(SESSION_DENTIST_ID)
    if not dentist_id:
        return None
    return Dentist.objects.filter(pk=dentist_id, is_active=True).first()


def dentist_login_required(view_func):
    """Require a dentist signed in through the doctor portal login.

    The signed-in dentist is exposed as ``request.dentist``. Deactivated or
    deleted accounts are logged out and sent back to the login page.
    """
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        dentist = get_session_dentist(request)
        if dentist is None:
            log_dentist_out(request)
            login_url = reverse('dentists:login')
            return redirect(f"{login_url}?{urlencode({'next': request.get_full_path()})}")
        request.dentist = dentist
        return view_func(request, *args, **kwargs)

    return _wrapped
