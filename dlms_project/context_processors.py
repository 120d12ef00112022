# dlms_project/context_processors.py

from django.conf import settings


def lab_details(request):
    return {
        'LAB_NAME': settings.LAB_NAME,
        'INVOICE_CURRENCY': settings.INVOICE_CURRENCY,
    }

def portal_roles_processor(request):
    """
    Adds portal role flags to the template context: the lab owner signs in
    through Django auth, dentists through their own session login.
    """
    is_owner = False
    if request.user.is_authenticated:
        is_owner = request.user.is_superuser or request.user.groups.filter(
            name=settings.OWNER_GROUP_NAME
        ).exists()

    return {
        'is_owner': is_owner,
        'current_dentist_name': request.session.get('dentist_name'),
    }
