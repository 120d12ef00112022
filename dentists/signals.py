# dentists/signals.py

import logging

from django.conf import settings
from django.contrib.auth.models import Group, Permission

logger = logging.getLogger(__name__)

# The lab owner manages every case, invoice and dentist account.
OWNER_PERMISSIONS = [
    'lab_cases.view_dentalcase', 'lab_cases.add_dentalcase', 'lab_cases.change_dentalcase', 'lab_cases.delete_dentalcase',
    'billing.view_invoice', 'billing.add_invoice', 'billing.delete_invoice',
    'dentists.view_dentist', 'dentists.add_dentist', 'dentists.change_dentist', 'dentists.delete_dentist',
    'notifications.view_notification', 'notifications.change_notification',
    'audit_log.view_loginlog',
]

def assign_permissions(group, permissions):
    """
    Assigns a list of permissions to a group, clearing previous ones.
    """
    group.permissions.clear()
    for perm_codename in permissions:
        app_label, codename = perm_codename.split('.')
        try:
            perm = Permission.objects.get(content_type__app_label=app_label, codename=codename)
        except Permission.DoesNotExist:
            logger.warning("Permission '%s' not found. Skipping.", perm_codename)
            continue
        group.permissions.add(perm)

def create_owner_group(sender, **kwargs):
    """
    Creates the lab owner group after migrations and gives it the full set
    of portal permissions.
    """
    group, _ = Group.objects.get_or_create(name=settings.OWNER_GROUP_NAME)
    assign_permissions(group, OWNER_PERMISSIONS)
    logger.info("Configured permissions for group: %s", group.name)
