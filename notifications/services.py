# notifications/services.py

"""
Best-effort alerts for new dental cases.

Nothing in here raises to the caller: every outcome, including missing
credentials, is reported as a per-recipient result entry and logged.
"""

import logging
import smtplib

import httpx
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils.html import strip_tags
from phonenumber_field.phonenumber import to_python

from .models import Notification, OWNER_RECIPIENT

logger = logging.getLogger(__name__)

WHATSAPP = 'whatsapp'
EMAIL = 'email'
CHANNELS = (WHATSAPP, EMAIL)

TWILIO_AUTH_FAILED = 20003


# ========== In-app notifications ==========

def create_notification(recipient, message):
    return Notification.objects.create(recipient=recipient, message=message)


def notify_owner(message):
    return create_notification(OWNER_RECIPIENT, message)


def unread_for(recipient):
    return list(Notification.objects.unread_for(recipient))


def mark_read(notification_id):
    updated = Notification.objects.filter(pk=notification_id, read=False).update(read=True)
    return updated > 0


# ========== Message bodies ==========

def _delivery_display(case):
    return case.delivery_date.strftime('%d/%m/%Y') if case.delivery_date else 'N/A'


def build_whatsapp_message(case):
    return (
        f"*New {settings.LAB_NAME} Case*\n"
        f"Patient: {case.patient_name}\n"
        f"Dentist: {case.dentist_name}\n"
        f"Units: {case.tooth_count} ({case.tooth_numbers})\n"
        f"Material: {case.material}\n"
        f"Prosthesis: {case.prosthesis_type}\n"
        f"Delivery Date: {_delivery_display(case)}\n"
        f"Source: {case.source}"
    )


def build_email(case):
    subject = f"New {settings.LAB_NAME} Case: {case.patient_name}"
    html = render_to_string('notifications/new_case_email.html', {
        'case': case,
        'delivery_display': _delivery_display(case),
        'LAB_NAME': settings.LAB_NAME,
    })
    return subject, html


# ========== Channels ==========

def _failure(recipient, error):
    return {'recipient': recipient, 'success': False, 'error': error}


def _config_failure(recipients, error):
    logger.error(error)
    if not recipients:
        return [_failure(None, error)]
    return [_failure(recipient, error) for recipient in recipients]


def _missing_settings(names):
    return [name for name in names if not getattr(settings, name, None)]


def get_twilio_client():
    return httpx.Client(
        auth=(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN),
        timeout=settings.NOTIFICATION_HTTP_TIMEOUT,
    )


def _twilio_error_message(response):
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    code = payload.get('code')
    message = payload.get('message') or f"HTTP {response.status_code} from Twilio"
    if code == TWILIO_AUTH_FAILED:
        message = (
            "Twilio authentication failed. Check TWILIO_ACCOUNT_SID and "
            "TWILIO_AUTH_TOKEN and restart the server."
        )
    return f"Code {code or 'N/A'}: {message}"


def _send_whatsapp(recipients, message):
    missing = _missing_settings(['TWILIO_ACCOUNT_SID', 'TWILIO_AUTH_TOKEN', 'TWILIO_WHATSAPP_FROM'])
    if missing:
        return _config_failure(
            recipients,
            f"Cannot send WhatsApp alert. Missing settings: {', '.join(missing)}."
        )
    if not recipients:
        return _config_failure(recipients, "No WhatsApp recipient numbers are configured.")

    url = f"{settings.TWILIO_API_BASE_URL}/Accounts/{settings.TWILIO_ACCOUNT_SID}/Messages.json"
    sender = f"whatsapp:{settings.TWILIO_WHATSAPP_FROM.strip()}"
    results = []

    with get_twilio_client() as client:
        for number in recipients:
            phone = to_python(number)
            if not (phone and phone.is_valid()):
                logger.warning("Skipping invalid WhatsApp number %r", number)
                results.append(_failure(number, "Invalid phone number."))
                continue

            try:
                response = client.post(url, data={
                    'From': sender,
                    'To': f"whatsapp:{phone.as_e164}",
                    'Body': message,
                })
            except httpx.HTTPError as exc:
                logger.error("Twilio request for %s failed: %s", number, exc)
                results.append(_failure(number, str(exc)))
                continue

            if response.status_code in (200, 201):
                sid = response.json().get('sid')
                logger.info("WhatsApp alert sent to %s (SID: %s)", number, sid)
                results.append({'recipient': number, 'success': True, 'sid': sid})
            else:
                error = _twilio_error_message(response)
                logger.error("Twilio rejected WhatsApp alert to %s: %s", number, error)
                results.append(_failure(number, error))
    return results


def _send_email(recipients, message, subject):
    missing = _missing_settings(['SENDGRID_API_KEY', 'SENDER_EMAIL'])
    if missing:
        return _config_failure(
            recipients,
            f"Cannot send email alert. Missing settings: {', '.join(missing)}."
        )
    if not recipients:
        return _config_failure(recipients, "No email recipients are configured.")

    results = []
    for address in recipients:
        email = EmailMultiAlternatives(
            subject=subject or f"{settings.LAB_NAME} notification",
            body=strip_tags(message),
            from_email=settings.SENDER_EMAIL,
            to=[address],
        )
        email.attach_alternative(message, 'text/html')
        try:
            email.send()
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email alert to %s failed: %s", address, exc)
            results.append(_failure(address, "Failed to send email notification."))
            continue
        logger.info("Email alert sent to %s", address)
        results.append({'recipient': address, 'success': True})
    return results


def send(channel, recipients, message, subject=None):
    """
    Sends ``message`` to each recipient over ``channel`` and returns one
    result dict per recipient: ``{'recipient', 'success', 'sid' | 'error'}``.
    """
    recipients = [str(r).strip() for r in (recipients or []) if str(r).strip()]
    if channel not in CHANNELS:
        return _config_failure(recipients, f"Unknown notification channel '{channel}'.")
    try:
        if channel == WHATSAPP:
            return _send_whatsapp(recipients, message)
        return _send_email(recipients, message, subject)
    except Exception as exc:
        logger.exception("Unexpected error while sending %s alert", channel)
        return [_failure(recipient, str(exc)) for recipient in recipients] or [_failure(None, str(exc))]


def notify_new_case(case):
    """
    Fires the WhatsApp and email alerts for a freshly created case. Meant to
    run after the case is committed; its outcome never affects the case.
    """
    try:
        subject, html = build_email(case)
        whatsapp_message = build_whatsapp_message(case)
    except Exception as exc:
        logger.exception("Could not build the alerts for new case #%s", case.pk)
        return {channel: [_failure(None, str(exc))] for channel in CHANNELS}

    results = {
        WHATSAPP: send(WHATSAPP, settings.WHATSAPP_RECIPIENT_NUMBER, whatsapp_message),
        EMAIL: send(EMAIL, settings.RECIPIENT_EMAIL, html, subject=subject),
    }
    for channel, outcome in results.items():
        sent = sum(1 for entry in outcome if entry['success'])
        logger.info("New case #%s %s alerts: %d/%d sent", case.pk, channel, sent, len(outcome))
    return results
