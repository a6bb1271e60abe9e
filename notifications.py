"""
Outbound messages for Nexo Greencycle.

Partner companies hear about new pickup requests by SMS (Twilio) and
producers get their confirmations and reminders by email. Email goes
through the first configured provider in ``EMAIL_PROVIDERS``; if that
provider errors the next one is tried. With no credentials set, messages
are only logged.

Nothing here raises: a failed notification is logged and the pickup,
signature or contact request that triggered it still succeeds.
"""

import os
import logging
import threading

from email_templates import (
    welcome_html,
    pickup_request_html,
    pickup_reminder_html,
    contact_message_html,
)

logger = logging.getLogger(__name__)

TWILIO_ACCOUNT_SID = os.environ.get("TWILIO_ACCOUNT_SID", "")
TWILIO_AUTH_TOKEN = os.environ.get("TWILIO_AUTH_TOKEN", "")
TWILIO_FROM_NUMBER = os.environ.get("TWILIO_FROM_NUMBER", "")

RESEND_API_KEY = os.environ.get("RESEND_API_KEY", "")
SENDGRID_API_KEY = os.environ.get("SENDGRID_API_KEY", "")
EMAIL_FROM = os.environ.get("EMAIL_FROM", "hello@nexogreencycle.co.ke")
EMAIL_FROM_NAME = os.environ.get("EMAIL_FROM_NAME", "Nexo Greencycle")

KENYA_DIALING_CODE = "254"

_sms_client = None


# ---------------------------------------------------------------------------
# SMS
# ---------------------------------------------------------------------------
def normalize_phone(number):
    """E.164 form of a Kenyan number: ``0712 345 678`` -> ``+254712345678``."""
    if not number:
        return number
    digits = "".join(ch for ch in str(number) if ch.isdigit())
    if digits.startswith("0"):
        digits = KENYA_DIALING_CODE + digits[1:]
    return "+" + digits


def _twilio():
    global _sms_client
    if _sms_client is not None or not (TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN):
        return _sms_client
    try:
        from twilio.rest import Client
        _sms_client = Client(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN)
    except Exception:
        logger.exception("Twilio client could not be created")
    return _sms_client


def send_sms(to_number, body):
    """Text ``body`` to ``to_number``; returns the Twilio SID or None."""
    recipient = normalize_phone(to_number)
    client = _twilio()
    if client is None or not TWILIO_FROM_NUMBER:
        logger.info("SMS not configured, would send to %s: %s", recipient, body)
        return None
    try:
        sid = client.messages.create(to=recipient, from_=TWILIO_FROM_NUMBER, body=body).sid
    except Exception:
        logger.exception("SMS to %s failed", recipient)
        return None
    logger.info("SMS to %s accepted (%s)", recipient, sid)
    return sid


# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------
def _sender():
    return "{} <{}>".format(EMAIL_FROM_NAME, EMAIL_FROM)


def _via_resend(to_email, subject, html_content):
    import resend

    resend.api_key = RESEND_API_KEY
    sent = resend.Emails.send({
        "from": _sender(),
        "to": [to_email],
        "subject": subject,
        "html": html_content,
    })
    return sent.get("id")


def _via_sendgrid(to_email, subject, html_content):
    from sendgrid import SendGridAPIClient
    from sendgrid.helpers.mail import Mail

    mail = Mail(
        from_email=(EMAIL_FROM, EMAIL_FROM_NAME),
        to_emails=to_email,
        subject=subject,
        html_content=html_content,
    )
    return SendGridAPIClient(SENDGRID_API_KEY).send(mail).status_code


# (name, api key attribute, sender) in order of preference
EMAIL_PROVIDERS = (
    ("resend", "RESEND_API_KEY", _via_resend),
    ("sendgrid", "SENDGRID_API_KEY", _via_sendgrid),
)


def deliver_email(to_email, subject, html_content):
    """Send one email in the calling thread.

    Returns the provider's message id or status, or None when nothing
    was sent.
    """
    configured = [(name, send) for name, key, send in EMAIL_PROVIDERS if globals()[key]]
    if not configured:
        logger.info("Email not configured, would send to %s: %s", to_email, subject)
        return None

    for name, send in configured:
        try:
            result = send(to_email, subject, html_content)
        except Exception:
            logger.exception("Email to %s via %s failed", to_email, name)
            continue
        logger.info("Email to %s sent via %s (%s)", to_email, name, result)
        return result
    return None


def send_email(to_email, subject, html_content):
    """Hand the email to a daemon thread so the request is not held up."""
    try:
        threading.Thread(
            target=deliver_email,
            args=(to_email, subject, html_content),
            name="email-{}".format(to_email),
            daemon=True,
        ).start()
    except Exception:
        logger.exception("Could not start email thread for %s", to_email)


# ---------------------------------------------------------------------------
# Welcome email (new user registration)
# ---------------------------------------------------------------------------
def send_welcome_email(to_email, user_name, user_type="producer"):
    """Send a welcome email to a newly registered user. Never raises."""
    try:
        html = welcome_html(name=user_name, user_type=user_type)
        return send_email(to_email, "Welcome to Nexo Greencycle!", html)
    except Exception:
        logger.exception("Failed in send_welcome_email for %s", to_email)
        return None


# ---------------------------------------------------------------------------
# Pickup requests
# ---------------------------------------------------------------------------
def send_pickup_request_sms(company_phone, pickup_id, location, date, time):
    """Alert the partner company about a new pickup request. Never raises."""
    try:
        short_id = str(pickup_id)[:8] if pickup_id else "N/A"
        body = (
            "Nexo Greencycle: New pickup request #{}\n"
            "Date: {} ({})\n"
            "Location: {}\n"
            "Reply in the app chat to confirm."
        ).format(short_id, date, time, location)
        return send_sms(company_phone, body)
    except Exception:
        logger.exception("Failed in send_pickup_request_sms for %s", company_phone)
        return None


def send_pickup_request_email(to_email, customer_name, pickup_id, company_name, location, date, time):
    """Confirm a submitted pickup request to the requester. Never raises."""
    try:
        short_id = str(pickup_id)[:8] if pickup_id else "N/A"
        html = pickup_request_html(
            customer_name=customer_name,
            pickup_id=pickup_id,
            company_name=company_name,
            location=location,
            date=date,
            time=time,
        )
        return send_email(to_email, "Pickup request sent #{}".format(short_id), html)
    except Exception:
        logger.exception("Failed in send_pickup_request_email for %s", to_email)
        return None


def send_pickup_reminder_email(to_email, customer_name, pickup_id, company_name, location, date, time):
    """Day-before pickup reminder. Never raises."""
    try:
        html = pickup_reminder_html(
            customer_name=customer_name,
            pickup_id=pickup_id,
            company_name=company_name,
            location=location,
            date=date,
            time=time,
        )
        return send_email(to_email, "Reminder: your waste pickup is tomorrow", html)
    except Exception:
        logger.exception("Failed in send_pickup_reminder_email for %s", to_email)
        return None


def send_pickup_reminder_sms(phone_number, company_name, date, time):
    """Day-before pickup reminder via SMS. Never raises."""
    try:
        body = "Nexo Greencycle: Reminder, {} collects your waste tomorrow ({}, {}).".format(
            company_name, date, time
        )
        return send_sms(phone_number, body)
    except Exception:
        logger.exception("Failed in send_pickup_reminder_sms for %s", phone_number)
        return None


# ---------------------------------------------------------------------------
# Contact form
# ---------------------------------------------------------------------------
def send_contact_notification(inbox, name, email, message):
    """Forward a contact form submission to the support inbox. Never raises."""
    try:
        html = contact_message_html(name=name, email=email, message=message)
        return send_email(inbox, "New contact message from {}".format(name or "Guest"), html)
    except Exception:
        logger.exception("Failed in send_contact_notification for %s", email)
        return None
