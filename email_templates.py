"""
HTML email templates for Nexo Greencycle.

Every public function returns a complete HTML string ready for sending via
the ``send_email`` helper in ``notifications.py``.

Design tokens:
  - Primary accent: #00A352 (green)
  - Header navy:    #0E1C36
  - Card:           #ffffff
  - Text dark:      #111827
  - Text muted:     #4b5563 / #6b7280

All styles are inlined for email-client compatibility. No external
resources (fonts, images, scripts) are referenced.
"""

import os
from html import escape as _esc

FRONTEND_URL = os.environ.get("FRONTEND_URL", "https://www.nexogreencycle.co.ke")

USER_TYPE_LABELS = {
    "producer": "Waste Producer",
    "recycling": "Recycling Company",
    "incineration": "Incineration Company",
    "waste_management": "Waste Management Co.",
}

TIME_SLOT_LABELS = {
    "morning": "Morning (8AM - 12PM)",
    "afternoon": "Afternoon (12PM - 4PM)",
    "evening": "Evening (4PM - 6PM)",
}


# ---------------------------------------------------------------------------
# Shared layout helpers
# ---------------------------------------------------------------------------

def _header():
    return (
        '<div style="text-align:center;margin-bottom:30px;background:#0E1C36;border-bottom:4px solid #00A352;'
        'border-radius:12px 12px 0 0;padding:24px 0;">'
        '<h1 style="color:#ffffff;font-size:26px;margin:0;font-family:Arial,sans-serif;font-weight:700;">Nexo Greencycle</h1>'
        '<p style="color:#d1fae5;margin:5px 0 0;font-size:14px;">Smart Waste Management</p>'
        '</div>'
    )


def _footer():
    return (
        '<div style="text-align:center;margin-top:30px;padding-top:20px;border-top:1px solid #e5e7eb;color:#9ca3af;font-size:12px;line-height:1.6;">'
        '<p style="margin:0 0 4px;">Nexo Greencycle &middot; Smart Waste Management Platform</p>'
        '<p style="margin:0 0 4px;">Nairobi, Kenya</p>'
        '<p style="margin:0;">www.nexogreencycle.co.ke</p>'
        '</div>'
    )


def _wrap(body_html):
    """Wrap inner content in the common email shell (background, card, header, footer)."""
    return (
        '<!DOCTYPE html>'
        '<html lang="en"><head><meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width,initial-scale=1.0">'
        '<title>Nexo Greencycle</title></head>'
        '<body style="margin:0;padding:0;background-color:#f3f4f6;">'
        '<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;padding:40px 20px;">'
        + _header()
        + '<div style="background:#ffffff;border-radius:12px;padding:30px;box-shadow:0 1px 3px rgba(0,0,0,0.1);">'
        + body_html
        + '</div>'
        + _footer()
        + '</div></body></html>'
    )


def _detail_table(rows):
    """Green-tinted detail box. *rows* is a list of (label, value) tuples."""
    inner = ''
    for label, value in rows:
        inner += (
            '<tr>'
            '<td style="padding:8px 0;color:#6b7280;font-size:14px;">{label}</td>'
            '<td style="padding:8px 0;color:#111827;font-size:14px;font-weight:600;text-align:right;">{value}</td>'
            '</tr>'
        ).format(label=_esc(str(label)), value=_esc(str(value)))
    return (
        '<div style="background:#ECFDF5;border:1px solid #A7F3D0;border-radius:8px;padding:20px;margin:20px 0;">'
        '<table style="width:100%;border-collapse:collapse;">'
        + inner
        + '</table></div>'
    )


def _button(url, label):
    """Call-to-action button."""
    return (
        '<div style="text-align:center;margin:28px 0 12px;">'
        '<a href="{url}" style="display:inline-block;background:#00A352;color:#ffffff;'
        'text-decoration:none;padding:14px 36px;border-radius:8px;font-size:16px;'
        'font-weight:600;line-height:1;">'.format(url=_esc(str(url)))
        + _esc(str(label))
        + '</a></div>'
    )


def _greeting(name):
    return '<p style="color:#4b5563;line-height:1.6;">Hi {},</p>'.format(_esc(str(name)) if name else 'there')


# ---------------------------------------------------------------------------
# 1. Welcome
# ---------------------------------------------------------------------------

def welcome_html(name, user_type="producer"):
    """Return HTML for the registration welcome email."""
    role = USER_TYPE_LABELS.get(user_type, USER_TYPE_LABELS["producer"])
    body = '<h2 style="color:#111827;margin:0 0 12px;font-size:22px;">Welcome to Nexo Greencycle!</h2>'
    body += _greeting(name)
    body += (
        '<p style="color:#4b5563;line-height:1.6;">Your <strong>{role}</strong> account is ready.</p>'
    ).format(role=_esc(role))

    if user_type == "producer":
        body += (
            '<ul style="color:#4b5563;padding-left:20px;font-size:14px;line-height:1.8;">'
            '<li>Snap a photo and let our AI classify your waste</li>'
            '<li>Request pickups from verified recycling and incineration partners</li>'
            '<li>Earn 20 points for every KES 1,000 spent and redeem them for rewards</li>'
            '</ul>'
        )
    else:
        body += (
            '<p style="color:#4b5563;line-height:1.6;">Pickup requests addressed to your company '
            'will appear in your chat inbox, where you can share and sign agreements.</p>'
        )

    body += _button(FRONTEND_URL, 'Open Nexo Greencycle')
    return _wrap(body)


# ---------------------------------------------------------------------------
# 2. Pickup request confirmation (to the requester)
# ---------------------------------------------------------------------------

def pickup_request_html(customer_name, pickup_id, company_name, location, date, time):
    """Return HTML confirming that a pickup request was sent."""
    short_id = str(pickup_id)[:8] if pickup_id else 'N/A'
    body = '<h2 style="color:#111827;margin:0 0 12px;font-size:22px;">Pickup Request Sent</h2>'
    body += _greeting(customer_name)
    body += (
        '<p style="color:#4b5563;line-height:1.6;">{company} will review your request '
        'and reply in the app chat.</p>'
    ).format(company=_esc(str(company_name)) if company_name else 'The company')

    body += _detail_table([
        ('Request', '#{}'.format(short_id)),
        ('Company', company_name or 'N/A'),
        ('Location', location or 'TBD'),
        ('Date', date or 'TBD'),
        ('Time', TIME_SLOT_LABELS.get(time, time or 'TBD')),
    ])
    body += _button('{}/chat'.format(FRONTEND_URL.rstrip('/')), 'Open Chat')
    return _wrap(body)


# ---------------------------------------------------------------------------
# 3. Pickup reminder (day before)
# ---------------------------------------------------------------------------

def pickup_reminder_html(customer_name, pickup_id, company_name, location, date, time):
    """Return HTML for a day-before pickup reminder email."""
    short_id = str(pickup_id)[:8] if pickup_id else 'N/A'
    body = '<h2 style="color:#111827;margin:0 0 12px;font-size:22px;">Pickup Reminder</h2>'
    body += _greeting(customer_name)
    body += (
        '<p style="color:#4b5563;line-height:1.6;">Your waste pickup is '
        '<strong>tomorrow</strong>. Here are the details:</p>'
    )

    body += _detail_table([
        ('Request', '#{}'.format(short_id)),
        ('Company', company_name or 'N/A'),
        ('Location', location or 'TBD'),
        ('Date', date or 'TBD'),
        ('Time', TIME_SLOT_LABELS.get(time, time or 'TBD')),
    ])

    body += (
        '<p style="color:#4b5563;font-size:14px;line-height:1.6;">'
        'Please have the waste sorted and accessible at the pickup location. '
        'Cancellations must be made at least 24 hours before the pickup.</p>'
    )
    return _wrap(body)


# ---------------------------------------------------------------------------
# 4. Contact form message (to the support inbox)
# ---------------------------------------------------------------------------

def contact_message_html(name, email, message):
    """Return HTML forwarding a contact form submission."""
    body = '<h2 style="color:#111827;margin:0 0 12px;font-size:22px;">New Contact Message</h2>'
    body += _detail_table([
        ('From', name or 'Guest'),
        ('Email', email),
    ])
    body += '<p style="color:#111827;line-height:1.6;">{}</p>'.format(
        _esc(str(message)).replace('\n', '<br/>')
    )
    return _wrap(body)
