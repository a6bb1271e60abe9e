"""Input sanitization utilities to prevent XSS and injection attacks."""

import html

# Keys whose values are opaque payloads (base64 images, PDF data URIs) and
# must reach the handler byte-for-byte.
OPAQUE_KEYS = frozenset({"imageBase64", "image_base64", "attachment_url"})

# Free text that ends up in the database, chat, PDFs and SMS as plain text.
# Emails escape these when they build HTML (email_templates.py).
PLAIN_TEXT_KEYS = frozenset({
    "signature_name",
    "message",
    "waste_description",
    "location",
    "name",
    "full_name",
})

SKIP_KEYS = OPAQUE_KEYS | PLAIN_TEXT_KEYS


def sanitize_string(value):
    """Escape HTML entities in a string.

    Converts < > & " ' to their HTML entity equivalents so that
    user-supplied strings cannot inject markup or script tags.
    """
    if not isinstance(value, str):
        return value
    return html.escape(value, quote=True)


def sanitize_dict(data, skip_keys=SKIP_KEYS):
    """Recursively walk a dict/list structure and sanitize all string values.

    Values stored under ``skip_keys`` are left untouched. Non-string leaves
    (int, float, bool, None) are returned unchanged.
    """
    if isinstance(data, dict):
        return {
            key: value if key in skip_keys else sanitize_dict(value, skip_keys)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [sanitize_dict(item, skip_keys) for item in data]
    if isinstance(data, str):
        return sanitize_string(data)
    return data
