"""Render the test email (HTML and plain text) with its unsubscribe affordances."""

from __future__ import annotations

from html import escape

# Inline styles (email clients strip <style> tags)
BODY_STYLE = "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;"
TITLE_STYLE = "color: #1f2937;"
NOTICE_STYLE = "background: #fee2e2; padding: 16px; border: 1px solid #dc2626; border-radius: 8px; margin: 20px 0;"
NOTICE_LABEL_STYLE = "color: #dc2626;"
RULE_STYLE = "border: none; border-top: 1px solid #e5e7eb; margin: 24px 0;"
FOOTER_STYLE = "font-size: 0.875rem; color: #6b7280;"
FOOTER_LINK_STYLE = "color: #2563eb;"
ADDRESS_STYLE = "font-size: 0.75rem; color: #9ca3af; margin-top: 24px;"

TITLE = "Email Unsubscribe POC"
INTRO = "This is a test email for the unsubscribe POC."
NOTICE = (
    "This address was generated for testing. If you received this email "
    "unexpectedly, please use the unsubscribe link below."
)
FOOTER = "You're receiving this because you opted into the Unsubscribe POC test."
POSTAL_ADDRESS = "Unsubscribe POC, 1 Example Street, Example City"


def render_html(subject: str, recipient: str, web_unsubscribe_url: str) -> str:
    """Render the HTML body.

    Args:
        subject: Message subject, reused as the document title.
        recipient: Address the message is sent to.
        web_unsubscribe_url: Link to the unsubscribe page for the footer.
    """
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>{escape(subject)}</title>
</head>
<body style="{BODY_STYLE}">
    <h2 style="{TITLE_STYLE}">{TITLE}</h2>

    <p>{INTRO}</p>

    <p>Sent to: <strong>{escape(recipient)}</strong></p>

    <div style="{NOTICE_STYLE}">
        <strong style="{NOTICE_LABEL_STYLE}">Important:</strong> {NOTICE}
    </div>

    <hr style="{RULE_STYLE}">

    <p style="{FOOTER_STYLE}">
        {FOOTER}<br>
        <a href="{escape(web_unsubscribe_url)}" style="{FOOTER_LINK_STYLE}">Unsubscribe</a>
    </p>

    <p style="{ADDRESS_STYLE}">
        {POSTAL_ADDRESS}
    </p>
</body>
</html>"""


def render_text(recipient: str, web_unsubscribe_url: str) -> str:
    """Render the plain-text alternative."""
    return f"""{TITLE}

{INTRO}

Sent to: {recipient}

IMPORTANT: {NOTICE}

---
{FOOTER}
Unsubscribe: {web_unsubscribe_url}

{POSTAL_ADDRESS}
"""
