"""Transactional email delivery through the Resend HTTP API.

Sending never raises: failures are logged and reported in the returned
``{"success": bool, "error": str}`` dictionary so that a broken mail
provider cannot fail an application or certificate operation.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
from typing import Any, Dict

import requests

from .config import config
from .email_templates import TEMPLATES

logger = logging.getLogger(__name__)


def is_configured() -> bool:
    return bool(config.RESEND_API_KEY)


def send_email(to: str, template: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Render a template and send it to one recipient.

    Args:
        to: Recipient address
        template: Template name (see ``email_templates.TEMPLATES``)
        data: Template data; ``recipient_name`` is used in the greeting

    Returns:
        ``{"success": True, "id": ...}`` or ``{"success": False, "error": ...}``
    """
    if not is_configured():
        logger.debug("Email not sent to %s (%s): RESEND_API_KEY not configured", to, template)
        return {"success": False, "error": "Email service not configured"}

    if template not in TEMPLATES:
        logger.error(f"Unknown email template: {template}")
        return {"success": False, "error": f"Unknown email template: {template}"}

    try:
        rendered = TEMPLATES[template](data)
    except KeyError as e:
        logger.error(f"Missing data for email template {template}: {e}")
        return {"success": False, "error": f"Missing template field: {e}"}

    payload = {
        "from": config.EMAIL_FROM,
        "to": to,
        "subject": rendered["subject"],
        "html": rendered["html"],
        "text": rendered["text"],
        "reply_to": config.EMAIL_REPLY_TO,
        "tags": [
            {"name": "category", "value": template},
            {"name": "environment", "value": config.ENVIRONMENT},
        ],
    }

    try:
        response = requests.post(
            config.RESEND_API_URL,
            json=payload,
            headers={"Authorization": f"Bearer {config.RESEND_API_KEY}"},
            timeout=config.EMAIL_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        logger.error(f"Error sending email to {to}: {e}")
        return {"success": False, "error": str(e)}

    if not response.ok:
        try:
            message = response.json().get("message")
        except ValueError:
            message = None
        logger.error(
            "Failed to send email",
            extra={"to": to, "template": template, "status_code": response.status_code}
        )
        return {"success": False, "error": message or "Failed to send email"}

    try:
        email_id = response.json().get("id")
    except ValueError:
        email_id = None
    logger.info(f"Email sent successfully: {email_id} ({template} -> {to})")
    return {"success": True, "id": email_id}
