"""
contact_engine.py
-----------------
Validates the portfolio contact form and delivers it through the EmailJS REST
API.

Delivery never raises: network errors and non-200 answers are logged and
reported back in the result dict so the route can pick a status code.
"""

import logging
import os
import re
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

EMAILJS_SEND_URL = "https://api.emailjs.com/api/v1.0/email/send"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# field → (minimum length, error message)
_FIELD_RULES = {
    "name":    (2,  "Name must be at least 2 characters long"),
    "email":   (1,  "Please enter a valid email address"),
    "subject": (3,  "Subject must be at least 3 characters long"),
    "message": (10, "Message must be at least 10 characters long"),
}


@dataclass(frozen=True)
class EmailSettings:
    service_id:  Optional[str] = None
    template_id: Optional[str] = None
    public_key:  Optional[str] = None
    private_key: Optional[str] = None
    recipient:   Optional[str] = None

    @classmethod
    def from_env(cls, recipient: Optional[str] = None) -> "EmailSettings":
        return cls(
            service_id  = os.environ.get("EMAILJS_SERVICE_ID"),
            template_id = os.environ.get("EMAILJS_TEMPLATE_ID"),
            public_key  = os.environ.get("EMAILJS_PUBLIC_KEY"),
            private_key = os.environ.get("EMAILJS_PRIVATE_KEY"),
            recipient   = os.environ.get("CONTACT_RECIPIENT", recipient),
        )

    @property
    def configured(self) -> bool:
        return bool(self.service_id and self.template_id and self.public_key)


def validate_contact_form(form) -> tuple:
    """
    Trim and validate the submitted fields.

    Returns
    -------
    (clean, errors) – clean maps field → trimmed value; errors maps field →
    message and is empty when the form is valid.
    """
    clean = {}
    errors = {}
    for field, (min_len, message) in _FIELD_RULES.items():
        value = form.get(field, "")
        value = value.strip() if isinstance(value, str) else ""
        clean[field] = value
        if len(value) < min_len:
            errors[field] = message

    if "email" not in errors and not _EMAIL_RE.match(clean["email"]):
        errors["email"] = _FIELD_RULES["email"][1]

    return clean, errors


def send_contact_message(clean: dict, settings: EmailSettings, timeout: int = 8) -> dict:
    """
    POST one validated message to EmailJS.

    Returns {"sent": bool, "error": str | None}.
    """
    if not settings.configured:
        return {"sent": False, "error": "Email delivery is not configured."}

    params = {
        "name":    clean["name"],
        "email":   clean["email"],
        "title":   clean["subject"],
        "message": clean["message"],
    }
    if settings.recipient:
        params["to_email"] = settings.recipient

    payload = {
        "service_id":      settings.service_id,
        "template_id":     settings.template_id,
        "user_id":         settings.public_key,
        "template_params": params,
    }
    if settings.private_key:
        payload["accessToken"] = settings.private_key

    try:
        response = requests.post(EMAILJS_SEND_URL, json=payload, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning("EmailJS request failed: %s", exc)
        return {"sent": False, "error": "Failed to send message. Please try again later."}

    if response.status_code != 200:
        logger.warning("EmailJS → %s: %s", response.status_code, response.text[:200])
        return {"sent": False, "error": "Failed to send message. Please try again later."}

    logger.info("Contact message from %s delivered", clean["email"])
    return {"sent": True, "error": None}
