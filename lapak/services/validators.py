from __future__ import annotations

import re
from dataclasses import dataclass

from lapak.app.db.models.core_types import ContactType
from lapak.services.errors import ValidationError

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PHONE_RE = re.compile(r"^\+[1-9]{1,3}[0-9]{7,14}$")
ID_RE = re.compile(r"^[0-9]+$")
MAX_ID = 2**63 - 1


def validate_email(email: str) -> str:
    if not EMAIL_RE.match(email or ""):
        raise ValidationError("Invalid email format")
    return email


def validate_phone(phone: str) -> str:
    if not PHONE_RE.match(phone or ""):
        raise ValidationError("Invalid phone number")
    return phone


@dataclass(frozen=True)
class SenderContact:
    """Contact de l'acheteur: Phone(detail) ou Email(detail), rien d'autre."""

    type: ContactType
    detail: str


_CONTACT_VALIDATORS = {
    ContactType.phone: validate_phone,
    ContactType.email: validate_email,
}


def parse_sender_contact(contact_type: str, detail: str) -> SenderContact:
    try:
        kind = ContactType(contact_type)
    except ValueError:
        raise ValidationError("Sender contact type must be 'phone' or 'email'") from None

    validate = _CONTACT_VALIDATORS[kind]
    return SenderContact(type=kind, detail=validate(detail))


def parse_numeric_id(raw: str | int, *, message: str) -> int:
    """Identifiant numérique strictement positif (ex: "42" ou 42)."""
    if isinstance(raw, bool):
        raise ValidationError(message)
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not ID_RE.match(text):
            raise ValidationError(message)
        value = int(text)
    # colonnes BIGINT signées
    if not 0 < value <= MAX_ID:
        raise ValidationError(message)
    return value
