"""Data normalization utilities for consistent data quality."""

import re
import unicodedata
from typing import Optional

import nh3


def _strip_accents(value: str) -> str:
    """Remove diacritics for accent-insensitive matching."""
    return "".join(
        ch for ch in unicodedata.normalize("NFKD", value) if not unicodedata.combining(ch)
    )


def slugify_key(value: str) -> str:
    """
    Build a stable machine key from a display name.

    "Em Negociação" -> "em_negociacao", "  Pós-venda!! " -> "pos_venda"
    """
    ascii_value = _strip_accents(value).lower()
    return re.sub(r"[^a-z0-9]+", "_", ascii_value).strip("_")


def normalize_tax_id(value: Optional[str]) -> Optional[str]:
    """
    Normalize CPF/CNPJ to digits only.

    "123.456.789-09" -> "12345678909"

    Returns:
        Digits-only document or None if empty
    """
    if not value:
        return None
    digits = re.sub(r"\D", "", value)
    return digits or None


def validate_tax_id(value: Optional[str]) -> Optional[str]:
    """
    Normalize and validate a CPF (11 digits) or CNPJ (14 digits).

    Raises:
        ValueError: If the document has any other number of digits
    """
    if not value or not value.strip():
        return None
    digits = re.sub(r"\D", "", value)
    if len(digits) not in (11, 14):
        raise ValueError("CPF must have 11 digits and CNPJ 14 digits")
    return digits


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Normalize email to lowercase.

    Args:
        email: Raw email input

    Returns:
        Lowercased email or None if empty
    """
    if not email or not email.strip():
        return None
    return email.strip().lower()


def normalize_name(name: Optional[str]) -> Optional[str]:
    """Strip whitespace and collapse multiple spaces."""
    if not name:
        return None
    collapsed = " ".join(name.split())
    return collapsed or None


def sanitize_text(value: Optional[str]) -> Optional[str]:
    """Strip all HTML from free-text notes."""
    if value is None:
        return None
    cleaned = nh3.clean(value, tags=set()).strip()
    return cleaned or None
