"""Shared validation utilities"""

import logging
import re
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def normalize_category_names(names: Optional[Iterable[str]]) -> list[str]:
    """
    Strip category names and drop blanks and case-insensitive duplicates,
    keeping the first spelling and the original order.
    """
    result: list[str] = []
    seen: set[str] = set()
    for name in names or []:
        if not isinstance(name, str):
            logger.warning(f"⚠️ Skipping non-string category entry: {name!r}")
            continue
        cleaned = name.strip()
        if not cleaned or cleaned.lower() in seen:
            continue
        seen.add(cleaned.lower())
        result.append(cleaned)
    return result


def parse_category_list(raw: Optional[str]) -> list[str]:
    """Parse a stored "STORICA, SCIENTIFICA" string into category names"""
    if not raw:
        return []
    return normalize_category_names(raw.split(","))


def format_category_list(names: Iterable[str]) -> str:
    return ", ".join(normalize_category_names(names))
