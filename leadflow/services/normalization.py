# leadflow/services/normalization.py
from __future__ import annotations

import re
from typing import Any, Mapping, Optional

_WHITESPACE = re.compile(r"\s+")


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """Drop every whitespace character; landing forms send "600 123 456"."""
    if phone is None:
        return None
    return _WHITESPACE.sub("", str(phone))


def normalize_email(email: Optional[str]) -> Optional[str]:
    """Blank emails count as absent."""
    if email is None:
        return None
    cleaned = str(email).strip()
    return cleaned or None


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is None:
        value = headers.get(name.lower())
    return value


def extract_client_ip(headers: Mapping[str, str]) -> Optional[str]:
    """Origin IP as reported by the proxy chain.

    First entry of ``X-Forwarded-For``, else ``X-Real-IP``, else None.
    """
    forwarded_for = _header(headers, "X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = _header(headers, "X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return None
