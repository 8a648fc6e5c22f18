# utils/data_masking.py
"""
Masking helpers for anything that may carry credentials.

Connection strings arrive as user:pass@host URLs; these helpers make sure the
password never reaches a log line, an exception message or CLI output.
"""

import re
from typing import Any, Dict


# Pre-compiled regex patterns for masking
MASKING_PATTERNS = {
    "password_in_url": re.compile(r"(://[^:/@\s]*:)([^/\s]*)(@)"),  # user:pass@host
    "basic_auth_header": re.compile(r"(?i)(authorization[\s:=]+basic\s+)([A-Za-z0-9+/=]+)"),
}

MASK = "***"


def mask_url(text: str) -> str:
    """Replace the password part of any user:pass@host URL in text."""
    if not text or not isinstance(text, str):
        return text
    return MASKING_PATTERNS["password_in_url"].sub(rf"\g<1>{MASK}\g<3>", text)


def mask_text(text: str) -> str:
    """Apply all masking rules to a string."""
    if not text or not isinstance(text, str):
        return text
    masked = mask_url(text)
    masked = MASKING_PATTERNS["basic_auth_header"].sub(rf"\g<1>{MASK}", masked)
    return masked


def mask_config(obj: Any) -> Any:
    """Recursively mask string values of a loaded config structure (returns a copy)."""
    if isinstance(obj, dict):
        masked: Dict[str, Any] = {}
        for key, value in obj.items():
            if key == "password" and value:
                masked[key] = MASK
            else:
                masked[key] = mask_config(value)
        return masked
    if isinstance(obj, list):
        return [mask_config(item) for item in obj]
    if isinstance(obj, str):
        return mask_text(obj)
    return obj
