# events/sanitizers.py
"""
Input sanitization for participant-supplied text.

Team names, override reasons and form answers pass through these
functions before being stored.
"""
import re
from typing import Optional

CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')

MAX_FORM_FIELDS = 50
MAX_FORM_VALUE_LENGTH = 2000


def sanitize_text(text: Optional[str], max_length: Optional[int] = None, strip: bool = True) -> str:
    """
    Sanitize plain text input.

    - Removes control characters
    - Strips leading/trailing whitespace
    - Enforces maximum length
    - Returns empty string for None input
    """
    if text is None:
        return ""

    # Remove control characters except newlines and tabs
    text = CONTROL_CHARS.sub('', text)

    if strip:
        text = text.strip()

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_team_name(name: Optional[str]) -> str:
    return sanitize_text(name, max_length=100)


def sanitize_form_data(data) -> dict:
    """
    Keep a flat mapping of question -> answer.

    Nested values are dropped, strings are cleaned and truncated.
    """
    if not isinstance(data, dict):
        raise ValueError("form_data must be an object")

    if len(data) > MAX_FORM_FIELDS:
        raise ValueError(f"form_data cannot have more than {MAX_FORM_FIELDS} fields")

    clean = {}
    for key, value in data.items():
        key = sanitize_text(str(key), max_length=100)
        if not key:
            continue
        if isinstance(value, str):
            clean[key] = sanitize_text(value, max_length=MAX_FORM_VALUE_LENGTH)
        elif isinstance(value, (bool, int, float)) or value is None:
            clean[key] = value
        elif isinstance(value, list):
            clean[key] = [
                sanitize_text(v, max_length=MAX_FORM_VALUE_LENGTH) if isinstance(v, str) else v
                for v in value
                if isinstance(v, (str, bool, int, float))
            ]
    return clean
