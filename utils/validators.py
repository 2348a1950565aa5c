# utils/validators.py
import json


# -----------------------------
# JSON documents
# -----------------------------
def parse_json_object(text, allow_blank=True, label="Metadata"):
    """
    Parse a JSON document that must be an object (not an array or a primitive).
    Dicts pass through unchanged. Blank text gives {} when allow_blank is set.
    Raises ValueError with an operator-facing message otherwise.
    """
    if isinstance(text, dict):
        return text
    if text is None or not str(text).strip():
        if allow_blank:
            return {}
        raise ValueError(f"{label} is required.")

    try:
        value = json.loads(text)
    except (TypeError, ValueError):
        raise ValueError(
            'Invalid JSON format. Please provide a valid object, e.g., {"role": "editor"}.'
        ) from None

    if not isinstance(value, dict):
        raise ValueError(f"{label} must be a valid JSON object, not an array or other primitive.")
    return value


def format_json(value) -> str:
    """Pretty JSON for editing in a textarea."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2)


# -----------------------------
# Safe conversions
# -----------------------------
def is_blank(val) -> bool:
    return val is None or (isinstance(val, str) and not val.strip())


def safe_number(val):
    """Convert form input to int or float (handles comma decimals). Returns None when not numeric."""
    if is_blank(val):
        return None
    if isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        return val
    text = str(val).strip().replace(",", ".")
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None
