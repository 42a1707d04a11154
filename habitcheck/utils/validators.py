import re
from datetime import date

DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

SEVERITY_MIN = 1
SEVERITY_MAX = 10


def is_valid_date_key(date_str: str) -> bool:
    """Exact YYYY-MM-DD form naming a real calendar day."""
    if not isinstance(date_str, str) or not DATE_KEY_RE.match(date_str):
        return False
    try:
        date.fromisoformat(date_str)
    except ValueError:
        return False
    return True


def is_valid_severity(value) -> bool:
    # bool is an int subclass; True is not a severity
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return SEVERITY_MIN <= value <= SEVERITY_MAX
