"""Task payload validation.

``validate_task_payload`` is a pure function: it takes the decoded JSON body and
returns every violation it finds (not just the first), or None when the payload
is acceptable. No I/O, no database access.
"""
import re
from typing import Any, List, Mapping, Optional

from todolist.utils.dates import DATE_FORMAT, is_valid_date

ALLOWED_FIELDS = ("title", "description", "completed", "assignee", "priority", "category", "deadline")
ALLOWED_PRIORITIES = ("low", "medium", "high")

MAX_ASSIGNEE_LENGTH = 20
MAX_CATEGORY_LENGTH = 20

_DIGIT_RE = re.compile(r"\d")
_LETTER_RE = re.compile(r"[^\W\d_]")


def _check_text(payload: Mapping[str, Any], field: str, errors: List[str]) -> Optional[str]:
    """Return the field's value when it is a string, record a type error otherwise."""
    if field not in payload:
        return None
    value = payload[field]
    if not isinstance(value, str):
        errors.append(f"Field '{field}' must be a string.")
        return None
    return value


def validate_task_payload(payload: Mapping[str, Any], is_update: bool = False) -> Optional[List[str]]:
    unknown = [key for key in payload if key not in ALLOWED_FIELDS]
    if unknown:
        return [f"Unknown fields in payload: {', '.join(unknown)}"]

    errors: List[str] = []

    if "title" in payload and not isinstance(payload["title"], str):
        errors.append("Field 'title' must be a string.")
    else:
        title = payload.get("title")
        if title is None or not title.strip():
            if not is_update:
                errors.append("Field 'title' is required.")
            elif title is not None:
                errors.append("Field 'title' cannot be empty.")

    _check_text(payload, "description", errors)

    if "priority" in payload and payload["priority"] not in ALLOWED_PRIORITIES:
        errors.append(f"Field 'priority' must be one of: {', '.join(ALLOWED_PRIORITIES)}.")

    assignee = _check_text(payload, "assignee", errors)
    if assignee:
        if len(assignee) > MAX_ASSIGNEE_LENGTH:
            errors.append(f"Field 'assignee' may be at most {MAX_ASSIGNEE_LENGTH} characters long.")
        if _DIGIT_RE.search(assignee):
            errors.append("Field 'assignee' cannot contain digits.")

    category = _check_text(payload, "category", errors)
    if category and len(category) > MAX_CATEGORY_LENGTH:
        errors.append(f"Field 'category' may be at most {MAX_CATEGORY_LENGTH} characters long.")

    deadline = _check_text(payload, "deadline", errors)
    if deadline and not is_valid_date(deadline):
        if _LETTER_RE.search(deadline):
            errors.append("Field 'deadline' cannot contain letters.")
        else:
            errors.append(f"Field 'deadline' is not a valid date (expected format {DATE_FORMAT}).")

    # bool only: 0/1 and "true"/"false" are rejected
    if "completed" in payload and not isinstance(payload["completed"], bool):
        errors.append("Field 'completed' must be a boolean (true or false).")

    return errors or None
