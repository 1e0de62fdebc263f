from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, TypedDict

# Wire format of timestamps: a calendar date.
WIRE_DATE_FORMAT = "%Y-%m-%d"


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    Row representation of a task as stored in the ``tasks`` table.

    Fields:
    - id: Unique integer identifier, assigned on insert
    - completion_state: Boolean completion flag, False on creation
    - title: Short title (1..100 chars)
    - description: Free text (up to 500 chars), empty when not given
    - expertise: Required skill tag (1..100 chars)
    - patient_id: Opaque reference to a patient
    - created_at: Insert timestamp, never changes afterwards
    - deleted_at: Soft-delete timestamp, None while the task is active
    """

    id: int
    completion_state: bool
    title: str
    description: str
    expertise: str
    patient_id: int
    created_at: Optional[datetime]
    deleted_at: Optional[datetime]


# PUBLIC_INTERFACE
def format_wire_date(value: Optional[datetime]) -> str:
    """Format a timestamp for the wire, or return an empty string for None."""
    if value is None:
        return ""
    return value.strftime(WIRE_DATE_FORMAT)


# PUBLIC_INTERFACE
def parse_wire_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a wire timestamp (YYYY-MM-DD) into a datetime at midnight.

    Empty strings and None mean "not provided" and yield None.

    Raises:
        ValueError: if the value is not a calendar date in the wire format.
    """
    if value is None or value.strip() == "":
        return None
    try:
        return datetime.strptime(value.strip(), WIRE_DATE_FORMAT)
    except ValueError as e:
        raise ValueError(f"failed to parse created_at {value!r}: expected YYYY-MM-DD") from e


# PUBLIC_INTERFACE
def task_to_wire(entity: TaskEntity) -> Dict[str, Any]:
    """Map a stored task to its wire representation, dropping deleted_at."""
    return {
        "id": entity["id"],
        "completion_state": entity["completion_state"],
        "title": entity["title"],
        "description": entity["description"],
        "expertise": entity["expertise"],
        "patient_id": entity["patient_id"],
        "created_at": format_wire_date(entity["created_at"]),
    }


# PUBLIC_INTERFACE
def task_from_wire(payload: Dict[str, Any]) -> TaskEntity:
    """
    Map a wire task payload to a TaskEntity.

    The created_at string is parsed so malformed input is rejected; deleted_at
    is never accepted from the wire.

    Raises:
        ValueError: if created_at is not in the wire date format.
    """
    created_at = parse_wire_date(payload.get("created_at"))
    return {
        "id": int(payload.get("id") or 0),
        "completion_state": bool(payload.get("completion_state", False)),
        "title": payload.get("title") or "",
        "description": payload.get("description") or "",
        "expertise": payload.get("expertise") or "",
        "patient_id": int(payload.get("patient_id") or 0),
        "created_at": created_at,
        "deleted_at": None,
    }
