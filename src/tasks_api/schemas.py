from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field, ValidationError

MAX_PAGINATION_LIMIT = 50
MAX_PATIENT_ID = 100

# Integers on the wire are int32.
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


# PUBLIC_INTERFACE
class TaskFields(BaseModel):
    """
    Shared validator for task payloads.

    Request bodies are parsed with loose shapes so that authentication runs
    before field rules; the service then checks the fields against this model.
    """

    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    expertise: str = Field(..., min_length=1, max_length=100)
    patient_id: int = Field(..., ge=1, le=MAX_PATIENT_ID)


def validation_reason(exc: ValidationError) -> str:
    """Render a pydantic ValidationError as a single human-readable line."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "task"
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


# PUBLIC_INTERFACE
class CreateTaskRequest(BaseModel):
    """
    Body of a create request. Omitted fields default to empty values and are
    rejected by the service validator where required.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Change bandage",
                "description": "Left forearm, twice a day",
                "expertise": "nurse",
                "patient_id": 7,
            }
        }
    )

    title: str = Field(default="", description="Short title of the task")
    description: str = Field(default="", description="Optional detailed description")
    expertise: str = Field(default="", description="Skill required to carry out the task")
    patient_id: int = Field(default=0, ge=INT32_MIN, le=INT32_MAX, description="Patient the task belongs to")


# PUBLIC_INTERFACE
class TaskIn(BaseModel):
    """Full task payload accepted by the update endpoint."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 12,
                "completion_state": True,
                "title": "Change bandage",
                "description": "Left forearm, twice a day",
                "expertise": "nurse",
                "patient_id": 7,
                "created_at": "2025-01-31",
            }
        }
    )

    id: int = Field(
        default=0, ge=INT32_MIN, le=INT32_MAX, description="Task id; must match the path id when given"
    )
    completion_state: bool = Field(default=False, description="Completion status flag")
    title: str = Field(default="", description="Short title of the task")
    description: str = Field(default="", description="Optional detailed description")
    expertise: str = Field(default="", description="Skill required to carry out the task")
    patient_id: int = Field(default=0, ge=INT32_MIN, le=INT32_MAX, description="Patient the task belongs to")
    created_at: str = Field(
        default="",
        description="Creation date (YYYY-MM-DD). Parsed for validity but never written",
    )


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """Task as returned by the API. The soft-delete timestamp is never exposed."""

    id: int = Field(..., description="Unique identifier of the task")
    completion_state: bool = Field(..., description="Completion status flag")
    title: str = Field(..., description="Short title of the task")
    description: str = Field(..., description="Detailed description")
    expertise: str = Field(..., description="Skill required to carry out the task")
    patient_id: int = Field(..., description="Patient the task belongs to")
    created_at: str = Field(..., description="Creation date (YYYY-MM-DD)")


class GetTaskResponse(BaseModel):
    task: TaskOut


class TaskIdsPage(BaseModel):
    """
    Envelope for the paginated id listing.
    """
    count: int = Field(..., description="Total number of tasks matching the query")
    results: List[int] = Field(..., description="Task ids of the requested page")
    limit: int = Field(..., description="Limit applied to the query")
    offset: int = Field(..., description="Offset applied to the query")


class TaskIdResponse(BaseModel):
    id: int


class TasksByPatientResponse(BaseModel):
    tasks: List[TaskOut]
