from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query, Request, Response, status

from ..auth import get_bearer_token
from ..models import task_to_wire
from ..schemas import (
    INT32_MAX,
    INT32_MIN,
    CreateTaskRequest,
    GetTaskResponse,
    TaskIdResponse,
    TaskIdsPage,
    TaskIn,
    TaskOut,
    TasksByPatientResponse,
)
from ..service import TaskService
from ..utils import pagination_envelope

router = APIRouter(
    prefix="/api/v1",
    tags=["tasks"],
)

_ERROR_RESPONSES = {
    401: {"description": "Missing, invalid or expired token"},
    403: {"description": "Caller lacks the admin role"},
}


def get_task_service(request: Request) -> TaskService:
    """
    Dependency returning the service built at application startup.
    """
    return request.app.state.task_service


# PUBLIC_INTERFACE
@router.get(
    "/tasks/{task_id}",
    response_model=GetTaskResponse,
    summary="Get Task",
    description="Get a single task by id. Logically deleted tasks are returned as well.",
    responses={**_ERROR_RESPONSES, 404: {"description": "Task not found"}},
)
def get_task(
    task_id: int = Path(..., ge=INT32_MIN, le=INT32_MAX),
    token: str = Depends(get_bearer_token),
    service: TaskService = Depends(get_task_service),
) -> GetTaskResponse:
    """
    Retrieve a single task by its id.
    """
    task = service.get_task(token, task_id)
    return GetTaskResponse(task=TaskOut(**task_to_wire(task)))


# PUBLIC_INTERFACE
@router.get(
    "/tasks/",
    response_model=TaskIdsPage,
    summary="List Task IDs",
    description=(
        "List ids of tasks that are not deleted, ordered by id.\n\n"
        "Query parameters:\n"
        "- limit: max number of ids to return (1..50)\n"
        "- offset: number of ids to skip (>=0)\n"
        "- search: reserved for full-text search; currently ignored\n\n"
        "Returns the page of ids and the total count of matching tasks."
    ),
    responses={**_ERROR_RESPONSES, 400: {"description": "Invalid pagination parameters"}},
)
def list_task_ids(
    limit: int = Query(0, ge=INT32_MIN, le=INT32_MAX, description="Maximum number of ids to return"),
    offset: int = Query(0, ge=INT32_MIN, le=INT32_MAX, description="Number of ids to skip"),
    search: str = Query("", description="Reserved for full-text search; ignored"),
    token: str = Depends(get_bearer_token),
    service: TaskService = Depends(get_task_service),
) -> TaskIdsPage:
    """
    List task ids with pagination.
    """
    ids, count = service.get_task_ids(token, limit=limit, offset=offset, search=search)
    return TaskIdsPage(**pagination_envelope(results=ids, count=count, limit=limit, offset=offset))


# PUBLIC_INTERFACE
@router.post(
    "/tasks/",
    response_model=TaskIdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new task and return its id. New tasks always start incomplete.",
    responses={**_ERROR_RESPONSES, 400: {"description": "Validation error"}},
)
def create_task(
    payload: CreateTaskRequest,
    token: str = Depends(get_bearer_token),
    service: TaskService = Depends(get_task_service),
) -> TaskIdResponse:
    """
    Create a new task.
    """
    task_id = service.create_task(
        token,
        title=payload.title,
        description=payload.description,
        expertise=payload.expertise,
        patient_id=payload.patient_id,
    )
    return TaskIdResponse(id=task_id)


# PUBLIC_INTERFACE
@router.put(
    "/tasks/{task_id}",
    response_model=TaskIdResponse,
    summary="Update Task",
    description=(
        "Replace the mutable fields of a task. The creation date is never changed; "
        "a non-zero id in the body must match the path id."
    ),
    responses={
        **_ERROR_RESPONSES,
        400: {"description": "Validation error"},
        404: {"description": "Task not found"},
    },
)
def update_task(
    payload: TaskIn,
    task_id: int = Path(..., ge=INT32_MIN, le=INT32_MAX),
    token: str = Depends(get_bearer_token),
    service: TaskService = Depends(get_task_service),
) -> TaskIdResponse:
    """
    Full update of a task.
    """
    return TaskIdResponse(id=service.update_task(token, payload.model_dump(), path_id=task_id))


# PUBLIC_INTERFACE
@router.delete(
    "/tasks/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task",
    description="Soft-delete a task by id.",
    responses={
        **_ERROR_RESPONSES,
        204: {"description": "Task deleted"},
        404: {"description": "Task not found"},
    },
)
def delete_task(
    task_id: int = Path(..., ge=INT32_MIN, le=INT32_MAX),
    token: str = Depends(get_bearer_token),
    service: TaskService = Depends(get_task_service),
) -> Response:
    """
    Delete a task. Returns 204 on success, 404 if no active task has this id.
    """
    service.delete_task(token, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
@router.get(
    "/patients/{patient_id}/tasks",
    response_model=TasksByPatientResponse,
    summary="List Patient Tasks",
    description="List every task of a patient that is not deleted. Empty when there are none.",
    responses=_ERROR_RESPONSES,
)
def get_tasks_by_patient(
    patient_id: int = Path(..., ge=INT32_MIN, le=INT32_MAX),
    token: str = Depends(get_bearer_token),
    service: TaskService = Depends(get_task_service),
) -> TasksByPatientResponse:
    """
    Retrieve all tasks of a patient.
    """
    tasks = service.get_tasks_by_patient(token, patient_id)
    return TasksByPatientResponse(tasks=[TaskOut(**task_to_wire(t)) for t in tasks])
