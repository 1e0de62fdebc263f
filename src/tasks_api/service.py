"""
Request handling for the tasks service.

Every operation runs the same preamble: authenticate the token, require the
``admin`` role, then validate the payload. Only after all three succeed does
an operation touch the repository. Mutations run inside a repository
transaction so a failure leaves no partial state behind.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from .auth import AuthenticationError, Claims, TokenVerifier
from .errors import Internal, InvalidArgument, NotFound, PermissionDenied, Unauthenticated
from .models import TaskEntity, task_from_wire
from .repositories import ListQuery, StoreError, TaskRepository
from .schemas import MAX_PAGINATION_LIMIT, TaskFields, validation_reason

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"
PERMISSION_DENIED_MESSAGE = "You don't have enough permission to access this resource"
TASK_NOT_FOUND_MESSAGE = "task is not found"


# PUBLIC_INTERFACE
class TaskService:
    """
    Admin-only task operations backed by a TaskRepository.

    Args:
        repository: storage backend, shared by all requests.
        verifier: token verification capability, shared by all requests.
    """

    def __init__(self, repository: TaskRepository, verifier: TokenVerifier) -> None:
        self._repository = repository
        self._verifier = verifier

    def _authorize(self, token: str) -> Claims:
        try:
            claims = self._verifier.authenticate(token)
        except AuthenticationError as e:
            raise Unauthenticated(str(e)) from e
        if not claims.has_role(ADMIN_ROLE):
            logger.warning("Rejected call without the %s role", ADMIN_ROLE)
            raise PermissionDenied(PERMISSION_DENIED_MESSAGE)
        return claims

    @staticmethod
    def _validate(task: TaskEntity) -> None:
        try:
            TaskFields(
                title=task["title"],
                description=task["description"],
                expertise=task["expertise"],
                patient_id=task["patient_id"],
            )
        except ValidationError as e:
            raise InvalidArgument(validation_reason(e)) from e

    # PUBLIC_INTERFACE
    def get_task(self, token: str, task_id: int) -> TaskEntity:
        """
        Return the task with the given id, including logically deleted ones.

        Raises:
            Unauthenticated, PermissionDenied, NotFound, Internal
        """
        self._authorize(token)
        try:
            task = self._repository.get(task_id)
        except StoreError as e:
            logger.exception("Fetching task %s failed", task_id)
            raise Internal(f"failed to fetch a task by id: {e}") from e
        if task is None:
            raise NotFound(TASK_NOT_FOUND_MESSAGE)
        return task

    # PUBLIC_INTERFACE
    def get_task_ids(self, token: str, limit: int, offset: int, search: str = "") -> Tuple[List[int], int]:
        """
        Return a page of active task ids and the total number of active tasks.

        The search text is accepted but not applied.

        Raises:
            Unauthenticated, PermissionDenied, InvalidArgument, Internal
        """
        self._authorize(token)
        if offset < 0:
            raise InvalidArgument("offset has to be a non-negative integer")
        if limit <= 0:
            raise InvalidArgument("limit has to be a positive integer")
        if limit > MAX_PAGINATION_LIMIT:
            raise InvalidArgument(f"maximum allowed limit values is {MAX_PAGINATION_LIMIT}")

        query = ListQuery(limit=limit, offset=offset, search=search or None)
        try:
            return self._repository.list_ids(query)
        except StoreError as e:
            logger.exception("Listing task ids failed")
            raise Internal(f"failed to fetch tasks: {e}") from e

    # PUBLIC_INTERFACE
    def create_task(
        self,
        token: str,
        title: str,
        description: str,
        expertise: str,
        patient_id: int,
    ) -> int:
        """
        Create a task and return its id. New tasks always start incomplete.

        Raises:
            Unauthenticated, PermissionDenied, InvalidArgument, Internal
        """
        self._authorize(token)
        task: TaskEntity = {
            "id": 0,
            "completion_state": False,
            "title": title,
            "description": description,
            "expertise": expertise,
            "patient_id": patient_id,
            "created_at": None,
            "deleted_at": None,
        }
        self._validate(task)

        try:
            with self._repository.transaction() as tx:
                task_id = tx.insert(task)
        except StoreError as e:
            logger.exception("Creating a task failed")
            raise Internal(f"failed to create a task: {e}") from e
        logger.info("Created task %s for patient %s", task_id, patient_id)
        return task_id

    # PUBLIC_INTERFACE
    def delete_task(self, token: str, task_id: int) -> None:
        """
        Soft-delete a task.

        NotFound is raised when the store reports that no active task was
        affected. Stores that cannot count affected rows report success.

        Raises:
            Unauthenticated, PermissionDenied, NotFound, Internal
        """
        self._authorize(token)
        try:
            with self._repository.transaction() as tx:
                rows = tx.soft_delete(task_id)
        except StoreError as e:
            logger.exception("Deleting task %s failed", task_id)
            raise Internal(f"failed to delete a task: {e}") from e
        if rows == 0:
            raise NotFound(TASK_NOT_FOUND_MESSAGE)
        logger.info("Deleted task %s", task_id)

    # PUBLIC_INTERFACE
    def update_task(self, token: str, payload: Dict[str, Any], path_id: Optional[int] = None) -> int:
        """
        Overwrite an active task with the given wire payload and return its id.

        When path_id is given it identifies the task; a non-zero payload id
        must agree with it. created_at and deleted_at are never overwritten.
        The update is rolled back as a whole if anything inside the
        transaction fails.

        Raises:
            Unauthenticated, PermissionDenied, InvalidArgument, NotFound, Internal
        """
        self._authorize(token)
        if path_id is not None:
            if payload.get("id") not in (None, 0, path_id):
                raise InvalidArgument("task id in body does not match the path id")
            payload = {**payload, "id": path_id}
        try:
            task = task_from_wire(payload)
        except ValueError as e:
            raise InvalidArgument(str(e)) from e
        self._validate(task)
        if task["id"] == 0:
            raise InvalidArgument("task id is required")

        try:
            with self._repository.transaction() as tx:
                rows = tx.update(task)
                if rows == 0:
                    raise NotFound(TASK_NOT_FOUND_MESSAGE)
        except StoreError as e:
            logger.exception("Updating task %s failed", task["id"])
            raise Internal(f"failed to update a task: {e}") from e
        logger.info("Updated task %s", task["id"])
        return task["id"]

    # PUBLIC_INTERFACE
    def get_tasks_by_patient(self, token: str, patient_id: int) -> List[TaskEntity]:
        """
        Return the active tasks of a patient; an empty list when there are none.

        Raises:
            Unauthenticated, PermissionDenied, Internal
        """
        self._authorize(token)
        try:
            return self._repository.list_by_patient(patient_id)
        except StoreError as e:
            logger.exception("Listing tasks of patient %s failed", patient_id)
            raise Internal(f"failed to fetch tasks: {e}") from e
