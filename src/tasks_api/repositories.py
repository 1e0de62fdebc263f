from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .models import TaskEntity


class StoreError(Exception):
    """Raised by a repository when the backing store fails."""


@dataclass(frozen=True)
class ListQuery:
    """
    Query parameters for listing task ids.
    """
    limit: int = 50
    offset: int = 0
    # Reserved for full-text search; accepted but not applied yet.
    search: Optional[str] = None


# PUBLIC_INTERFACE
class TaskTransaction(ABC):
    """
    Mutations executed inside one transaction.

    Row-count results are None when the backing store cannot report how many
    rows a statement affected.
    """

    @abstractmethod
    def insert(self, task: TaskEntity) -> int:
        """Insert a new task and return its assigned id."""

    @abstractmethod
    def update(self, task: TaskEntity) -> Optional[int]:
        """Overwrite the mutable columns of an active task. Return the affected row count."""

    @abstractmethod
    def soft_delete(self, task_id: int) -> Optional[int]:
        """Mark an active task as deleted. Return the affected row count."""


# PUBLIC_INTERFACE
class TaskRepository(ABC):
    """Abstract repository contract for task storage backends."""

    @abstractmethod
    def create_schema(self) -> None:
        """Create the task table if missing and add columns missing from older schemas."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager[TaskTransaction]:
        """
        Return a context manager scoping one transaction.

        Commits when the block exits normally and rolls back when it raises.
        """

    @abstractmethod
    def get(self, task_id: int) -> Optional[TaskEntity]:
        """Return a task by id whether or not it is deleted, or None if absent."""

    @abstractmethod
    def list_ids(self, query: ListQuery) -> Tuple[List[int], int]:
        """
        Return a page of active task ids and the total number of active tasks.
        - Supports limit/offset
        - Ordered by id
        """

    @abstractmethod
    def list_by_patient(self, patient_id: int) -> List[TaskEntity]:
        """Return every active task of a patient ordered by id."""
