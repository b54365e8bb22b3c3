import logging
from typing import Any, List, Mapping

from pydantic import ValidationError
from todolist.errors import NotFound, ValidationFailed
from todolist.models.task import Task
from todolist.repositories.tasks import TaskRepository
from todolist.schemas.task import TaskCreate, TaskUpdate
from todolist.utils.auth import Identity
from todolist.utils.validation import validate_task_payload

logger = logging.getLogger(__name__)


def _validated(payload: Mapping[str, Any], is_update: bool):
    errors = validate_task_payload(payload, is_update=is_update)
    if errors:
        raise ValidationFailed("Validation failed", details=errors)
    schema = TaskUpdate if is_update else TaskCreate
    try:
        return schema.model_validate(dict(payload))
    except ValidationError as exc:
        # payload already passed the field rules; this only trips on shapes they do not cover
        raise ValidationFailed("Validation failed", details=[e["msg"] for e in exc.errors()])


class TaskService:
    """Owner-scoped task operations on top of a TaskRepository."""

    def __init__(self, repository: TaskRepository):
        self.repository = repository

    def list(self, identity: Identity) -> List[Task]:
        return self.repository.list_for_owner(identity.user_id)

    def create(self, identity: Identity, payload: Mapping[str, Any]) -> Task:
        data = _validated(payload, is_update=False)
        task = self.repository.create(identity.user_id, completed=False, **data.model_dump(exclude={"completed"}))
        logger.info("Task %s created by user %s", task.id, identity.user_id)
        return task

    def update(self, identity: Identity, task_id: int, payload: Mapping[str, Any]) -> Task:
        data = _validated(payload, is_update=True)
        task = self.repository.find_owned(task_id, identity.user_id)
        if task is None:
            raise NotFound()
        # only keys present in the payload are applied; omitted keys keep their values
        changes = data.changes()
        task = self.repository.update(task, changes)
        logger.info("Task %s updated by user %s (%s)", task.id, identity.user_id, ", ".join(changes) or "no fields")
        return task

    def delete(self, identity: Identity, task_id: int) -> int:
        task = self.repository.find_owned(task_id, identity.user_id)
        if task is None:
            raise NotFound()
        self.repository.delete(task)
        logger.info("Task %s deleted by user %s", task_id, identity.user_id)
        return task_id
