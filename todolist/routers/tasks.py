import re
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
from todolist.database import get_db
from todolist.errors import BadRequest
from todolist.repositories.tasks import TaskRepository
from todolist.schemas.task import TaskDeleted, TaskOut
from todolist.services.tasks import TaskService
from todolist.utils.auth import Identity, get_current_identity

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    return TaskService(TaskRepository(db))


_ID_RE = re.compile(r"-?[0-9]+")
# signed 64-bit, the widest INTEGER the database stores
_MAX_ID = 2**63 - 1


def _parse_id(raw: str) -> int:
    """Path ids must be plain ASCII decimal integers within the storable range."""
    if not _ID_RE.fullmatch(raw):
        raise BadRequest("Invalid ID format")
    value = int(raw)
    if not -_MAX_ID - 1 <= value <= _MAX_ID:
        raise BadRequest("Invalid ID format")
    return value


@router.get("", response_model=List[TaskOut])
def list_tasks(identity: Identity = Depends(get_current_identity), service: TaskService = Depends(get_task_service)):
    return service.list(identity)


@router.post("", response_model=TaskOut, status_code=201)
def create_task(
    payload: Dict[str, Any] = Body(...),
    identity: Identity = Depends(get_current_identity),
    service: TaskService = Depends(get_task_service),
):
    return service.create(identity, payload)


@router.put("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: str,
    payload: Dict[str, Any] = Body(...),
    identity: Identity = Depends(get_current_identity),
    service: TaskService = Depends(get_task_service),
):
    return service.update(identity, _parse_id(task_id), payload)


@router.delete("/{task_id}", response_model=TaskDeleted)
def delete_task(
    task_id: str,
    identity: Identity = Depends(get_current_identity),
    service: TaskService = Depends(get_task_service),
):
    deleted = service.delete(identity, _parse_id(task_id))
    return {"message": "Task deleted successfully", "id": deleted}
