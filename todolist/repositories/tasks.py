import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from todolist.errors import Internal
from todolist.models.task import Task

logger = logging.getLogger(__name__)


class TaskRepository:
    """Persistence for tasks. Every lookup that precedes a mutation is scoped by owner."""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str):
        self.db.rollback()
        logger.exception("Task repository failure during %s", action)
        return Internal()

    def list_for_owner(self, owner_id: int) -> List[Task]:
        try:
            return self.db.query(Task).filter(Task.owner_id == owner_id).order_by(Task.id.desc()).all()
        except SQLAlchemyError:
            raise self._fail("list")

    def create(self, owner_id: int, **fields) -> Task:
        task = Task(owner_id=owner_id, **fields)
        try:
            self.db.add(task)
            self.db.commit()
            self.db.refresh(task)
        except SQLAlchemyError:
            raise self._fail("create")
        return task

    def find_owned(self, task_id: int, owner_id: int) -> Optional[Task]:
        # single query on (id, owner): a foreign task and a missing one look the same
        try:
            return self.db.query(Task).filter(Task.id == task_id, Task.owner_id == owner_id).first()
        except SQLAlchemyError:
            raise self._fail("find")

    def update(self, task: Task, changes: dict) -> Task:
        for field, value in changes.items():
            setattr(task, field, value)
        try:
            self.db.commit()
            self.db.refresh(task)
        except SQLAlchemyError:
            raise self._fail("update")
        return task

    def delete(self, task: Task) -> None:
        try:
            self.db.delete(task)
            self.db.commit()
        except SQLAlchemyError:
            raise self._fail("delete")
