"""Client-side task cache kept in step with the server.

The engine mirrors the owner's task list, applies completion toggles
optimistically and, whenever a mutation fails, throws the local guess away by
refetching the authoritative list. Create, edit and delete are not applied
locally at all: they wait for the server and then refetch.
"""
import contextlib
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union

import httpx
from todolist.client.api import ApiClient, ApiError, SessionExpired, error_message
from todolist.config import PASSWORD_MIN_LENGTH
from todolist.utils.dates import parse_date

logger = logging.getLogger(__name__)


class ViewState(str, Enum):
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class TaskFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass
class CachedTask:
    id: int
    title: str
    description: str = ""
    assignee: str = ""
    priority: str = "medium"
    category: str = ""
    deadline: str = ""
    completed: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def status(self) -> str:
        return TaskFilter.COMPLETED.value if self.completed else TaskFilter.ACTIVE.value

    @classmethod
    def from_record(cls, raw: Dict[str, Any]) -> "CachedTask":
        return cls(
            id=int(raw["id"]),
            title=raw.get("title") or "",
            description=raw.get("description") or "",
            assignee=raw.get("assignee") or "",
            priority=raw.get("priority") or "medium",
            category=raw.get("category") or "",
            deadline=raw.get("deadline") or "",
            completed=bool(raw.get("completed")),
            created_at=raw.get("createdAt"),
            updated_at=raw.get("updatedAt"),
        )


def is_task_overdue(task: CachedTask, today: date) -> bool:
    """Open task whose DD.MM.YYYY deadline falls before ``today``."""
    if task.completed or not task.deadline:
        return False
    deadline = parse_date(task.deadline)
    if deadline is None:
        return False
    return deadline < today


@dataclass(frozen=True)
class TaskRow:
    task: CachedTask
    status: str
    overdue: bool


@dataclass(frozen=True)
class ListView:
    """What a task-list screen shows after a render."""

    state: ViewState
    filter: TaskFilter
    rows: Tuple[TaskRow, ...]
    active_count: int
    empty_message: Optional[str]


class TaskSyncEngine:
    def __init__(
        self,
        http: httpx.Client,
        notify: Optional[Callable[[str], None]] = None,
        on_render: Optional[Callable[[ListView], None]] = None,
        today: Callable[[], date] = date.today,
    ):
        self.api = ApiClient(http, on_unauthorized=self._session_lost)
        self.notify = notify or (lambda message: logger.info("%s", message))
        self.on_render = on_render
        self.today = today

        self.current_user: Optional[Dict[str, Any]] = None
        self.tasks: List[CachedTask] = []
        self.filter = TaskFilter.ALL
        self.state = ViewState.LOADED
        # ids with a completion toggle in flight
        self.pending: Set[int] = set()
        self.view: Optional[ListView] = None
        self._owns_http = False

    @classmethod
    def for_url(cls, base_url: str, **kwargs) -> "TaskSyncEngine":
        engine = cls(httpx.Client(base_url=base_url), **kwargs)
        engine._owns_http = True
        return engine

    def close(self) -> None:
        """Close the HTTP client if this engine created it."""
        if self._owns_http:
            self.api.http.close()

    def __enter__(self) -> "TaskSyncEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def logged_in(self) -> bool:
        return self.current_user is not None

    # ---- rendering ----

    def visible_tasks(self) -> List[CachedTask]:
        if self.filter is TaskFilter.ALL:
            return list(self.tasks)
        return [t for t in self.tasks if t.status == self.filter.value]

    def render(self) -> ListView:
        today = self.today()
        visible = self.visible_tasks()
        empty_message = None
        if not visible:
            if self.tasks:
                empty_message = f"You have no {self.filter.value} tasks."
            else:
                empty_message = "You have no tasks yet."
        self.view = ListView(
            state=self.state,
            filter=self.filter,
            rows=tuple(TaskRow(task=t, status=t.status, overdue=is_task_overdue(t, today)) for t in visible),
            active_count=sum(1 for t in self.tasks if not t.completed),
            empty_message=empty_message,
        )
        if self.on_render is not None:
            self.on_render(self.view)
        return self.view

    def set_filter(self, task_filter: Union[TaskFilter, str]) -> None:
        task_filter = TaskFilter(task_filter)
        if task_filter is self.filter:
            return
        self.filter = task_filter
        self.render()

    # ---- helpers ----

    def _find(self, task_id: int) -> Optional[CachedTask]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def _session_lost(self) -> None:
        logger.info("Session rejected by server, switching to logged-out state")
        self.current_user = None
        self.tasks = []
        self.pending.clear()
        self.state = ViewState.LOADED
        self.render()

    @staticmethod
    def _body(response: httpx.Response, fallback: str) -> Any:
        if response.is_error:
            details = []
            with contextlib.suppress(ValueError):
                payload = response.json()
                if isinstance(payload, dict):
                    details = payload.get("details") or []
            raise ApiError(error_message(response, fallback), response.status_code, details)
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError("Unexpected response from the server.", response.status_code) from exc

    @staticmethod
    def _to_task(raw: Any) -> CachedTask:
        try:
            return CachedTask.from_record(raw)
        except (KeyError, TypeError, ValueError) as exc:
            raise ApiError("Unexpected response from the server.") from exc

    def _to_tasks(self, records: Any) -> List[CachedTask]:
        if not isinstance(records, list):
            raise ApiError("Unexpected response from the server.")
        return [self._to_task(r) for r in records]

    # ---- session ----

    def _authenticate(self, path: str, email: str, password: str, success: str) -> bool:
        try:
            response = self.api.request("POST", path, json={"email": email, "password": password}, session_required=False)
            body = self._body(response, "Authentication failed.")
        except ApiError as exc:
            self.notify(exc.message)
            return False
        self.current_user = body["user"]
        self.notify(success)
        self.fetch()
        return True

    def register(self, email: str, password: str) -> bool:
        email = email.strip()
        if not email or not password:
            self.notify("Please fill in all fields.")
            return False
        if len(password) < PASSWORD_MIN_LENGTH:
            self.notify(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long.")
            return False
        return self._authenticate("/register", email, password, "Registration successful.")

    def login(self, email: str, password: str) -> bool:
        email = email.strip()
        if not email or not password:
            self.notify("Please fill in all fields.")
            return False
        return self._authenticate("/login", email, password, "Logged in.")

    def logout(self) -> None:
        try:
            self.api.request("POST", "/logout", session_required=False)
        except ApiError as exc:
            # the local session is dropped regardless
            logger.warning("Logout request failed: %s", exc.message)
        self.current_user = None
        self.tasks = []
        self.pending.clear()
        self.notify("Logged out.")
        self.render()

    def check_auth(self) -> bool:
        try:
            user = self._body(self.api.request("GET", "/me"), "Failed to load the current user.")
        except ApiError:
            return False
        if not isinstance(user, dict) or "email" not in user:
            logger.warning("Unexpected /me response: %r", user)
            return False
        self.current_user = user
        return True

    # ---- tasks ----

    def fetch(self) -> bool:
        """Replace the cache with the server's list. On failure the cache is emptied."""
        self.state = ViewState.LOADING
        self.render()
        try:
            records = self._body(self.api.request("GET", "/tasks"), "Failed to load tasks from the server.")
            tasks = self._to_tasks(records)
        except ApiError as exc:
            logger.warning("Task fetch failed: %s", exc.message)
            self.notify(exc.message)
            self.tasks = []
            self.state = ViewState.ERROR
            self.render()
            return False

        tasks.sort(key=lambda t: t.id, reverse=True)
        self.tasks = tasks
        self.state = ViewState.LOADED
        self.render()
        return True

    def toggle(self, task_id: int, completed: bool) -> bool:
        task = self._find(task_id)
        if task is not None:
            task.completed = completed
            self.render()

        self.pending.add(task_id)
        try:
            updated = self._to_task(
                self._body(
                    self.api.request("PUT", f"/tasks/{task_id}", json={"completed": completed}),
                    "Failed to change task status.",
                )
            )
        except ApiError as exc:
            self.pending.discard(task_id)
            logger.info("Toggle of task %s failed, resynchronising: %s", task_id, exc.message)
            self.notify(f"{exc.message} Reverting change.")
            if not isinstance(exc, SessionExpired):
                self.fetch()
            return False

        self.pending.discard(task_id)
        task = self._find(task_id)
        if task is not None:
            self.tasks[self.tasks.index(task)] = updated
        self.notify("Task status updated.")
        self.render()
        return True

    def _mutate(self, method: str, url: str, payload: Optional[Dict[str, Any]], fallback: str, success: str) -> bool:
        try:
            self._body(self.api.request(method, url, json=payload), fallback)
        except ApiError as exc:
            message = exc.message
            if exc.details:
                message = f"{message}: {'; '.join(exc.details)}"
            self.notify(message)
            return False
        self.notify(success)
        self.fetch()
        return True

    def create(self, payload: Dict[str, Any]) -> bool:
        title = payload.get("title")
        if not isinstance(title, str) or not title.strip():
            self.notify("Task title is required.")
            return False
        return self._mutate("POST", "/tasks", payload, "Failed to save task.", "Task added.")

    def edit(self, task_id: int, payload: Dict[str, Any]) -> bool:
        if "title" in payload and (not isinstance(payload["title"], str) or not payload["title"].strip()):
            self.notify("Task title is required.")
            return False
        return self._mutate("PUT", f"/tasks/{task_id}", payload, "Failed to edit task.", "Task updated.")

    def delete(self, task_id: int) -> bool:
        try:
            response = self.api.request("DELETE", f"/tasks/{task_id}")
        except ApiError as exc:
            self.notify(exc.message)
            return False

        if response.status_code == 404:
            self.notify("Task no longer exists.")
        else:
            try:
                self._body(response, "Failed to delete task.")
            except ApiError as exc:
                self.notify(exc.message)
                return False
            self.notify("Task deleted.")
        self.fetch()
        return response.status_code != 404
