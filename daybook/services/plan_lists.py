"""
Plan List Editors

Ordered todo and schedule lists for a daily plan. Every operation returns a
list; a rejected or unmatched edit returns the input list object itself so
callers can detect a no-op by identity.

Rules:
1. Todos keep insertion order.
2. Schedule items are sorted by time string (plain string comparison, so
   "9:00" sorts after "10:00"; callers zero-pad).
3. Stored data that cannot be parsed hydrates to an empty list.
"""

import json
import logging
import uuid
from typing import Any, Callable, List, Optional, Type

from pydantic import BaseModel, ValidationError

from daybook.schemas import TodoItem, ScheduleItem

logger = logging.getLogger(__name__)


def new_item_id() -> str:
    return uuid.uuid4().hex


class ListEditor:
    """Hydrate, serialize and delete for one item shape."""

    def __init__(self, item_model: Type[BaseModel], sort_key: Optional[Callable] = None):
        self.item_model = item_model
        self.sort_key = sort_key
        self.name = item_model.__name__

    def ordered(self, items: List[BaseModel]) -> List[BaseModel]:
        if self.sort_key is None:
            return list(items)
        # sorted() is stable, so equal times keep entry order
        return sorted(items, key=self.sort_key)

    def hydrate(self, raw: Any) -> List[BaseModel]:
        """Parse a stored list field.

        Accepts the JSON text written by older rows as well as an
        already-decoded list from a JSON column.
        """
        if raw is None:
            return []
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8", errors="replace")
        if isinstance(raw, str):
            if not raw.strip():
                return []
            try:
                raw = json.loads(raw)
            except ValueError:
                logger.warning("Discarding unparsable %s list: %.80r", self.name, raw)
                return []
        if not isinstance(raw, list):
            logger.warning(
                "Discarding %s list stored as %s", self.name, type(raw).__name__
            )
            return []

        items = []
        for entry in raw:
            try:
                items.append(self.item_model.model_validate(entry))
            except ValidationError:
                logger.warning("Dropping malformed %s entry: %.80r", self.name, entry)
        return self.ordered(items)

    def dump(self, items: List[BaseModel]) -> List[dict]:
        """Convert items to the plain documents stored in the JSON column."""
        return [item.model_dump(mode="json") for item in items]

    def serialize(self, items: List[BaseModel]) -> str:
        return json.dumps(self.dump(items))

    def delete(self, items: List[BaseModel], item_id: str) -> List[BaseModel]:
        """Remove the first item with ``item_id``."""
        for index, item in enumerate(items):
            if item.id == item_id:
                return items[:index] + items[index + 1:]
        return items


todo_editor = ListEditor(TodoItem)
schedule_editor = ListEditor(ScheduleItem, sort_key=lambda item: item.time)


# ============================================================
# TODOS
# ============================================================

def add_todo(todos: List[TodoItem], text: str) -> List[TodoItem]:
    """Append a new, not-completed todo. Blank text is ignored."""
    text = (text or "").strip()
    if not text:
        return todos
    return todos + [TodoItem(id=new_item_id(), text=text, completed=False)]


def toggle_todo(todos: List[TodoItem], todo_id: str) -> List[TodoItem]:
    """Flip ``completed`` on the first todo with ``todo_id``."""
    for index, todo in enumerate(todos):
        if todo.id == todo_id:
            flipped = todo.model_copy(update={"completed": not todo.completed})
            return todos[:index] + [flipped] + todos[index + 1:]
    return todos


def delete_todo(todos: List[TodoItem], todo_id: str) -> List[TodoItem]:
    return todo_editor.delete(todos, todo_id)


# ============================================================
# SCHEDULE
# ============================================================

def add_schedule_item(
    schedule: List[ScheduleItem], time: str, description: str
) -> List[ScheduleItem]:
    """Insert an entry and re-sort by time. Blank time or description is ignored."""
    time = (time or "").strip()
    description = (description or "").strip()
    if not time or not description:
        return schedule
    item = ScheduleItem(id=new_item_id(), time=time, description=description)
    return schedule_editor.ordered(schedule + [item])


def delete_schedule_item(schedule: List[ScheduleItem], item_id: str) -> List[ScheduleItem]:
    return schedule_editor.delete(schedule, item_id)
