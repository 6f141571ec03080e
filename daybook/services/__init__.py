from daybook.services.plan_lists import (
    todo_editor,
    schedule_editor,
    add_todo,
    toggle_todo,
    delete_todo,
    add_schedule_item,
    delete_schedule_item,
)
from daybook.services.plan_store import PlanStore
from daybook.services.daily_plan import DailyPlanView, empty_plan
from daybook.services.extraction import merge_extraction, parse_extraction, apply_patch
from daybook.services.history import list_month

__all__ = [
    'todo_editor',
    'schedule_editor',
    'add_todo',
    'toggle_todo',
    'delete_todo',
    'add_schedule_item',
    'delete_schedule_item',
    'PlanStore',
    'DailyPlanView',
    'empty_plan',
    'merge_extraction',
    'parse_extraction',
    'apply_patch',
    'list_month',
]
