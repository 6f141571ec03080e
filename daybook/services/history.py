"""
Plan History Service

Month-at-a-glance summaries of the days a user has recorded, for the
calendar view.
"""

import calendar
from datetime import date

from daybook.schemas import HistoryDay, HistoryMonth
from daybook.services.plan_lists import schedule_editor, todo_editor
from daybook.services.plan_store import PlanStore


def month_bounds(year: int, month: int) -> tuple:
    """First and last date of a month. Raises ValueError for a bad month."""
    if not 1 <= month <= 12:
        raise ValueError("Month must be between 1 and 12")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def list_month(store: PlanStore, user_id: int, year: int, month: int) -> HistoryMonth:
    start, end = month_bounds(year, month)
    days = []
    for plan in store.list_between(user_id, start, end):
        todos = todo_editor.hydrate(plan.todos)
        days.append(HistoryDay(
            plan_date=plan.plan_date,
            mood=plan.mood or "",
            weather=plan.weather or "",
            todo_count=len(todos),
            todos_completed=sum(1 for todo in todos if todo.completed),
            schedule_count=len(schedule_editor.hydrate(plan.schedule)),
            water_intake_glasses=max(plan.water_intake_glasses or 0, 0),
        ))
    return HistoryMonth(year=year, month=month, days=days)
