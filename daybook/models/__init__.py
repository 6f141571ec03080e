from daybook.models.user import User
from daybook.models.daily_plan import DailyPlan

__all__ = [
    "User",
    "DailyPlan",
]
