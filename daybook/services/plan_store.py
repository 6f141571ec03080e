"""
Plan Store

Row access for ``daily_plans``. Lookups distinguish "no row" from other
failures, and writes are a single upsert keyed by (user_id, plan_date).
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from sqlalchemy.orm import Session

from daybook.errors import PlanNotFound, PlanStoreError
from daybook.models import DailyPlan

logger = logging.getLogger(__name__)

NATIVE_UPSERT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class PlanStore:
    """Reads and writes DailyPlan rows for one database session."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int, plan_date: date) -> DailyPlan:
        """Fetch the row for (user_id, plan_date).

        Raises PlanNotFound when no row exists and PlanStoreError for any
        other failure.
        """
        try:
            return (
                self.db.query(DailyPlan)
                .filter(DailyPlan.user_id == user_id, DailyPlan.plan_date == plan_date)
                .one()
            )
        except NoResultFound:
            raise PlanNotFound(f"No plan for {plan_date.isoformat()}")
        except SQLAlchemyError as e:
            logger.error("Plan lookup failed for user %s on %s: %s", user_id, plan_date, e)
            raise PlanStoreError(str(e)) from e

    def upsert(self, user_id: int, plan_date: date, values: Dict[str, Any]) -> None:
        """Insert or fully replace the row for (user_id, plan_date)."""
        now = datetime.utcnow()
        try:
            insert = NATIVE_UPSERT.get(self.db.get_bind().dialect.name)
            if insert is not None:
                stmt = insert(DailyPlan).values(
                    user_id=user_id,
                    plan_date=plan_date,
                    created_at=now,
                    updated_at=now,
                    **values,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=["user_id", "plan_date"],
                    set_=dict(values, updated_at=now),
                )
                self.db.execute(stmt)
                self.db.commit()
            else:
                self._probe_then_write(user_id, plan_date, values)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Plan save failed for user %s on %s: %s", user_id, plan_date, e)
            raise PlanStoreError(str(e)) from e

    def _probe_then_write(self, user_id: int, plan_date: date, values: Dict[str, Any]) -> None:
        """Upsert for dialects without ON CONFLICT support.

        A concurrent insert for the same key trips the unique constraint; the
        loser retries once as an update.
        """
        try:
            plan = self.get(user_id, plan_date)
        except PlanNotFound:
            plan = None

        if plan is None:
            self.db.add(DailyPlan(user_id=user_id, plan_date=plan_date, **values))
            try:
                self.db.commit()
                return
            except IntegrityError:
                self.db.rollback()
                plan = self.get(user_id, plan_date)

        for key, value in values.items():
            setattr(plan, key, value)
        self.db.commit()

    def list_between(self, user_id: int, start: date, end: date) -> List[DailyPlan]:
        """Rows with start <= plan_date <= end, oldest first."""
        try:
            return (
                self.db.query(DailyPlan)
                .filter(
                    DailyPlan.user_id == user_id,
                    DailyPlan.plan_date >= start,
                    DailyPlan.plan_date <= end,
                )
                .order_by(DailyPlan.plan_date)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error("Plan history lookup failed for user %s: %s", user_id, e)
            raise PlanStoreError(str(e)) from e
