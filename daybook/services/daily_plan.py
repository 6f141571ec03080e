"""
Daily Plan Service

Holds one user's plan for one date in memory, loads it from and saves it to
the PlanStore, and applies list edits and image-extraction hints to it.
"""

import logging
from datetime import date
from typing import Optional

from daybook.errors import (
    ExtractionParseError,
    NotAuthenticatedError,
    PlanLoadError,
    PlanNotFound,
    PlanSaveError,
    PlanStoreError,
)
from daybook.models import DailyPlan
from daybook.schemas import MAX_WATER_GLASSES, DailyPlanDraft
from daybook.services.plan_lists import (
    add_schedule_item,
    add_todo,
    delete_schedule_item,
    delete_todo,
    schedule_editor,
    todo_editor,
    toggle_todo,
)
from daybook.services.extraction import merge_extraction
from daybook.services.plan_store import PlanStore

logger = logging.getLogger(__name__)

SCALAR_FIELDS = DailyPlan.SCALAR_FIELDS


def empty_plan(plan_date: date) -> DailyPlanDraft:
    """The unsaved default shown for a date with no stored plan."""
    return DailyPlanDraft(plan_date=plan_date)


def draft_from_row(plan: DailyPlan) -> DailyPlanDraft:
    scalars = {field: getattr(plan, field) or "" for field in SCALAR_FIELDS}
    return DailyPlanDraft(
        plan_date=plan.plan_date,
        water_intake_glasses=min(max(plan.water_intake_glasses or 0, 0), MAX_WATER_GLASSES),
        todos=todo_editor.hydrate(plan.todos),
        schedule=schedule_editor.hydrate(plan.schedule),
        created_at=plan.created_at,
        updated_at=plan.updated_at,
        **scalars,
    )


def row_values(draft: DailyPlanDraft) -> dict:
    """Column values for a full-row write of ``draft``."""
    values = {field: getattr(draft, field) for field in SCALAR_FIELDS}
    values["water_intake_glasses"] = draft.water_intake_glasses
    values["todos"] = todo_editor.dump(draft.todos)
    values["schedule"] = schedule_editor.dump(draft.schedule)
    return values


class DailyPlanView:
    """The plan for one (user, date) while a caller works on it.

    ``user_id`` is None when nobody is signed in; load and save then fail
    before touching the store.
    """

    def __init__(self, store: PlanStore, user_id: Optional[int], plan_date: date):
        self.store = store
        self.user_id = user_id
        self.plan_date = plan_date
        self.draft = empty_plan(plan_date)
        self.exists = False

    def _require_user(self):
        if self.user_id is None:
            raise NotAuthenticatedError("Please log in to load or save your plan.")

    def load(self) -> DailyPlanDraft:
        """Replace the in-memory plan with the stored one, or the empty default."""
        self._require_user()
        try:
            row = self.store.get(self.user_id, self.plan_date)
        except PlanNotFound:
            self.draft = empty_plan(self.plan_date)
            self.exists = False
            return self.draft
        except PlanStoreError as e:
            # Never leave another date's data on screen
            self.draft = empty_plan(self.plan_date)
            self.exists = False
            raise PlanLoadError("Failed to load daily plan.") from e

        self.draft = draft_from_row(row)
        self.exists = True
        return self.draft

    def save(self) -> None:
        """Write the whole in-memory plan as the row for this date."""
        self._require_user()
        try:
            self.store.upsert(self.user_id, self.plan_date, row_values(self.draft))
        except PlanStoreError as e:
            raise PlanSaveError(f"Failed to save plan: {e}") from e
        self.exists = True
        logger.info("Saved plan for user %s on %s", self.user_id, self.plan_date)

    def replace(self, draft: DailyPlanDraft) -> DailyPlanDraft:
        """Swap in a whole new draft for this date, keeping store timestamps."""
        self.draft = draft.model_copy(
            update={
                "plan_date": self.plan_date,
                "created_at": self.draft.created_at,
                "updated_at": self.draft.updated_at,
            }
        )
        return self.draft

    def update_fields(self, **changes) -> DailyPlanDraft:
        """Set scalar fields and the water counter."""
        unknown = set(changes) - set(SCALAR_FIELDS) - {"water_intake_glasses"}
        if unknown:
            raise ValueError(f"Unknown plan fields: {', '.join(sorted(unknown))}")
        # Validated like a fresh draft; pydantic.ValidationError is a ValueError
        self.draft = DailyPlanDraft.model_validate({**self.draft.model_dump(), **changes})
        return self.draft

    # List edits return True when the list changed

    def add_todo(self, text: str) -> bool:
        return self._set_list("todos", add_todo(self.draft.todos, text))

    def toggle_todo(self, todo_id: str) -> bool:
        return self._set_list("todos", toggle_todo(self.draft.todos, todo_id))

    def delete_todo(self, todo_id: str) -> bool:
        return self._set_list("todos", delete_todo(self.draft.todos, todo_id))

    def add_schedule_item(self, time: str, description: str) -> bool:
        return self._set_list(
            "schedule", add_schedule_item(self.draft.schedule, time, description)
        )

    def delete_schedule_item(self, item_id: str) -> bool:
        return self._set_list(
            "schedule", delete_schedule_item(self.draft.schedule, item_id)
        )

    def _set_list(self, field: str, items) -> bool:
        if items is getattr(self.draft, field):
            return False
        self.draft = self.draft.model_copy(update={field: items})
        return True

    def apply_extraction(self, raw_text: str) -> DailyPlanDraft:
        """Merge an extraction response into the draft without saving.

        A response with no usable JSON still lands in the notes, and the
        ExtractionParseError is re-raised for the caller to report.
        """
        try:
            self.draft = merge_extraction(self.draft, raw_text)
        except ExtractionParseError as e:
            self.draft = e.draft
            raise
        return self.draft

    def analyze_image(self, extractor, image_bytes: bytes, mime_type: str) -> DailyPlanDraft:
        """Ask ``extractor`` to read a planner photo and merge what it finds."""
        raw_text = extractor.extract(image_bytes, mime_type)
        return self.apply_extraction(raw_text)
