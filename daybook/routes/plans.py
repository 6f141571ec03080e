"""
Daily Plan Routes

Load and save one day's plan, edit its todo and schedule lists, and merge
hints extracted from a planner photo. List edits load the stored plan, apply
the edit and save the whole record; a rejected edit returns the plan
unchanged without writing.
"""

from datetime import date

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from daybook.ai_extraction import PlannerImageExtractor, get_extractor
from daybook.auth import require_user
from daybook.clock import local_today, parse_plan_date
from daybook.database import get_db
from daybook.errors import ExtractionParseError
from daybook.models.user import User
from daybook.schemas import (
    DailyPlanDraft,
    PlanResponse,
    PlanUpdate,
    ScheduleItemCreate,
    TodoCreate,
)
from daybook.services.daily_plan import DailyPlanView
from daybook.services.plan_lists import schedule_editor, todo_editor
from daybook.services.plan_store import PlanStore

router = APIRouter(prefix="/plans", tags=["plans"])


def get_plan_date(plan_date: str) -> date:
    try:
        return parse_plan_date(plan_date)
    except ValueError:
        raise HTTPException(status_code=400, detail="Date must be in YYYY-MM-DD format")


def open_view(db: Session, user: User, plan_date: date) -> DailyPlanView:
    view = DailyPlanView(PlanStore(db), user.id, plan_date)
    view.load()
    return view


def plan_response(view: DailyPlanView) -> PlanResponse:
    return PlanResponse(plan=view.draft, exists=view.exists)


def draft_from_update(plan_date: date, update: PlanUpdate) -> DailyPlanDraft:
    return DailyPlanDraft(
        plan_date=plan_date,
        todos=todo_editor.hydrate(update.todos),
        schedule=schedule_editor.hydrate(update.schedule),
        **update.model_dump(exclude={"todos", "schedule"}),
    )


@router.get("/today", response_model=PlanResponse)
async def get_today_plan(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Today's plan in the app timezone."""
    return plan_response(open_view(db, user, local_today()))


@router.get("/{plan_date}", response_model=PlanResponse)
async def get_plan(
    plan_date: date = Depends(get_plan_date),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Stored plan for a date, or the empty default when nothing is saved."""
    return plan_response(open_view(db, user, plan_date))


@router.put("/{plan_date}", response_model=PlanResponse)
async def save_plan(
    update: PlanUpdate,
    plan_date: date = Depends(get_plan_date),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Replace the whole plan for a date."""
    view = DailyPlanView(PlanStore(db), user.id, plan_date)
    view.replace(draft_from_update(plan_date, update))
    view.save()
    return plan_response(view)


@router.post("/{plan_date}/todos", response_model=PlanResponse)
async def create_todo(
    body: TodoCreate,
    plan_date: date = Depends(get_plan_date),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    view = open_view(db, user, plan_date)
    if view.add_todo(body.text):
        view.save()
    return plan_response(view)


@router.post("/{plan_date}/todos/{todo_id}/toggle", response_model=PlanResponse)
async def toggle_todo(
    todo_id: str,
    plan_date: date = Depends(get_plan_date),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    view = open_view(db, user, plan_date)
    if view.toggle_todo(todo_id):
        view.save()
    return plan_response(view)


@router.delete("/{plan_date}/todos/{todo_id}", response_model=PlanResponse)
async def delete_todo(
    todo_id: str,
    plan_date: date = Depends(get_plan_date),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    view = open_view(db, user, plan_date)
    if view.delete_todo(todo_id):
        view.save()
    return plan_response(view)


@router.post("/{plan_date}/schedule", response_model=PlanResponse)
async def create_schedule_item(
    body: ScheduleItemCreate,
    plan_date: date = Depends(get_plan_date),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    view = open_view(db, user, plan_date)
    if view.add_schedule_item(body.time, body.description):
        view.save()
    return plan_response(view)


@router.delete("/{plan_date}/schedule/{item_id}", response_model=PlanResponse)
async def delete_schedule_item(
    item_id: str,
    plan_date: date = Depends(get_plan_date),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    view = open_view(db, user, plan_date)
    if view.delete_schedule_item(item_id):
        view.save()
    return plan_response(view)


@router.post("/{plan_date}/extract")
async def extract_plan(
    plan_date: date = Depends(get_plan_date),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
    extractor: PlannerImageExtractor = Depends(get_extractor),
    image: UploadFile = File(...),
    draft: str = Form(None),
):
    """
    Read a planner photo and merge the hints into a draft. Nothing is saved.

    ``draft`` is the caller's unsaved plan as JSON (PUT body shape); without
    it the stored plan is used. A response with no usable JSON is kept in the
    draft's notes and reported with status 422.
    """
    content_type = image.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Upload must be an image")
    image_bytes = await image.read()
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Please select an image first.")

    if draft:
        try:
            update = PlanUpdate.model_validate_json(draft)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=f"Invalid draft: {e.errors()[0]['msg']}")
        view = DailyPlanView(PlanStore(db), user.id, plan_date)
        view.replace(draft_from_update(plan_date, update))
    else:
        view = open_view(db, user, plan_date)

    try:
        view.analyze_image(extractor, image_bytes, content_type)
    except ExtractionParseError:
        return JSONResponse(
            {
                "success": False,
                "error": "Failed to parse extracted data. Please check the image or enter manually.",
                "plan": view.draft.model_dump(mode="json"),
            },
            status_code=422,
        )

    return {
        "success": True,
        "error": None,
        "plan": view.draft.model_dump(mode="json"),
    }
