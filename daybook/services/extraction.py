"""
Planner Image Extraction Merge

Turns the free-form text returned by the image extraction service into an
optional patch and merges it into a draft plan. The service's output is a
hint: anything missing, blank or malformed leaves the draft value alone.
"""

import json
import logging
import math
import re
from typing import Any, List, Optional

from pydantic import BaseModel, ValidationError, field_validator

from daybook.errors import ExtractionParseError
from daybook.schemas import MAX_WATER_GLASSES, DailyPlanDraft, ScheduleItem, TodoItem
from daybook.services.plan_lists import new_item_id, schedule_editor

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = (
    "Extract the daily plan written on this planner page. Respond with a single "
    "JSON object inside a ```json code block and nothing else. Use exactly these "
    "keys: \"todos\" (array of strings, one per task), \"schedule\" (array of "
    "objects with \"time\" as a zero-padded 24-hour \"HH:MM\" string and "
    "\"description\"), \"breakfast\", \"lunch\", \"dinner\", \"snacks\", "
    "\"water_intake_glasses\" (number of glasses), \"mood\", \"weather\", "
    "\"notes\", \"high_level_note\". If a field is not on the page, use an empty "
    "string, an empty array, or 0 for water_intake_glasses."
)

UNPARSED_OPEN = "[Unparsed planner extraction]"
UNPARSED_CLOSE = "[/Unparsed planner extraction]"

TEXT_FIELDS = (
    "breakfast",
    "lunch",
    "dinner",
    "snacks",
    "mood",
    "weather",
    "notes",
    "high_level_note",
)

FENCED_BLOCK_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)
SCHEDULE_LINE_RE = re.compile(r"^\s*(\d{1,2}:\d{2})\s*[-:]?\s*(.+?)\s*$")
BULLET_RE = re.compile(r"^\s*(?:[-*•]|\[[ xX]?\]|\d+[.)])\s*")


class ScheduleHint(BaseModel):
    time: str
    description: str


class ExtractionPatch(BaseModel):
    """Field-by-field hints; None means "keep what the draft has"."""
    breakfast: Optional[str] = None
    lunch: Optional[str] = None
    dinner: Optional[str] = None
    snacks: Optional[str] = None
    mood: Optional[str] = None
    weather: Optional[str] = None
    notes: Optional[str] = None
    high_level_note: Optional[str] = None
    water_intake_glasses: Optional[int] = None
    todos: Optional[List[str]] = None
    schedule: Optional[List[ScheduleHint]] = None

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Optional[str]:
        if isinstance(v, bool) or v is None:
            return None
        if isinstance(v, (int, float)):
            v = str(v)
        elif isinstance(v, list):
            v = ", ".join(str(part).strip() for part in v if str(part).strip())
        if not isinstance(v, str):
            return None
        return v.strip() or None

    @field_validator("water_intake_glasses", mode="before")
    @classmethod
    def coerce_water(cls, v: Any) -> Optional[int]:
        if isinstance(v, bool) or v is None:
            return None
        if isinstance(v, float):
            # json.loads accepts Infinity, NaN and 1e999
            v = int(v) if math.isfinite(v) else None
        elif isinstance(v, str):
            match = re.search(r"\d+", v)
            digits = match.group(0) if match else ""
            v = int(digits) if 0 < len(digits) <= 6 else None
        if not isinstance(v, int) or v <= 0 or v > MAX_WATER_GLASSES:
            # 0 is how the prompt says "not found"
            return None
        return v

    @field_validator("todos", mode="before")
    @classmethod
    def coerce_todos(cls, v: Any) -> Optional[List[str]]:
        if isinstance(v, str):
            v = v.splitlines()
        if not isinstance(v, list):
            return None
        texts = []
        for entry in v:
            if isinstance(entry, dict):
                entry = entry.get("text") or entry.get("task") or entry.get("title")
            if not isinstance(entry, str):
                continue
            text = BULLET_RE.sub("", entry).strip()
            if text:
                texts.append(text)
        return texts or None

    @field_validator("schedule", mode="before")
    @classmethod
    def coerce_schedule(cls, v: Any) -> Optional[List[dict]]:
        if isinstance(v, str):
            v = v.splitlines()
        if not isinstance(v, list):
            return None
        hints = []
        for entry in v:
            if isinstance(entry, str):
                match = SCHEDULE_LINE_RE.match(BULLET_RE.sub("", entry))
                if not match:
                    continue
                time, description = match.groups()
            elif isinstance(entry, dict):
                time = entry.get("time")
                description = (
                    entry.get("description") or entry.get("activity") or entry.get("event")
                )
            else:
                continue
            time = str(time).strip() if time is not None else ""
            if re.fullmatch(r"\d:\d{2}", time):
                time = "0" + time
            description = str(description).strip() if description is not None else ""
            if time and description:
                hints.append({"time": time, "description": description})
        return hints or None


def find_json_object(text: str) -> dict:
    """Locate the JSON object in a model response.

    A fenced code block wins; otherwise the whole text is parsed, then the
    span from the first "{" to the last "}".
    """
    text = text or ""
    candidates = [m.group(1) for m in FENCED_BLOCK_RE.finditer(text)]
    candidates.append(text)
    start, end = text.find("{"), text.rfind("}")
    if 0 <= start < end:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            data = json.loads(candidate.strip())
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    raise ExtractionParseError("No JSON object found in extraction response", raw_text=text)


def parse_extraction(text: str) -> ExtractionPatch:
    """Validate a model response into a patch. Raises ExtractionParseError."""
    data = find_json_object(text)
    try:
        return ExtractionPatch.model_validate(data)
    except ValidationError as e:
        raise ExtractionParseError(f"Extraction response has the wrong shape: {e}", raw_text=text)


def apply_patch(draft: DailyPlanDraft, patch: ExtractionPatch) -> DailyPlanDraft:
    """Return ``draft`` with every present patch field replacing its value.

    Returned todos and schedule entries get fresh ids.
    """
    changes = {}
    for field in TEXT_FIELDS:
        value = getattr(patch, field)
        if value is not None:
            changes[field] = value
    if patch.water_intake_glasses is not None:
        changes["water_intake_glasses"] = patch.water_intake_glasses
    if patch.todos is not None:
        changes["todos"] = [
            TodoItem(id=new_item_id(), text=text, completed=False) for text in patch.todos
        ]
    if patch.schedule is not None:
        changes["schedule"] = schedule_editor.ordered([
            ScheduleItem(id=new_item_id(), time=hint.time, description=hint.description)
            for hint in patch.schedule
        ])
    if not changes:
        return draft
    return draft.model_copy(update=changes)


def append_unparsed(draft: DailyPlanDraft, raw_text: str) -> DailyPlanDraft:
    """Keep an unusable response in the notes so nothing the user photographed is lost."""
    block = f"{UNPARSED_OPEN}\n{(raw_text or '').strip()}\n{UNPARSED_CLOSE}"
    notes = f"{draft.notes}\n\n{block}" if draft.notes.strip() else block
    return draft.model_copy(update={"notes": notes})


def merge_extraction(draft: DailyPlanDraft, raw_text: str) -> DailyPlanDraft:
    """Merge a response into ``draft``.

    On a parse failure the raw text is appended to the notes of the returned
    draft, which is attached to the raised ExtractionParseError as ``draft``.
    """
    try:
        patch = parse_extraction(raw_text)
    except ExtractionParseError as e:
        logger.warning("Could not parse planner extraction: %s", e)
        e.draft = append_unparsed(draft, raw_text)
        raise
    return apply_patch(draft, patch)
