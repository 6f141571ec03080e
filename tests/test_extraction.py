"""
Unit tests for merging planner-photo extraction results.

Tests the rules:
1. A fenced JSON block is preferred, then the whole text
2. Present fields replace draft values, absent/blank ones keep them
3. Unparsable responses land in the notes and raise ExtractionParseError
"""

import json
from datetime import date

import pytest
from daybook.errors import ExtractionError, ExtractionParseError
from daybook.schemas import DailyPlanDraft, ScheduleItem, TodoItem
from daybook.services.daily_plan import DailyPlanView
from daybook.services.extraction import (
    EXTRACTION_PROMPT,
    UNPARSED_CLOSE,
    UNPARSED_OPEN,
    ExtractionPatch,
    apply_patch,
    find_json_object,
    merge_extraction,
    parse_extraction,
)

PLAN_DATE = date(2024, 5, 2)


def make_draft(**overrides):
    fields = dict(
        plan_date=PLAN_DATE,
        breakfast="Oats",
        mood="Fine",
        notes="Remember keys",
        water_intake_glasses=4,
        todos=[TodoItem(id="t1", text="Existing", completed=True)],
        schedule=[ScheduleItem(id="s1", time="10:00", description="Dentist")],
    )
    fields.update(overrides)
    return DailyPlanDraft(**fields)


class TestFindJsonObject:
    """Tests for locating the JSON object in a response."""

    def test_fenced_json_block(self):
        text = 'Here you go:\n```json\n{"mood": "Happy"}\n```\nThanks!'
        assert find_json_object(text) == {"mood": "Happy"}

    def test_bare_fence(self):
        assert find_json_object('```\n{"mood": "Happy"}\n```') == {"mood": "Happy"}

    def test_fenced_block_wins_over_other_braces(self):
        text = '{"mood": "Outer"} and ```json\n{"mood": "Fenced"}\n```'
        assert find_json_object(text)["mood"] == "Fenced"

    def test_whole_text_fallback(self):
        assert find_json_object('{"weather": "Rain"}') == {"weather": "Rain"}

    def test_object_embedded_in_prose(self):
        assert find_json_object('Result: {"weather": "Rain"} done') == {"weather": "Rain"}

    @pytest.mark.parametrize("text", ["", "I could not read this page.", "[1, 2, 3]", "```json\nnope\n```"])
    def test_no_object_raises(self, text):
        with pytest.raises(ExtractionParseError) as excinfo:
            find_json_object(text)
        assert excinfo.value.raw_text == text


class TestExtractionPatch:
    """Tests for lenient validation of model output."""

    def test_blank_values_are_absent(self):
        patch = ExtractionPatch.model_validate(
            {"breakfast": "", "mood": "   ", "todos": [], "schedule": [], "water_intake_glasses": 0}
        )
        assert patch.breakfast is None
        assert patch.mood is None
        assert patch.todos is None
        assert patch.schedule is None
        assert patch.water_intake_glasses is None

    def test_water_coercion(self):
        assert ExtractionPatch.model_validate({"water_intake_glasses": "6 glasses"}).water_intake_glasses == 6
        assert ExtractionPatch.model_validate({"water_intake_glasses": 3.0}).water_intake_glasses == 3
        assert ExtractionPatch.model_validate({"water_intake_glasses": -2}).water_intake_glasses is None
        assert ExtractionPatch.model_validate({"water_intake_glasses": True}).water_intake_glasses is None

    @pytest.mark.parametrize("value", [float("inf"), float("nan"), 1e999, 5000, "9" * 30])
    def test_out_of_range_water_is_absent(self, value):
        assert ExtractionPatch.model_validate({"water_intake_glasses": value}).water_intake_glasses is None

    def test_infinite_water_in_response_keeps_draft_value(self):
        """json.loads accepts Infinity; the merge still succeeds."""
        result = merge_extraction(make_draft(), '{"mood": "Bright", "water_intake_glasses": Infinity}')
        assert result.mood == "Bright"
        assert result.water_intake_glasses == 4

    def test_todos_accept_strings_objects_and_lines(self):
        patch = ExtractionPatch.model_validate(
            {"todos": ["- Buy milk", {"text": "Call mom"}, 7, "  "]}
        )
        assert patch.todos == ["Buy milk", "Call mom"]
        patch = ExtractionPatch.model_validate({"todos": "1. Laundry\n2. Taxes\n"})
        assert patch.todos == ["Laundry", "Taxes"]

    def test_schedule_accepts_objects_and_lines(self):
        patch = ExtractionPatch.model_validate({
            "schedule": [
                {"time": "9:00", "description": "Standup"},
                "13:30 - Lunch with Sam",
                {"time": "", "description": "No time"},
                "no time here",
            ]
        })
        assert [(h.time, h.description) for h in patch.schedule] == [
            ("09:00", "Standup"),
            ("13:30", "Lunch with Sam"),
        ]

    def test_unknown_keys_are_ignored(self):
        patch = ExtractionPatch.model_validate({"plan_content": "x", "mood": "Ok"})
        assert patch.mood == "Ok"


class TestApplyPatch:
    """Tests for the per-field merge."""

    def test_present_fields_replace(self):
        draft = make_draft()
        patch = ExtractionPatch(breakfast="Pancakes", water_intake_glasses=8)
        result = apply_patch(draft, patch)
        assert result.breakfast == "Pancakes"
        assert result.water_intake_glasses == 8
        assert result.mood == "Fine"
        assert result.notes == "Remember keys"
        assert result.todos == draft.todos

    def test_empty_patch_returns_same_draft(self):
        draft = make_draft()
        assert apply_patch(draft, ExtractionPatch()) is draft

    def test_lists_get_fresh_ids_and_order(self):
        patch = ExtractionPatch.model_validate({
            "todos": ["A", "B"],
            "schedule": [
                {"time": "15:00", "description": "Review"},
                {"time": "08:00", "description": "Run"},
            ],
        })
        result = apply_patch(make_draft(), patch)

        assert [t.text for t in result.todos] == ["A", "B"]
        assert all(not t.completed for t in result.todos)
        assert len({t.id for t in result.todos}) == 2
        assert "t1" not in {t.id for t in result.todos}
        assert [s.time for s in result.schedule] == ["08:00", "15:00"]

    def test_input_draft_is_not_mutated(self):
        draft = make_draft()
        apply_patch(draft, ExtractionPatch(mood="Great"))
        assert draft.mood == "Fine"


class TestMergeExtraction:
    """Tests for the whole response-to-draft merge."""

    def test_successful_merge(self):
        response = "```json\n" + json.dumps({
            "todos": ["Pay rent"],
            "schedule": [{"time": "11:00", "description": "Gym"}],
            "breakfast": "",
            "lunch": "Salad",
            "water_intake_glasses": 0,
            "mood": "Focused",
        }) + "\n```"
        result = merge_extraction(make_draft(), response)

        assert result.lunch == "Salad"
        assert result.mood == "Focused"
        assert result.breakfast == "Oats"
        assert result.water_intake_glasses == 4
        assert [t.text for t in result.todos] == ["Pay rent"]
        assert [s.description for s in result.schedule] == ["Gym"]

    def test_non_json_text_goes_to_notes(self):
        """Unparsable text is appended to notes; nothing else changes."""
        draft = make_draft()
        raw = "Sorry, the handwriting is illegible."

        with pytest.raises(ExtractionParseError) as excinfo:
            merge_extraction(draft, raw)

        result = excinfo.value.draft
        assert result.notes.startswith("Remember keys\n\n")
        assert UNPARSED_OPEN in result.notes
        assert raw in result.notes
        assert result.notes.endswith(UNPARSED_CLOSE)
        assert result.model_dump(exclude={"notes"}) == draft.model_dump(exclude={"notes"})

    def test_unparsed_block_without_existing_notes(self):
        with pytest.raises(ExtractionParseError) as excinfo:
            merge_extraction(make_draft(notes=""), "garbage")
        assert excinfo.value.draft.notes == f"{UNPARSED_OPEN}\ngarbage\n{UNPARSED_CLOSE}"

    def test_parse_extraction_returns_patch(self):
        patch = parse_extraction('{"weather": "Sunny"}')
        assert isinstance(patch, ExtractionPatch)
        assert patch.weather == "Sunny"


class FakeExtractor:
    def __init__(self, text="", error=None):
        self.text = text
        self.error = error

    def extract(self, image_bytes, mime_type):
        if self.error:
            raise self.error
        return self.text


class TestViewExtraction:
    """Tests for extraction through DailyPlanView."""

    def test_analyze_image_merges_without_saving(self):
        view = DailyPlanView(store=None, user_id=1, plan_date=PLAN_DATE)
        view.analyze_image(FakeExtractor('{"mood": "Great"}'), b"img", "image/png")
        assert view.draft.mood == "Great"
        assert view.exists is False

    def test_parse_failure_keeps_raw_text_in_view(self):
        view = DailyPlanView(store=None, user_id=1, plan_date=PLAN_DATE)
        view.update_fields(breakfast="Toast")
        with pytest.raises(ExtractionParseError):
            view.analyze_image(FakeExtractor("not json"), b"img", "image/png")
        assert "not json" in view.draft.notes
        assert view.draft.breakfast == "Toast"

    def test_transport_failure_touches_nothing(self):
        view = DailyPlanView(store=None, user_id=1, plan_date=PLAN_DATE)
        view.update_fields(notes="Keep")
        before = view.draft
        with pytest.raises(ExtractionError):
            view.analyze_image(FakeExtractor(error=ExtractionError("timeout")), b"img", "image/png")
        assert view.draft is before

    def test_prompt_names_every_field(self):
        for key in ("todos", "schedule", "breakfast", "lunch", "dinner", "snacks",
                    "water_intake_glasses", "mood", "weather", "notes", "high_level_note"):
            assert key in EXTRACTION_PROMPT
