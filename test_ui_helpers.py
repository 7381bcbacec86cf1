"""Test the table and form helpers behind the Gradio wizard"""
import sys
import os
sys.path.insert(0, os.path.dirname(__file__))

import pandas as pd

from praxisnotes.models import FlowVariant, FormStep
from praxisnotes.ui_session_report import (
    ACTIVITY_FIELDS,
    MAX_ACTIVITY_ROWS,
    SKILL_HEADERS,
    REINFORCER_HEADERS,
    behaviors_from_table,
    collect_updates,
    reinforcers_from_table,
    skills_from_table,
    sync_wizard,
)
from praxisnotes.validation import ValidationResult
from praxisnotes.ui_session_report import format_errors
from praxisnotes.wizard import SessionWizard


def test_skills_from_table_skips_blank_rows():
    df = pd.DataFrame([
        ["Manding", "Help", "10", "6", "3", "1", "60", "Verbal", ""],
        ["", "", "", "", "", "", "", "", ""],
    ], columns=SKILL_HEADERS)
    skills = skills_from_table(df)
    assert len(skills) == 1
    assert skills[0].trials == 10
    assert skills[0].prompt_level == "verbal"


def test_reinforcer_effectiveness_out_of_range_is_unset():
    df = pd.DataFrame([["Stickers", "Secondary", "9", ""]], columns=REINFORCER_HEADERS)
    reinforcer = reinforcers_from_table(df)[0]
    assert reinforcer.reinforcer_type == "secondary"
    assert reinforcer.effectiveness is None


def test_behavior_duration_optional():
    behavior = behaviors_from_table([["Crying", "Tears", "2", None, "Mild", "", "", "", ""]])[0]
    assert behavior.duration is None
    assert behavior.intensity == "mild"


def form_values(activity_count=1, first_activity_name=""):
    values = [
        "2024-05-01", "09:00", "10:00", "home", "c1",
        None, None, None,
        "Calm", "", "Greeted RBT", "",
        "Good session", "", "", "Manding",
        activity_count,
    ]
    for i in range(MAX_ACTIVITY_ROWS):
        row = [""] * len(ACTIVITY_FIELDS)
        row[ACTIVITY_FIELDS.index("completed")] = False
        row[ACTIVITY_FIELDS.index("behaviors")] = None
        row[ACTIVITY_FIELDS.index("prompts")] = None
        if i == 0:
            row[0] = first_activity_name
        values += row
    return values


def test_collect_updates_one_per_step():
    updates = collect_updates(form_values(first_activity_name="Puzzle"))
    assert [u.step for u in updates] == [
        FormStep.BASIC_INFO,
        FormStep.SKILL_ACQUISITION,
        FormStep.BEHAVIOR_TRACKING,
        FormStep.REINFORCEMENT,
        FormStep.INITIAL_STATUS,
        FormStep.ACTIVITIES,
        FormStep.GENERAL_NOTES,
    ]
    assert [a.name for a in updates[5].activities] == ["Puzzle"]


def test_blank_activity_rows_dropped():
    updates = collect_updates(form_values(activity_count=3))
    assert updates[5].activities == []


def test_sync_wizard_only_updates_active_steps():
    wizard = sync_wizard(SessionWizard(FlowVariant.STRUCTURED), form_values(first_activity_name="Puzzle"))
    state = wizard.state
    assert state.basic_info.location == "home"
    assert state.activities.activities == []
    assert state.initial_status.client_status == ""


def test_format_errors():
    assert format_errors(ValidationResult()) == ""
    text = format_errors(ValidationResult.from_errors({"location": "Location is required"}))
    assert "- **location**: Location is required" in text


def test_catalog_rows_replace_blank_table_rows():
    from praxisnotes.ui_session_report import (
        BEHAVIOR_HEADERS,
        append_table_row,
        catalog_behavior_row,
        catalog_skill_row,
    )

    blank = pd.DataFrame([[""] * len(SKILL_HEADERS)], columns=SKILL_HEADERS)
    table = append_table_row(blank, SKILL_HEADERS, catalog_skill_row("prog-1", "target-1"))
    assert list(table.columns) == SKILL_HEADERS
    assert table.values.tolist()[0][:2] == ["Communication", "Requesting items"]
    assert len(table) == 1

    skills = skills_from_table(table)
    assert skills[0].program == "Communication"
    assert skills[0].trials == 0

    behaviors = append_table_row(None, BEHAVIOR_HEADERS, catalog_behavior_row("behavior-4"))
    assert behaviors_from_table(behaviors)[0].definition.startswith("Leaving a designated area")

    assert catalog_skill_row("", "target-1") is None
    assert catalog_behavior_row(None) is None


def test_catalog_reinforcer_row_and_type():
    from praxisnotes.ui_session_report import catalog_reinforcer_row, catalog_reinforcer_type

    row = catalog_reinforcer_row("reinforcer-5")
    table = pd.DataFrame([row], columns=REINFORCER_HEADERS)
    reinforcer = reinforcers_from_table(table)[0]
    assert reinforcer.reinforcer_name == "Break time"
    assert reinforcer.reinforcer_type == "activity"

    assert catalog_reinforcer_type("tablet time") == "activity"
    assert catalog_reinforcer_type("Homemade token") is None
