"""Test the session wizard controller"""
import sys
import os
sys.path.insert(0, os.path.dirname(__file__))

import pytest
from pydantic import ValidationError

from praxisnotes.models import (
    BasicInfoUpdate,
    FlowVariant,
    FormStep,
    GeneralNotesUpdate,
    InitialStatusUpdate,
    Skill,
    SkillAcquisitionUpdate,
)
from praxisnotes.wizard import SessionWizard, parse_step_update, reduce


def fill_basic_info(wizard):
    wizard.update_section(BasicInfoUpdate(
        start_time="09:00", end_time="10:30", location="clinic", client_id="c1"
    ))


def test_initial_state():
    wizard = SessionWizard(client_id="c2", session_date="2024-05-01")
    assert wizard.current_step == FormStep.BASIC_INFO
    assert wizard.step_index == 0
    assert wizard.state.basic_info.client_id == "c2"
    assert wizard.state.basic_info.session_date == "2024-05-01"


def test_flows_have_their_own_steps():
    assert SessionWizard(FlowVariant.STRUCTURED).steps == [
        FormStep.BASIC_INFO,
        FormStep.SKILL_ACQUISITION,
        FormStep.BEHAVIOR_TRACKING,
        FormStep.REINFORCEMENT,
        FormStep.GENERAL_NOTES,
        FormStep.GENERATE_REPORT,
    ]
    assert SessionWizard(FlowVariant.ACTIVITY).steps == [
        FormStep.BASIC_INFO,
        FormStep.INITIAL_STATUS,
        FormStep.ACTIVITIES,
        FormStep.GENERAL_NOTES,
        FormStep.GENERATE_REPORT,
    ]


def test_advance_blocked_by_validation():
    wizard = SessionWizard(session_date="2024-05-01")
    result = wizard.advance()
    assert not result.valid
    assert "start_time" in result.field_errors
    assert wizard.current_step == FormStep.BASIC_INFO


def test_advance_and_retreat():
    wizard = SessionWizard(session_date="2024-05-01")
    fill_basic_info(wizard)
    assert wizard.advance().valid
    assert wizard.current_step == FormStep.SKILL_ACQUISITION

    assert wizard.retreat() == FormStep.BASIC_INFO
    # retreat at the first step stays put
    assert wizard.retreat() == FormStep.BASIC_INFO


def test_advance_at_final_step():
    wizard = SessionWizard(FlowVariant.ACTIVITY, session_date="2024-05-01")
    wizard._state = wizard._state.model_copy(update={"current_step": FormStep.GENERATE_REPORT})
    result = wizard.advance()
    assert not result.valid
    assert result.field_errors == {"step": "Already at the final step"}
    assert wizard.is_final_step


def test_reset_matches_fresh_wizard():
    wizard = SessionWizard(client_id="c1", session_date="2024-05-01")
    fill_basic_info(wizard)
    wizard.advance()
    old_session = wizard.session_id

    wizard.reset()
    fresh = SessionWizard(client_id="c1", session_date="2024-05-01")

    assert wizard.session_id != old_session
    assert wizard.state == fresh.state
    assert wizard.advance() == fresh.advance()


def test_update_section_touches_only_one_step():
    wizard = SessionWizard(session_date="2024-05-01")
    fill_basic_info(wizard)
    before = wizard.state

    after = wizard.update_section(SkillAcquisitionUpdate(skills=[Skill(program="Manding")]))

    assert after.skill_acquisition.skills[0].program == "Manding"
    for field in ("basic_info", "behavior_tracking", "reinforcement",
                  "initial_status", "activities", "general_notes"):
        assert getattr(after, field) == getattr(before, field)


def test_partial_update_keeps_unset_fields():
    wizard = SessionWizard(session_date="2024-05-01")
    fill_basic_info(wizard)
    state = wizard.update_section(BasicInfoUpdate(location="school"))
    assert state.basic_info.location == "school"
    assert state.basic_info.start_time == "09:00"
    assert state.basic_info.session_date == "2024-05-01"


def test_state_is_a_copy():
    wizard = SessionWizard(session_date="2024-05-01")
    wizard.state.basic_info.location = "home"
    assert wizard.state.basic_info.location == ""


def test_reduce_rejects_step_outside_flow():
    wizard = SessionWizard(FlowVariant.STRUCTURED)
    with pytest.raises(ValueError):
        reduce(wizard.state, InitialStatusUpdate(client_status="Calm"))


def test_reduce_ignores_empty_update():
    state = SessionWizard(session_date="2024-05-01").state
    assert reduce(state, GeneralNotesUpdate()) is state


def test_parse_step_update():
    update = parse_step_update({"step": "general_notes", "session_notes": "Worked well"})
    assert isinstance(update, GeneralNotesUpdate)
    assert update.session_notes == "Worked well"

    with pytest.raises(ValidationError):
        parse_step_update({"step": "generate_report"})


def test_validate_all():
    wizard = SessionWizard(session_date="2024-05-01")
    fill_basic_info(wizard)
    errors = wizard.validate_all().field_errors
    assert "skills" in errors
    assert "start_time" not in errors
