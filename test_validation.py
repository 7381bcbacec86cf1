"""Test the wizard step validators"""
import sys
import os
sys.path.insert(0, os.path.dirname(__file__))

from praxisnotes.models import (
    Activities,
    Activity,
    ActivityPrompt,
    ActivityReinforcement,
    BasicInfo,
    Behavior,
    BehaviorTracking,
    FlowVariant,
    FormStep,
    GeneralNotes,
    InitialStatus,
    Reinforcement,
    Reinforcer,
    SessionFormState,
    Skill,
    SkillAcquisition,
)
from praxisnotes.validation import (
    effective_rating,
    parse_time_of_day,
    validate_activities,
    validate_basic_info,
    validate_behavior_tracking,
    validate_form,
    validate_general_notes,
    validate_initial_status,
    validate_reinforcement,
    validate_skill_acquisition,
    validate_step,
)


def complete_basic_info(**overrides):
    data = dict(session_date="2024-05-01", start_time="09:00", end_time="10:30",
                location="home", client_id="c1")
    data.update(overrides)
    return BasicInfo(**data)


def test_basic_info_all_required():
    result = validate_basic_info(BasicInfo())
    assert not result.valid
    assert result.field_errors == {
        "session_date": "Session date is required",
        "start_time": "Start time is required",
        "end_time": "End time is required",
        "location": "Location is required",
        "client_id": "Client selection is required",
    }


def test_basic_info_valid():
    result = validate_basic_info(complete_basic_info())
    assert result.valid
    assert result.field_errors == {}


def test_end_time_must_follow_start_time():
    for start, end in [("10:00", "09:00"), ("09:00", "09:00"), ("23:59", "00:00")]:
        result = validate_basic_info(complete_basic_info(start_time=start, end_time=end))
        assert not result.valid
        assert result.field_errors == {"end_time": "End time must be after start time"}


def test_unparseable_time_is_a_field_error():
    result = validate_basic_info(complete_basic_info(start_time="nine"))
    assert result.field_errors == {"start_time": "Start time must be a valid time (HH:MM)"}

    result = validate_basic_info(complete_basic_info(end_time="25:00"))
    assert result.field_errors == {"end_time": "End time must be a valid time (HH:MM)"}


def test_parse_time_of_day_accepts_seconds():
    assert parse_time_of_day("09:30:15").hour == 9
    assert parse_time_of_day(" 14:05 ").minute == 5
    assert parse_time_of_day("") is None


def test_skill_trial_sum_enforced():
    bad = Skill(program="Manding", target="Ask for help", trials=10,
                correct=5, prompted=3, incorrect=1)
    result = validate_skill_acquisition(SkillAcquisition(skills=[bad]))
    assert result.field_errors == {
        "skills[0].trials": "The sum of correct, prompted, and incorrect must equal total trials"
    }

    good = bad.model_copy(update={"incorrect": 2})
    assert validate_skill_acquisition(SkillAcquisition(skills=[good])).valid


def test_skill_requires_trials():
    skill = Skill(program="Tacting", target="Colors", trials=0)
    result = validate_skill_acquisition(SkillAcquisition(skills=[skill]))
    assert result.field_errors == {"skills[0].trials": "Number of trials must be greater than 0"}


def test_skill_acquisition_requires_one_skill():
    result = validate_skill_acquisition(SkillAcquisition())
    assert result.field_errors == {"skills": "At least one skill must be added"}


def test_skill_errors_keyed_by_row():
    skills = [
        Skill(program="Manding", target="Help", trials=1, correct=1),
        Skill(trials=1, correct=1),
    ]
    result = validate_skill_acquisition(SkillAcquisition(skills=skills))
    assert result.field_errors == {
        "skills[1].program": "Program is required",
        "skills[1].target": "Target is required",
    }


def test_behavior_fields():
    result = validate_behavior_tracking(BehaviorTracking(behaviors=[Behavior()]))
    assert result.field_errors == {
        "behaviors[0].name": "Behavior name is required",
        "behaviors[0].definition": "Behavior definition is required",
        "behaviors[0].intensity": "Intensity is required",
        "behaviors[0].antecedent": "Antecedent is required",
        "behaviors[0].consequence": "Consequence is required",
    }

    assert validate_behavior_tracking(BehaviorTracking()).field_errors == {
        "behaviors": "At least one behavior must be added"
    }


def test_behavior_intensity_must_be_known():
    behavior = Behavior(name="Elopement", definition="Leaving the area", intensity="extreme",
                        antecedent="Demand", consequence="Redirected")
    result = validate_behavior_tracking(BehaviorTracking(behaviors=[behavior]))
    assert list(result.field_errors) == ["behaviors[0].intensity"]

    ok = behavior.model_copy(update={"intensity": "moderate"})
    assert validate_behavior_tracking(BehaviorTracking(behaviors=[ok])).valid


def test_reinforcement():
    assert validate_reinforcement(Reinforcement()).field_errors == {
        "reinforcers": "At least one reinforcer must be added"
    }
    result = validate_reinforcement(Reinforcement(reinforcers=[Reinforcer()]))
    assert result.field_errors == {
        "reinforcers[0].reinforcer_name": "Reinforcer selection is required",
        "reinforcers[0].reinforcer_type": "Reinforcer type is required",
    }
    ok = Reinforcer(reinforcer_name="Stickers", reinforcer_type="secondary")
    assert validate_reinforcement(Reinforcement(reinforcers=[ok])).valid


def test_missing_effectiveness_counts_as_moderate():
    assert effective_rating(Reinforcer()) == 3
    assert effective_rating(Reinforcer(effectiveness=5)) == 5


def test_initial_status_and_general_notes():
    assert validate_initial_status(InitialStatus()).field_errors == {
        "client_status": "Client status is required",
        "initial_response": "Initial response is required",
    }
    assert validate_general_notes(GeneralNotes()).field_errors == {
        "session_notes": "Session notes are required",
        "next_session_focus": "Next session focus is required",
    }
    assert validate_general_notes(GeneralNotes(session_notes="Good", next_session_focus="Manding")).valid


def test_activities():
    assert validate_activities(Activities()).field_errors == {
        "activities": "At least one activity must be added"
    }

    activity = Activity(
        name="Puzzle",
        description="Six piece puzzle",
        goal="Finish independently",
        location="home",
        prompts=[ActivityPrompt(type="verbal", count=0)],
        reinforcement=ActivityReinforcement(reinforcer_name="Bubbles", type="activity"),
    )
    result = validate_activities(Activities(activities=[activity]))
    assert result.field_errors == {
        "activities[0].prompts[0].count": "Prompt count must be greater than 0"
    }


def test_generate_step_always_valid():
    assert validate_step(SessionFormState(), FormStep.GENERATE_REPORT).valid


def test_validate_form_only_checks_active_flow():
    state = SessionFormState(flow=FlowVariant.ACTIVITY, basic_info=complete_basic_info())
    errors = validate_form(state).field_errors
    assert "activities" in errors
    assert "client_status" in errors
    assert "skills" not in errors
    assert "behaviors" not in errors
