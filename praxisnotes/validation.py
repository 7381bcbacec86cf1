"""
Step validation for the session report wizard.

Every validator is a pure function taking one step's data and returning a
ValidationResult. Field errors are keyed by field name; errors on list entries
are keyed as ``"<list>[<index>].<field>"`` so the UI can point at the exact row.
"""
from datetime import date, datetime
from typing import Callable, Dict, Optional

from pydantic import BaseModel, Field

from .config import DEFAULT_EFFECTIVENESS, INTENSITY_LABELS, REINFORCER_TYPE_LABELS
from .models import (
    Activities,
    Activity,
    BasicInfo,
    Behavior,
    BehaviorTracking,
    FormStep,
    GeneralNotes,
    InitialStatus,
    Reinforcement,
    Reinforcer,
    SessionFormState,
    Skill,
    SkillAcquisition,
    STEP_FIELDS,
)

# Times of day are compared on one fixed date
REFERENCE_DATE = date(1970, 1, 1)
TIME_FORMATS = ("%H:%M", "%H:%M:%S")


class ValidationResult(BaseModel):
    valid: bool = True
    field_errors: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_errors(cls, errors: Dict[str, str]) -> "ValidationResult":
        return cls(valid=not errors, field_errors=errors)


def parse_time_of_day(value: str) -> Optional[datetime]:
    """Parse an HH:MM (or HH:MM:SS) string onto the reference date."""
    for fmt in TIME_FORMATS:
        try:
            parsed = datetime.strptime(value.strip(), fmt)
        except ValueError:
            continue
        return datetime.combine(REFERENCE_DATE, parsed.time())
    return None


def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def effective_rating(reinforcer: Reinforcer) -> int:
    """Effectiveness with the mid-scale default applied."""
    if reinforcer.effectiveness is None:
        return DEFAULT_EFFECTIVENESS
    return reinforcer.effectiveness


# --- STEP VALIDATORS ---
def validate_basic_info(data: BasicInfo) -> ValidationResult:
    errors = {}
    if _blank(data.session_date):
        errors["session_date"] = "Session date is required"
    if _blank(data.start_time):
        errors["start_time"] = "Start time is required"
    if _blank(data.end_time):
        errors["end_time"] = "End time is required"
    if _blank(data.location):
        errors["location"] = "Location is required"
    if _blank(data.client_id):
        errors["client_id"] = "Client selection is required"

    if "start_time" not in errors and "end_time" not in errors:
        start = parse_time_of_day(data.start_time)
        end = parse_time_of_day(data.end_time)
        if start is None:
            errors["start_time"] = "Start time must be a valid time (HH:MM)"
        elif end is None:
            errors["end_time"] = "End time must be a valid time (HH:MM)"
        elif start >= end:
            errors["end_time"] = "End time must be after start time"

    return ValidationResult.from_errors(errors)


def _skill_errors(skill: Skill, prefix: str) -> Dict[str, str]:
    errors = {}
    if _blank(skill.program):
        errors[f"{prefix}.program"] = "Program is required"
    if _blank(skill.target):
        errors[f"{prefix}.target"] = "Target is required"
    if skill.trials <= 0:
        errors[f"{prefix}.trials"] = "Number of trials must be greater than 0"
    elif skill.correct + skill.prompted + skill.incorrect != skill.trials:
        errors[f"{prefix}.trials"] = "The sum of correct, prompted, and incorrect must equal total trials"
    return errors


def validate_skill_acquisition(data: SkillAcquisition) -> ValidationResult:
    errors = {}
    if not data.skills:
        errors["skills"] = "At least one skill must be added"
    for i, skill in enumerate(data.skills):
        errors.update(_skill_errors(skill, f"skills[{i}]"))
    return ValidationResult.from_errors(errors)


def _behavior_errors(behavior: Behavior, prefix: str) -> Dict[str, str]:
    errors = {}
    if _blank(behavior.name):
        errors[f"{prefix}.name"] = "Behavior name is required"
    if _blank(behavior.definition):
        errors[f"{prefix}.definition"] = "Behavior definition is required"
    if _blank(behavior.intensity):
        errors[f"{prefix}.intensity"] = "Intensity is required"
    elif behavior.intensity not in INTENSITY_LABELS:
        errors[f"{prefix}.intensity"] = f"Intensity must be one of: {', '.join(INTENSITY_LABELS)}"
    if _blank(behavior.antecedent):
        errors[f"{prefix}.antecedent"] = "Antecedent is required"
    if _blank(behavior.consequence):
        errors[f"{prefix}.consequence"] = "Consequence is required"
    return errors


def validate_behavior_tracking(data: BehaviorTracking) -> ValidationResult:
    errors = {}
    if not data.behaviors:
        errors["behaviors"] = "At least one behavior must be added"
    for i, behavior in enumerate(data.behaviors):
        errors.update(_behavior_errors(behavior, f"behaviors[{i}]"))
    return ValidationResult.from_errors(errors)


def validate_reinforcement(data: Reinforcement) -> ValidationResult:
    errors = {}
    if not data.reinforcers:
        errors["reinforcers"] = "At least one reinforcer must be added"
    for i, reinforcer in enumerate(data.reinforcers):
        prefix = f"reinforcers[{i}]"
        if _blank(reinforcer.reinforcer_name):
            errors[f"{prefix}.reinforcer_name"] = "Reinforcer selection is required"
        if _blank(reinforcer.reinforcer_type):
            errors[f"{prefix}.reinforcer_type"] = "Reinforcer type is required"
        elif reinforcer.reinforcer_type not in REINFORCER_TYPE_LABELS:
            errors[f"{prefix}.reinforcer_type"] = (
                f"Reinforcer type must be one of: {', '.join(REINFORCER_TYPE_LABELS)}"
            )
    return ValidationResult.from_errors(errors)


def validate_initial_status(data: InitialStatus) -> ValidationResult:
    errors = {}
    if _blank(data.client_status):
        errors["client_status"] = "Client status is required"
    if _blank(data.initial_response):
        errors["initial_response"] = "Initial response is required"
    return ValidationResult.from_errors(errors)


def _activity_errors(activity: Activity, prefix: str) -> Dict[str, str]:
    errors = {}
    if _blank(activity.name):
        errors[f"{prefix}.name"] = "Activity name is required"
    if _blank(activity.goal):
        errors[f"{prefix}.goal"] = "Activity goal is required"
    if _blank(activity.description):
        errors[f"{prefix}.description"] = "Activity description is required"
    if _blank(activity.location):
        errors[f"{prefix}.location"] = "Activity location is required"
    if _blank(activity.reinforcement.reinforcer_name):
        errors[f"{prefix}.reinforcement"] = "Reinforcement is required"

    for j, behavior in enumerate(activity.behaviors):
        if _blank(behavior.behavior):
            errors[f"{prefix}.behaviors[{j}].behavior"] = "Behavior name is required"
        if _blank(behavior.intensity):
            errors[f"{prefix}.behaviors[{j}].intensity"] = "Intensity is required"

    for j, prompt in enumerate(activity.prompts):
        if _blank(prompt.type):
            errors[f"{prefix}.prompts[{j}].type"] = "Prompt type is required"
        if prompt.count <= 0:
            errors[f"{prefix}.prompts[{j}].count"] = "Prompt count must be greater than 0"

    for k, skill in enumerate(activity.skill_trials):
        errors.update(_skill_errors(skill, f"{prefix}.skill_trials[{k}]"))
    return errors


def validate_activities(data: Activities) -> ValidationResult:
    errors = {}
    if not data.activities:
        errors["activities"] = "At least one activity must be added"
    for i, activity in enumerate(data.activities):
        errors.update(_activity_errors(activity, f"activities[{i}]"))
    return ValidationResult.from_errors(errors)


def validate_general_notes(data: GeneralNotes) -> ValidationResult:
    errors = {}
    if _blank(data.session_notes):
        errors["session_notes"] = "Session notes are required"
    if _blank(data.next_session_focus):
        errors["next_session_focus"] = "Next session focus is required"
    return ValidationResult.from_errors(errors)


STEP_VALIDATORS: Dict[FormStep, Callable[..., ValidationResult]] = {
    FormStep.BASIC_INFO: validate_basic_info,
    FormStep.SKILL_ACQUISITION: validate_skill_acquisition,
    FormStep.BEHAVIOR_TRACKING: validate_behavior_tracking,
    FormStep.REINFORCEMENT: validate_reinforcement,
    FormStep.INITIAL_STATUS: validate_initial_status,
    FormStep.ACTIVITIES: validate_activities,
    FormStep.GENERAL_NOTES: validate_general_notes,
}


def validate_step(state: SessionFormState, step: FormStep) -> ValidationResult:
    """Validate one step's data out of the aggregate state."""
    validator = STEP_VALIDATORS.get(step)
    if validator is None:
        # The report-generation step carries no data of its own
        return ValidationResult()
    return validator(getattr(state, STEP_FIELDS[step]))


def validate_form(state: SessionFormState) -> ValidationResult:
    """Validate every data step of the state's flow."""
    errors = {}
    for step in state.steps:
        errors.update(validate_step(state, step).field_errors)
    return ValidationResult.from_errors(errors)
