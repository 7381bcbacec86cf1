"""
Prompt assembly for session report generation
"""
from typing import List, Optional

from .config import (
    INTENSITY_LABELS,
    LOCATION_LABELS,
    PROMPT_LEVEL_LABELS,
    PROMPT_TYPE_LABELS,
    REINFORCER_TYPE_LABELS,
    EFFECTIVENESS_LABELS,
    REPORT_SECTIONS,
)
from .models import (
    Activity,
    ClientInfo,
    FlowVariant,
    SessionFormState,
    Skill,
)
from .validation import effective_rating, parse_time_of_day

PROMPT_HEADER = (
    "You are a professional Registered Behavior Technician (RBT) writing a session report "
    "for a client. Please generate a comprehensive and professional report based on the "
    "following session data:"
)

TONE_INSTRUCTIONS = (
    "The report should be written in a professional, clinical tone that would be appropriate "
    "for both parents and other healthcare professionals. Include specific data from the "
    "session but present it in a narrative format rather than just listing information. "
    "Incorporate professional terminology where appropriate."
)

ACTIVITY_INSTRUCTIONS = (
    "Describe the activities in the order they took place so the report reads as a "
    "continuous account of the session. Refer to the client, the guardian and the RBT "
    "by their initials."
)


# --- FORMATTING HELPERS ---
def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def format_duration(start_time: str, end_time: str) -> str:
    """
    Express the span between two times of day, e.g. "1 hour 30 minutes".

    The hour part is dropped when zero and the minute part is dropped when
    zero and hours are present. Unparseable or non-positive spans give
    "0 minutes".
    """
    start = parse_time_of_day(start_time or "")
    end = parse_time_of_day(end_time or "")
    if start is None or end is None:
        return "0 minutes"

    total_minutes = int((end - start).total_seconds() // 60)
    if total_minutes <= 0:
        return "0 minutes"

    hours, minutes = divmod(total_minutes, 60)
    parts = []
    if hours:
        parts.append(_plural(hours, "hour"))
    if minutes or not hours:
        parts.append(_plural(minutes, "minute"))
    return " ".join(parts)


def _label(labels: dict, value: str) -> str:
    return labels.get(value, value)


def _field(label: str, value, indent: str = "") -> Optional[str]:
    """A ``- Label: value`` line, or None when the value is blank."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return f"{indent}- {label}: {text}"


def _section(title: str, lines: List[Optional[str]]) -> Optional[str]:
    body = [line for line in lines if line is not None]
    if not body:
        return None
    return "\n".join([f"{title}:"] + body)


# --- SECTIONS ---
def _client_section(client: ClientInfo, rbt_name: str) -> Optional[str]:
    return _section("CLIENT INFORMATION", [
        _field("Name", client.full_name),
        _field("Date of Birth", client.date_of_birth),
        _field("Diagnosis", client.diagnosis),
        _field("Guardian", client.guardian_name),
        _field("RBT", rbt_name),
    ])


def _session_section(state: SessionFormState) -> Optional[str]:
    info = state.basic_info
    time_line = None
    if info.start_time.strip() and info.end_time.strip():
        duration = format_duration(info.start_time, info.end_time)
        time_line = f"- Time: {info.start_time} to {info.end_time} ({duration})"
    return _section("SESSION INFORMATION", [
        _field("Date", info.session_date),
        time_line,
        _field("Location", _label(LOCATION_LABELS, info.location)),
    ])


def _initial_status_section(state: SessionFormState) -> Optional[str]:
    status = state.initial_status
    return _section("CLIENT INITIAL STATUS", [
        _field("Status on arrival", status.client_status),
        _field("Caregiver report", status.caregiver_report),
        _field("Initial response", status.initial_response),
        _field("Medication changes", status.medication_changes),
    ])


def _trials_line(skill: Skill, indent: str = "") -> str:
    return (
        f"{indent}- Trials: {skill.trials} ({skill.correct} correct, "
        f"{skill.prompted} prompted, {skill.incorrect} incorrect)"
    )


def _skill_lines(skill: Skill, indent: str = "") -> List[Optional[str]]:
    return [
        _field("Program", skill.program, indent),
        _field("Target", skill.target, indent),
        _trials_line(skill, indent),
        _field("Mastery", f"{skill.mastery}%", indent),
        _field("Prompt Level", _label(PROMPT_LEVEL_LABELS, skill.prompt_level), indent),
        _field("Notes", skill.notes, indent),
    ]


def _skills_section(state: SessionFormState) -> Optional[str]:
    blocks = []
    for skill in state.skill_acquisition.skills:
        blocks.append("\n".join(line for line in _skill_lines(skill) if line))
    if not blocks:
        return None
    return "SKILL ACQUISITION:\n" + "\n\n".join(blocks)


def _behaviors_section(state: SessionFormState) -> Optional[str]:
    blocks = []
    for behavior in state.behavior_tracking.behaviors:
        duration = _plural(behavior.duration, "minute") if behavior.duration is not None else None
        lines = [
            _field("Behavior", behavior.name),
            _field("Definition", behavior.definition),
            _field("Frequency", _plural(behavior.frequency, "time")),
            _field("Duration", duration),
            _field("Intensity", _label(INTENSITY_LABELS, behavior.intensity)),
            _field("Antecedent", behavior.antecedent),
            _field("Consequence", behavior.consequence),
            _field("Intervention", behavior.intervention),
            _field("Notes", behavior.notes),
        ]
        blocks.append("\n".join(line for line in lines if line))
    if not blocks:
        return None
    return "BEHAVIOR TRACKING:\n" + "\n\n".join(blocks)


def _reinforcement_section(state: SessionFormState) -> Optional[str]:
    blocks = []
    for reinforcer in state.reinforcement.reinforcers:
        rating = effective_rating(reinforcer)
        lines = [
            _field("Reinforcer", reinforcer.reinforcer_name),
            _field("Type", _label(REINFORCER_TYPE_LABELS, reinforcer.reinforcer_type)),
            _field("Effectiveness", f"{rating}/5 ({EFFECTIVENESS_LABELS[rating]})"),
            _field("Notes", reinforcer.notes),
        ]
        blocks.append("\n".join(line for line in lines if line))
    if not blocks:
        return None
    return "REINFORCEMENT:\n" + "\n\n".join(blocks)


def _group(title: str, lines: List[Optional[str]]) -> List[str]:
    """A sub-heading followed by its non-blank lines, or nothing."""
    body = [line for line in lines if line]
    return [f"{title}:"] + body if body else []


def _prompt_line(prompt) -> Optional[str]:
    if not prompt.type.strip():
        return None
    return _field(_label(PROMPT_TYPE_LABELS, prompt.type), _plural(prompt.count, "time"), "  ")


def _activity_block(activity: Activity, number: int) -> str:
    name = activity.name.strip()
    lines = [f"Activity {number}: {name}" if name else f"Activity {number}"]
    duration = _plural(activity.duration, "minute") if activity.duration else None
    lines += [
        _field("Description", activity.description),
        _field("Goal", activity.goal),
        _field("Location", _label(LOCATION_LABELS, activity.location)),
        _field("Duration", duration),
    ]

    behavior_lines = []
    for behavior in activity.behaviors:
        behavior_lines += [
            _field("Behavior", behavior.behavior, "  "),
            _field("Intensity", _label(INTENSITY_LABELS, behavior.intensity), "  "),
            _field("Interventions", ", ".join(i for i in behavior.interventions if i.strip()), "  "),
            _field("Notes", behavior.notes, "  "),
        ]
    lines += _group("Behaviors During Activity", behavior_lines)
    lines += _group("Prompts Used", [_prompt_line(prompt) for prompt in activity.prompts])

    skill_lines = []
    for skill in activity.skill_trials:
        skill_lines += _skill_lines(skill, "  ")
    lines += _group("Skill Trials", skill_lines)

    lines.append("Completion:")
    lines += [
        _field("Status", "Completed" if activity.completed else "Not completed", "  "),
        _field("Notes", activity.completion_notes, "  "),
    ]

    reinforcement = activity.reinforcement
    lines += _group("Reinforcement", [
        _field("Reinforcer", reinforcement.reinforcer_name, "  "),
        _field("Type", _label(REINFORCER_TYPE_LABELS, reinforcement.type), "  "),
        _field("Notes", reinforcement.notes, "  "),
    ])

    lines.append(_field("Additional Notes", activity.notes))
    return "\n".join(line for line in lines if line)


def _activities_section(state: SessionFormState) -> Optional[str]:
    activities = state.activities.activities
    if not activities:
        return None
    blocks = [_activity_block(activity, i) for i, activity in enumerate(activities, 1)]
    return "ACTIVITIES:\n" + "\n\n".join(blocks)


def _general_notes_section(state: SessionFormState) -> Optional[str]:
    notes = state.general_notes
    return _section("GENERAL NOTES", [
        _field("Session Notes", notes.session_notes),
        _field("Caregiver Feedback", notes.caregiver_feedback),
        _field("Environmental Factors", notes.environmental_factors),
        _field("Next Session Focus", notes.next_session_focus),
    ])


def _closing_instructions(flow: FlowVariant) -> str:
    numbered = "\n".join(f"{i}. {title}" for i, (_, title) in enumerate(REPORT_SECTIONS, 1))
    parts = [
        "Please generate a professional report in raw markdown format with the following sections:\n"
        + numbered,
        TONE_INSTRUCTIONS,
    ]
    if flow == FlowVariant.ACTIVITY:
        parts.append(ACTIVITY_INSTRUCTIONS)
    return "\n\n".join(parts)


def assemble_prompt(state: SessionFormState, client: ClientInfo, rbt_name: str) -> str:
    """
    Build the generation prompt for a completed session form.

    Args:
        state: Aggregate wizard data
        client: Directory entry for the session's client
        rbt_name: Display name of the clinician writing the report

    Returns:
        The prompt text. Identical inputs always give identical output.
    """
    sections = [
        PROMPT_HEADER,
        _client_section(client, rbt_name),
        _session_section(state),
    ]

    if state.flow == FlowVariant.ACTIVITY:
        sections += [
            _initial_status_section(state),
            _activities_section(state),
        ]
    else:
        sections += [
            _skills_section(state),
            _behaviors_section(state),
            _reinforcement_section(state),
        ]

    sections += [
        _general_notes_section(state),
        _closing_instructions(state.flow),
    ]
    return "\n\n".join(section for section in sections if section) + "\n"
