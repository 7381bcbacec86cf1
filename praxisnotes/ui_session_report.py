"""
Session report wizard UI components
"""
import logging
from datetime import date
from typing import List, Optional

import gradio as gr
import pandas as pd

from . import catalogs
from .config import *
from .converter import html_to_markdown, markdown_to_html
from .generation import GenerationCompleted, ReportGenerationClient, TextDelta
from .models import (
    ActivitiesUpdate,
    Activity,
    ActivityBehavior,
    ActivityPrompt,
    ActivityReinforcement,
    BasicInfoUpdate,
    Behavior,
    BehaviorTrackingUpdate,
    FlowVariant,
    FormStep,
    GeneralNotesUpdate,
    GeneratedReport,
    InitialStatusUpdate,
    Reinforcer,
    ReinforcementUpdate,
    ReportStatus,
    Skill,
    SkillAcquisitionUpdate,
)
from .prompting import assemble_prompt
from .reports import (
    ClientDirectory,
    JsonReportStore,
    PersistenceError,
    build_report,
    build_report_metadata,
)
from .utils import save_report_file
from .validation import ValidationResult
from .wizard import SessionWizard

logger = logging.getLogger(__name__)

MAX_ACTIVITY_ROWS = 6

STEP_TITLES = {
    FormStep.BASIC_INFO: "Basic Information",
    FormStep.SKILL_ACQUISITION: "Skill Acquisition",
    FormStep.BEHAVIOR_TRACKING: "Behavior Tracking",
    FormStep.REINFORCEMENT: "Reinforcement",
    FormStep.INITIAL_STATUS: "Initial Status",
    FormStep.ACTIVITIES: "Activities",
    FormStep.GENERAL_NOTES: "General Notes",
    FormStep.GENERATE_REPORT: "Generate Report",
}

FLOW_CHOICES = [
    ("Structured (skills, behaviors, reinforcement)", FlowVariant.STRUCTURED.value),
    ("Activity-based", FlowVariant.ACTIVITY.value),
]

SKILL_HEADERS = ["Program", "Target", "Trials", "Correct", "Prompted", "Incorrect",
                 "Mastery %", "Prompt Level", "Notes"]
BEHAVIOR_HEADERS = ["Behavior", "Definition", "Frequency", "Duration (min)", "Intensity",
                    "Antecedent", "Consequence", "Intervention", "Notes"]
REINFORCER_HEADERS = ["Reinforcer", "Type", "Effectiveness (1-5)", "Notes"]
ACTIVITY_BEHAVIOR_HEADERS = ["Behavior", "Intensity", "Interventions (comma separated)", "Notes"]
ACTIVITY_PROMPT_HEADERS = ["Prompt Type", "Count"]

# Order of the per-activity components when flattened into event inputs
ACTIVITY_FIELDS = ["name", "description", "goal", "location", "duration", "behaviors",
                   "prompts", "completed", "completion_notes", "reinforcer_name",
                   "reinforcer_type", "reinforcement_notes"]

client_directory = ClientDirectory()
report_store = JsonReportStore()


# --- TABLE HELPERS ---
def _text(value) -> str:
    if value is None:
        return ""
    if not isinstance(value, (list, tuple)) and pd.isna(value):
        return ""
    return str(value).strip()


def _to_int(value, default=0):
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _rows(df) -> List[list]:
    """Non-blank rows of an editable table as lists of cell values."""
    if df is None:
        return []
    if not isinstance(df, pd.DataFrame):
        df = pd.DataFrame(df)
    rows = []
    for row in df.itertuples(index=False):
        values = list(row)
        if any(_text(v) for v in values):
            rows.append(values)
    return rows


def _pad(values: list, size: int) -> list:
    return list(values) + [None] * (size - len(values))


def _empty_table(headers: List[str]) -> pd.DataFrame:
    return pd.DataFrame([[""] * len(headers)], columns=headers)


def skills_from_table(df) -> List[Skill]:
    skills = []
    for row in _rows(df):
        program, target, trials, correct, prompted, incorrect, mastery, level, notes = _pad(row, 9)
        skills.append(Skill(
            program=_text(program),
            target=_text(target),
            trials=max(_to_int(trials), 0),
            correct=max(_to_int(correct), 0),
            prompted=max(_to_int(prompted), 0),
            incorrect=max(_to_int(incorrect), 0),
            mastery=min(max(_to_int(mastery), 0), 100),
            prompt_level=_text(level).lower(),
            notes=_text(notes),
        ))
    return skills


def behaviors_from_table(df) -> List[Behavior]:
    behaviors = []
    for row in _rows(df):
        name, definition, frequency, duration, intensity, antecedent, consequence, intervention, notes = _pad(row, 9)
        minutes = _to_int(duration, default=None)
        behaviors.append(Behavior(
            name=_text(name),
            definition=_text(definition),
            frequency=max(_to_int(frequency), 0),
            duration=max(minutes, 0) if minutes is not None else None,
            intensity=_text(intensity).lower(),
            antecedent=_text(antecedent),
            consequence=_text(consequence),
            intervention=_text(intervention),
            notes=_text(notes),
        ))
    return behaviors


def reinforcers_from_table(df) -> List[Reinforcer]:
    reinforcers = []
    for row in _rows(df):
        name, rtype, effectiveness, notes = _pad(row, 4)
        rating = _to_int(effectiveness, default=None)
        reinforcers.append(Reinforcer(
            reinforcer_name=_text(name),
            reinforcer_type=_text(rtype).lower(),
            effectiveness=rating if rating is not None and 1 <= rating <= 5 else None,
            notes=_text(notes),
        ))
    return reinforcers


# --- CATALOG PICKS ---
def append_table_row(df, headers: List[str], row: list) -> pd.DataFrame:
    """Add a filled row to an editable table, dropping its blank rows."""
    kept = [_pad(values, len(headers))[:len(headers)] for values in _rows(df)]
    return pd.DataFrame(kept + [_pad(row, len(headers))], columns=headers)


def catalog_skill_row(program_id, target_id) -> Optional[list]:
    program = catalogs.find_program(program_id or "")
    if program is None:
        return None
    target = next((t for t in catalogs.skill_targets(program.id) if t.id == target_id), None)
    return [program.name, target.name if target else "", None, None, None, None, None, "", ""]


def catalog_behavior_row(behavior_id) -> Optional[list]:
    behavior = catalogs.find_behavior(behavior_id or "")
    if behavior is None:
        return None
    return [behavior.name, behavior.definition, None, None, "", "", "", "", ""]


def catalog_reinforcer_row(reinforcer_id) -> Optional[list]:
    reinforcer = catalogs.find_reinforcer(reinforcer_id or "")
    if reinforcer is None:
        return None
    return [reinforcer.name, reinforcer.type, None, ""]


def catalog_reinforcer_type(name) -> Optional[str]:
    """Type of a predefined reinforcer picked by name, if it is one."""
    wanted = _text(name).lower()
    return next((r.type for r in catalogs.reinforcers() if r.name.lower() == wanted), None)


def activity_from_inputs(values: dict) -> Activity:
    behaviors = []
    for row in _rows(values["behaviors"]):
        behavior, intensity, interventions, notes = _pad(row, 4)
        behaviors.append(ActivityBehavior(
            behavior=_text(behavior),
            intensity=_text(intensity).lower(),
            interventions=[i.strip() for i in _text(interventions).split(",") if i.strip()],
            notes=_text(notes),
        ))
    prompts = []
    for row in _rows(values["prompts"]):
        ptype, count = _pad(row, 2)
        prompts.append(ActivityPrompt(type=_text(ptype).lower(), count=max(_to_int(count), 0)))

    duration = _to_int(values["duration"], default=None)
    return Activity(
        name=_text(values["name"]),
        description=_text(values["description"]),
        goal=_text(values["goal"]),
        location=_text(values["location"]),
        duration=duration if duration and duration > 0 else None,
        behaviors=behaviors,
        prompts=prompts,
        completed=bool(values["completed"]),
        completion_notes=_text(values["completion_notes"]),
        reinforcement=ActivityReinforcement(
            reinforcer_name=_text(values["reinforcer_name"]),
            type=_text(values["reinforcer_type"]),
            notes=_text(values["reinforcement_notes"]),
        ),
    )


def collect_updates(values: list) -> list:
    """Turn the flattened form inputs into one update per step."""
    (session_date, start_time, end_time, location, client_id,
     skills_df, behaviors_df, reinforcers_df,
     client_status, caregiver_report, initial_response, medication_changes,
     session_notes, caregiver_feedback, environmental_factors, next_session_focus,
     activity_count) = values[:17]
    activity_values = values[17:]

    activities = []
    width = len(ACTIVITY_FIELDS)
    for i in range(min(_to_int(activity_count, 1), MAX_ACTIVITY_ROWS)):
        row = dict(zip(ACTIVITY_FIELDS, activity_values[i * width:(i + 1) * width]))
        activity = activity_from_inputs(row)
        if activity.model_dump() != Activity().model_dump():
            activities.append(activity)

    return [
        BasicInfoUpdate(
            session_date=_text(session_date),
            start_time=_text(start_time),
            end_time=_text(end_time),
            location=_text(location),
            client_id=_text(client_id),
        ),
        SkillAcquisitionUpdate(skills=skills_from_table(skills_df)),
        BehaviorTrackingUpdate(behaviors=behaviors_from_table(behaviors_df)),
        ReinforcementUpdate(reinforcers=reinforcers_from_table(reinforcers_df)),
        InitialStatusUpdate(
            client_status=_text(client_status),
            caregiver_report=_text(caregiver_report),
            initial_response=_text(initial_response),
            medication_changes=_text(medication_changes),
        ),
        ActivitiesUpdate(activities=activities),
        GeneralNotesUpdate(
            session_notes=_text(session_notes),
            caregiver_feedback=_text(caregiver_feedback),
            environmental_factors=_text(environmental_factors),
            next_session_focus=_text(next_session_focus),
        ),
    ]


def sync_wizard(wizard: SessionWizard, values: list) -> SessionWizard:
    for update in collect_updates(values):
        if update.step in wizard.steps:
            wizard.update_section(update)
    return wizard


def format_errors(result: ValidationResult) -> str:
    if result.valid:
        return ""
    lines = [f"- **{field}**: {message}" for field, message in result.field_errors.items()]
    return "❌ Please fix the following:\n\n" + "\n".join(lines)


def format_sections(report: GeneratedReport) -> str:
    parts = []
    for key, title in REPORT_SECTIONS:
        parts.append(f"### {title}\n\n{report.sections[key]}")
    return "\n\n".join(parts)


def create_session_report_ui():
    """Create the session report wizard page UI."""

    client_choices = [(c.full_name, c.id) for c in client_directory.list_clients()]
    location_choices = [(label, value) for value, label in LOCATION_LABELS.items()]
    reinforcer_type_choices = [(label, value) for value, label in REINFORCER_TYPE_LABELS.items()]
    program_choices = [(p.name, p.id) for p in catalogs.skill_programs()]
    behavior_choices = [(b.name, b.id) for b in catalogs.behaviors()]
    reinforcer_choices = [(r.name, r.id) for r in catalogs.reinforcers()]
    reinforcer_names = [r.name for r in catalogs.reinforcers()]

    with gr.Column(visible=False) as page:
        with gr.Row():
            gr.Markdown("# Session Report")
            back_btn = gr.Button("🏠 Home", size="sm", variant="secondary")

        wizard_state = gr.State(None)
        report_state = gr.State(None)
        activity_count = gr.State(1)

        with gr.Row(elem_classes="left-panel"):
            flow = gr.Radio(choices=FLOW_CHOICES, value=FlowVariant.STRUCTURED.value,
                            label="Report Format", scale=2)
            rbt_name = gr.Textbox(label="RBT Name", value=DEFAULT_RBT_NAME, scale=1)
            model = gr.Dropdown(choices=ALL_MODELS, label="AI Model", value=DEFAULT_MODEL, scale=1)

        step_indicator = gr.Markdown("**Step 1:** Basic Information")
        step_errors = gr.Markdown("")

        step_columns = {}

        # BASIC INFO
        with gr.Column(visible=True) as col:
            gr.Markdown("### Basic Information")
            with gr.Row():
                client_id = gr.Dropdown(choices=client_choices, label="Client")
                session_date = gr.Textbox(label="Session Date", placeholder="YYYY-MM-DD",
                                          value=date.today().isoformat())
            with gr.Row():
                start_time = gr.Textbox(label="Start Time", placeholder="HH:MM")
                end_time = gr.Textbox(label="End Time", placeholder="HH:MM")
                location = gr.Dropdown(choices=location_choices, label="Location")
        step_columns[FormStep.BASIC_INFO] = col

        # STRUCTURED FLOW
        with gr.Column(visible=False) as col:
            gr.Markdown("### Skill Acquisition")
            gr.Markdown(f"Prompt levels: {', '.join(PROMPT_LEVEL_LABELS)}")
            with gr.Row():
                skill_program_pick = gr.Dropdown(choices=program_choices, label="Program", scale=2)
                skill_target_pick = gr.Dropdown(choices=[], label="Target", scale=2)
                add_skill_btn = gr.Button("➕ Add from catalog", size="sm", scale=1)
            skills_table = gr.Dataframe(
                headers=SKILL_HEADERS,
                datatype=["str", "str", "number", "number", "number", "number", "number", "str", "str"],
                value=_empty_table(SKILL_HEADERS),
                row_count=(1, "dynamic"),
                col_count=(len(SKILL_HEADERS), "fixed"),
                type="pandas",
                interactive=True,
            )
        step_columns[FormStep.SKILL_ACQUISITION] = col

        with gr.Column(visible=False) as col:
            gr.Markdown("### Behavior Tracking")
            gr.Markdown(f"Intensity: {', '.join(INTENSITY_LABELS)}")
            with gr.Row():
                behavior_pick = gr.Dropdown(choices=behavior_choices, label="Predefined Behavior", scale=4)
                add_behavior_btn = gr.Button("➕ Add from catalog", size="sm", scale=1)
            behaviors_table = gr.Dataframe(
                headers=BEHAVIOR_HEADERS,
                datatype=["str", "str", "number", "number", "str", "str", "str", "str", "str"],
                value=_empty_table(BEHAVIOR_HEADERS),
                row_count=(1, "dynamic"),
                col_count=(len(BEHAVIOR_HEADERS), "fixed"),
                type="pandas",
                interactive=True,
            )
        step_columns[FormStep.BEHAVIOR_TRACKING] = col

        with gr.Column(visible=False) as col:
            gr.Markdown("### Reinforcement")
            gr.Markdown(f"Types: {', '.join(REINFORCER_TYPE_LABELS)}")
            with gr.Row():
                reinforcer_pick = gr.Dropdown(choices=reinforcer_choices, label="Predefined Reinforcer", scale=4)
                add_reinforcer_btn = gr.Button("➕ Add from catalog", size="sm", scale=1)
            reinforcers_table = gr.Dataframe(
                headers=REINFORCER_HEADERS,
                datatype=["str", "str", "number", "str"],
                value=_empty_table(REINFORCER_HEADERS),
                row_count=(1, "dynamic"),
                col_count=(len(REINFORCER_HEADERS), "fixed"),
                type="pandas",
                interactive=True,
            )
        step_columns[FormStep.REINFORCEMENT] = col

        # ACTIVITY FLOW
        with gr.Column(visible=False) as col:
            gr.Markdown("### Initial Status")
            client_status = gr.Textbox(label="Client Status on Arrival", lines=2)
            caregiver_report = gr.Textbox(label="Caregiver Report (optional)", lines=2)
            initial_response = gr.Textbox(label="Initial Response", lines=2)
            medication_changes = gr.Textbox(label="Medication Changes (optional)", lines=1)
        step_columns[FormStep.INITIAL_STATUS] = col

        activity_rows = []
        activity_row_components = []
        with gr.Column(visible=False) as col:
            gr.Markdown("### Activities")
            for i in range(MAX_ACTIVITY_ROWS):
                with gr.Group(visible=(i == 0)) as row:
                    gr.Markdown(f"#### Activity {i + 1}")
                    with gr.Row():
                        a_name = gr.Textbox(label="Activity Name")
                        a_location = gr.Dropdown(choices=location_choices, label="Location")
                        a_duration = gr.Number(label="Duration (min)", minimum=0, precision=0)
                    a_description = gr.Textbox(label="Description", lines=2)
                    a_goal = gr.Textbox(label="Goal", lines=1)
                    a_behaviors = gr.Dataframe(
                        headers=ACTIVITY_BEHAVIOR_HEADERS,
                        datatype=["str", "str", "str", "str"],
                        value=_empty_table(ACTIVITY_BEHAVIOR_HEADERS),
                        row_count=(1, "dynamic"),
                        col_count=(len(ACTIVITY_BEHAVIOR_HEADERS), "fixed"),
                        type="pandas",
                        interactive=True,
                        label="Behaviors During Activity",
                    )
                    a_prompts = gr.Dataframe(
                        headers=ACTIVITY_PROMPT_HEADERS,
                        datatype=["str", "number"],
                        value=_empty_table(ACTIVITY_PROMPT_HEADERS),
                        row_count=(1, "dynamic"),
                        col_count=(len(ACTIVITY_PROMPT_HEADERS), "fixed"),
                        type="pandas",
                        interactive=True,
                        label=f"Prompts Used ({', '.join(PROMPT_TYPE_LABELS)})",
                    )
                    with gr.Row():
                        a_completed = gr.Checkbox(label="Completed")
                        a_completion_notes = gr.Textbox(label="Completion Notes")
                    with gr.Row():
                        a_reinforcer = gr.Dropdown(choices=reinforcer_names, label="Reinforcer",
                                                   allow_custom_value=True)
                        a_reinforcer_type = gr.Dropdown(choices=reinforcer_type_choices, label="Reinforcer Type")
                        a_reinforcement_notes = gr.Textbox(label="Reinforcement Notes")

                activity_rows.append([a_name, a_description, a_goal, a_location, a_duration,
                                      a_behaviors, a_prompts, a_completed, a_completion_notes,
                                      a_reinforcer, a_reinforcer_type, a_reinforcement_notes])
                activity_row_components.append(row)

            with gr.Row():
                add_activity_btn = gr.Button("➕ Add Activity", size="sm")
                remove_activity_btn = gr.Button("➖ Remove Activity", size="sm")
        step_columns[FormStep.ACTIVITIES] = col

        with gr.Column(visible=False) as col:
            gr.Markdown("### General Notes")
            session_notes = gr.Textbox(label="Session Notes", lines=4)
            caregiver_feedback = gr.Textbox(label="Caregiver Feedback (optional)", lines=2)
            environmental_factors = gr.Textbox(label="Environmental Factors (optional)", lines=2)
            next_session_focus = gr.Textbox(label="Next Session Focus", lines=2)
        step_columns[FormStep.GENERAL_NOTES] = col

        # GENERATION
        with gr.Column(visible=False) as col:
            gr.Markdown("### Generate Report")
            with gr.Row():
                generate_btn = gr.Button("Generate Report", variant="primary", scale=3)
                stop_btn = gr.Button("⛔ Stop", variant="stop", visible=False, scale=1)
                retry_btn = gr.Button("🔄 Try Again", variant="secondary", visible=False, scale=1)
            generation_status = gr.Markdown("")
            report_output = gr.Markdown()
        step_columns[FormStep.GENERATE_REPORT] = col

        with gr.Row():
            prev_btn = gr.Button("← Back", variant="secondary")
            reset_btn = gr.Button("Reset Form", variant="secondary")
            next_btn = gr.Button("Next →", variant="primary")

        # EDIT AND SAVE
        with gr.Group(visible=False, elem_classes="save-section") as editor_section:
            gr.Markdown("### ✏️ Edit Report")
            with gr.Tabs():
                with gr.Tab("Markdown"):
                    markdown_editor = gr.Textbox(label="Report (Markdown)", lines=20,
                                                 elem_classes="scrollable-textbox")
                    to_html_btn = gr.Button("Markdown → HTML", size="sm")
                with gr.Tab("HTML"):
                    html_editor = gr.Code(label="Report (HTML)", language="html", interactive=True)
                    to_markdown_btn = gr.Button("HTML → Markdown", size="sm")
                with gr.Tab("Preview"):
                    html_preview = gr.HTML()
                with gr.Tab("Sections"):
                    sections_view = gr.Markdown()

            with gr.Row():
                save_btn = gr.Button("💾 Save Report", variant="primary", size="sm")
            save_status = gr.Markdown("")

        with gr.Accordion("Saved Reports", open=False):
            refresh_reports_btn = gr.Button("Refresh", size="sm")
            reports_table = gr.Dataframe(
                headers=["ID", "Client", "Date", "Status", "Created"],
                interactive=False,
            )
            with gr.Row():
                status_report_id = gr.Textbox(label="Report ID")
                status_choice = gr.Dropdown(choices=[s.value for s in ReportStatus],
                                            value=ReportStatus.SUBMITTED.value, label="Status")
                update_status_btn = gr.Button("Update Status", size="sm")
            status_message = gr.Markdown("")

    form_inputs = [session_date, start_time, end_time, location, client_id,
                   skills_table, behaviors_table, reinforcers_table,
                   client_status, caregiver_report, initial_response, medication_changes,
                   session_notes, caregiver_feedback, environmental_factors, next_session_focus,
                   activity_count]
    for row in activity_rows:
        form_inputs.extend(row)

    components = {
        "page": page,
        "back_btn": back_btn,
        "wizard_state": wizard_state,
        "report_state": report_state,
        "activity_count": activity_count,
        "flow": flow,
        "rbt_name": rbt_name,
        "model": model,
        "step_indicator": step_indicator,
        "step_errors": step_errors,
        "step_columns": step_columns,
        "activity_rows": activity_rows,
        "activity_row_components": activity_row_components,
        "add_activity_btn": add_activity_btn,
        "remove_activity_btn": remove_activity_btn,
        "form_inputs": form_inputs,
        "skills_table": skills_table,
        "behaviors_table": behaviors_table,
        "reinforcers_table": reinforcers_table,
        "skill_program_pick": skill_program_pick,
        "skill_target_pick": skill_target_pick,
        "add_skill_btn": add_skill_btn,
        "behavior_pick": behavior_pick,
        "add_behavior_btn": add_behavior_btn,
        "reinforcer_pick": reinforcer_pick,
        "add_reinforcer_btn": add_reinforcer_btn,
        "generate_btn": generate_btn,
        "stop_btn": stop_btn,
        "retry_btn": retry_btn,
        "generation_status": generation_status,
        "report_output": report_output,
        "prev_btn": prev_btn,
        "reset_btn": reset_btn,
        "next_btn": next_btn,
        "editor_section": editor_section,
        "markdown_editor": markdown_editor,
        "html_editor": html_editor,
        "html_preview": html_preview,
        "sections_view": sections_view,
        "to_html_btn": to_html_btn,
        "to_markdown_btn": to_markdown_btn,
        "save_btn": save_btn,
        "save_status": save_status,
        "refresh_reports_btn": refresh_reports_btn,
        "reports_table": reports_table,
        "status_report_id": status_report_id,
        "status_choice": status_choice,
        "update_status_btn": update_status_btn,
        "status_message": status_message,
    }

    return components


def _blank_form_values() -> list:
    values = [date.today().isoformat(), "", "", None, None,
              _empty_table(SKILL_HEADERS), _empty_table(BEHAVIOR_HEADERS), _empty_table(REINFORCER_HEADERS),
              "", "", "", "", "", "", "", "", 1]
    for _ in range(MAX_ACTIVITY_ROWS):
        values.extend(["", "", "", None, None,
                       _empty_table(ACTIVITY_BEHAVIOR_HEADERS), _empty_table(ACTIVITY_PROMPT_HEADERS),
                       False, "", "", None, ""])
    return values


def setup_session_report_events(components):
    """Setup event handlers for the session report wizard."""

    step_order = list(FormStep)
    step_outputs = [components["step_columns"][step] for step in step_order]
    view_outputs = [components["wizard_state"], components["step_indicator"], components["step_errors"],
                    components["prev_btn"], components["next_btn"]] + step_outputs

    def new_wizard(flow_value, client_value=None):
        return SessionWizard(flow=FlowVariant(flow_value), client_id=client_value or "")

    def render(wizard, errors=""):
        steps = wizard.steps
        indicator = (f"**Step {wizard.step_index + 1} of {len(steps)}:** "
                     f"{STEP_TITLES[wizard.current_step]}")
        column_updates = [gr.update(visible=(step == wizard.current_step)) for step in step_order]
        return [
            wizard,
            indicator,
            errors,
            gr.update(interactive=wizard.step_index > 0),
            gr.update(visible=not wizard.is_final_step),
        ] + column_updates

    # Flow selection starts a fresh form
    def handle_flow_change(flow_value):
        return render(new_wizard(flow_value))

    components["flow"].change(
        fn=handle_flow_change,
        inputs=components["flow"],
        outputs=view_outputs
    )

    def handle_next(wizard, flow_value, *values):
        wizard = wizard or new_wizard(flow_value)
        try:
            sync_wizard(wizard, list(values))
        except ValueError as e:
            # pydantic ValidationError is a ValueError
            logger.warning(f"Rejected form input: {e}")
            return render(wizard, f"❌ Invalid input: {e}")
        result = wizard.advance()
        return render(wizard, format_errors(result))

    components["next_btn"].click(
        fn=handle_next,
        inputs=[components["wizard_state"], components["flow"]] + components["form_inputs"],
        outputs=view_outputs
    )

    def handle_prev(wizard, flow_value, *values):
        wizard = wizard or new_wizard(flow_value)
        try:
            sync_wizard(wizard, list(values))
        except ValueError as e:
            logger.warning(f"Rejected form input while going back: {e}")
        wizard.retreat()
        return render(wizard)

    components["prev_btn"].click(
        fn=handle_prev,
        inputs=[components["wizard_state"], components["flow"]] + components["form_inputs"],
        outputs=view_outputs
    )

    def handle_reset(wizard, flow_value):
        wizard = wizard or new_wizard(flow_value)
        wizard.reset()
        visibility = [gr.update(visible=(i == 0)) for i in range(MAX_ACTIVITY_ROWS)]
        return render(wizard) + _blank_form_values() + visibility + [None, gr.update(visible=False), "", ""]

    components["reset_btn"].click(
        fn=handle_reset,
        inputs=[components["wizard_state"], components["flow"]],
        outputs=view_outputs + components["form_inputs"] + components["activity_row_components"]
        + [components["report_state"], components["editor_section"],
           components["report_output"], components["generation_status"]]
    )

    # Activity row management
    def update_row_visibility(count):
        return [gr.update(visible=(i < count)) for i in range(MAX_ACTIVITY_ROWS)]

    def add_row(count):
        return min(count + 1, MAX_ACTIVITY_ROWS)

    def remove_row(count):
        return max(count - 1, 1)

    components["add_activity_btn"].click(
        fn=add_row,
        inputs=components["activity_count"],
        outputs=components["activity_count"]
    ).then(
        fn=update_row_visibility,
        inputs=components["activity_count"],
        outputs=components["activity_row_components"]
    )

    components["remove_activity_btn"].click(
        fn=remove_row,
        inputs=components["activity_count"],
        outputs=components["activity_count"]
    ).then(
        fn=update_row_visibility,
        inputs=components["activity_count"],
        outputs=components["activity_row_components"]
    )

    # Catalog picks
    def handle_program_pick(program_id):
        targets = catalogs.skill_targets(program_id) if program_id else []
        return gr.update(choices=[(t.name, t.id) for t in targets], value=None)

    def add_catalog_skill(df, program_id, target_id):
        row = catalog_skill_row(program_id, target_id)
        return df if row is None else append_table_row(df, SKILL_HEADERS, row)

    def add_catalog_behavior(df, behavior_id):
        row = catalog_behavior_row(behavior_id)
        return df if row is None else append_table_row(df, BEHAVIOR_HEADERS, row)

    def add_catalog_reinforcer(df, reinforcer_id):
        row = catalog_reinforcer_row(reinforcer_id)
        return df if row is None else append_table_row(df, REINFORCER_HEADERS, row)

    components["skill_program_pick"].change(
        fn=handle_program_pick,
        inputs=components["skill_program_pick"],
        outputs=components["skill_target_pick"]
    )
    components["add_skill_btn"].click(
        fn=add_catalog_skill,
        inputs=[components["skills_table"], components["skill_program_pick"], components["skill_target_pick"]],
        outputs=components["skills_table"]
    )
    components["add_behavior_btn"].click(
        fn=add_catalog_behavior,
        inputs=[components["behaviors_table"], components["behavior_pick"]],
        outputs=components["behaviors_table"]
    )
    components["add_reinforcer_btn"].click(
        fn=add_catalog_reinforcer,
        inputs=[components["reinforcers_table"], components["reinforcer_pick"]],
        outputs=components["reinforcers_table"]
    )

    def fill_reinforcer_type(name, current_type):
        return catalog_reinforcer_type(name) or current_type

    name_index = ACTIVITY_FIELDS.index("reinforcer_name")
    type_index = ACTIVITY_FIELDS.index("reinforcer_type")
    for row in components["activity_rows"]:
        row[name_index].change(
            fn=fill_reinforcer_type,
            inputs=[row[name_index], row[type_index]],
            outputs=row[type_index]
        )

    # Generation
    generation_outputs = [components["report_output"], components["generation_status"],
                          components["report_state"], components["editor_section"],
                          components["markdown_editor"], components["sections_view"],
                          components["retry_btn"], components["stop_btn"], components["generate_btn"]]

    async def handle_generate(wizard, rbt_name, model_name):
        idle = (gr.update(visible=False), gr.update(visible=False), gr.update(interactive=True))
        if wizard is None:
            yield ("", "❌ Complete the form first", None, gr.update(visible=False), "", "") + idle
            return

        result = wizard.validate_all()
        if not result.valid:
            yield ("", format_errors(result), None, gr.update(visible=False), "", "") + idle
            return

        state = wizard.state
        client = client_directory.get_client(state.basic_info.client_id)
        if client is None:
            yield ("", "❌ Client not found", None, gr.update(visible=False), "", "") + idle
            return

        rbt = rbt_name.strip() or DEFAULT_RBT_NAME
        prompt = assemble_prompt(state, client, rbt)
        metadata = build_report_metadata(state, client, rbt)
        generator = ReportGenerationClient(model_name=model_name)

        running = (gr.update(visible=False), gr.update(visible=True), gr.update(interactive=False))
        yield ("", f"🔄 Generating report with {model_name}...", None,
               gr.update(visible=False), "", "") + running

        async for event in generator.generate(prompt, correlation_id=wizard.session_id):
            if isinstance(event, TextDelta):
                yield (event.text, f"🔄 Generating report with {model_name}...", None,
                       gr.update(visible=False), "", "") + running
            elif isinstance(event, GenerationCompleted):
                report = build_report(event.full_text, metadata)
                yield (event.full_text, "✅ Report generated. Review and edit below, then save.", report,
                       gr.update(visible=True), event.full_text, format_sections(report)) + idle
            else:
                # Partial text from the failed attempt is dropped
                yield ("", f"❌ Generation failed: {event.error}", None, gr.update(visible=False), "", "",
                       gr.update(visible=True), gr.update(visible=False), gr.update(interactive=True))

    generate_inputs = [components["wizard_state"], components["rbt_name"], components["model"]]

    generate_event = components["generate_btn"].click(
        fn=handle_generate,
        inputs=generate_inputs,
        outputs=generation_outputs
    )

    retry_event = components["retry_btn"].click(
        fn=handle_generate,
        inputs=generate_inputs,
        outputs=generation_outputs
    )

    # Stop button
    def stop_generation():
        return (gr.update(visible=False), gr.update(interactive=True, variant="primary"),
                gr.update(visible=True), "⛔ Generation stopped")

    components["stop_btn"].click(
        fn=stop_generation,
        outputs=[components["stop_btn"], components["generate_btn"],
                 components["retry_btn"], components["generation_status"]],
        cancels=[generate_event, retry_event]
    )

    # Format conversion
    async def handle_to_html(markdown_text):
        rendered = await markdown_to_html(markdown_text)
        return rendered, rendered

    components["to_html_btn"].click(
        fn=handle_to_html,
        inputs=components["markdown_editor"],
        outputs=[components["html_editor"], components["html_preview"]]
    )

    async def handle_to_markdown(html_text):
        return await html_to_markdown(html_text)

    components["to_markdown_btn"].click(
        fn=handle_to_markdown,
        inputs=components["html_editor"],
        outputs=components["markdown_editor"]
    )

    async def handle_preview(markdown_text):
        return await markdown_to_html(markdown_text)

    components["markdown_editor"].change(
        fn=handle_preview,
        inputs=components["markdown_editor"],
        outputs=components["html_preview"],
        trigger_mode="always_last"
    )

    # Save functionality
    async def handle_save(report, markdown_text, wizard, rbt_name):
        if report is None or wizard is None:
            return "❌ No report to save"

        content = markdown_text if markdown_text and markdown_text.strip() else report.full_content
        final_report = build_report(content, report.metadata)
        client_id = wizard.state.basic_info.client_id
        try:
            report_id = await report_store.save(
                final_report,
                session_id=wizard.session_id,
                user_id=rbt_name.strip() or DEFAULT_RBT_NAME,
                client_id=client_id,
            )
            filepath = save_report_file(content, f"{DEFAULT_OUTPUT_PATH}{report_id}.md")
        except (PersistenceError, OSError) as e:
            logger.error(f"Saving report failed: {e}")
            return f"❌ Could not save the report: {e}\n\nYour report is kept here, so you can try saving again."

        return f"✅ Report saved successfully!\n**ID:** `{report_id}`\n**Path:** `{filepath}`"

    components["save_btn"].click(
        fn=handle_save,
        inputs=[components["report_state"], components["markdown_editor"],
                components["wizard_state"], components["rbt_name"]],
        outputs=components["save_status"]
    )

    # Saved reports
    async def handle_refresh():
        reports = await report_store.list_reports()
        rows = [[r.id, r.report.metadata.client_name, r.report.metadata.session_date,
                 r.report.status.value, r.created_at.strftime("%Y-%m-%d %H:%M")] for r in reports]
        return pd.DataFrame(rows, columns=["ID", "Client", "Date", "Status", "Created"])

    components["refresh_reports_btn"].click(
        fn=handle_refresh,
        outputs=components["reports_table"]
    )

    async def handle_status_update(report_id, status):
        if not report_id or not report_id.strip():
            return "❌ Enter a report ID"
        try:
            stored = await report_store.update_status(report_id.strip(), ReportStatus(status))
        except KeyError:
            return f"❌ Report `{report_id}` not found"
        except PersistenceError as e:
            return f"❌ Could not update status: {e}"
        return f"✅ Report `{stored.id}` is now **{stored.report.status.value}**"

    components["update_status_btn"].click(
        fn=handle_status_update,
        inputs=[components["status_report_id"], components["status_choice"]],
        outputs=components["status_message"]
    ).then(
        fn=handle_refresh,
        outputs=components["reports_table"]
    )
