"""
Pydantic models for session form state, step updates and generated reports
"""
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# --- ENUMS ---
class FlowVariant(str, Enum):
    """Which set of wizard steps a report is built from."""
    STRUCTURED = "structured"
    ACTIVITY = "activity"


class FormStep(str, Enum):
    BASIC_INFO = "basic_info"
    SKILL_ACQUISITION = "skill_acquisition"
    BEHAVIOR_TRACKING = "behavior_tracking"
    REINFORCEMENT = "reinforcement"
    INITIAL_STATUS = "initial_status"
    ACTIVITIES = "activities"
    GENERAL_NOTES = "general_notes"
    GENERATE_REPORT = "generate_report"


class ReportStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"


FLOW_STEPS = {
    FlowVariant.STRUCTURED: [
        FormStep.BASIC_INFO,
        FormStep.SKILL_ACQUISITION,
        FormStep.BEHAVIOR_TRACKING,
        FormStep.REINFORCEMENT,
        FormStep.GENERAL_NOTES,
        FormStep.GENERATE_REPORT,
    ],
    FlowVariant.ACTIVITY: [
        FormStep.BASIC_INFO,
        FormStep.INITIAL_STATUS,
        FormStep.ACTIVITIES,
        FormStep.GENERAL_NOTES,
        FormStep.GENERATE_REPORT,
    ],
}

# Attribute of SessionFormState holding each data step
STEP_FIELDS = {
    FormStep.BASIC_INFO: "basic_info",
    FormStep.SKILL_ACQUISITION: "skill_acquisition",
    FormStep.BEHAVIOR_TRACKING: "behavior_tracking",
    FormStep.REINFORCEMENT: "reinforcement",
    FormStep.INITIAL_STATUS: "initial_status",
    FormStep.ACTIVITIES: "activities",
    FormStep.GENERAL_NOTES: "general_notes",
}


# --- FORM FIELD MODELS ---
class BasicInfo(BaseModel):
    session_date: str = ""
    start_time: str = ""
    end_time: str = ""
    location: str = ""
    client_id: str = ""


class Skill(BaseModel):
    program: str = ""
    target: str = ""
    trials: int = Field(0, ge=0)
    correct: int = Field(0, ge=0)
    prompted: int = Field(0, ge=0)
    incorrect: int = Field(0, ge=0)
    mastery: int = Field(0, ge=0, le=100)
    prompt_level: str = ""
    notes: str = ""


class SkillAcquisition(BaseModel):
    skills: List[Skill] = Field(default_factory=list)


class Behavior(BaseModel):
    name: str = ""
    definition: str = ""
    frequency: int = Field(0, ge=0)
    duration: Optional[int] = Field(None, ge=0, description="Minutes")
    intensity: str = ""
    antecedent: str = ""
    consequence: str = ""
    intervention: str = ""
    notes: str = ""


class BehaviorTracking(BaseModel):
    behaviors: List[Behavior] = Field(default_factory=list)


class Reinforcer(BaseModel):
    reinforcer_name: str = ""
    reinforcer_type: str = ""
    effectiveness: Optional[int] = Field(None, ge=1, le=5)
    notes: str = ""


class Reinforcement(BaseModel):
    reinforcers: List[Reinforcer] = Field(default_factory=list)


class InitialStatus(BaseModel):
    client_status: str = ""
    caregiver_report: str = ""
    initial_response: str = ""
    medication_changes: str = ""


class ActivityBehavior(BaseModel):
    behavior: str = ""
    intensity: str = ""
    interventions: List[str] = Field(default_factory=list)
    notes: str = ""


class ActivityPrompt(BaseModel):
    type: str = ""
    count: int = Field(0, ge=0)


class ActivityReinforcement(BaseModel):
    reinforcer_name: str = ""
    type: str = ""
    notes: str = ""


class Activity(BaseModel):
    name: str = ""
    description: str = ""
    goal: str = ""
    location: str = ""
    duration: Optional[int] = Field(None, ge=0, description="Minutes")
    behaviors: List[ActivityBehavior] = Field(default_factory=list)
    prompts: List[ActivityPrompt] = Field(default_factory=list)
    completed: bool = False
    completion_notes: str = ""
    reinforcement: ActivityReinforcement = Field(default_factory=ActivityReinforcement)
    skill_trials: List[Skill] = Field(default_factory=list)
    notes: str = ""


class Activities(BaseModel):
    activities: List[Activity] = Field(default_factory=list)


class GeneralNotes(BaseModel):
    session_notes: str = ""
    caregiver_feedback: str = ""
    environmental_factors: str = ""
    next_session_focus: str = ""


class SessionFormState(BaseModel):
    """Everything entered across the wizard for one report."""
    flow: FlowVariant = FlowVariant.STRUCTURED
    current_step: FormStep = FormStep.BASIC_INFO
    basic_info: BasicInfo = Field(default_factory=BasicInfo)
    skill_acquisition: SkillAcquisition = Field(default_factory=SkillAcquisition)
    behavior_tracking: BehaviorTracking = Field(default_factory=BehaviorTracking)
    reinforcement: Reinforcement = Field(default_factory=Reinforcement)
    initial_status: InitialStatus = Field(default_factory=InitialStatus)
    activities: Activities = Field(default_factory=Activities)
    general_notes: GeneralNotes = Field(default_factory=GeneralNotes)

    @property
    def steps(self) -> List[FormStep]:
        return FLOW_STEPS[self.flow]


# --- STEP UPDATES ---
# Partial updates: only fields explicitly set are merged into the step
class BasicInfoUpdate(BaseModel):
    step: Literal[FormStep.BASIC_INFO] = FormStep.BASIC_INFO
    session_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = None
    client_id: Optional[str] = None


class SkillAcquisitionUpdate(BaseModel):
    step: Literal[FormStep.SKILL_ACQUISITION] = FormStep.SKILL_ACQUISITION
    skills: Optional[List[Skill]] = None


class BehaviorTrackingUpdate(BaseModel):
    step: Literal[FormStep.BEHAVIOR_TRACKING] = FormStep.BEHAVIOR_TRACKING
    behaviors: Optional[List[Behavior]] = None


class ReinforcementUpdate(BaseModel):
    step: Literal[FormStep.REINFORCEMENT] = FormStep.REINFORCEMENT
    reinforcers: Optional[List[Reinforcer]] = None


class InitialStatusUpdate(BaseModel):
    step: Literal[FormStep.INITIAL_STATUS] = FormStep.INITIAL_STATUS
    client_status: Optional[str] = None
    caregiver_report: Optional[str] = None
    initial_response: Optional[str] = None
    medication_changes: Optional[str] = None


class ActivitiesUpdate(BaseModel):
    step: Literal[FormStep.ACTIVITIES] = FormStep.ACTIVITIES
    activities: Optional[List[Activity]] = None


class GeneralNotesUpdate(BaseModel):
    step: Literal[FormStep.GENERAL_NOTES] = FormStep.GENERAL_NOTES
    session_notes: Optional[str] = None
    caregiver_feedback: Optional[str] = None
    environmental_factors: Optional[str] = None
    next_session_focus: Optional[str] = None


StepUpdate = Annotated[
    Union[
        BasicInfoUpdate,
        SkillAcquisitionUpdate,
        BehaviorTrackingUpdate,
        ReinforcementUpdate,
        InitialStatusUpdate,
        ActivitiesUpdate,
        GeneralNotesUpdate,
    ],
    Field(discriminator="step"),
]


# --- DIRECTORY AND REPORT MODELS ---
class ClientInfo(BaseModel):
    id: str
    first_name: str
    last_name: str
    date_of_birth: str = ""
    diagnosis: str = ""
    guardian_name: str = ""
    provider: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class ReportMetadata(BaseModel):
    client_name: str
    session_date: str
    session_duration: str
    location: str
    rbt_name: str


class GeneratedReport(BaseModel):
    """A finished report. Status changes produce a new copy."""
    model_config = ConfigDict(frozen=True)

    metadata: ReportMetadata
    full_content: str
    sections: Dict[str, str]
    status: ReportStatus = ReportStatus.DRAFT


# Model class holding each data step
STEP_MODELS = {
    FormStep.BASIC_INFO: BasicInfo,
    FormStep.SKILL_ACQUISITION: SkillAcquisition,
    FormStep.BEHAVIOR_TRACKING: BehaviorTracking,
    FormStep.REINFORCEMENT: Reinforcement,
    FormStep.INITIAL_STATUS: InitialStatus,
    FormStep.ACTIVITIES: Activities,
    FormStep.GENERAL_NOTES: GeneralNotes,
}
