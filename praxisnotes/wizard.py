"""
Wizard controller for the session report form.

The controller is the only place the aggregate SessionFormState changes.
Step data is merged through ``reduce`` from tagged per-step update messages,
and step transitions are gated by the step validators.
"""
import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter

from .models import (
    BasicInfo,
    FlowVariant,
    FormStep,
    SessionFormState,
    StepUpdate,
    STEP_FIELDS,
)
from .validation import ValidationResult, validate_form, validate_step

logger = logging.getLogger(__name__)

_step_update_adapter = TypeAdapter(StepUpdate)


def parse_step_update(data: Dict[str, Any]) -> StepUpdate:
    """Build a typed step update from a plain dict carrying a ``step`` tag."""
    return _step_update_adapter.validate_python(data)


def reduce(state: SessionFormState, update: StepUpdate) -> SessionFormState:
    """Return a new state with ``update`` merged into exactly one step."""
    if update.step not in state.steps:
        raise ValueError(
            f"Step '{update.step.value}' is not part of the {state.flow.value} flow"
        )

    field_name = STEP_FIELDS[update.step]
    changed = {
        name for name in update.model_fields_set
        if name != "step" and getattr(update, name) is not None
    }
    if not changed:
        return state

    current = getattr(state, field_name)
    merged = type(current).model_validate({
        **current.model_dump(),
        **update.model_dump(include=changed),
    })
    return state.model_copy(update={field_name: merged})


class SessionWizard:
    """Holds one in-progress report form and its step pointer."""

    def __init__(self, flow: FlowVariant = FlowVariant.STRUCTURED,
                 client_id: str = "", session_date: Optional[str] = None):
        self._flow = FlowVariant(flow)
        self._client_id = client_id
        self._session_date = session_date if session_date is not None else date.today().isoformat()
        self.session_id = uuid.uuid4().hex
        self._state = self._initial_state()

    def _initial_state(self) -> SessionFormState:
        return SessionFormState(
            flow=self._flow,
            basic_info=BasicInfo(client_id=self._client_id, session_date=self._session_date),
        )

    # --- READ ACCESS ---
    @property
    def state(self) -> SessionFormState:
        """A copy of the current form state."""
        return self._state.model_copy(deep=True)

    @property
    def flow(self) -> FlowVariant:
        return self._flow

    @property
    def steps(self) -> List[FormStep]:
        return self._state.steps

    @property
    def current_step(self) -> FormStep:
        return self._state.current_step

    @property
    def step_index(self) -> int:
        return self.steps.index(self.current_step)

    @property
    def is_final_step(self) -> bool:
        return self.current_step == self.steps[-1]

    # --- TRANSITIONS ---
    def advance(self) -> ValidationResult:
        """Move forward if the current step validates; otherwise stay put."""
        if self.is_final_step:
            return ValidationResult(
                valid=False,
                field_errors={"step": "Already at the final step"}
            )

        result = validate_step(self._state, self.current_step)
        if not result.valid:
            logger.debug(f"Step {self.current_step.value} blocked: {list(result.field_errors)}")
            return result

        next_step = self.steps[self.step_index + 1]
        self._state = self._state.model_copy(update={"current_step": next_step})
        return result

    def retreat(self) -> FormStep:
        if self.step_index > 0:
            previous = self.steps[self.step_index - 1]
            self._state = self._state.model_copy(update={"current_step": previous})
        return self.current_step

    def reset(self):
        """Clear all step data and start a new form session."""
        self.session_id = uuid.uuid4().hex
        self._state = self._initial_state()

    def update_section(self, update: StepUpdate) -> SessionFormState:
        """Merge a partial update into one step's data."""
        self._state = reduce(self._state, update)
        return self.state

    def validate_all(self) -> ValidationResult:
        """Validate every data step of the active flow."""
        return validate_form(self._state)
