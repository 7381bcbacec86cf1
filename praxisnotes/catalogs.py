"""
Predefined skill programs, behaviors and reinforcers.

The wizard offers these as picks; clinicians can still type their own entries.
"""
from typing import Iterable, List, Optional, TypeVar

from pydantic import BaseModel

from .config import BEHAVIOR_CATALOG, REINFORCER_CATALOG, SKILL_PROGRAMS, SKILL_TARGETS


class SkillProgramOption(BaseModel):
    id: str
    name: str
    description: str = ""


class SkillTargetOption(BaseModel):
    id: str
    program_id: str
    name: str
    description: str = ""


class BehaviorOption(BaseModel):
    id: str
    name: str
    definition: str
    category: str = ""


class ReinforcerOption(BaseModel):
    id: str
    name: str
    type: str
    description: str = ""
    category: str = ""


Option = TypeVar("Option", bound=BaseModel)


def _find(options: Iterable[Option], option_id: str) -> Optional[Option]:
    return next((option for option in options if option.id == option_id), None)


def _matches(query: str, *texts: str) -> bool:
    needle = query.strip().lower()
    return any(needle in text.lower() for text in texts)


# --- SKILLS ---
def skill_programs() -> List[SkillProgramOption]:
    return [SkillProgramOption.model_validate(entry) for entry in SKILL_PROGRAMS]


def skill_targets(program_id: Optional[str] = None) -> List[SkillTargetOption]:
    """All targets, or only those of one program."""
    targets = [SkillTargetOption.model_validate(entry) for entry in SKILL_TARGETS]
    if program_id:
        targets = [t for t in targets if t.program_id == program_id]
    return targets


def find_program(program_id: str) -> Optional[SkillProgramOption]:
    return _find(skill_programs(), program_id)


# --- BEHAVIORS ---
def behaviors() -> List[BehaviorOption]:
    return [BehaviorOption.model_validate(entry) for entry in BEHAVIOR_CATALOG]


def find_behavior(behavior_id: str) -> Optional[BehaviorOption]:
    return _find(behaviors(), behavior_id)


def search_behaviors(query: str) -> List[BehaviorOption]:
    """Case-insensitive match on name or definition."""
    return [b for b in behaviors() if _matches(query, b.name, b.definition)]


# --- REINFORCERS ---
def reinforcers() -> List[ReinforcerOption]:
    return [ReinforcerOption.model_validate(entry) for entry in REINFORCER_CATALOG]


def find_reinforcer(reinforcer_id: str) -> Optional[ReinforcerOption]:
    return _find(reinforcers(), reinforcer_id)


def search_reinforcers(query: str) -> List[ReinforcerOption]:
    """Case-insensitive match on name or description."""
    return [r for r in reinforcers() if _matches(query, r.name, r.description)]
