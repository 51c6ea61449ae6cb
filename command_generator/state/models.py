"""
State Layer - Runtime Data Models

This module defines the runtime state that changes while a user works:
form values and variables, the session-wide guidance timeline, drafts,
generated history entries and the progress of a workflow run.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Dict, Optional, Literal, Union
from pydantic import BaseModel, Field, field_validator

from ..domain.models import STAGE_FLOW, Stage

# Value shapes stored in a form, keyed by field id
FieldValue = Union[bool, str, List[str]]
FormState = Dict[str, FieldValue]
VariableMap = Dict[str, str]

GUIDANCE_HISTORY_CAPACITY = 100


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StageStatus(str, Enum):
    TODO = "todo"
    ACTIVE = "active"
    DONE = "done"


def initial_stage_status() -> Dict[Stage, StageStatus]:
    status = {stage: StageStatus.TODO for stage in STAGE_FLOW}
    status[STAGE_FLOW[0]] = StageStatus.ACTIVE
    return status


class GuidanceEvent(BaseModel):
    """
    A single successful generation, recorded against the stage of its command.
    """
    command: str
    stage: Stage
    timestamp: datetime


class GuidanceState(BaseModel):
    """
    The session-wide progress through the stage pipeline.

    Construction enforces the invariants of the stage record: every stage has
    a status and at most one stage is 'active'. Absent stages take their
    initial status (explore active) unless another stage is already active, in
    which case they are 'todo'. The history is newest-first and bounded to
    GUIDANCE_HISTORY_CAPACITY entries.
    """
    stage_status: Dict[Stage, StageStatus] = Field(default_factory=initial_stage_status)
    history: List[GuidanceEvent] = Field(default_factory=list)
    last: Optional[GuidanceEvent] = None

    @field_validator("stage_status")
    @classmethod
    def _check_single_active(cls, value: Dict[Stage, StageStatus]) -> Dict[Stage, StageStatus]:
        if StageStatus.ACTIVE in value.values():
            fallback = {stage: StageStatus.TODO for stage in STAGE_FLOW}
        else:
            fallback = initial_stage_status()
        status = {stage: value.get(stage, fallback[stage]) for stage in STAGE_FLOW}
        active = [stage.value for stage, s in status.items() if s == StageStatus.ACTIVE]
        if len(active) > 1:
            raise ValueError(f"At most one stage may be active, got {active}")
        return status

    @field_validator("history")
    @classmethod
    def _bound_history(cls, value: List[GuidanceEvent]) -> List[GuidanceEvent]:
        return value[:GUIDANCE_HISTORY_CAPACITY]

    @property
    def active_stage(self) -> Optional[Stage]:
        return next(
            (stage for stage in STAGE_FLOW if self.stage_status[stage] == StageStatus.ACTIVE),
            None,
        )

    def count(self, status: StageStatus) -> int:
        return sum(1 for s in self.stage_status.values() if s == status)


class GuidanceContext(BaseModel):
    """Where the user currently is, used to pick context-specific commands."""
    workflow_template: Optional[str] = None


class GuidanceRecommendation(BaseModel):
    stage: Stage
    command: str
    reason: str
    severity: Optional[Literal["warning"]] = None


AttachmentMode = Literal["path", "snippet", "full"]


class Attachment(BaseModel):
    name: str
    content: str


class GeneratorDraft(BaseModel):
    """
    Snapshot of the standalone generator, overwritten wholesale on every save.
    """
    selected_command_id: str = ""
    form_state: FormState = Field(default_factory=dict)
    variables: VariableMap = Field(default_factory=dict)
    attachments: List[Attachment] = Field(default_factory=list)
    attachment_target: str = ""
    attachment_mode: AttachmentMode = "snippet"
    preview_override: Optional[str] = None
    saved_at: datetime = Field(default_factory=utcnow)


class HistoryEntry(BaseModel):
    id: str
    command_id: str
    created_at: datetime = Field(default_factory=utcnow)
    fields: FormState = Field(default_factory=dict)
    command_text: str


StepStatus = Literal["pending", "done", "skipped"]


class WorkflowRun(BaseModel):
    """
    Progress of one workflow execution.

    Each step owns its own form; the variable map is shared by every step of
    the run so that captured outputs can feed later auto-bindings.
    """
    workflow_id: str
    step_index: int = 0
    forms: Dict[str, FormState] = Field(default_factory=dict)
    variables: VariableMap = Field(default_factory=dict)
    step_status: Dict[str, StepStatus] = Field(default_factory=dict)
    bindings_applied: Dict[str, bool] = Field(default_factory=dict)
    preview_overrides: Dict[str, str] = Field(default_factory=dict)
