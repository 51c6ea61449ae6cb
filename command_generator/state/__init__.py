"""
State Layer - Runtime Data Models

Defines the runtime state that tracks form values, the stage guidance
timeline, drafts, history entries and workflow runs.
"""

from command_generator.state.models import (
    GUIDANCE_HISTORY_CAPACITY,
    Attachment,
    FormState,
    GeneratorDraft,
    GuidanceContext,
    GuidanceEvent,
    GuidanceRecommendation,
    GuidanceState,
    HistoryEntry,
    StageStatus,
    VariableMap,
    WorkflowRun,
)

__all__ = [
    "GUIDANCE_HISTORY_CAPACITY",
    "Attachment",
    "FormState",
    "GeneratorDraft",
    "GuidanceContext",
    "GuidanceEvent",
    "GuidanceRecommendation",
    "GuidanceState",
    "HistoryEntry",
    "StageStatus",
    "VariableMap",
    "WorkflowRun",
]
