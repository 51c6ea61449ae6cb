"""
Command Generator

Assembles structured, reusable instructions for an AI coding assistant from
typed form fields, chains them into multi-step workflows and guides the user
through the explore -> plan -> review -> implement -> finalize pipeline.
"""

from command_generator.domain import (
    STAGE_FLOW,
    AutoBinding,
    BindingMode,
    CommandDefinition,
    CommandOutput,
    FieldDefinition,
    FieldType,
    Stage,
    WorkflowDefinition,
    WorkflowStep,
)
from command_generator.state import (
    FormState,
    GuidanceContext,
    GuidanceRecommendation,
    GuidanceState,
    StageStatus,
    VariableMap,
    WorkflowRun,
)
from command_generator.rendering import find_missing, render
from command_generator.guidance import GuidanceEngine
from command_generator.workflow import WorkflowRunner, apply_bindings, capture_outputs

__all__ = [
    # Domain Layer
    "STAGE_FLOW",
    "AutoBinding",
    "BindingMode",
    "CommandDefinition",
    "CommandOutput",
    "FieldDefinition",
    "FieldType",
    "Stage",
    "WorkflowDefinition",
    "WorkflowStep",
    # State Layer
    "FormState",
    "GuidanceContext",
    "GuidanceRecommendation",
    "GuidanceState",
    "StageStatus",
    "VariableMap",
    "WorkflowRun",
    # Rendering Layer
    "find_missing",
    "render",
    # Guidance Layer
    "GuidanceEngine",
    # Workflow Layer
    "WorkflowRunner",
    "apply_bindings",
    "capture_outputs",
]
