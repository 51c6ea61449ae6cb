"""
Domain Layer - Catalog Data Models

Defines the static structure of the command catalog: Commands, Fields,
Workflows and their Steps.
"""

from command_generator.domain.models import (
    STAGE_FLOW,
    AutoBinding,
    BindingMode,
    CommandDefinition,
    CommandOutput,
    ConstraintLevel,
    FieldDefinition,
    FieldType,
    Stage,
    WorkflowDefinition,
    WorkflowStep,
)

__all__ = [
    "STAGE_FLOW",
    "AutoBinding",
    "BindingMode",
    "CommandDefinition",
    "CommandOutput",
    "ConstraintLevel",
    "FieldDefinition",
    "FieldType",
    "Stage",
    "WorkflowDefinition",
    "WorkflowStep",
]
