"""
Domain Layer - Catalog Data Models

This module defines the static structure of the command catalog: commands
with their typed input fields and text templates, and workflows chaining
several commands into ordered steps. These dataclasses are loaded once from
the manifest and never mutated afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional, List


class Stage(str, Enum):
    """
    The five phases a command belongs to and a session progresses through.
    Declaration order is the fixed progression order (see STAGE_FLOW).
    """
    EXPLORE = "explore"
    PLAN = "plan"
    REVIEW = "review"
    IMPLEMENT = "implement"
    FINALIZE = "finalize"


STAGE_FLOW: List[Stage] = list(Stage)


class FieldType(str, Enum):
    """
    Input widget kinds. The value shape stored in a FormState follows the type:
    - text / textarea / select / path: str
    - list: list of str
    - boolean: bool
    """
    TEXT = "text"
    TEXTAREA = "textarea"
    LIST = "list"
    BOOLEAN = "boolean"
    SELECT = "select"
    PATH = "path"


ConstraintLevel = Literal["lite", "medium", "strong"]


class BindingMode(str, Enum):
    SET = "set"  # Always overwrite the target field
    FILL_IF_EMPTY = "fill-if-empty"  # Only write into a blank target field


@dataclass
class FieldDefinition:
    """
    A single typed input of a command form.

    Attributes:
        id: Field identifier, referenced from the template as {{id}}.
        label: Human-readable label.
        type: FieldType
        required: Whether the field must be filled before generating.
        default_value: Initial value when a form is created.
        options: Allowed values for select fields.
        placeholder: Hint text shown in an empty input.
        advanced: Field belongs to the collapsible "advanced" section.
    """
    id: str
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = False
    default_value: Optional[str | bool | List[str]] = None
    options: List[str] = field(default_factory=list)
    placeholder: Optional[str] = None
    advanced: bool = False


@dataclass
class CommandOutput:
    """
    A value a command publishes to later workflow steps once generated.

    Attributes:
        id: Variable name the value is stored under.
        source_field_id: Field whose value is captured.
    """
    id: str
    source_field_id: str


@dataclass
class CommandDefinition:
    """
    A catalog command: a text template plus the schema of its input form.

    The template mixes two placeholder kinds, resolved by the renderer:
    {{FIELD_ID}} for form fields and {NAME} for session variables.
    """
    id: str
    display_name: str
    stage: Stage
    template: str
    constraint_level: ConstraintLevel = "medium"
    fields: List[FieldDefinition] = field(default_factory=list)
    outputs: List[CommandOutput] = field(default_factory=list)
    description: Optional[str] = None

    def get_field(self, field_id: str) -> Optional[FieldDefinition]:
        return next((f for f in self.fields if f.id == field_id), None)


@dataclass
class AutoBinding:
    """
    Copies a workflow variable into a field of the step's form.

    Attributes:
        from_var: Name of the source variable.
        to_field_id: Target field on the step's command.
        mode: BindingMode (ignored for list fields, which always append).
    """
    from_var: str
    to_field_id: str
    mode: BindingMode = BindingMode.FILL_IF_EMPTY


@dataclass
class WorkflowStep:
    step_id: str
    command_id: str
    optional: bool = False
    auto_bindings: List[AutoBinding] = field(default_factory=list)
    title: Optional[str] = None


@dataclass
class WorkflowDefinition:
    """
    Ordered sequence of command-backed steps.

    Steps share a single VariableMap for the duration of a run, which is how
    outputs captured in one step reach the auto-bindings of a later one.
    """
    id: str
    title: str
    steps: List[WorkflowStep] = field(default_factory=list)
    description: Optional[str] = None
