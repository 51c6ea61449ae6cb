"""
Binding Propagator

Moves values between the steps of a workflow run through the run's shared
variable map:

- capture_outputs() reads the declared outputs of a generated step's command
    and returns them as variable updates.
- apply_bindings() copies variables into the form of a later step according
    to the step's auto-bindings.

Applying the same bindings twice yields the same form as applying them once:
list targets are de-duplicated and scalar writes are skipped when the value is
already in place.
"""

import logging
from typing import Mapping, Tuple

from ..domain.models import BindingMode, CommandDefinition, FieldType, WorkflowStep
from ..state.models import FieldValue, FormState, VariableMap

logger = logging.getLogger(__name__)


def _is_blank(value: FieldValue | None) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list):
        return len(value) == 0
    return False


def apply_bindings(
    step: WorkflowStep,
    command: CommandDefinition,
    target_fields: FormState,
    variables: Mapping[str, str],
) -> Tuple[FormState, bool]:
    """
    Apply the step's auto-bindings to its form.

    Args:
        step: Workflow step carrying the bindings.
        command: The step's command (provides the target field types).
        target_fields: Current form of the step. Not modified.
        variables: The run's variable map.

    Returns:
        (updated form, whether any field changed). When nothing changed the
        original form object is returned.
    """
    updated = dict(target_fields)
    changed = False

    for binding in step.auto_bindings:
        value = variables.get(binding.from_var)
        if not value:
            continue

        field = command.get_field(binding.to_field_id)
        if field is None:
            logger.debug(
                f"Step '{step.step_id}' binds to unknown field '{binding.to_field_id}', skipping"
            )
            continue

        current = updated.get(field.id)

        if field.type == FieldType.LIST:
            items = list(current) if isinstance(current, list) else []
            if value not in items:
                items.append(value)
                updated[field.id] = items
                changed = True
            continue

        if binding.mode == BindingMode.SET or _is_blank(current):
            if current != value:
                updated[field.id] = value
                changed = True

    if changed:
        logger.info(f"Applied auto-bindings for step '{step.step_id}'")
        return updated, True
    return target_fields, False


def capture_outputs(command: CommandDefinition, fields: Mapping[str, FieldValue]) -> VariableMap:
    """
    Collect the command's declared outputs from a generated form.
    Only non-blank string values are captured, trimmed.
    """
    updates: VariableMap = {}
    for output in command.outputs:
        value = fields.get(output.source_field_id)
        if isinstance(value, str) and value.strip():
            updates[output.id] = value.strip()
    return updates
