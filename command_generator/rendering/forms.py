"""
Form helpers: initial values, required-field completeness, list editing,
attachment insertion and catalog ordering for display.

Completeness is advisory. Nothing here raises when a form is incomplete;
callers decide whether to allow generation from can_generate().
"""

from typing import Dict, List, Optional

from ..config import settings
from ..domain.models import STAGE_FLOW, CommandDefinition, FieldDefinition, FieldType
from ..state.models import Attachment, AttachmentMode, FieldValue, FormState

CONSTRAINT_ORDER = {"lite": 0, "medium": 1, "strong": 2}
STAGE_ORDER = {stage: index for index, stage in enumerate(STAGE_FLOW)}

DEFAULT_ATTACHMENT_FIELD = "CONTEXT"


def initial_form(command: CommandDefinition) -> FormState:
    form: FormState = {}
    for field in command.fields:
        if field.default_value is not None:
            default = field.default_value
            form[field.id] = list(default) if isinstance(default, list) else default
        elif field.type == FieldType.LIST:
            form[field.id] = []
        elif field.type == FieldType.BOOLEAN:
            form[field.id] = False
        else:
            form[field.id] = ""
    return form


def matches_field_type(field: FieldDefinition, value: FieldValue) -> bool:
    """Whether a stored value has the shape the field type expects."""
    if field.type == FieldType.LIST:
        return isinstance(value, list) and all(isinstance(item, str) for item in value)
    if field.type == FieldType.BOOLEAN:
        return isinstance(value, bool)
    return isinstance(value, str)


def restore_form(command: CommandDefinition, stored: FormState) -> FormState:
    """
    Rebuild a form from stored values. Values for fields the command no longer
    declares, or whose shape no longer matches the field type, are replaced by
    the initial value.
    """
    form = initial_form(command)
    for field in command.fields:
        if field.id in stored and matches_field_type(field, stored[field.id]):
            value = stored[field.id]
            form[field.id] = list(value) if isinstance(value, list) else value
    return form


def is_field_filled(command: CommandDefinition, field_id: str, value: Optional[FieldValue]) -> bool:
    field = command.get_field(field_id)
    if field is None:
        return bool(value)
    if field.type == FieldType.LIST:
        return isinstance(value, list) and len(value) > 0
    if field.type == FieldType.BOOLEAN:
        return value is True
    if isinstance(value, str):
        return len(value.strip()) > 0
    return bool(value)


def missing_required(command: CommandDefinition, form: FormState) -> List[str]:
    return [
        f.id for f in command.fields
        if f.required and not is_field_filled(command, f.id, form.get(f.id))
    ]


def can_generate(command: CommandDefinition, form: FormState) -> bool:
    return not missing_required(command, form)


def parse_list(raw: str) -> List[str]:
    """One item per line; surrounding whitespace and blank lines dropped."""
    return [line.strip() for line in raw.splitlines() if line.strip()]


def default_attachment_target(command: CommandDefinition) -> str:
    if command.get_field(DEFAULT_ATTACHMENT_FIELD):
        return DEFAULT_ATTACHMENT_FIELD
    return command.fields[0].id if command.fields else ""


def attachable_fields(command: CommandDefinition) -> List[str]:
    return [
        f.id for f in command.fields
        if f.type not in (FieldType.SELECT, FieldType.BOOLEAN)
    ]


def capture_attachment(name: str, text: str) -> Attachment:
    return Attachment(name=name, content=text[: settings.ATTACHMENT_CHAR_LIMIT])


def insert_attachments(
    command: CommandDefinition,
    form: FormState,
    field_id: str,
    attachments: List[Attachment],
    mode: AttachmentMode,
) -> FormState:
    """
    Return a copy of the form with the attachments referenced in field_id.

    List fields receive one "File: name" entry per attachment. Text fields get
    a block appended: the file name alone in 'path' mode, the name followed by
    the captured text otherwise.
    """
    field = command.get_field(field_id)
    if field is None or not attachments:
        return form

    updated = dict(form)
    if field.type == FieldType.LIST:
        existing = form.get(field_id)
        current = list(existing) if isinstance(existing, list) else []
        updated[field_id] = current + [f"File: {a.name}" for a in attachments]
        return updated

    blocks = []
    for attachment in attachments:
        if mode == "path":
            blocks.append(f"- File: {attachment.name}")
        else:
            blocks.append(f"- File: {attachment.name}\n  ---\n  {attachment.content}\n  ---")
    existing = form.get(field_id)
    current = existing if isinstance(existing, str) else ""
    updated[field_id] = (current + "\n" + "\n".join(blocks)).strip()
    return updated


def sort_commands(commands: List[CommandDefinition]) -> List[CommandDefinition]:
    return sorted(
        commands,
        key=lambda c: (STAGE_ORDER[c.stage], CONSTRAINT_ORDER[c.constraint_level], c.display_name),
    )


def group_by_stage(commands: List[CommandDefinition]) -> Dict[str, List[CommandDefinition]]:
    groups: Dict[str, List[CommandDefinition]] = {}
    for command in sort_commands(commands):
        groups.setdefault(command.stage.value, []).append(command)
    return groups
