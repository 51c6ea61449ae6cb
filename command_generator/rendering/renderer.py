"""
Template Renderer

Turns a command template plus the current form values and variables into the
final command text. Two placeholder kinds are recognised in a single pass:

    {{FIELD_ID}}   replaced by the value of the form field FIELD_ID
    {NAME}         replaced by the variable NAME, or by <<MISSING:NAME>>

Substituted values are emitted verbatim and never re-scanned, so braces inside
a field value (code snippets, JSON) survive untouched. Unresolved variables are
not errors: the sentinel lets callers list them with find_missing() without
parsing the template again.
"""

import logging
import re
from typing import List, Mapping, Optional

from ..domain.models import CommandDefinition, FieldDefinition, FieldType
from ..state.models import FieldValue

logger = logging.getLogger(__name__)

IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_-]*"

PLACEHOLDER_PATTERN = re.compile(
    r"\{\{\s*(?P<field>" + IDENTIFIER + r")\s*\}\}"
    r"|(?<!\{)\{(?P<var>" + IDENTIFIER + r")\}(?!\})"
)
MISSING_PATTERN = re.compile(r"<<MISSING:(" + IDENTIFIER + r")>>")

LIST_BULLET = "- "
BOOLEAN_TOKENS = {True: "yes", False: "no"}


def missing_sentinel(name: str) -> str:
    return f"<<MISSING:{name}>>"


def format_field_value(field: FieldDefinition, value: Optional[FieldValue]) -> str:
    """Format a single form value the way it appears in the rendered text."""
    if field.type == FieldType.LIST:
        if isinstance(value, list):
            items = [item for item in value if isinstance(item, str)]
        elif isinstance(value, str):
            items = value.splitlines()
        else:
            # Wrong shape for a list field (e.g. a stale draft): render nothing
            items = []
        return "\n".join(f"{LIST_BULLET}{item.strip()}" for item in items if item.strip())

    if field.type == FieldType.BOOLEAN:
        return BOOLEAN_TOKENS[value is True]

    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return ", ".join(item for item in value if isinstance(item, str))
    return ""


def render(
    command: CommandDefinition,
    fields: Mapping[str, FieldValue],
    variables: Mapping[str, str],
) -> str:
    """
    Render the command template.

    Args:
        command: Command whose template and field schema are used.
        fields: Current form values keyed by field id. Missing keys render empty.
        variables: Variable values keyed by name.

    Returns:
        The rendered text, with <<MISSING:NAME>> for every unresolved variable.
    """
    field_index = {f.id: f for f in command.fields}

    def substitute(match: re.Match) -> str:
        field_id = match.group("field")
        if field_id is not None:
            field = field_index.get(field_id)
            if field is None:
                logger.debug(f"Template of '{command.id}' references unknown field '{field_id}'")
                return ""
            return format_field_value(field, fields.get(field_id))

        name = match.group("var")
        if name in variables:
            return variables[name]
        return missing_sentinel(name)

    return PLACEHOLDER_PATTERN.sub(substitute, command.template)


def find_missing(text: str) -> List[str]:
    """
    Collect the names of unresolved variables from rendered text.
    De-duplicated, in first-seen order.
    """
    return list(dict.fromkeys(MISSING_PATTERN.findall(text)))
