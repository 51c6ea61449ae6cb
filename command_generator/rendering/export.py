"""
Export payloads for generated commands.

Builds the file name, content and media type for a single command (plain
text, JSON field snapshot or a Markdown document) and a Markdown summary of a
whole workflow run. Writing the payload anywhere is left to the caller.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import List, Literal, Optional

from ..domain.models import CommandDefinition, WorkflowDefinition
from ..state.models import FormState, utcnow
from .loader import render_document
from .templates import Template

ExportKind = Literal["txt", "json", "md"]


@dataclass
class ExportPayload:
    filename: str
    content: str
    media_type: str


@dataclass
class StepExport:
    """One workflow step as it appears in a workflow document."""
    title: str
    command_id: str
    status: str
    text: str


def _file_timestamp(now: datetime) -> str:
    return now.isoformat().replace(":", "-").replace(".", "-")


def build_export_payload(
    command: CommandDefinition,
    fields: FormState,
    text: str,
    kind: ExportKind,
    now: Optional[datetime] = None,
) -> ExportPayload:
    ts = _file_timestamp(now or utcnow())
    base = f"{command.id}-{ts}"

    if kind == "txt":
        return ExportPayload(f"{base}.txt", text, "text/plain")

    fields_json = json.dumps(fields, indent=2, ensure_ascii=False)
    if kind == "json":
        content = json.dumps(
            {"commandId": command.id, "fields": fields}, indent=2, ensure_ascii=False
        )
        return ExportPayload(f"{base}.json", content, "application/json")

    if kind == "md":
        content = render_document(
            Template.EXPORT_MARKDOWN,
            command=command,
            timestamp=ts,
            fields_json=fields_json,
            text=text,
        )
        return ExportPayload(f"{base}.md", content, "text/markdown")

    raise ValueError(f"Unsupported export kind: {kind}")


def build_workflow_document(
    workflow: WorkflowDefinition,
    steps: List[StepExport],
    now: Optional[datetime] = None,
) -> ExportPayload:
    ts = _file_timestamp(now or utcnow())
    content = render_document(
        Template.WORKFLOW_MARKDOWN,
        workflow=workflow,
        timestamp=ts,
        steps=steps,
    )
    return ExportPayload(f"{workflow.id}-{ts}.md", content, "text/markdown")
