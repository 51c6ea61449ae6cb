"""
Command Generator Service - Session Controller

This service is the entry point for every user action. It orchestrates the
interaction between the catalog, the core components (TemplateRenderer,
GuidanceEngine, BindingPropagator via the WorkflowRunner) and the
repositories. It keeps the in-memory session authoritative and mirrors it to
storage on a best-effort basis: guidance and history are written on every
generation, the draft is written debounced after edits and cleared once the
command is generated.

Draft debouncing needs a running asyncio event loop. Synchronous callers get
one draft write per edit, unless the service is built with
defer_draft_writes=True, in which case edits only mark the draft pending and
flush_draft() writes the latest one.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from ..domain.models import CommandDefinition, FieldType, WorkflowDefinition
from ..guidance.engine import GuidanceEngine
from ..rendering.export import ExportKind, ExportPayload, StepExport, build_export_payload, build_workflow_document
from ..rendering.forms import (
    attachable_fields,
    capture_attachment,
    default_attachment_target,
    initial_form,
    insert_attachments,
    missing_required,
    parse_list,
    restore_form,
)
from ..rendering.renderer import find_missing, render
from ..repositories.catalog import CommandCatalog
from ..repositories.draft import DraftRepository
from ..repositories.guidance import GuidanceRepository
from ..repositories.history import HistoryRepository
from ..repositories.preferences import AdvancedFieldsPreference
from ..state.models import (
    Attachment,
    AttachmentMode,
    FieldValue,
    FormState,
    GeneratorDraft,
    GuidanceContext,
    GuidanceRecommendation,
    GuidanceState,
    HistoryEntry,
    VariableMap,
    WorkflowRun,
    utcnow,
)
from ..workflow.runner import WorkflowRunner
from .debounce import DebouncedWriter
from .exceptions import GenerationBlockedError, NoActiveWorkflowError

logger = logging.getLogger(__name__)


@dataclass
class Preview:
    text: str
    computed_text: str
    missing_variables: List[str]
    missing_required: List[str]

    @property
    def can_generate(self) -> bool:
        return not self.missing_required


@dataclass
class Selection:
    command: CommandDefinition
    out_of_order: bool
    recommendation: GuidanceRecommendation
    suggested_workflow: Optional[WorkflowDefinition] = None


@dataclass
class GenerationResult:
    entry: HistoryEntry
    guidance: GuidanceState
    recommendation: GuidanceRecommendation
    captured: VariableMap = field(default_factory=dict)


@dataclass
class _Snapshot:
    selected_command_id: str
    form_state: FormState
    variables: VariableMap
    attachments: List[Attachment]
    attachment_target: str
    attachment_mode: AttachmentMode
    preview_override: Optional[str]


class CommandGeneratorService:
    def __init__(
        self,
        catalog: CommandCatalog,
        guidance_repository: GuidanceRepository,
        draft_repository: DraftRepository,
        history_repository: HistoryRepository,
        preference_repository: Optional[AdvancedFieldsPreference] = None,
        engine: Optional[GuidanceEngine] = None,
        draft_delay: Optional[float] = None,
        defer_draft_writes: bool = False,
    ):
        self.catalog = catalog
        self.guidance_repo = guidance_repository
        self.draft_repo = draft_repository
        self.history_repo = history_repository
        self.preference_repo = preference_repository
        self.engine = engine or GuidanceEngine(catalog)
        self.runner = WorkflowRunner(catalog)
        self.draft_writer: DebouncedWriter[GeneratorDraft] = DebouncedWriter(
            self.draft_repo.save, delay=draft_delay, defer_without_loop=defer_draft_writes
        )

        self.guidance: GuidanceState = self.guidance_repo.load()
        self.history: List[HistoryEntry] = self.history_repo.list()
        self.show_advanced = self.preference_repo.load() if self.preference_repo else False

        # Standalone generator session
        self.selected_command_id = ""
        self.form_state: FormState = {}
        self.variables: VariableMap = {}
        self.attachments: List[Attachment] = []
        self.attachment_target = ""
        self.attachment_mode: AttachmentMode = "snippet"
        self.preview_override: Optional[str] = None
        self.guardrail_visible = False
        self._undo: Optional[_Snapshot] = None

        # Workflow session
        self.workflow_run: Optional[WorkflowRun] = None

    # ==========================================================================
    # Standalone Generator
    # ==========================================================================

    @property
    def selected_command(self) -> Optional[CommandDefinition]:
        if not self.selected_command_id:
            return None
        return self.catalog.find_command(self.selected_command_id)

    def select_command(self, command_id: str) -> Selection:
        """
        Start a fresh form for the command and evaluate the stage guardrail.
        Jumping ahead of unfinished stages is flagged, never blocked.
        """
        command = self.catalog.get_command(command_id)
        self.selected_command_id = command.id
        self.form_state = initial_form(command)
        self.variables = {}
        self.attachments = []
        self.attachment_target = default_attachment_target(command)
        self.attachment_mode = "snippet"
        self.preview_override = None

        self.guardrail_visible = self.engine.is_out_of_order(self.guidance, command.stage)
        if self.guardrail_visible:
            logger.info(f"Command '{command.id}' selected ahead of unfinished stages")
        self._schedule_draft()

        suggestions = self.catalog.workflows_using(command.id)
        return Selection(
            command=command,
            out_of_order=self.guardrail_visible,
            recommendation=self.recommendation(),
            suggested_workflow=suggestions[0] if suggestions else None,
        )

    def set_field(self, field_id: str, value: FieldValue):
        self.form_state = {**self.form_state, field_id: value}
        self._schedule_draft()

    def set_list_field(self, field_id: str, raw: str):
        self.set_field(field_id, parse_list(raw))

    def clear_field(self, field_id: str):
        command = self._require_command()
        field_def = command.get_field(field_id)
        if field_def is None:
            return
        if field_def.type == FieldType.LIST:
            self.set_field(field_id, [])
        elif field_def.type == FieldType.BOOLEAN:
            self.set_field(field_id, False)
        else:
            self.set_field(field_id, "")

    def add_variable(self, name: str, value: str) -> bool:
        name, value = name.strip(), value.strip()
        if not name or not value:
            return False
        self.variables = {**self.variables, name: value}
        self._schedule_draft()
        return True

    def remove_variable(self, name: str) -> bool:
        if name not in self.variables:
            return False
        self.variables = {k: v for k, v in self.variables.items() if k != name}
        self._schedule_draft()
        return True

    def set_preview_override(self, text: Optional[str]):
        self.preview_override = text
        self._schedule_draft()

    def add_attachment(self, name: str, text: str) -> Attachment:
        attachment = capture_attachment(name, text)
        self.attachments = [*self.attachments, attachment]
        self._schedule_draft()
        return attachment

    def remove_attachment(self, name: str):
        self.attachments = [a for a in self.attachments if a.name != name]
        self._schedule_draft()

    def insert_attachments(self, field_id: Optional[str] = None, mode: Optional[AttachmentMode] = None):
        command = self._require_command()
        target = field_id or self.attachment_target
        if target not in attachable_fields(command):
            return
        self.attachment_target = target
        self.attachment_mode = mode or self.attachment_mode
        self.form_state = insert_attachments(
            command, self.form_state, target, self.attachments, self.attachment_mode
        )
        self._schedule_draft()

    def preview(self) -> Preview:
        command = self.selected_command
        if command is None:
            return Preview(text="", computed_text="", missing_variables=[], missing_required=[])
        computed = render(command, self.form_state, self.variables)
        return Preview(
            text=self.preview_override if self.preview_override is not None else computed,
            computed_text=computed,
            missing_variables=find_missing(computed),
            missing_required=missing_required(command, self.form_state),
        )

    def generate(self, enforce_required: bool = False) -> GenerationResult:
        """
        Commit the current command: add it to the history and record the
        completion against its stage. The saved draft is cleared; undo()
        brings the form back and saves it again.

        Args:
            enforce_required: Raise GenerationBlockedError instead of
                generating when required fields are empty.
        """
        command = self._require_command()
        preview = self.preview()
        if enforce_required and not preview.can_generate:
            raise GenerationBlockedError(command.id, preview.missing_required)

        self._undo = self._snapshot()
        entry = self._record(command, self.form_state, preview.text)
        self.draft_writer.cancel()
        self.draft_repo.clear()
        return GenerationResult(
            entry=entry,
            guidance=self.guidance,
            recommendation=self.recommendation(),
        )

    def undo(self) -> bool:
        """Restore the generator as it was right before the last generation."""
        snapshot = self._undo
        if snapshot is None:
            return False
        self.selected_command_id = snapshot.selected_command_id
        self.form_state = snapshot.form_state
        self.variables = snapshot.variables
        self.attachments = snapshot.attachments
        self.attachment_target = snapshot.attachment_target
        self.attachment_mode = snapshot.attachment_mode
        self.preview_override = snapshot.preview_override
        self._undo = None
        self._schedule_draft()
        return True

    def export(self, kind: ExportKind) -> ExportPayload:
        command = self._require_command()
        return build_export_payload(command, self.form_state, self.preview().text, kind)

    # ==========================================================================
    # Drafts & Preferences
    # ==========================================================================

    def restore_draft(self) -> bool:
        """
        Restore the standalone generator from the saved draft.
        Returns False when there is no usable draft.
        """
        draft = self.draft_repo.load()
        if draft is None:
            return False
        command = self.catalog.find_command(draft.selected_command_id)
        if command is None:
            logger.warning(f"Draft references unknown command '{draft.selected_command_id}'")
            return False

        self.selected_command_id = command.id
        self.form_state = restore_form(command, draft.form_state)
        self.variables = dict(draft.variables)
        self.attachments = list(draft.attachments)
        self.attachment_target = draft.attachment_target or default_attachment_target(command)
        self.attachment_mode = draft.attachment_mode
        self.preview_override = draft.preview_override
        logger.info(f"Restored draft for '{command.id}' saved at {draft.saved_at.isoformat()}")
        return True

    def flush_draft(self) -> bool:
        return self.draft_writer.flush()

    def set_show_advanced(self, show: bool):
        self.show_advanced = show
        if self.preference_repo:
            self.preference_repo.save(show)

    def _schedule_draft(self):
        self.draft_writer.schedule(
            GeneratorDraft(
                selected_command_id=self.selected_command_id,
                form_state=self.form_state,
                variables=self.variables,
                attachments=self.attachments,
                attachment_target=self.attachment_target,
                attachment_mode=self.attachment_mode,
                preview_override=self.preview_override,
                saved_at=utcnow(),
            )
        )

    # ==========================================================================
    # Guidance
    # ==========================================================================

    def guidance_context(self) -> Optional[GuidanceContext]:
        if self.workflow_run is None:
            return None
        return GuidanceContext(workflow_template=self.workflow_run.workflow_id)

    def recommendation(self) -> GuidanceRecommendation:
        return self.engine.recommend(self.guidance, self.guidance_context())

    def reset_guidance(self) -> GuidanceState:
        self.guidance = self.engine.initial_state()
        self.guidance_repo.save(self.guidance)
        return self.guidance

    # ==========================================================================
    # Workflows
    # ==========================================================================

    def start_workflow(self, workflow_id: str) -> WorkflowRun:
        self.workflow_run = self.runner.start(workflow_id)
        self.runner.ensure_bindings(self.workflow_run)
        return self.workflow_run

    def reset_workflow(self):
        self.workflow_run = None

    def workflow_step(self):
        return self.runner.current(self._require_run())

    def set_workflow_field(self, field_id: str, value: FieldValue):
        self.runner.set_field(self._require_run(), field_id, value)

    def set_workflow_list_field(self, field_id: str, raw: str):
        self.set_workflow_field(field_id, parse_list(raw))

    def add_workflow_variable(self, name: str, value: str) -> bool:
        name, value = name.strip(), value.strip()
        if not name or not value:
            return False
        self._require_run().variables[name] = value
        return True

    def set_workflow_preview_override(self, text: Optional[str]):
        run = self._require_run()
        _, step, _ = self.runner.current(run)
        if text is None:
            run.preview_overrides.pop(step.step_id, None)
        else:
            run.preview_overrides[step.step_id] = text

    def apply_workflow_bindings(self) -> bool:
        return self.runner.apply_bindings(self._require_run())

    def workflow_preview(self) -> Preview:
        run = self._require_run()
        _, _, command = self.runner.current(run)
        computed = self.runner.computed_preview(run)
        form = self.runner.form(run)
        return Preview(
            text=self.runner.preview(run),
            computed_text=computed,
            missing_variables=find_missing(computed),
            missing_required=missing_required(command, form),
        )

    def generate_workflow_step(self, enforce_required: bool = False) -> GenerationResult:
        """
        Commit the current workflow step: history, guidance and output capture.
        The run stays on the step; call advance_workflow() to move on.
        """
        run = self._require_run()
        _, _, command = self.runner.current(run)
        if enforce_required:
            missing = missing_required(command, self.runner.form(run))
            if missing:
                raise GenerationBlockedError(command.id, missing)

        before = dict(run.variables)
        command, form, text = self.runner.complete_step(run)
        entry = self._record(command, form, text)
        captured = {k: v for k, v in run.variables.items() if before.get(k) != v}
        return GenerationResult(
            entry=entry,
            guidance=self.guidance,
            recommendation=self.recommendation(),
            captured=captured,
        )

    def advance_workflow(self) -> bool:
        return self.runner.advance(self._require_run())

    def skip_workflow_step(self) -> bool:
        return self.runner.skip(self._require_run())

    def go_to_workflow_step(self, index: int) -> bool:
        return self.runner.go_to(self._require_run(), index)

    def export_workflow(self) -> ExportPayload:
        run = self._require_run()
        workflow = self.catalog.get_workflow(run.workflow_id)
        steps = []
        for step in workflow.steps:
            command = self.catalog.get_command(step.command_id)
            form = run.forms.get(step.step_id)
            if step.step_id in run.preview_overrides:
                text = run.preview_overrides[step.step_id]
            elif form is not None:
                text = render(command, form, run.variables)
            else:
                text = ""
            steps.append(
                StepExport(
                    title=step.title or command.display_name,
                    command_id=command.id,
                    status=run.step_status.get(step.step_id, "pending"),
                    text=text,
                )
            )
        return build_workflow_document(workflow, steps)

    # ==========================================================================
    # History
    # ==========================================================================

    def delete_history(self, entry_id: str):
        self.history = self.history_repo.remove(entry_id)

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _record(self, command: CommandDefinition, form: FormState, text: str) -> HistoryEntry:
        created_at = utcnow()
        entry = HistoryEntry(
            id=f"{command.id}-{uuid.uuid4().hex[:12]}",
            command_id=command.id,
            created_at=created_at,
            fields=dict(form),
            command_text=text,
        )
        self.history = [entry, *self.history]
        self.history_repo.save(self.history)

        self.guidance = self.engine.complete(self.guidance, command.id, command.stage, created_at)
        self.guidance_repo.save(self.guidance)
        return entry

    def _snapshot(self) -> _Snapshot:
        return _Snapshot(
            selected_command_id=self.selected_command_id,
            form_state=dict(self.form_state),
            variables=dict(self.variables),
            attachments=[a.model_copy() for a in self.attachments],
            attachment_target=self.attachment_target,
            attachment_mode=self.attachment_mode,
            preview_override=self.preview_override,
        )

    def _require_command(self) -> CommandDefinition:
        command = self.selected_command
        if command is None:
            raise ValueError("No command selected.")
        return command

    def _require_run(self) -> WorkflowRun:
        if self.workflow_run is None:
            raise NoActiveWorkflowError("No workflow is running.")
        return self.workflow_run
