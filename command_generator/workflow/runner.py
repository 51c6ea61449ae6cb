"""
Runner - Workflow Run Orchestration

The WorkflowRunner moves a WorkflowRun through the steps of its workflow.
It owns the per-step forms, applies auto-bindings the first time a step is
visited and captures outputs into the shared variable map when a step is
generated. Like the guidance engine it holds no state of its own: the run is
passed in and mutated in place.
"""

import logging
from typing import Tuple

from ..domain.models import CommandDefinition, WorkflowDefinition, WorkflowStep
from ..repositories.catalog import CommandCatalog
from ..rendering.forms import initial_form
from ..rendering.renderer import render
from ..state.models import FieldValue, FormState, WorkflowRun
from .bindings import apply_bindings, capture_outputs

logger = logging.getLogger(__name__)


class WorkflowRunner:
    def __init__(self, catalog: CommandCatalog):
        self.catalog = catalog

    def start(self, workflow_id: str) -> WorkflowRun:
        workflow = self.catalog.get_workflow(workflow_id)
        run = WorkflowRun(
            workflow_id=workflow.id,
            step_status={step.step_id: "pending" for step in workflow.steps},
        )
        logger.info(f"Started workflow '{workflow.id}' with {len(workflow.steps)} steps")
        return run

    # ==========================================================================
    # Navigation
    # ==========================================================================

    def current(self, run: WorkflowRun) -> Tuple[WorkflowDefinition, WorkflowStep, CommandDefinition]:
        workflow = self.catalog.get_workflow(run.workflow_id)
        step = workflow.steps[run.step_index]
        return workflow, step, self.catalog.get_command(step.command_id)

    def go_to(self, run: WorkflowRun, index: int) -> bool:
        """
        Move to the step at index and apply its bindings on first visit.
        Returns whether the bindings changed the step's form.
        """
        workflow = self.catalog.get_workflow(run.workflow_id)
        if not 0 <= index < len(workflow.steps):
            raise ValueError(f"Workflow '{workflow.id}' has no step at index {index}.")
        run.step_index = index
        return self.ensure_bindings(run)

    def advance(self, run: WorkflowRun) -> bool:
        """Move to the next step, staying put on the last one."""
        workflow = self.catalog.get_workflow(run.workflow_id)
        if run.step_index < len(workflow.steps) - 1:
            return self.go_to(run, run.step_index + 1)
        return False

    def skip(self, run: WorkflowRun) -> bool:
        _, step, _ = self.current(run)
        run.step_status[step.step_id] = "skipped"
        return self.advance(run)

    def is_finished(self, run: WorkflowRun) -> bool:
        """Every non-optional step has been generated or skipped."""
        workflow = self.catalog.get_workflow(run.workflow_id)
        return all(
            step.optional or run.step_status.get(step.step_id) in ("done", "skipped")
            for step in workflow.steps
        )

    # ==========================================================================
    # Forms & Bindings
    # ==========================================================================

    def form(self, run: WorkflowRun) -> FormState:
        _, step, command = self.current(run)
        if step.step_id not in run.forms:
            run.forms[step.step_id] = initial_form(command)
        return run.forms[step.step_id]

    def set_field(self, run: WorkflowRun, field_id: str, value: FieldValue):
        _, step, _ = self.current(run)
        run.forms[step.step_id] = {**self.form(run), field_id: value}

    def ensure_bindings(self, run: WorkflowRun) -> bool:
        """Apply the current step's bindings once per step and run."""
        _, step, _ = self.current(run)
        if run.bindings_applied.get(step.step_id):
            return False
        changed = self.apply_bindings(run)
        run.bindings_applied[step.step_id] = True
        return changed

    def apply_bindings(self, run: WorkflowRun) -> bool:
        """Apply the current step's bindings unconditionally."""
        _, step, command = self.current(run)
        updated, changed = apply_bindings(step, command, self.form(run), run.variables)
        if changed:
            run.forms[step.step_id] = updated
        return changed

    # ==========================================================================
    # Rendering & Completion
    # ==========================================================================

    def preview(self, run: WorkflowRun) -> str:
        _, step, command = self.current(run)
        if step.step_id in run.preview_overrides:
            return run.preview_overrides[step.step_id]
        return render(command, self.form(run), run.variables)

    def computed_preview(self, run: WorkflowRun) -> str:
        _, _, command = self.current(run)
        return render(command, self.form(run), run.variables)

    def complete_step(self, run: WorkflowRun) -> Tuple[CommandDefinition, FormState, str]:
        """
        Mark the current step done and publish its outputs to the run.

        Returns:
            (command, form, text) of the generated step.
        """
        _, step, command = self.current(run)
        form = self.form(run)
        text = self.preview(run)

        captured = capture_outputs(command, form)
        if captured:
            run.variables.update(captured)
            logger.info(f"Step '{step.step_id}' published outputs {sorted(captured)}")
        run.step_status[step.step_id] = "done"
        return command, form, text
