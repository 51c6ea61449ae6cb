"""
Workflow Layer - Multi-Step Runs

Defines the BindingPropagator functions that carry values between steps and
the WorkflowRunner that walks a run through its steps.
"""

from command_generator.workflow.bindings import apply_bindings, capture_outputs
from command_generator.workflow.runner import WorkflowRunner


__all__ = [
    "WorkflowRunner",
    "apply_bindings",
    "capture_outputs",
]
