"""
Rendering Layer - Template Resolution and Form Handling

Defines the TemplateRenderer (field and variable substitution with
missing-variable sentinels) and the form, quality and export helpers
built around it.
"""

from command_generator.rendering.renderer import find_missing, render
from command_generator.rendering.forms import can_generate, initial_form, missing_required


__all__ = [
    "can_generate",
    "find_missing",
    "initial_form",
    "missing_required",
    "render",
]
