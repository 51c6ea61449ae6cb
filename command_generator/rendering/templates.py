"""
Names of the Markdown export documents.

Each name maps to rendering/templates/<name>.jinja2. The command template
grammar ({{FIELD}} / {NAME}) is handled by renderer.py, not by Jinja2; these
files only lay out exported documents.
"""


class Template:
    """Export document names. Use these instead of raw strings."""

    # Single generated command: field snapshot + command text
    EXPORT_MARKDOWN = "export_markdown"
    # Whole workflow run: one section per step with its status
    WORKFLOW_MARKDOWN = "workflow_markdown"

    @classmethod
    def names(cls) -> list[str]:
        return [
            value for key, value in vars(cls).items()
            if key.isupper() and isinstance(value, str)
        ]
