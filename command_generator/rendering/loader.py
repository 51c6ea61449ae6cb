"""
Jinja2 environment for the Markdown export documents.

export.py hands a document name from Template and the export context
(command or workflow, timestamp, field snapshot, step texts) to
render_document(). Template files are checked at import and a context value
the template references but the caller did not pass raises UndefinedError.
Exports are Markdown, so command text is inserted unescaped.
"""

from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .templates import Template

TEMPLATES_DIR = Path(__file__).parent / "templates"
TEMPLATE_SUFFIX = ".jinja2"


def _template_file(name: str) -> str:
    return f"{name}{TEMPLATE_SUFFIX}"


def _validate_templates():
    """Every export document name needs its template file. Fails fast at import."""
    missing = [
        name for name in Template.names()
        if not (TEMPLATES_DIR / _template_file(name)).exists()
    ]
    if missing:
        raise FileNotFoundError(f"Export templates missing in {TEMPLATES_DIR}: {missing}")


_validate_templates()


@lru_cache(maxsize=1)
def _get_environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_document(name: str, **context) -> str:
    """
    Render one export document.

    Args:
        name: A Template constant.
        **context: Values referenced by the document template.

    Raises:
        jinja2.UndefinedError: The template references a value not in context.
    """
    return _get_environment().get_template(_template_file(name)).render(**context)
