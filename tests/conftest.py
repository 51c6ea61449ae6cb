"""Pytest configuration and shared fixtures."""

import pytest

from command_generator.dependencies import build_generator_service
from command_generator.domain.models import CommandDefinition, FieldDefinition, FieldType, Stage
from command_generator.guidance.engine import GuidanceEngine
from command_generator.repositories.catalog import StaticCatalog
from command_generator.repositories.storage import InMemoryKeyValueStore


@pytest.fixture
def catalog():
    """The built-in manifest."""
    return StaticCatalog()


@pytest.fixture
def store():
    """Fresh in-memory storage slots for every test."""
    return InMemoryKeyValueStore()


@pytest.fixture
def engine(catalog):
    return GuidanceEngine(catalog)


@pytest.fixture
def service(store, catalog):
    return build_generator_service(store, catalog)


@pytest.fixture
def sample_command():
    """A command exercising every field type and both placeholder kinds."""
    return CommandDefinition(
        id="sample",
        display_name="Sample",
        stage=Stage.PLAN,
        fields=[
            FieldDefinition(id="INTENT", label="Intent", type=FieldType.TEXTAREA, required=True),
            FieldDefinition(id="FILES", label="Files", type=FieldType.LIST),
            FieldDefinition(id="DRY_RUN", label="Dry run", type=FieldType.BOOLEAN),
            FieldDefinition(id="MODE", label="Mode", type=FieldType.SELECT, options=["a", "b"]),
            FieldDefinition(id="OUT", label="Output", type=FieldType.PATH),
        ],
        template=(
            "Project: {PROJECT}\n"
            "Intent: {{INTENT}}\n"
            "Files:\n{{FILES}}\n"
            "Dry run: {{DRY_RUN}}\n"
            "Mode: {{ MODE }}\n"
            "Out: {{OUT}}"
        ),
    )
