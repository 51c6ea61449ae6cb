"""
Guidance Layer - Stage Progression

Defines the GuidanceEngine, the state machine that tracks progress through
the explore -> plan -> review -> implement -> finalize pipeline and
recommends the next command.
"""

from command_generator.guidance.engine import (
    DEFAULT_COMMANDS_BY_STAGE,
    STAGE_COMMAND_OVERRIDES,
    GuidanceEngine,
)


__all__ = [
    "DEFAULT_COMMANDS_BY_STAGE",
    "STAGE_COMMAND_OVERRIDES",
    "GuidanceEngine",
]
