"""
Service Layer Exceptions

Custom exceptions for catalog access, the guidance engine and the
CommandGeneratorService. Persistence problems are never raised from here:
loads degrade to defaults and failed writes are logged by the repositories.
"""


class CommandGeneratorError(Exception):
    """Base class for all errors raised by this package."""
    pass


class CatalogError(CommandGeneratorError):
    """Raised when a command manifest cannot be read or fails validation."""
    pass


class CommandNotFoundError(CommandGeneratorError, LookupError):
    """Raised when a command id is not present in the catalog."""
    pass


class WorkflowNotFoundError(CommandGeneratorError, LookupError):
    """Raised when a workflow id is not present in the catalog."""
    pass


class InvalidStageError(CommandGeneratorError, ValueError):
    """Raised when a completion event names an unknown stage."""
    pass


class NoActiveWorkflowError(CommandGeneratorError):
    """Raised when a workflow operation is requested with no workflow running."""
    pass


class GenerationBlockedError(CommandGeneratorError):
    """Raised when generation is enforced and required fields are still empty."""

    def __init__(self, command_id: str, missing_fields: list[str]):
        self.command_id = command_id
        self.missing_fields = missing_fields
        super().__init__(
            f"Command '{command_id}' is missing required fields: {', '.join(missing_fields)}"
        )
