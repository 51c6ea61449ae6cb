import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from ..domain.models import CommandDefinition, Stage, WorkflowDefinition
from ..data.manifest import COMMANDS, WORKFLOWS
from ..services.exceptions import CatalogError, CommandNotFoundError, WorkflowNotFoundError

logger = logging.getLogger(__name__)


def build_command_stage_map(commands: List[CommandDefinition]) -> Dict[str, Stage]:
    return {cmd.id: cmd.stage for cmd in commands}


# The Interface
class CommandCatalog(ABC):
    """
    Read-only access to the command and workflow definitions.
    The catalog is loaded once and never mutated, so every consumer may hold
    on to the definitions it receives.
    """

    @property
    @abstractmethod
    def commands(self) -> List[CommandDefinition]:
        pass

    @property
    @abstractmethod
    def workflows(self) -> List[WorkflowDefinition]:
        pass

    def find_command(self, command_id: str) -> Optional[CommandDefinition]:
        return next((c for c in self.commands if c.id == command_id), None)

    def get_command(self, command_id: str) -> CommandDefinition:
        """
        Retrieves a command by ID.
        Raises CommandNotFoundError if not found.
        """
        command = self.find_command(command_id)
        if command is None:
            raise CommandNotFoundError(f"Command '{command_id}' not found.")
        return command

    def get_workflow(self, workflow_id: str) -> WorkflowDefinition:
        """
        Retrieves a workflow by ID.
        Raises WorkflowNotFoundError if not found.
        """
        workflow = next((w for w in self.workflows if w.id == workflow_id), None)
        if workflow is None:
            raise WorkflowNotFoundError(f"Workflow '{workflow_id}' not found.")
        return workflow

    def workflows_using(self, command_id: str) -> List[WorkflowDefinition]:
        return [
            w for w in self.workflows
            if any(step.command_id == command_id for step in w.steps)
        ]

    def command_stage_map(self) -> Dict[str, Stage]:
        return build_command_stage_map(self.commands)


class StaticCatalog(CommandCatalog):
    """
    Serves the built-in manifest (or any lists handed in, for tests).
    """

    def __init__(
        self,
        commands: Optional[List[CommandDefinition]] = None,
        workflows: Optional[List[WorkflowDefinition]] = None,
    ):
        self._commands = list(COMMANDS if commands is None else commands)
        self._workflows = list(WORKFLOWS if workflows is None else workflows)

    @property
    def commands(self) -> List[CommandDefinition]:
        return self._commands

    @property
    def workflows(self) -> List[WorkflowDefinition]:
        return self._workflows


_commands_adapter = TypeAdapter(List[CommandDefinition])
_workflows_adapter = TypeAdapter(List[WorkflowDefinition])


class JsonCatalog(StaticCatalog):
    """
    Catalog read from a JSON manifest of the form
    {"commands": [...], "workflows": [...]}.
    """

    @classmethod
    def from_dict(cls, data: dict) -> "JsonCatalog":
        if not isinstance(data, dict):
            raise CatalogError("Manifest must be a JSON object.")
        try:
            commands = _commands_adapter.validate_python(data.get("commands", []))
            workflows = _workflows_adapter.validate_python(data.get("workflows", []))
        except ValidationError as e:
            raise CatalogError(f"Invalid manifest: {e}") from e

        known = {c.id for c in commands}
        for workflow in workflows:
            for step in workflow.steps:
                if step.command_id not in known:
                    raise CatalogError(
                        f"Workflow '{workflow.id}' step '{step.step_id}' "
                        f"references unknown command '{step.command_id}'."
                    )
        return cls(commands=commands, workflows=workflows)

    @classmethod
    def from_file(cls, path: str | Path) -> "JsonCatalog":
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Cannot read manifest '{path}': {e}") from e
        catalog = cls.from_dict(data)
        logger.info(
            f"Loaded manifest '{path}': {len(catalog.commands)} commands, "
            f"{len(catalog.workflows)} workflows"
        )
        return catalog
