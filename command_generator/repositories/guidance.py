import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..domain.models import Stage
from ..guidance.engine import GuidanceEngine
from ..state.models import GuidanceEvent, GuidanceState, StageStatus, initial_stage_status
from .storage import KeyValueStore, SlotRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

_stage_status_adapter = TypeAdapter(Dict[Stage, StageStatus])
_history_adapter = TypeAdapter(List[GuidanceEvent])
_last_adapter = TypeAdapter(Optional[GuidanceEvent])


class GuidanceRepository(SlotRepository):
    """
    Loads and saves the session-wide GuidanceState.

    Loading never raises. An empty slot or unreadable content yields the
    initial state; a record with some malformed parts keeps the valid parts
    and defaults the rest field by field.
    """

    key = "command-generator-guidance"

    def __init__(self, store: KeyValueStore, engine: Optional[GuidanceEngine] = None):
        super().__init__(store)
        self.engine = engine or GuidanceEngine()

    def load(self) -> GuidanceState:
        raw = self._read()
        if not raw:
            return self.engine.initial_state()

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding unreadable guidance state: {e}")
            return self.engine.initial_state()

        if not isinstance(data, dict):
            logger.warning("Discarding guidance state that is not an object")
            return self.engine.initial_state()

        stage_status = _parse(_stage_status_adapter, data.get("stage_status"), initial_stage_status, "stage_status")
        history = _parse(_history_adapter, data.get("history"), list, "history")
        last = _parse(_last_adapter, data.get("last"), lambda: None, "last")

        try:
            return GuidanceState(stage_status=stage_status, history=history, last=last)
        except ValidationError as e:
            # Invariant violation (e.g. two active stages): keep the timeline, reset the stages
            logger.warning(f"Resetting invalid stage status: {e}")
            return GuidanceState(stage_status=initial_stage_status(), history=history, last=last)

    def save(self, state: GuidanceState) -> bool:
        return self._write(state.model_dump_json())

    def record_completion(
        self, command: str, stage: Stage | str, timestamp: Optional[datetime] = None
    ) -> GuidanceState:
        """Load, apply a completion event, save and return the new state."""
        state = self.engine.complete(self.load(), command, stage, timestamp)
        self.save(state)
        return state


def _parse(adapter: TypeAdapter, value: Any, default: Callable[[], T], name: str) -> T:
    if not value:
        return default()
    try:
        return adapter.validate_python(value)
    except ValidationError as e:
        logger.warning(f"Defaulting malformed guidance field '{name}': {e.error_count()} errors")
        return default()
