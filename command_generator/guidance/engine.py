"""
Engine - Stage Guidance State Machine

The GuidanceEngine tracks where the user is in the
explore -> plan -> review -> implement -> finalize pipeline and recommends
the next command to run.
-----------------------------------------------

Every stage carries one of three statuses (todo, active, done) and at most
one stage is active at any time. The only transition is a completion event,
recorded whenever a command is generated:

1. The completed stage becomes done and any other active stage falls back
    to todo.
2. The stage right after it becomes active unless it is already done; in
    that case the first stage that is not done becomes active.
3. Once every stage is done nothing is active and recommendations settle
    on finalize. There is no terminal state: further completions are simply
    recorded in the history.

The engine is pure: every operation takes a GuidanceState and returns a new
one, so persistence stays with the GuidanceRepository.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..domain.models import STAGE_FLOW, Stage
from ..repositories.catalog import CommandCatalog
from ..services.exceptions import InvalidStageError
from ..state.models import (
    GuidanceContext,
    GuidanceEvent,
    GuidanceRecommendation,
    GuidanceState,
    StageStatus,
    utcnow,
)

logger = logging.getLogger(__name__)

STAGE_LABELS: Dict[Stage, str] = {
    Stage.EXPLORE: "Explore",
    Stage.PLAN: "Plan",
    Stage.REVIEW: "Review",
    Stage.IMPLEMENT: "Implement",
    Stage.FINALIZE: "Finalize",
}

# Per-stage command priority; the first entry available in the catalog wins.
DEFAULT_COMMANDS_BY_STAGE: Dict[Stage, List[str]] = {
    Stage.EXPLORE: ["senior-explore", "explore-lite"],
    Stage.PLAN: ["plan-lite", "produce-plan"],
    Stage.REVIEW: ["review-lite", "review-only", "review-strict"],
    Stage.IMPLEMENT: ["implement-standard", "implement-plan", "implement-lite"],
    Stage.FINALIZE: ["finalize-work", "finalize-lite"],
}

# (stage, workflow template) -> command. New overrides are added here only.
STAGE_COMMAND_OVERRIDES: Dict[Tuple[Stage, str], str] = {
    (Stage.PLAN, "workflow-d"): "backend-plan",
}

WARNING_STAGES = {Stage.REVIEW}


class GuidanceEngine:
    def __init__(self, catalog: Optional[CommandCatalog] = None):
        self.catalog = catalog

    def initial_state(self) -> GuidanceState:
        """Explore active, everything else todo, empty history."""
        return GuidanceState()

    # ==========================================================================
    # Transition
    # ==========================================================================

    def complete(
        self,
        state: GuidanceState,
        command: str,
        stage: Stage | str,
        timestamp: Optional[datetime] = None,
    ) -> GuidanceState:
        """
        Record a completion event and return the resulting state.

        The command is not checked against the stage; callers pass the stage
        of the command they just generated.
        """
        stage = self._coerce_stage(stage)
        status = dict(state.stage_status)

        status[stage] = StageStatus.DONE
        for key in STAGE_FLOW:
            if key != stage and status[key] == StageStatus.ACTIVE:
                status[key] = StageStatus.TODO

        next_stage = self._next_stage(stage)
        if next_stage is not None and status[next_stage] != StageStatus.DONE:
            status[next_stage] = StageStatus.ACTIVE
        else:
            remaining = next((key for key in STAGE_FLOW if status[key] != StageStatus.DONE), None)
            if remaining is not None:
                status[remaining] = StageStatus.ACTIVE

        event = GuidanceEvent(command=command, stage=stage, timestamp=timestamp or utcnow())
        new_state = GuidanceState(
            stage_status=status,
            history=[event, *state.history],
            last=event,
        )

        logger.info(
            f"Stage '{stage.value}' completed by '{command}', "
            f"active stage is now {new_state.active_stage.value if new_state.active_stage else 'none'}"
        )
        return new_state

    # ==========================================================================
    # Queries
    # ==========================================================================

    def recommend(
        self, state: GuidanceState, context: Optional[GuidanceContext] = None
    ) -> GuidanceRecommendation:
        active = state.active_stage
        if active is not None:
            target = active
            reason = f"{STAGE_LABELS[target]} is in progress; continue with it."
        else:
            target = next(
                (key for key in STAGE_FLOW if state.stage_status[key] != StageStatus.DONE),
                Stage.FINALIZE,
            )
            reason = f"Next, move on to {STAGE_LABELS[target]}."

        return GuidanceRecommendation(
            stage=target,
            command=self._select_command(target, context),
            reason=reason,
            severity="warning" if target in WARNING_STAGES else None,
        )

    def is_out_of_order(self, state: GuidanceState, stage: Stage | str) -> bool:
        """
        Advisory guardrail: True when an earlier stage is still todo.
        Never true for the first stage.
        """
        stage = self._coerce_stage(stage)
        index = STAGE_FLOW.index(stage)
        if index == 0:
            return False
        return any(state.stage_status[key] == StageStatus.TODO for key in STAGE_FLOW[:index])

    def stage_for_command(self, command_id: str) -> Optional[Stage]:
        if self.catalog is None:
            return None
        return self.catalog.command_stage_map().get(command_id)

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _select_command(self, stage: Stage, context: Optional[GuidanceContext]) -> str:
        if context is not None and context.workflow_template:
            override = STAGE_COMMAND_OVERRIDES.get((stage, context.workflow_template))
            if override and self._is_available(override):
                return override

        candidates = DEFAULT_COMMANDS_BY_STAGE[stage]
        return next((c for c in candidates if self._is_available(c)), candidates[0])

    def _is_available(self, command_id: str) -> bool:
        return self.catalog is None or self.catalog.find_command(command_id) is not None

    @staticmethod
    def _next_stage(stage: Stage) -> Optional[Stage]:
        index = STAGE_FLOW.index(stage)
        return STAGE_FLOW[index + 1] if index + 1 < len(STAGE_FLOW) else None

    @staticmethod
    def _coerce_stage(stage: Stage | str) -> Stage:
        try:
            return Stage(stage)
        except ValueError:
            raise InvalidStageError(f"Unknown stage '{stage}'.") from None
