import logging
from typing import Optional

from pydantic import ValidationError

from ..state.models import GeneratorDraft
from .storage import SlotRepository

logger = logging.getLogger(__name__)


class DraftRepository(SlotRepository):
    """
    Single-slot storage for the standalone generator draft.
    Each save overwrites the previous draft; there is no versioning.
    """

    key = "command-generator-draft"

    def load(self) -> Optional[GeneratorDraft]:
        """Returns the saved draft, or None when there is nothing usable to restore."""
        raw = self._read()
        if not raw:
            return None
        try:
            return GeneratorDraft.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed draft: {e.error_count()} errors")
            return None

    def save(self, draft: GeneratorDraft) -> bool:
        return self._write(draft.model_dump_json())
