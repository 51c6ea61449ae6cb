from .storage import SlotRepository


class AdvancedFieldsPreference(SlotRepository):
    """Remembers whether the advanced form section is expanded."""

    key = "command-generator-advanced"

    def load(self) -> bool:
        return self._read() == "true"

    def save(self, show_advanced: bool) -> bool:
        return self._write("true" if show_advanced else "false")
