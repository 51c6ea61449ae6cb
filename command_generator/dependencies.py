"""
Dependency Wiring (Composition Root).

This module acts as the central "container" for the package's services.
It is responsible for:
1. Instantiating the process-wide singletons (Catalog, Store, Engine).
2. Wiring them together (e.g., injecting the Store into the Repositories and
   the Repositories into the CommandGeneratorService).
3. Managing the lifecycle of these objects using @lru_cache to ensure
   they are created only once per process.

Tests build their own objects around an InMemoryKeyValueStore instead of
going through these functions.
"""


from functools import lru_cache

from .config import settings
from .guidance.engine import GuidanceEngine
from .repositories.catalog import CommandCatalog, JsonCatalog, StaticCatalog
from .repositories.draft import DraftRepository
from .repositories.guidance import GuidanceRepository
from .repositories.history import HistoryRepository
from .repositories.preferences import AdvancedFieldsPreference
from .repositories.storage import KeyValueStore, SQLKeyValueStore
from .services.generator import CommandGeneratorService

# Command Catalog (Singleton, loaded once and never mutated)
@lru_cache()
def get_catalog() -> CommandCatalog:
    if settings.MANIFEST_PATH:
        return JsonCatalog.from_file(settings.MANIFEST_PATH)
    return StaticCatalog()

# Key-Value Store (Singleton)
@lru_cache()
def get_store() -> KeyValueStore:
    return SQLKeyValueStore()


def build_generator_service(store: KeyValueStore, catalog: CommandCatalog) -> CommandGeneratorService:
    """
    Injects all necessary components into the CommandGeneratorService.
    """
    engine = GuidanceEngine(catalog=catalog)
    return CommandGeneratorService(
        catalog=catalog,
        guidance_repository=GuidanceRepository(store, engine),
        draft_repository=DraftRepository(store),
        history_repository=HistoryRepository(store),
        preference_repository=AdvancedFieldsPreference(store),
        engine=engine,
    )

# The Generator Service (Singleton Service)
@lru_cache()
def get_generator_service() -> CommandGeneratorService:
    return build_generator_service(get_store(), get_catalog())
