"""Tests for the catalog, storage slots and the repositories built on them."""

import json
from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from command_generator.domain.models import Stage
from command_generator.repositories.catalog import JsonCatalog
from command_generator.repositories.draft import DraftRepository
from command_generator.repositories.guidance import GuidanceRepository
from command_generator.repositories.history import HistoryRepository
from command_generator.repositories.preferences import AdvancedFieldsPreference
from command_generator.repositories.storage import InMemoryKeyValueStore, KeyValueStore, SQLKeyValueStore
from command_generator.services.exceptions import (
    CatalogError,
    CommandNotFoundError,
    WorkflowNotFoundError,
)
from command_generator.state.models import (
    GeneratorDraft,
    GuidanceState,
    HistoryEntry,
    StageStatus,
)

TS = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FailingStore(KeyValueStore):
    """A store whose backend is unavailable."""

    def get(self, key):
        raise SQLAlchemyError("database is locked")

    def set(self, key, value):
        raise SQLAlchemyError("database is locked")

    def delete(self, key):
        raise SQLAlchemyError("database is locked")


@pytest.fixture
def sql_store():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    return SQLKeyValueStore(engine)


class TestCatalog:
    def test_lookups(self, catalog):
        assert catalog.get_command("backend-plan").stage == Stage.PLAN
        assert catalog.find_command("missing") is None
        assert catalog.get_workflow("workflow-d").title == "Java backend"

    def test_unknown_ids_raise(self, catalog):
        with pytest.raises(CommandNotFoundError):
            catalog.get_command("missing")
        with pytest.raises(WorkflowNotFoundError):
            catalog.get_workflow("missing")

    def test_every_workflow_step_resolves(self, catalog):
        for workflow in catalog.workflows:
            for step in workflow.steps:
                assert catalog.find_command(step.command_id) is not None

    def test_workflows_using(self, catalog):
        ids = {w.id for w in catalog.workflows_using("implement-plan")}
        assert ids == {"workflow-a", "workflow-d"}


class TestJsonCatalog:
    MANIFEST = {
        "commands": [
            {
                "id": "scan",
                "display_name": "Scan",
                "stage": "explore",
                "template": "Scan {{TARGET}}",
                "fields": [{"id": "TARGET", "label": "Target", "type": "text", "required": True}],
                "outputs": [{"id": "SCOPE", "source_field_id": "TARGET"}],
            }
        ],
        "workflows": [
            {"id": "wf", "title": "WF", "steps": [{"step_id": "one", "command_id": "scan"}]}
        ],
    }

    def test_from_dict(self):
        catalog = JsonCatalog.from_dict(self.MANIFEST)
        command = catalog.get_command("scan")
        assert command.stage == Stage.EXPLORE
        assert command.fields[0].required is True
        assert catalog.command_stage_map() == {"scan": Stage.EXPLORE}

    def test_from_file(self, tmp_path):
        path = tmp_path / "manifest.json"
        path.write_text(json.dumps(self.MANIFEST), encoding="utf-8")
        assert JsonCatalog.from_file(path).get_workflow("wf").steps[0].command_id == "scan"

    def test_unknown_step_command_rejected(self):
        data = {**self.MANIFEST, "workflows": [
            {"id": "wf", "title": "WF", "steps": [{"step_id": "one", "command_id": "nope"}]}
        ]}
        with pytest.raises(CatalogError):
            JsonCatalog.from_dict(data)

    def test_invalid_stage_rejected(self):
        bad = json.loads(json.dumps(self.MANIFEST))
        bad["commands"][0]["stage"] = "deploy"
        with pytest.raises(CatalogError):
            JsonCatalog.from_dict(bad)

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CatalogError):
            JsonCatalog.from_file(path)
        with pytest.raises(CatalogError):
            JsonCatalog.from_file(tmp_path / "absent.json")


class TestKeyValueStores:
    @pytest.mark.parametrize("store_name", ["memory", "sql"])
    def test_get_set_delete(self, store_name, sql_store):
        store = InMemoryKeyValueStore() if store_name == "memory" else sql_store
        assert store.get("k") is None
        store.set("k", "one")
        store.set("k", "two")
        assert store.get("k") == "two"
        assert store.delete("k") is True
        assert store.delete("k") is False
        assert store.get("k") is None


class TestGuidanceRepository:
    def test_round_trip(self, store, engine):
        repo = GuidanceRepository(store, engine)
        state = engine.complete(engine.initial_state(), "senior-explore", Stage.EXPLORE, TS)
        repo.save(state)
        assert repo.load() == state

    def test_round_trip_sql(self, sql_store, engine):
        repo = GuidanceRepository(sql_store, engine)
        state = repo.record_completion("plan-lite", "plan", TS)
        assert GuidanceRepository(sql_store, engine).load() == state

    @pytest.mark.parametrize("raw", [None, "", "{broken", "[1, 2]", "{}", '{"stage_status": {}}'])
    def test_unusable_content_yields_initial_state(self, store, engine, raw):
        if raw is not None:
            store.set(GuidanceRepository.key, raw)
        assert GuidanceRepository(store, engine).load() == engine.initial_state()

    def test_malformed_field_falls_back_alone(self, store, engine):
        event = {"command": "plan-lite", "stage": "plan", "timestamp": TS.isoformat()}
        store.set(GuidanceRepository.key, json.dumps({
            "stage_status": {"explore": "done", "plan": "active"},
            "history": "not a list",
            "last": event,
        }))
        state = GuidanceRepository(store, engine).load()
        assert state.stage_status[Stage.EXPLORE] == StageStatus.DONE
        assert state.active_stage == Stage.PLAN
        assert state.history == []
        assert state.last.command == "plan-lite"

    def test_partial_stage_record_keeps_explore_active(self, store, engine):
        store.set(GuidanceRepository.key, json.dumps({"stage_status": {"plan": "done"}}))
        state = GuidanceRepository(store, engine).load()
        assert state.active_stage == Stage.EXPLORE
        assert state.stage_status[Stage.PLAN] == StageStatus.DONE
        assert engine.is_out_of_order(state, Stage.PLAN) is False

    def test_two_active_stages_reset_keeps_timeline(self, store, engine):
        event = {"command": "senior-explore", "stage": "explore", "timestamp": TS.isoformat()}
        store.set(GuidanceRepository.key, json.dumps({
            "stage_status": {"explore": "active", "plan": "active"},
            "history": [event],
            "last": event,
        }))
        state = GuidanceRepository(store, engine).load()
        assert state.stage_status == GuidanceState().stage_status
        assert len(state.history) == 1
        assert state.last.command == "senior-explore"

    def test_failing_store(self, engine):
        repo = GuidanceRepository(FailingStore(), engine)
        assert repo.load() == engine.initial_state()
        assert repo.save(engine.initial_state()) is False
        assert repo.clear() is False


class TestDraftRepository:
    def test_save_and_load(self, store):
        repo = DraftRepository(store)
        draft = GeneratorDraft(
            selected_command_id="plan-lite",
            form_state={"INTENT": "x", "CONSTRAINTS": ["a"], "READ_ONLY": True},
            variables={"PROJECT": "shop"},
        )
        repo.save(draft)
        assert repo.load() == draft

    def test_empty_or_malformed(self, store):
        repo = DraftRepository(store)
        assert repo.load() is None
        store.set(DraftRepository.key, "garbage")
        assert repo.load() is None


class TestHistoryRepository:
    def test_newest_first_and_remove(self, store):
        repo = HistoryRepository(store)
        repo.add(HistoryEntry(id="1", command_id="a", command_text="first"))
        repo.add(HistoryEntry(id="2", command_id="b", command_text="second"))
        assert [e.id for e in repo.list()] == ["2", "1"]
        assert [e.id for e in repo.remove("2")] == ["1"]
        assert [e.id for e in HistoryRepository(store).list()] == ["1"]

    def test_malformed_history(self, store):
        store.set(HistoryRepository.key, "{}")
        assert HistoryRepository(store).list() == []


class TestAdvancedFieldsPreference:
    def test_defaults_to_hidden(self, store):
        pref = AdvancedFieldsPreference(store)
        assert pref.load() is False
        pref.save(True)
        assert pref.load() is True
