"""Tests for the CommandGeneratorService session controller."""

import json

import pytest
from sqlalchemy.exc import SQLAlchemyError

from command_generator.dependencies import build_generator_service
from command_generator.domain.models import Stage
from command_generator.repositories.draft import DraftRepository
from command_generator.repositories.guidance import GuidanceRepository
from command_generator.repositories.history import HistoryRepository
from command_generator.repositories.storage import KeyValueStore
from command_generator.services.exceptions import (
    CommandNotFoundError,
    GenerationBlockedError,
    NoActiveWorkflowError,
)
from command_generator.services.generator import CommandGeneratorService
from command_generator.state.models import StageStatus


class BrokenStore(KeyValueStore):
    def get(self, key):
        raise SQLAlchemyError("disk I/O error")

    def set(self, key, value):
        raise SQLAlchemyError("disk I/O error")

    def delete(self, key):
        raise SQLAlchemyError("disk I/O error")


class TestSelection:
    def test_in_order_selection(self, service):
        selection = service.select_command("senior-explore")
        assert selection.out_of_order is False
        assert selection.recommendation.command == "senior-explore"
        assert service.form_state["READ_ONLY"] is True
        assert service.form_state["DEPTH"] == "standard"

    def test_jumping_ahead_is_flagged_not_blocked(self, service):
        selection = service.select_command("implement-plan")
        assert selection.out_of_order is True
        assert service.guardrail_visible is True
        assert selection.suggested_workflow.id == "workflow-a"

    def test_unknown_command(self, service):
        with pytest.raises(CommandNotFoundError):
            service.select_command("deploy-everything")

    def test_selection_resets_form(self, service):
        service.select_command("plan-lite")
        service.set_field("INTENT", "old")
        service.select_command("plan-lite")
        assert service.form_state["INTENT"] == ""


class TestPreviewAndEditing:
    def test_missing_variables_and_required_fields(self, service):
        service.select_command("produce-plan")
        preview = service.preview()
        assert preview.missing_variables == ["PROJECT"]
        assert preview.missing_required == ["INTENT"]
        assert preview.can_generate is False

        service.set_field("INTENT", "Plan the search rewrite")
        assert service.add_variable(" PROJECT ", " shop ") is True
        preview = service.preview()
        assert preview.missing_variables == []
        assert preview.can_generate is True
        assert "Produce a step-by-step plan for shop." in preview.text

    def test_blank_variable_rejected(self, service):
        service.select_command("produce-plan")
        assert service.add_variable("PROJECT", "  ") is False
        assert service.remove_variable("PROJECT") is False

    def test_list_field_parsing(self, service):
        service.select_command("produce-plan")
        service.set_list_field("CONSTRAINTS", "no new deps\n\n  keep API stable \n")
        assert service.form_state["CONSTRAINTS"] == ["no new deps", "keep API stable"]
        assert "- no new deps\n- keep API stable" in service.preview().text

    def test_clear_field_empties_by_type(self, service):
        service.select_command("senior-explore")
        service.clear_field("READ_ONLY")
        service.clear_field("CONSTRAINTS")
        service.clear_field("DEPTH")
        assert service.form_state["READ_ONLY"] is False
        assert service.form_state["CONSTRAINTS"] == []
        assert service.form_state["DEPTH"] == ""

    def test_preview_override(self, service):
        service.select_command("implement-lite")
        service.set_field("INTENT", "add retries")
        service.set_preview_override("custom text")
        preview = service.preview()
        assert preview.text == "custom text"
        assert preview.computed_text == "Implement: add retries"
        service.set_preview_override(None)
        assert service.preview().text == "Implement: add retries"

    def test_insert_attachments(self, service):
        service.select_command("produce-plan")
        service.add_attachment("api.py", "def handler(): pass")
        service.insert_attachments(mode="snippet")
        assert service.form_state["CONTEXT"].startswith("- File: api.py")
        assert "def handler(): pass" in service.form_state["CONTEXT"]

    def test_attachments_ignore_unattachable_fields(self, service):
        service.select_command("senior-explore")
        service.add_attachment("a.txt", "x")
        service.insert_attachments(field_id="READ_ONLY")
        assert service.form_state["READ_ONLY"] is True

    def test_nothing_selected(self, service):
        assert service.preview().text == ""
        with pytest.raises(ValueError):
            service.generate()


class TestGenerate:
    def test_generation_updates_history_and_guidance(self, service, store, catalog):
        service.select_command("senior-explore")
        service.set_field("INTENT", "Understand the billing flow")
        result = service.generate()

        assert result.entry.command_id == "senior-explore"
        assert "Understand the billing flow" in result.entry.command_text
        assert result.guidance.stage_status[Stage.EXPLORE] == StageStatus.DONE
        assert result.recommendation.stage == Stage.PLAN
        assert service.history[0] == result.entry

        # both are mirrored to storage on generation
        reloaded = build_generator_service(store, catalog)
        assert reloaded.guidance == service.guidance
        assert [e.id for e in reloaded.history] == [result.entry.id]

    def test_incomplete_form_still_generates_by_default(self, service):
        service.select_command("plan-lite")
        result = service.generate()
        assert result.entry.fields["INTENT"] == ""

    def test_enforced_required_fields(self, service):
        service.select_command("plan-lite")
        with pytest.raises(GenerationBlockedError) as exc_info:
            service.generate(enforce_required=True)
        assert exc_info.value.missing_fields == ["INTENT"]
        assert service.history == []

    def test_history_ids_are_unique(self, service):
        service.select_command("implement-lite")
        first = service.generate().entry
        second = service.generate().entry
        assert first.id != second.id
        assert [e.id for e in service.history] == [second.id, first.id]

    def test_delete_history(self, service):
        service.select_command("implement-lite")
        entry = service.generate().entry
        service.delete_history(entry.id)
        assert service.history == []

    def test_undo_restores_pre_generation_form(self, service):
        service.select_command("implement-lite")
        service.set_field("INTENT", "first")
        service.generate()
        service.set_field("INTENT", "second")
        assert service.undo() is True
        assert service.form_state["INTENT"] == "first"
        assert service.undo() is False

    def test_reset_guidance(self, service):
        service.select_command("senior-explore")
        service.generate()
        assert service.reset_guidance() == service.engine.initial_state()

    def test_broken_storage_never_blocks(self, catalog):
        service = build_generator_service(BrokenStore(), catalog)
        assert service.guidance == service.engine.initial_state()
        service.select_command("implement-lite")
        service.set_field("INTENT", "ship it")
        result = service.generate()
        assert result.guidance.stage_status[Stage.IMPLEMENT] == StageStatus.DONE
        assert len(service.history) == 1
        assert service.restore_draft() is False


class TestDrafts:
    def test_restore_draft(self, service, store, catalog):
        service.select_command("produce-plan")
        service.set_field("INTENT", "Plan caching")
        service.add_variable("PROJECT", "shop")

        fresh = build_generator_service(store, catalog)
        assert fresh.restore_draft() is True
        assert fresh.selected_command_id == "produce-plan"
        assert fresh.form_state["INTENT"] == "Plan caching"
        assert fresh.variables == {"PROJECT": "shop"}

    def test_nothing_to_restore(self, service):
        assert service.restore_draft() is False

    def test_draft_with_mismatched_field_shapes(self, service, store):
        """Stored values of the wrong shape fall back to the field's initial value."""
        store.set(DraftRepository.key, json.dumps({
            "selected_command_id": "produce-plan",
            "form_state": {"CONSTRAINTS": True, "INTENT": ["a"], "CONTEXT": "kept", "GONE": "x"},
        }))
        assert service.restore_draft() is True
        assert service.form_state["CONSTRAINTS"] == []
        assert service.form_state["INTENT"] == ""
        assert service.form_state["CONTEXT"] == "kept"
        assert "GONE" not in service.form_state

        preview = service.preview()
        assert "Context:\nkept" in preview.text
        assert preview.missing_required == ["INTENT"]

    def test_generate_clears_saved_draft(self, service, store):
        service.select_command("implement-lite")
        service.set_field("INTENT", "ship it")
        assert store.get(DraftRepository.key) is not None

        service.generate()
        assert store.get(DraftRepository.key) is None
        assert service.restore_draft() is False

        service.undo()
        assert service.restore_draft() is True
        assert service.form_state["INTENT"] == "ship it"

    def test_deferred_draft_writes(self, store, catalog):
        service = CommandGeneratorService(
            catalog=catalog,
            guidance_repository=GuidanceRepository(store),
            draft_repository=DraftRepository(store),
            history_repository=HistoryRepository(store),
            defer_draft_writes=True,
        )
        service.select_command("implement-lite")
        service.set_field("INTENT", "one")
        service.set_field("INTENT", "two")
        assert store.get(DraftRepository.key) is None

        assert service.flush_draft() is True
        assert DraftRepository(store).load().form_state["INTENT"] == "two"

    def test_show_advanced_preference(self, service, store, catalog):
        assert service.show_advanced is False
        service.set_show_advanced(True)
        assert build_generator_service(store, catalog).show_advanced is True


class TestWorkflowSession:
    def test_requires_running_workflow(self, service):
        with pytest.raises(NoActiveWorkflowError):
            service.workflow_preview()
        with pytest.raises(NoActiveWorkflowError):
            service.advance_workflow()

    def test_backend_workflow(self, service):
        service.start_workflow("workflow-d")
        service.set_workflow_field("INTENT", "Add refunds")
        service.set_workflow_field("CONTEXT", "payments service")
        service.add_workflow_variable("PROJECT", "shop")
        assert service.workflow_preview().missing_variables == []

        result = service.generate_workflow_step()
        assert result.captured == {"EXPLORE_SCOPE": "payments service"}
        # the workflow context selects the backend planning command
        assert result.recommendation.stage == Stage.PLAN
        assert result.recommendation.command == "backend-plan"

        service.advance_workflow()
        _, step, command = service.workflow_step()
        assert command.id == "backend-plan"
        assert service.runner.form(service.workflow_run)["CONTEXT"] == "payments service"

        service.reset_workflow()
        assert service.recommendation().command == "plan-lite"

    def test_step_generation_enforced(self, service):
        service.start_workflow("workflow-b")
        with pytest.raises(GenerationBlockedError):
            service.generate_workflow_step(enforce_required=True)

    def test_step_preview_override(self, service):
        service.start_workflow("workflow-b")
        service.set_workflow_preview_override("manual")
        assert service.workflow_preview().text == "manual"
        service.set_workflow_preview_override(None)
        assert service.workflow_preview().text != "manual"

    def test_export_workflow(self, service):
        service.start_workflow("workflow-d")
        service.set_workflow_field("INTENT", "Add refunds")
        service.generate_workflow_step()
        service.advance_workflow()
        service.skip_workflow_step()

        payload = service.export_workflow()
        assert payload.filename.startswith("workflow-d-")
        assert payload.filename.endswith(".md")
        assert payload.media_type == "text/markdown"
        assert payload.content.startswith("# Java backend")
        assert "## 1. Senior Explore (senior-explore) [done]" in payload.content
        assert "## 2. Backend Plan (backend-plan) [skipped]" in payload.content
        assert "_No command generated for this step._" in payload.content


class TestExport:
    def test_json_export(self, service):
        service.select_command("implement-lite")
        service.set_field("INTENT", "résumé parsing")
        payload = service.export("json")
        assert payload.filename.startswith("implement-lite-")
        assert ":" not in payload.filename
        assert payload.media_type == "application/json"
        assert json.loads(payload.content) == {
            "commandId": "implement-lite",
            "fields": {"INTENT": "résumé parsing"},
        }
        assert "résumé" in payload.content

    def test_markdown_export(self, service):
        service.select_command("implement-lite")
        service.set_field("INTENT", "retries")
        payload = service.export("md")
        assert payload.content.startswith("# Implement (lite)")
        assert "```json" in payload.content
        assert "Implement: retries" in payload.content

    def test_text_export(self, service):
        service.select_command("implement-lite")
        service.set_field("INTENT", "retries")
        payload = service.export("txt")
        assert payload.content == "Implement: retries"
        assert payload.media_type == "text/plain"

    def test_unknown_kind(self, service):
        service.select_command("implement-lite")
        with pytest.raises(ValueError):
            service.export("pdf")
