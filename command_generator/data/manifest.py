from command_generator.domain.models import (
    AutoBinding,
    BindingMode,
    CommandDefinition,
    CommandOutput,
    FieldDefinition,
    FieldType,
    Stage,
    WorkflowDefinition,
    WorkflowStep,
)

# ==============================================================================
# SHARED FIELDS
# ==============================================================================

INTENT = FieldDefinition(
    id="INTENT",
    label="Intent",
    type=FieldType.TEXTAREA,
    required=True,
    placeholder="What should the assistant achieve?",
)

CONTEXT = FieldDefinition(
    id="CONTEXT",
    label="Context",
    type=FieldType.TEXTAREA,
    placeholder="System, module, scope or background the assistant should know about.",
)

CONSTRAINTS = FieldDefinition(
    id="CONSTRAINTS",
    label="Constraints",
    type=FieldType.LIST,
    advanced=True,
)

PLAN_PATH = FieldDefinition(
    id="PLAN_PATH",
    label="Plan file",
    type=FieldType.PATH,
    default_value="docs/plan.md",
)

REVIEW_TARGET = FieldDefinition(
    id="REVIEW_TARGET",
    label="What to review",
    type=FieldType.TEXT,
    required=True,
)

READ_ONLY = FieldDefinition(
    id="READ_ONLY",
    label="Read-only (no edits)",
    type=FieldType.BOOLEAN,
    default_value=True,
)

DEPTH = FieldDefinition(
    id="DEPTH",
    label="Depth",
    type=FieldType.SELECT,
    options=["quick", "standard", "deep"],
    default_value="standard",
)

# ==============================================================================
# EXPLORE
# ==============================================================================

senior_explore = CommandDefinition(
    id="senior-explore",
    display_name="Senior Explore",
    stage=Stage.EXPLORE,
    constraint_level="strong",
    description="Map the relevant code and surface risks before any change is planned.",
    fields=[INTENT, CONTEXT, DEPTH, READ_ONLY, CONSTRAINTS],
    template=(
        "You are a senior engineer exploring the {PROJECT} codebase.\n"
        "Goal: {{INTENT}}\n"
        "Context:\n{{CONTEXT}}\n"
        "Depth: {{DEPTH}}\n"
        "Read-only: {{READ_ONLY}}\n"
        "Constraints:\n{{CONSTRAINTS}}\n"
        "Report the modules involved, their responsibilities, and open risks."
    ),
    outputs=[CommandOutput(id="EXPLORE_SCOPE", source_field_id="CONTEXT")],
)

explore_lite = CommandDefinition(
    id="explore-lite",
    display_name="Explore (lite)",
    stage=Stage.EXPLORE,
    constraint_level="lite",
    fields=[INTENT, CONTEXT],
    template="Explore the code relevant to: {{INTENT}}\n{{CONTEXT}}",
    outputs=[CommandOutput(id="EXPLORE_SCOPE", source_field_id="CONTEXT")],
)

# ==============================================================================
# PLAN
# ==============================================================================

plan_lite = CommandDefinition(
    id="plan-lite",
    display_name="Plan (lite)",
    stage=Stage.PLAN,
    constraint_level="lite",
    fields=[INTENT, CONTEXT, PLAN_PATH],
    template=(
        "Write a short implementation plan for: {{INTENT}}\n"
        "Context:\n{{CONTEXT}}\n"
        "Save the plan to {{PLAN_PATH}}."
    ),
    outputs=[CommandOutput(id="PLAN_PATH", source_field_id="PLAN_PATH")],
)

produce_plan = CommandDefinition(
    id="produce-plan",
    display_name="Produce Plan",
    stage=Stage.PLAN,
    constraint_level="strong",
    fields=[INTENT, CONTEXT, CONSTRAINTS, PLAN_PATH],
    template=(
        "Produce a step-by-step plan for {PROJECT}.\n"
        "Goal: {{INTENT}}\n"
        "Context:\n{{CONTEXT}}\n"
        "Constraints:\n{{CONSTRAINTS}}\n"
        "List every file to touch and how to verify each step. Save the plan to {{PLAN_PATH}}."
    ),
    outputs=[CommandOutput(id="PLAN_PATH", source_field_id="PLAN_PATH")],
)

backend_plan = CommandDefinition(
    id="backend-plan",
    display_name="Backend Plan",
    stage=Stage.PLAN,
    constraint_level="strong",
    description="Plan a Java backend change: API, persistence and migration impact.",
    fields=[INTENT, CONTEXT, CONSTRAINTS, PLAN_PATH],
    template=(
        "Plan a backend change for {PROJECT}.\n"
        "Goal: {{INTENT}}\n"
        "Context:\n{{CONTEXT}}\n"
        "Constraints:\n{{CONSTRAINTS}}\n"
        "Cover API contracts, database migrations and rollback. Save the plan to {{PLAN_PATH}}."
    ),
    outputs=[CommandOutput(id="PLAN_PATH", source_field_id="PLAN_PATH")],
)

# ==============================================================================
# REVIEW
# ==============================================================================

review_lite = CommandDefinition(
    id="review-lite",
    display_name="Review (lite)",
    stage=Stage.REVIEW,
    constraint_level="lite",
    fields=[REVIEW_TARGET, CONTEXT],
    template="Review {{REVIEW_TARGET}} and list the most important issues.\n{{CONTEXT}}",
)

review_only = CommandDefinition(
    id="review-only",
    display_name="Review Only",
    stage=Stage.REVIEW,
    constraint_level="medium",
    fields=[REVIEW_TARGET, CONTEXT, READ_ONLY],
    template=(
        "Review {{REVIEW_TARGET}} without changing any file.\n"
        "Context:\n{{CONTEXT}}\n"
        "Read-only: {{READ_ONLY}}"
    ),
)

review_strict = CommandDefinition(
    id="review-strict",
    display_name="Strict Review",
    stage=Stage.REVIEW,
    constraint_level="strong",
    fields=[REVIEW_TARGET, CONTEXT, CONSTRAINTS],
    template=(
        "Perform a strict review of {{REVIEW_TARGET}} against the plan in {PLAN_PATH}.\n"
        "Context:\n{{CONTEXT}}\n"
        "Constraints:\n{{CONSTRAINTS}}\n"
        "Block on any correctness, security or compatibility problem."
    ),
)

# ==============================================================================
# IMPLEMENT
# ==============================================================================

implement_standard = CommandDefinition(
    id="implement-standard",
    display_name="Implement",
    stage=Stage.IMPLEMENT,
    constraint_level="medium",
    fields=[INTENT, CONTEXT, CONSTRAINTS],
    template=(
        "Implement: {{INTENT}}\n"
        "Context:\n{{CONTEXT}}\n"
        "Constraints:\n{{CONSTRAINTS}}\n"
        "Keep the change minimal and add tests."
    ),
)

implement_plan = CommandDefinition(
    id="implement-plan",
    display_name="Implement Plan",
    stage=Stage.IMPLEMENT,
    constraint_level="strong",
    fields=[PLAN_PATH, CONTEXT, CONSTRAINTS],
    template=(
        "Implement the plan in {{PLAN_PATH}} step by step.\n"
        "Context:\n{{CONTEXT}}\n"
        "Constraints:\n{{CONSTRAINTS}}\n"
        "Stop and report if the plan no longer matches the code."
    ),
)

implement_lite = CommandDefinition(
    id="implement-lite",
    display_name="Implement (lite)",
    stage=Stage.IMPLEMENT,
    constraint_level="lite",
    fields=[INTENT],
    template="Implement: {{INTENT}}",
)

# ==============================================================================
# FINALIZE
# ==============================================================================

finalize_work = CommandDefinition(
    id="finalize-work",
    display_name="Finalize Work",
    stage=Stage.FINALIZE,
    constraint_level="medium",
    fields=[INTENT, CONTEXT],
    template=(
        "Finalize the work on {PROJECT}: {{INTENT}}\n"
        "Context:\n{{CONTEXT}}\n"
        "Update the changelog, summarise the change and list follow-ups."
    ),
)

finalize_lite = CommandDefinition(
    id="finalize-lite",
    display_name="Finalize (lite)",
    stage=Stage.FINALIZE,
    constraint_level="lite",
    fields=[INTENT],
    template="Summarise the finished change: {{INTENT}}",
)

COMMANDS = [
    senior_explore,
    explore_lite,
    plan_lite,
    produce_plan,
    backend_plan,
    review_lite,
    review_only,
    review_strict,
    implement_standard,
    implement_plan,
    implement_lite,
    finalize_work,
    finalize_lite,
]

# ==============================================================================
# WORKFLOWS
# ==============================================================================

workflow_a = WorkflowDefinition(
    id="workflow-a",
    title="Feature delivery",
    description="Explore, plan, review, implement and finalize a feature.",
    steps=[
        WorkflowStep(step_id="explore", command_id="senior-explore"),
        WorkflowStep(
            step_id="plan",
            command_id="produce-plan",
            auto_bindings=[
                AutoBinding(from_var="EXPLORE_SCOPE", to_field_id="CONTEXT"),
            ],
        ),
        WorkflowStep(step_id="review", command_id="review-only", optional=True),
        WorkflowStep(
            step_id="implement",
            command_id="implement-plan",
            auto_bindings=[
                AutoBinding(from_var="PLAN_PATH", to_field_id="PLAN_PATH", mode=BindingMode.SET),
                AutoBinding(from_var="EXPLORE_SCOPE", to_field_id="CONTEXT"),
            ],
        ),
        WorkflowStep(step_id="finalize", command_id="finalize-work"),
    ],
)

workflow_b = WorkflowDefinition(
    id="workflow-b",
    title="Quick fix",
    steps=[
        WorkflowStep(step_id="explore", command_id="explore-lite"),
        WorkflowStep(
            step_id="implement",
            command_id="implement-standard",
            auto_bindings=[
                AutoBinding(from_var="EXPLORE_SCOPE", to_field_id="CONTEXT"),
            ],
        ),
        WorkflowStep(step_id="finalize", command_id="finalize-lite", optional=True),
    ],
)

workflow_d = WorkflowDefinition(
    id="workflow-d",
    title="Java backend",
    description="Backend change with a dedicated plan and a strict review.",
    steps=[
        WorkflowStep(step_id="explore", command_id="senior-explore"),
        WorkflowStep(
            step_id="plan",
            command_id="backend-plan",
            auto_bindings=[
                AutoBinding(from_var="EXPLORE_SCOPE", to_field_id="CONTEXT"),
            ],
        ),
        WorkflowStep(step_id="review", command_id="review-strict"),
        WorkflowStep(
            step_id="implement",
            command_id="implement-plan",
            auto_bindings=[
                AutoBinding(from_var="PLAN_PATH", to_field_id="PLAN_PATH", mode=BindingMode.SET),
            ],
        ),
        WorkflowStep(step_id="finalize", command_id="finalize-work"),
    ],
)

WORKFLOWS = [workflow_a, workflow_b, workflow_d]
