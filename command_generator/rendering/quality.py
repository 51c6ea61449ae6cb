"""
Prompt quality hints for the free-text fields that matter most: intent,
context and constraints. Purely heuristic keyword and length checks; the
result is shown next to the field and never blocks generation.
"""

from dataclasses import dataclass
from typing import Literal

QualityStatus = Literal["ok", "warning", "weak"]

ACTION_VERBS = [
    "build", "create", "design", "implement", "analyze", "summarize", "fix",
    "refactor", "test", "review", "generate", "plan", "optimize", "improve",
    "draft", "translate", "write", "make", "derive", "explain", "compare",
    "debug", "investigate",
    "实现", "生成", "分析", "设计", "编写", "优化", "修复", "整理", "总结",
    "评审", "规划", "制作", "对比", "排查", "重构",
]

CONTEXT_HINTS = [
    "system", "scope", "environment", "context", "background", "module",
    "service", "api", "database",
    "限制", "范围", "上下文", "背景", "系统", "环境", "模块", "服务", "接口", "数据库",
]

MIN_INTENT_LENGTH = 12
MIN_CONTEXT_LENGTH = 16
MIN_CONSTRAINTS_LENGTH = 8


@dataclass
class QualityFeedback:
    status: QualityStatus
    message: str


def _normalize(text: str) -> str:
    return text.strip().lower()


def evaluate_intent(raw: str) -> QualityFeedback:
    text = _normalize(raw)
    if not text:
        return QualityFeedback("weak", "Intent is empty; describe the goal.")
    has_verb = any(verb in text for verb in ACTION_VERBS)
    if has_verb and len(text) >= MIN_INTENT_LENGTH:
        return QualityFeedback("ok", "Intent states a clear goal.")
    if not has_verb:
        return QualityFeedback("warning", "Add an action verb so the task is easy to locate.")
    return QualityFeedback("warning", "Intent is short; add detail about the goal.")


def evaluate_context(raw: str) -> QualityFeedback:
    text = _normalize(raw)
    if not text:
        return QualityFeedback("weak", "Context is empty; output quality may suffer.")
    has_hint = any(hint in text for hint in CONTEXT_HINTS)
    if has_hint and len(text) >= MIN_CONTEXT_LENGTH:
        return QualityFeedback("ok", "Context covers the system or scope.")
    if not has_hint:
        return QualityFeedback("warning", "Context is thin; mention the scope or system background.")
    return QualityFeedback("warning", "Context could be more specific.")


def evaluate_constraints(raw: str) -> QualityFeedback:
    text = _normalize(raw)
    if not text:
        return QualityFeedback("warning", "Constraints help keep the output under control.")
    if len(text) < MIN_CONSTRAINTS_LENGTH:
        return QualityFeedback("warning", "Constraints are short; add the limits that matter.")
    return QualityFeedback("ok", "Constraints provide the key limits.")
