"""Response Normalizer。

把模型返回的自由文本转换为固定形状的结果：

1. 去掉 markdown 代码围栏（```json ... ```）。
2. 严格按 JSON 解析，结果必须是对象。
3. 按字段映射到 TaskAnalysis，缺失（或为 null）的字段逐个取默认值。
4. 解析失败不重试上游，直接交给 Fallback Generator，并把原文放进 insights。

只做围栏剥离 + 严格解析，不尝试修复尾逗号、截断等其他格式问题。
"""

import json
import re
from typing import Any, Dict, Mapping

from focus_core.domain.exceptions import ParseError
from focus_core.domain.models import JournalInsights, TaskAnalysis
from focus_core.infrastructure.logging.logger import logger
from focus_core.pipeline import fallback


_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\r?\n?")

_MISSING = object()


def strip_code_fences(text: str) -> str:
    if "```" not in text:
        return text.strip()
    return _FENCE_RE.sub("", text).strip()


def parse_model_json(text: str) -> Dict[str, Any]:
    """去围栏后严格解析，失败抛 ParseError。"""

    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ParseError(code="PARSE_ERROR", message=f"Model output is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ParseError(
            code="PARSE_ERROR",
            message=f"Model output is a JSON {type(data).__name__}, expected an object",
        )
    return data


def _field(data: Mapping[str, Any], *names: str, default: Any) -> Any:
    for name in names:
        value = data.get(name, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    return default


def normalize_analysis(raw_text: str) -> TaskAnalysis:
    try:
        data = parse_model_json(raw_text)
    except ParseError as e:
        logger.warning(
            "normalizer.parse_failed",
            extra={"extra": {"error": e.message, "raw_length": len(raw_text)}},
        )
        return fallback.fallback_analysis(insights=raw_text)
    return TaskAnalysis(
        category=_field(data, "category", default=fallback.DEFAULT_CATEGORY),
        priority=_field(data, "priority", default=fallback.DEFAULT_PRIORITY),
        estimated_time=_field(data, "estimatedTime", default=fallback.DEFAULT_ESTIMATED_TIME),
        complexity=_field(data, "complexity", default=fallback.DEFAULT_COMPLEXITY),
        suggestions=_field(data, "suggestions", default=list(fallback.DEFAULT_SUGGESTIONS)),
        insights=_field(data, "insights", "analysis", default=fallback.DEFAULT_INSIGHTS),
        fallback=False,
    )


def normalize_journal_insights(raw_text: str) -> JournalInsights:
    try:
        data = parse_model_json(raw_text)
    except ParseError:
        # 日记洞察经常直接返回一段话，原文本身就是可用的洞察
        return JournalInsights(
            insights=raw_text.strip(),
            suggestions=list(fallback.FALLBACK_JOURNAL_SUGGESTIONS),
            fallback=False,
        )
    return JournalInsights(
        insights=_field(data, "insights", default=fallback.FALLBACK_JOURNAL_INSIGHTS),
        suggestions=_field(data, "suggestions", default=list(fallback.FALLBACK_JOURNAL_SUGGESTIONS)),
        fallback=False,
    )
