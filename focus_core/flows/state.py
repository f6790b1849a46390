"""任务分析流程的状态定义。"""

from __future__ import annotations

from typing import Optional, TypedDict

from focus_core.domain.models import ChatRequest, TaskAnalysis
from focus_core.providers.registry import ModelRoleConfig


class AnalysisState(TypedDict, total=False):
    """在 LangGraph 各节点之间共享的状态。"""

    task: str
    config: ModelRoleConfig
    request: Optional[ChatRequest]
    raw_text: Optional[str]
    error: Optional[str]
    result: Optional[TaskAnalysis]
