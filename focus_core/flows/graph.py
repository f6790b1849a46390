"""任务分析（analyzeTask）的 LangGraph 流程构建。

    build_request -> call_upstream -> normalize -> END
                                   \\-> fallback  -> END

call_upstream 只记录 ``raw_text`` 或 ``error`` 之一，由路由函数选择分支，
因此每次运行都恰好产出一个 ``result``。
"""

from __future__ import annotations

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from focus_core.domain.exceptions import UpstreamError
from focus_core.flows.state import AnalysisState
from focus_core.infrastructure.logging.logger import logger
from focus_core.pipeline.builder import build_analysis_request
from focus_core.pipeline.fallback import fallback_analysis
from focus_core.pipeline.normalizer import normalize_analysis
from focus_core.providers.base import ProviderClient


def build_request_node(state: AnalysisState) -> AnalysisState:
    return {"request": build_analysis_request(state["config"], state["task"])}


def call_upstream_node(state: AnalysisState, provider: ProviderClient) -> AnalysisState:
    cfg = state["config"]
    logger.info("analyze.call_upstream", extra={"extra": {"model": cfg.model, "temperature": cfg.temperature}})
    try:
        result = provider.chat(state["request"])
    except UpstreamError as e:
        logger.warning(
            "analyze.upstream_failed",
            extra={"extra": {"code": e.code, "error": e.message, "http_status": e.http_status}},
        )
        return {"raw_text": None, "error": e.code}
    if not result.content.strip():
        logger.warning("analyze.empty_content", extra={"extra": {"model": result.model}})
        return {"raw_text": None, "error": "EMPTY_CONTENT"}
    return {"raw_text": result.content, "error": None}


def normalize_node(state: AnalysisState) -> AnalysisState:
    return {"result": normalize_analysis(state["raw_text"])}


def fallback_node(state: AnalysisState) -> AnalysisState:
    return {"result": fallback_analysis()}


def upstream_router(state: AnalysisState) -> str:
    if state.get("raw_text") is None:
        return "fallback"
    return "normalize"


def build_analysis_graph(provider: ProviderClient) -> CompiledStateGraph:
    graph = StateGraph(AnalysisState)
    graph.add_node("build_request", build_request_node)
    graph.add_node("call_upstream", lambda s: call_upstream_node(s, provider))
    graph.add_node("normalize", normalize_node)
    graph.add_node("fallback", fallback_node)
    graph.set_entry_point("build_request")
    graph.add_edge("build_request", "call_upstream")
    graph.add_conditional_edges(
        "call_upstream",
        upstream_router,
        {"normalize": "normalize", "fallback": "fallback"},
    )
    graph.add_edge("normalize", END)
    graph.add_edge("fallback", END)
    return graph.compile()
