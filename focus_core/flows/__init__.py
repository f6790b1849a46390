"""LangGraph 流程（目前只有任务分析）。"""

from focus_core.flows.graph import build_analysis_graph
from focus_core.flows.state import AnalysisState

__all__ = ["AnalysisState", "build_analysis_graph"]
