"""FocusMate AI 编排层顶层包。

该包负责把前端的 AI 请求代理到 DeepSeek，
包括配置加载、角色配置、上游适配、输出归一化、兜底与流式转发，
并通过 FastAPI 对外暴露 analyzeTask / aiChat / aiChatStream 等入口。
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
