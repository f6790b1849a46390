"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护角色与模型配置 (registry)。
- 解析流式响应 (sse)。
- 提供 DeepSeek 的具体实现 (deepseek_client)。
"""

from focus_core.config.settings import Settings
from focus_core.providers.base import ProviderClient
from focus_core.providers.deepseek_client import DeepSeekClient


def create_provider(settings: Settings) -> ProviderClient:
    """根据配置创建 Provider 实例。目前只有 DeepSeek 一家。"""

    return DeepSeekClient(settings)


__all__ = ["ProviderClient", "DeepSeekClient", "create_provider"]
