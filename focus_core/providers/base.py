"""Provider 抽象接口。

上层编排不直接依赖具体厂商的 HTTP 细节，而是依赖此协议：

- 每个厂商实现一个 ProviderClient（如 DeepSeekClient）。
- 负责：将 ChatRequest 转成具体 API 请求，并把响应 JSON 解析为 ChatResult。

测试中用实现了同样方法的假对象替换即可，无需打真实网络。
"""

from typing import Iterable, Protocol

from focus_core.domain.models import ChatRequest, ChatResult, ChatStreamChunk


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/统计。
    - ensure_configured(): 配置缺失时抛 ConfigurationError。
    - chat(req): 执行一次非流式调用，返回统一的 ChatResult。
    - chat_stream(req): 执行一次流式调用，逐步产出增量。
    """

    name: str

    def ensure_configured(self) -> None:
        ...

    def chat(self, req: ChatRequest) -> ChatResult:
        ...

    def chat_stream(self, req: ChatRequest) -> Iterable[ChatStreamChunk]:
        ...
