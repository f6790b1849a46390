"""对外 API 服务模块。

AssistantService 是 AI 编排层唯一的入口，HTTP 层与其他协作方只和它打交道：

- analyze_task: 任务分析，永远返回一个 TaskAnalysis。
- chat: 普通对话，上游失败时返回兜底回复。
- chat_stream: 流式对话，永远以恰好一个 done 帧结束。
- productivity_tip / focus_session_feedback / journal_insights: 基于 chat 的小工具。

只有 ConfigurationError（未配置密钥）会抛给调用方，且在任何网络请求之前抛出。
"""

from typing import Iterator, Optional

from focus_core.config.settings import Settings
from focus_core.domain.exceptions import UpstreamError
from focus_core.domain.models import ChatReply, JournalInsights, StreamChunk, TaskAnalysis
from focus_core.flows.graph import build_analysis_graph
from focus_core.infrastructure.logging.logger import logger
from focus_core.pipeline import builder, fallback
from focus_core.pipeline.normalizer import normalize_journal_insights
from focus_core.pipeline.stream_relay import StreamRelay
from focus_core.providers import create_provider
from focus_core.providers.base import ProviderClient
from focus_core.providers.registry import ModelRoleConfig, resolve_role_config


class AssistantService:
    """AI 请求编排服务。

    Args:
        settings: 显式构造的配置。
        provider_client: 可选的上游客户端，默认按配置创建 DeepSeekClient；
            测试中传入假对象即可。
    """

    def __init__(self, settings: Settings, provider_client: Optional[ProviderClient] = None):
        self._settings = settings
        self._provider = provider_client or create_provider(settings)
        self._analysis_graph = build_analysis_graph(self._provider)

    @property
    def settings(self) -> Settings:
        return self._settings

    def resolve_config(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        *,
        analysis: bool = False,
    ) -> ModelRoleConfig:
        """按角色名解析配置；未传角色时使用配置中的默认角色。"""

        default = self._settings.analysis_model if analysis else self._settings.chat_model
        return resolve_role_config(model or default, temperature)

    def analyze_task(
        self,
        task: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> TaskAnalysis:
        """分析一条任务，返回分类、优先级、预估时长、复杂度与建议。"""

        self._provider.ensure_configured()
        config = self.resolve_config(model, temperature, analysis=True)
        state = self._analysis_graph.invoke({"task": task, "config": config})
        return state["result"]

    def chat(
        self,
        message: str,
        context: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> ChatReply:
        self._provider.ensure_configured()
        config = self.resolve_config(model, temperature)
        return self._chat(config, message, context)

    def chat_stream(
        self,
        message: str,
        context: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> Iterator[StreamChunk]:
        """流式对话。

        密钥检查在返回迭代器之前完成，因此 ConfigurationError 会在
        调用时立刻抛出，而不是在第一次迭代时。
        """

        self._provider.ensure_configured()
        config = self.resolve_config(model, temperature)
        request = builder.build_chat_request(config, message, context, stream=True)
        logger.info("chat_stream.start", extra={"extra": {"model": config.model}})
        relay = StreamRelay(self._provider, request, timeout=self._settings.http_timeout)
        return relay.run()

    # ---- 基于 chat 的小工具 ----

    def productivity_tip(self, current_activity: Optional[str] = None) -> ChatReply:
        self._provider.ensure_configured()
        config = self.resolve_config()
        message, context = builder.productivity_tip_prompt(current_activity)
        return self._chat(config, message, context, fallback_message=fallback.FALLBACK_PRODUCTIVITY_TIP)

    def focus_session_feedback(self, duration: int, completed: bool, mood: str) -> ChatReply:
        self._provider.ensure_configured()
        config = self.resolve_config()
        message = builder.focus_session_prompt(duration, completed, mood)
        return self._chat(config, message, fallback_message=fallback.FALLBACK_FOCUS_FEEDBACK)

    def journal_insights(self, entry: str) -> JournalInsights:
        self._provider.ensure_configured()
        config = self.resolve_config(analysis=True)
        request = builder.build_chat_request(config, builder.journal_insights_prompt(entry))
        try:
            result = self._provider.chat(request)
        except UpstreamError as e:
            self._log_upstream_failure("journal_insights", config, e)
            return fallback.fallback_journal_insights()
        if not result.content.strip():
            return fallback.fallback_journal_insights()
        return normalize_journal_insights(result.content)

    # ---- 内部 ----

    def _chat(
        self,
        config: ModelRoleConfig,
        message: str,
        context: Optional[str] = None,
        fallback_message: str = fallback.FALLBACK_CHAT_MESSAGE,
    ) -> ChatReply:
        request = builder.build_chat_request(config, message, context)
        try:
            result = self._provider.chat(request)
        except UpstreamError as e:
            self._log_upstream_failure("chat", config, e)
            return fallback.fallback_chat_reply(config, fallback_message)
        return ChatReply(
            response=result.content or fallback.EMPTY_CHAT_MESSAGE,
            model=config.model,
            temperature=config.temperature,
            usage=result.usage,
        )

    @staticmethod
    def _log_upstream_failure(operation: str, config: ModelRoleConfig, e: UpstreamError) -> None:
        logger.warning(
            f"{operation}.upstream_failed",
            extra={"extra": {
                "model": config.model,
                "code": e.code,
                "error": e.message,
                "http_status": e.http_status,
            }},
        )
