"""DeepSeek Provider 适配器。

本模块负责：

1. 接收统一的 ChatRequest。
2. 将其转换为 DeepSeek chat/completions 的 HTTP 请求格式：
   - URL: {base_url}/chat/completions
   - 认证: Authorization: Bearer <api_key>
   - 请求体: model/messages/max_tokens/temperature/stream
3. 调用 HTTP 接口并把网络/API 异常统一包装为 UpstreamError 子类。
4. 将响应 JSON（或流式事件）解析为 ChatResult / ChatStreamChunk。

httpx 的 timeout 只约束单次连接/读取，这里另外按 http_timeout 维护
整个调用的总时长上限：每读到一块数据（包括 keep-alive 注释）都会检查一次。

这里只做"厂商 JSON ⇄ 内部模型"的转换，不做兜底；
兜底由上层编排（api.service / flows / pipeline.stream_relay）负责。
"""

import json
import time
from typing import Any, Callable, Dict, Iterable, Iterator, Optional

import httpx

from focus_core.config.settings import Settings
from focus_core.domain.exceptions import (
    ApiError,
    ConfigurationError,
    NetworkError,
    RateLimitError,
    StreamError,
)
from focus_core.domain.models import ChatRequest, ChatResult, ChatStreamChunk, ChatUsage
from focus_core.providers.sse import SseDecoder, SseEvent, extract_delta


class DeepSeekClient:
    """DeepSeek 提供方客户端实现。

    - name: Provider 名称（供日志/调试使用）。
    - chat: 非流式调用，返回 ChatResult。
    - chat_stream: 流式调用，逐个 yield 内容增量，遇到 [DONE] 结束。

    Args:
        settings: 配置（base_url、api_key、http_timeout）。
        clock: 单调时钟，用于总时长上限，测试中可替换。
    """

    name = "deepseek"

    def __init__(self, settings: Settings, clock: Callable[[], float] = time.monotonic):
        self._settings = settings
        self._clock = clock

    def ensure_configured(self) -> None:
        """缺少密钥时直接抛 ConfigurationError，不发起任何网络请求。"""

        if not getattr(self._settings, "deepseek_api_key", None):
            raise ConfigurationError(
                code="MISSING_API_KEY",
                message="DeepSeek API key not configured",
            )

    # ---- 非流式 ----

    def chat(self, req: ChatRequest) -> ChatResult:
        self.ensure_configured()
        payload = self._build_payload(req, stream=False)
        deadline = self._clock() + self._settings.http_timeout
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                with client.stream(
                    "POST",
                    self._endpoint(),
                    json=payload,
                    headers=self._headers(),
                ) as resp:
                    status_code = resp.status_code
                    body = self._read_body(resp, deadline)
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)
        self._raise_for_status(status_code, body)
        try:
            data = json.loads(body)
        except ValueError:
            raise ApiError(code="INVALID_RESPONSE", message="DeepSeek returned a non-JSON body")
        return self._parse_response(data, req)

    # ---- 流式 ----

    def chat_stream(self, req: ChatRequest) -> Iterator[ChatStreamChunk]:
        """执行一次流式调用。

        密钥检查在第一次 next() 时才会执行（生成器惰性求值），
        需要提前失败的调用方应先调用 ensure_configured()。
        超过总时长上限时抛 StreamError("STREAM_TIMEOUT")。
        """

        self.ensure_configured()
        payload = self._build_payload(req, stream=True)
        deadline = self._clock() + self._settings.http_timeout
        decoder = SseDecoder()
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                with client.stream(
                    "POST",
                    self._endpoint(),
                    json=payload,
                    headers=self._headers(),
                ) as resp:
                    if resp.status_code >= 400:
                        self._raise_for_status(resp.status_code, self._read_body(resp, deadline))
                    for text in resp.iter_text():
                        self._check_stream_deadline(deadline)
                        for chunk in self._parse_events(decoder.feed(text), req):
                            if chunk is None:
                                return
                            yield chunk
                    for chunk in self._parse_events(decoder.flush(), req):
                        if chunk is None:
                            return
                        yield chunk
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)

    # ---- 辅助方法 ----

    def _endpoint(self) -> str:
        base = (self._settings.deepseek_base_url or "").rstrip("/")
        return f"{base}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.deepseek_api_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _build_payload(req: ChatRequest, stream: bool) -> Dict[str, Any]:
        """将 ChatRequest 转成 DeepSeek 所需的请求 JSON。"""

        cfg = req.config
        return {
            "model": cfg.model,
            "messages": [{"role": m.role, "content": m.content} for m in req.messages],
            "max_tokens": cfg.max_tokens,
            "temperature": cfg.temperature,
            "stream": stream,
        }

    def _read_body(self, resp, deadline: float) -> str:
        """按块读取响应体，每块之后检查总时长上限。"""

        parts = []
        for part in resp.iter_bytes():
            if self._clock() > deadline:
                raise NetworkError(
                    code="UPSTREAM_TIMEOUT",
                    message=f"DeepSeek call exceeded {self._settings.http_timeout:g}s",
                )
            parts.append(part)
        return b"".join(parts).decode("utf-8", errors="replace")

    def _check_stream_deadline(self, deadline: float) -> None:
        if self._clock() > deadline:
            raise StreamError(
                code="STREAM_TIMEOUT",
                message=f"DeepSeek stream exceeded {self._settings.http_timeout:g}s",
            )

    @staticmethod
    def _raise_for_status(status_code: int, body: str) -> None:
        if status_code == 429:
            # 不做重试/退避，交给上层兜底
            raise RateLimitError(code="RATE_LIMIT", message="DeepSeek rate limit", http_status=429)
        if status_code >= 400:
            raise ApiError(
                code="API_ERROR",
                message=DeepSeekClient._error_message(body),
                http_status=status_code,
            )

    @staticmethod
    def _error_message(text: str) -> str:
        """优先取 ``{"error": {"message": ...}}``，否则退回原始文本。"""

        text = text or ""
        try:
            data = json.loads(text)
        except ValueError:
            return text or "DeepSeek API error"
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return text or "DeepSeek API error"

    @staticmethod
    def _parse_usage(raw: Any) -> Optional[ChatUsage]:
        if not isinstance(raw, dict) or not raw:
            return None
        return ChatUsage(
            prompt_tokens=raw.get("prompt_tokens", 0),
            completion_tokens=raw.get("completion_tokens", 0),
            total_tokens=raw.get("total_tokens", 0),
        )

    def _parse_response(self, data: Any, req: ChatRequest) -> ChatResult:
        """将 DeepSeek 的原始响应 JSON 解析为统一的 ChatResult。

        形状不符合预期（choices 不是列表、message 不是对象、content 不是字符串）
        一律视为 INVALID_RESPONSE，由上层走兜底。
        """

        if not isinstance(data, dict):
            raise ApiError(code="INVALID_RESPONSE", message="DeepSeek response is not a JSON object")
        choices = data.get("choices")
        if choices is None or choices == []:
            raise ApiError(code="EMPTY_RESPONSE", message="DeepSeek returned no choices")
        if not isinstance(choices, list):
            raise ApiError(code="INVALID_RESPONSE", message="DeepSeek 'choices' is not a list")
        first = choices[0]
        message = first.get("message") if isinstance(first, dict) else None
        if not isinstance(message, dict):
            raise ApiError(code="INVALID_RESPONSE", message="DeepSeek choice has no message object")
        content = message.get("content")
        if content is None:
            content = ""
        if not isinstance(content, str):
            raise ApiError(code="INVALID_RESPONSE", message="DeepSeek message content is not a string")
        model = data.get("model")
        return ChatResult(
            model=model if isinstance(model, str) and model else req.config.model,
            content=content,
            finish_reason=first.get("finish_reason"),
            usage=self._parse_usage(data.get("usage")),
            raw=data,
        )

    def _parse_events(
        self, events: Iterable[SseEvent], req: ChatRequest
    ) -> Iterator[Optional[ChatStreamChunk]]:
        """逐条解析事件；遇到 [DONE] 产出 None 作为结束标记。"""

        for event in events:
            if event.is_done:
                yield None
                return
            chunk = self._parse_stream_event(event.json(), req)
            if chunk is not None:
                yield chunk

    def _parse_stream_event(
        self, payload: Optional[Dict[str, Any]], req: ChatRequest
    ) -> Optional[ChatStreamChunk]:
        """解析流式响应中的单条增量；无效 JSON 或空增量返回 None（跳过）。"""

        if payload is None:
            return None
        content, finish_reason = extract_delta(payload)
        usage = self._parse_usage(payload.get("usage"))
        if not content and finish_reason is None and usage is None:
            return None
        model = payload.get("model")
        return ChatStreamChunk(
            model=model if isinstance(model, str) and model else req.config.model,
            content=content,
            finish_reason=finish_reason,
            usage=usage,
            raw=payload,
        )
