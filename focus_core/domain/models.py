"""统一的请求与结果数据模型。

本模块定义了 AI 编排层内部共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant）。
- ChatRequest: 发给 DeepSeek 的完整请求（CompletionRequest）。
- ChatResult / ChatStreamChunk: 从上游解析后的统一响应 / 流式增量。
- TaskAnalysis: analyzeTask 对外暴露的稳定结果结构（NormalizedResult）。
- StreamChunk: chatStream 对外推送的数据帧。
- ChatReply / JournalInsights: chat 类入口的返回结构。

上游适配器（DeepSeekClient）只依赖前三类模型；对外入口只暴露后几类模型，
调用方因此不会感知到上游响应格式的波动。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    # 仅在类型检查时导入，避免运行时循环依赖
    from focus_core.providers.registry import ModelRoleConfig


# 消息角色（与 OpenAI / DeepSeek 的 role 字段对应）
Role = Literal["system", "user", "assistant"]


@dataclass
class ChatMessage:
    """一条对话消息，既可用于请求，也可用于响应。"""

    role: Role
    content: str


@dataclass
class ChatRequest:
    """一次完整的补全请求。

    - messages: 有序的 (role, content) 列表，第一条通常是角色的 system prompt。
    - config: 已应用温度覆盖后的 ModelRoleConfig。
    - stream: 是否以流式方式调用上游。

    每次调用新建，不做持久化。
    """

    messages: List[ChatMessage]
    config: "ModelRoleConfig"
    stream: bool = False


@dataclass
class ChatUsage:
    """上游返回的 token 统计信息。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class ChatResult:
    """一次非流式调用的结果。

    - content: 第一个候选回答的文本（DeepSeek 只返回一个候选）。
    - raw: 原始响应 JSON，用于调试或日志记录。
    """

    model: str
    content: str
    finish_reason: Optional[str] = None
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None


@dataclass
class ChatStreamChunk:
    """上游流式响应中的单个增量。"""

    model: str
    content: str
    finish_reason: Optional[str] = None
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None


@dataclass
class TaskAnalysis:
    """analyzeTask 的稳定结果结构。

    无论上游是否可用、输出是否是合法 JSON，调用方拿到的都是这个形状。
    fallback 为 True 表示结果来自本地兜底模板，而不是模型输出。
    """

    category: str
    priority: str
    estimated_time: Any
    complexity: str
    suggestions: List[str]
    insights: str
    fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "priority": self.priority,
            "estimatedTime": self.estimated_time,
            "complexity": self.complexity,
            "suggestions": list(self.suggestions),
            "insights": self.insights,
            "fallback": self.fallback,
        }


@dataclass
class StreamChunk:
    """chatStream 推送给客户端的一帧。

    done=True 的帧是终止帧，每个流恰好一个；携带 error 的帧同时也是终止帧。
    """

    content: str = ""
    done: bool = False
    error: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None

    @property
    def is_terminal(self) -> bool:
        return self.done or self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"done": self.done}
        if self.content:
            payload["content"] = self.content
        if self.error is not None:
            payload["error"] = self.error
        if self.model is not None:
            payload["model"] = self.model
        if self.done and self.temperature is not None:
            payload["temperature"] = self.temperature
        return payload


@dataclass
class ChatReply:
    """chat 入口的返回结构。"""

    response: str
    model: str
    temperature: float
    usage: Optional[ChatUsage] = None
    fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response": self.response,
            "usage": self.usage.to_dict() if self.usage else None,
            "model": self.model,
            "temperature": self.temperature,
            "fallback": self.fallback,
        }


@dataclass
class JournalInsights:
    """日记洞察结果：一段洞察文本加若干条建议。"""

    insights: str
    suggestions: List[str] = field(default_factory=list)
    fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insights": self.insights,
            "suggestions": list(self.suggestions),
            "fallback": self.fallback,
        }
