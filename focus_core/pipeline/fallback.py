"""Fallback Generator。

上游调用失败或输出无法解析时，用固定模板构造确定性的替代结果，
保证调用方永远拿到一个完整的结果而不是异常。

所有模板都是常量：同样的输入必然得到同样的输出。
"""

from typing import Optional

from focus_core.domain.models import ChatReply, JournalInsights, StreamChunk, TaskAnalysis
from focus_core.providers.registry import ModelRoleConfig


DEFAULT_CATEGORY = "General"
DEFAULT_PRIORITY = "medium"
DEFAULT_ESTIMATED_TIME = 30
DEFAULT_COMPLEXITY = "medium"
DEFAULT_SUGGESTIONS = ("Break into smaller tasks", "Set a timer")
DEFAULT_INSIGHTS = ""

FALLBACK_ANALYSIS_INSIGHTS = (
    "Hmm, I can't quite wrap my head around this task right now. "
    "Could you add a bit more detail so I can help you better?"
)
FALLBACK_CHAT_MESSAGE = (
    "Sorry, I seem to be having a moment here. Can you try again in a bit? "
    "My brain might need a coffee break!"
)
EMPTY_CHAT_MESSAGE = "No response generated"
FALLBACK_PRODUCTIVITY_TIP = (
    "Here's a little tip for you: Try using the Pomodoro technique - work focused for "
    "25 minutes, then take a quick 5-minute break. It's amazing how much this simple "
    "rhythm can boost your energy!"
)
FALLBACK_FOCUS_FEEDBACK = (
    "Great job on your focus session! Even if it wasn't perfect, showing up is half the "
    "battle. Remember that consistent small efforts add up to big results over time. "
    "Keep it up!"
)
FALLBACK_JOURNAL_INSIGHTS = (
    "I can see you've been thinking about your day and what you've accomplished. "
    "That kind of reflection is super valuable for personal growth!"
)
FALLBACK_JOURNAL_SUGGESTIONS = (
    "Why not jot down a couple specific goals for tomorrow? Even small ones can set a "
    "positive tone for the day",
    "It might be helpful to think about what made you feel most energized today and how "
    "you can create more of those moments",
)
STREAM_ERROR_MESSAGE = "Stream processing failed"


def fallback_analysis(insights: Optional[str] = None) -> TaskAnalysis:
    """构造兜底分析结果。

    insights 为 None 时使用通用提示语；解析失败的场景会把模型原文传进来，
    这样原始信息不会丢失。
    """

    return TaskAnalysis(
        category=DEFAULT_CATEGORY,
        priority=DEFAULT_PRIORITY,
        estimated_time=DEFAULT_ESTIMATED_TIME,
        complexity=DEFAULT_COMPLEXITY,
        suggestions=list(DEFAULT_SUGGESTIONS),
        insights=FALLBACK_ANALYSIS_INSIGHTS if insights is None else insights,
        fallback=True,
    )


def fallback_chat_reply(config: ModelRoleConfig, message: str = FALLBACK_CHAT_MESSAGE) -> ChatReply:
    return ChatReply(
        response=message,
        model=config.model,
        temperature=config.temperature,
        usage=None,
        fallback=True,
    )


def fallback_journal_insights(insights: Optional[str] = None) -> JournalInsights:
    return JournalInsights(
        insights=FALLBACK_JOURNAL_INSIGHTS if insights is None else insights,
        suggestions=list(FALLBACK_JOURNAL_SUGGESTIONS),
        fallback=True,
    )


def fallback_stream_chunk(config: ModelRoleConfig, error: str = STREAM_ERROR_MESSAGE) -> StreamChunk:
    """流式兜底：一个携带本地提示语与 error 字段的终止帧。"""

    return StreamChunk(
        content=FALLBACK_CHAT_MESSAGE,
        done=True,
        error=error,
        model=config.model,
        temperature=config.temperature,
    )
