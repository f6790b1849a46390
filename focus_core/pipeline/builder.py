"""Request Builder：为各个入口构造 ChatRequest。"""

from typing import List, Optional

from focus_core.domain.models import ChatMessage, ChatRequest
from focus_core.prompts import render_user_prompt
from focus_core.providers.registry import ModelRoleConfig


def build_messages(config: ModelRoleConfig, message: str, context: Optional[str] = None) -> List[ChatMessage]:
    """消息顺序：system prompt，可选的 context，最后是用户消息。"""

    messages = [ChatMessage(role="system", content=config.system_prompt)]
    if context:
        messages.append(ChatMessage(role="user", content=context))
    messages.append(ChatMessage(role="user", content=message))
    return messages


def build_chat_request(
    config: ModelRoleConfig,
    message: str,
    context: Optional[str] = None,
    stream: bool = False,
) -> ChatRequest:
    return ChatRequest(messages=build_messages(config, message, context), config=config, stream=stream)


def build_analysis_request(config: ModelRoleConfig, task: str) -> ChatRequest:
    prompt = render_user_prompt("analyze_task", task=task)
    return ChatRequest(messages=build_messages(config, prompt), config=config)


def productivity_tip_prompt(current_activity: Optional[str] = None):
    """返回效率小贴士使用的 (message, context)。"""

    if current_activity:
        context = f"User is currently working on: {current_activity}"
    else:
        context = "User wants general productivity advice"
    return render_user_prompt("productivity_tip"), context


def focus_session_prompt(duration: int, completed: bool, mood: str) -> str:
    return render_user_prompt(
        "focus_session",
        duration=duration,
        status="completed" if completed else "interrupted",
        mood=mood,
    )


def journal_insights_prompt(entry: str) -> str:
    return render_user_prompt("journal_insights", entry=entry)
