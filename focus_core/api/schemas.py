"""HTTP 请求体与响应信封的 Pydantic 模型。

字段名与前端原先调用云函数时的 JSON 保持一致（如 ``currentActivity``）。
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiErrorBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str
    message: str


class ApiEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    ok: bool
    generated_at: str
    request_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[ApiErrorBody] = None


class AnalyzeTaskBody(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    task: str = Field(..., min_length=1, description="Free-text task description.")
    model: Optional[str] = Field(default=None, description="Role key, e.g. deepseek-reasoner.")
    temperature: Optional[float] = Field(default=None, description="Overrides the role default as-is.")


class ChatBody(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    message: str = Field(..., min_length=1)
    context: Optional[str] = Field(default=None, description="Sent as an extra user message.")
    model: Optional[str] = None
    temperature: Optional[float] = None


class ProductivityTipBody(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    current_activity: Optional[str] = Field(default=None, alias="currentActivity")


class FocusSessionBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    duration: int = Field(..., ge=0, description="Session length in minutes.")
    completed: bool
    mood: str = Field(..., min_length=1)


class JournalInsightsBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    entry: str = Field(..., min_length=1)
