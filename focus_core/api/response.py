"""HTTP 响应封装。

所有 JSON 端点统一返回信封结构：

- 成功：``{"ok": true, "generated_at", "request_id", "data"}``
- 失败：``{"ok": false, "generated_at", "request_id", "error": {"code", "message"}}``

流式端点使用 ``encode_sse`` 生成 ``data: <json>\\n\\n`` 帧。
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _request_id(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    return getattr(request.state, "request_id", None)


def success_response(
    *,
    request: Optional[Request] = None,
    data: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "ok": True,
        "generated_at": now_iso(),
    }
    request_id = _request_id(request)
    if request_id:
        payload["request_id"] = request_id
    if data is not None:
        payload["data"] = data
    return payload


def error_response(
    *,
    code: str,
    message: str,
    request: Optional[Request] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "ok": False,
        "generated_at": now_iso(),
        "error": {
            "code": code,
            "message": message,
        },
    }
    request_id = _request_id(request)
    if request_id:
        payload["request_id"] = request_id
    return payload


def encode_sse(data: Dict[str, Any]) -> str:
    """``data: <json>\\n\\n`` framing, no event names."""

    return f"data: {json.dumps(data, ensure_ascii=False)}\n\n"
