"""增量式 server-sent events 解析器。

上游流式响应按任意边界切块到达，一个 ``data:`` 行可能被拆在两个块里。
本模块把"缓冲区拼接 + 按换行切分 + 保留不完整的尾行"这一步
从传输层剥离出来，方便在没有网络的情况下单测：

    events, leftover = parse_sse_buffer(buffer)

SseDecoder 在此基础上维护跨块的缓冲区状态。
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class SseEvent:
    """一条 ``data:`` 事件的负载文本。"""

    data: str

    @property
    def is_done(self) -> bool:
        return self.data == DONE_SENTINEL

    def json(self) -> Optional[Dict[str, Any]]:
        """按 JSON 解析负载，失败或不是对象时返回 None。"""

        try:
            payload = json.loads(self.data)
        except json.JSONDecodeError:
            return None
        return payload if isinstance(payload, dict) else None


def _parse_line(line: str) -> Optional[SseEvent]:
    line = line.rstrip("\r")
    # 空行是事件分隔符，":" 开头是注释（DeepSeek 会发 ": keep-alive"）
    if not line or line.startswith(":"):
        return None
    if not line.startswith("data:"):
        return None
    data = line[5:]
    if data.startswith(" "):
        data = data[1:]
    return SseEvent(data=data)


def parse_sse_buffer(buffer: str) -> Tuple[List[SseEvent], str]:
    """解析缓冲区中所有完整的行。

    Returns:
        (events, leftover)：leftover 是最后一个换行之后尚不完整的文本，
        需要与下一个数据块拼接后再解析。
    """

    lines = buffer.split("\n")
    leftover = lines.pop()
    events = []
    for line in lines:
        event = _parse_line(line)
        if event is not None:
            events.append(event)
    return events, leftover


class SseDecoder:
    """跨数据块的 SSE 解码器。"""

    def __init__(self) -> None:
        self.buffer = ""

    def feed(self, text: str) -> List[SseEvent]:
        events, self.buffer = parse_sse_buffer(self.buffer + text)
        return events

    def flush(self) -> List[SseEvent]:
        """连接关闭时处理残留的最后一行（上游未以换行结尾的情况）。"""

        tail, self.buffer = self.buffer, ""
        event = _parse_line(tail)
        return [event] if event is not None else []


def extract_delta(payload: Dict[str, Any]) -> Tuple[str, Optional[str]]:
    """从 ``{"choices":[{"delta":{"content":...}}]}`` 中取出 (content, finish_reason)。"""

    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return "", None
    first = choices[0]
    delta = first.get("delta")
    content = delta.get("content") if isinstance(delta, dict) else None
    if not isinstance(content, str):
        content = ""
    return content, first.get("finish_reason")
