"""流式转发状态机。

状态流转：

    IDLE -> REQUESTING -> STREAMING -> DONE
                 \\            \\
                  +-> ERROR <--+

ERROR 之后总会补发一个终止帧（携带 error 字段与本地兜底文案），
流永远不会"悬空"；每个 StreamRelay 实例只能运行一次。
"""

import time
from enum import Enum
from typing import Callable, Iterator, Optional

from focus_core.domain.exceptions import StreamError, UpstreamError
from focus_core.domain.models import ChatRequest, StreamChunk
from focus_core.infrastructure.logging.logger import logger
from focus_core.pipeline.fallback import STREAM_ERROR_MESSAGE, fallback_stream_chunk
from focus_core.providers.base import ProviderClient


class StreamState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    DONE = "done"
    ERROR = "error"


class StreamRelay:
    """把上游增量转成 StreamChunk，并保证恰好一个终止帧。

    Args:
        provider: 上游客户端。
        request: 已构造好的流式 ChatRequest。
        timeout: 整个流的总时长上限（秒）。
        clock: 单调时钟，测试中可替换。
    """

    def __init__(
        self,
        provider: ProviderClient,
        request: ChatRequest,
        timeout: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._provider = provider
        self._request = request
        self._timeout = timeout
        self._clock = clock
        self.state = StreamState.IDLE
        self.error: Optional[str] = None

    def _content_chunk(self, content: str) -> StreamChunk:
        return StreamChunk(content=content, done=False, model=self._request.config.model)

    def _done_chunk(self) -> StreamChunk:
        cfg = self._request.config
        return StreamChunk(done=True, model=cfg.model, temperature=cfg.temperature)

    def _fail(self, message: str) -> StreamChunk:
        self.state = StreamState.ERROR
        self.error = message
        return fallback_stream_chunk(self._request.config, error=message)

    def run(self) -> Iterator[StreamChunk]:
        if self.state is not StreamState.IDLE:
            raise RuntimeError("StreamRelay instances are single-use")
        self.state = StreamState.REQUESTING
        deadline = self._clock() + self._timeout
        upstream = None
        try:
            upstream = iter(self._provider.chat_stream(self._request))
            for chunk in upstream:
                if self._clock() > deadline:
                    raise StreamError(
                        code="STREAM_TIMEOUT",
                        message=f"Stream exceeded {self._timeout:g}s",
                    )
                self.state = StreamState.STREAMING
                if chunk.content:
                    yield self._content_chunk(chunk.content)
        except (UpstreamError, StreamError) as e:
            logger.warning(
                "stream.failed",
                extra={"extra": {"state": self.state.value, "code": e.code, "error": e.message}},
            )
            yield self._fail(STREAM_ERROR_MESSAGE)
            return
        except Exception:
            logger.exception("stream.unexpected_error", extra={"extra": {"state": self.state.value}})
            yield self._fail(STREAM_ERROR_MESSAGE)
            return
        finally:
            close = getattr(upstream, "close", None)
            if close is not None:
                close()
        self.state = StreamState.DONE
        yield self._done_chunk()
