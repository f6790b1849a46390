"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 API 层统一捕获与返回错误信封。

只有 ConfigurationError 会穿透到外部调用方；其余运行期错误
都在编排层内部被转换为兜底结果。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MISSING_API_KEY"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 model、raw 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ConfigurationError(BusinessError):
    """缺少必要配置（如 DEEPSEEK_API_KEY），在发起网络请求前抛出。"""

    def __init__(self, code: str, message: str, http_status: int = 500, **extra):
        super().__init__(code, message, http_status, **extra)


class UpstreamError(BusinessError):
    """上游调用失败的基类，由编排层捕获并转换为兜底结果。"""


class NetworkError(UpstreamError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(UpstreamError):
    """上游返回非 2xx/429 错误，或响应体缺少 choices。"""


class RateLimitError(UpstreamError):
    """上游限流（HTTP 429）。本服务不重试，直接走兜底。"""


class ParseError(BusinessError):
    """模型输出无法解析为结构化对象。"""


class StreamError(BusinessError):
    """流式转发过程中的失败（含总时长超时）。"""


class ValidationError(BusinessError):
    """请求参数校验失败。"""
