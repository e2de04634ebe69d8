"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 AssistantSession 边界统一捕获，并转换为 last_error 与兜底回复。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "TIMEOUT"）。
        message: 用户可读错误信息（土耳其语），会写入 last_error 与兜底消息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 attempt、url 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ValidationError(BusinessError):
    """参数、配置或会话不变量校验失败。"""


class BuildError(BusinessError):
    """请求载荷构造失败，属于程序错误，正常输入下不应出现。"""


class TransportError(BusinessError):
    """网络交换失败的基类。"""


class TransientTransportError(TransportError):
    """可重试的网络错误：请求超时或无网络连接。"""


class ApiError(TransportError):
    """不可重试的传输错误，例如服务端返回非 2xx 且没有 error 字段。"""


class ModelError(BusinessError):
    """推理服务显式返回 {"error": ...}，不重试。"""


class ParseError(BusinessError):
    """响应结构不符合预期，不重试。"""


class EmptyInputError(BusinessError):
    """用户提交了空白文本。"""


class SessionBusyError(BusinessError):
    """上一轮请求尚未结束时再次 submit。"""


class RequestCancelledError(TransportError):
    """请求在飞行中被 reset() 取消。"""
