"""传输层抽象接口。

AssistantSession 不直接依赖具体的 HTTP 客户端，而是依赖此协议：

- 每个推理后端实现一个 ChatTransport（如 OllamaClient）。
- 负责：把已构造好的请求载荷 POST 出去，对瞬时错误做有限次重试，
  并返回模型的原始文本（message.content），失败时抛出 domain.exceptions 中的异常。

这样测试或新后端都可以在不改会话代码的前提下替换传输实现。
"""

import threading
from typing import Any, Dict, Optional, Protocol


class ChatTransport(Protocol):
    """推理服务传输协议。

    实现者需要提供：
    - name: 后端名称，用于日志。
    - send(payload, url, timeout, cancel_event): 执行一次（含重试的）请求，返回原始文本。
    """

    name: str

    def send(
        self,
        payload: Dict[str, Any],
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        ...
