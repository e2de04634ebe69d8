"""统一的对话数据模型。

本模块定义了地震助手在各层之间共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant），创建后不可变。
- RequestOptions: 发给推理服务的生成参数（温度、token 上限、stop 等）。
- SessionState: 会话的运行状态（是否忙碌、最近一次错误），供 UI 读取。

Provider 适配层（如 OllamaClient）只依赖这些模型与纯 dict 载荷，
不直接接触 UI 或会话状态。
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional, Tuple
from uuid import uuid4


# 推理服务 messages 字段中的 role 取值
Role = Literal["system", "user", "assistant"]
ROLES = ("system", "user", "assistant")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChatMessage:
    """一条对话消息。

    - role: 消息角色，system/user/assistant。
    - content: 纯文本内容（assistant 消息为清洗后的最终文本）。
    - created_at: 创建时间（UTC）。
    - id: 本地唯一标识，仅供 UI 列表使用，不发给推理服务。
    """

    role: Role
    content: str
    created_at: datetime = field(default_factory=_utcnow)
    id: str = field(default_factory=lambda: f"m-{uuid4().hex}")

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class RequestOptions:
    """推理参数。

    不同助手配置（llama / mistral）使用不同取值，但结构一致；
    值为 None 的可选字段不会出现在请求 JSON 中。
    """

    temperature: float
    max_tokens: int
    top_p: float
    top_k: Optional[int] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    stop: Tuple[str, ...] = ()
    request_timeout: float = 60.0  # 秒，同时作为 HTTP 超时

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
        }
        if self.top_k is not None:
            payload["top_k"] = self.top_k
        if self.frequency_penalty is not None:
            payload["frequency_penalty"] = self.frequency_penalty
        if self.presence_penalty is not None:
            payload["presence_penalty"] = self.presence_penalty
        payload["stop"] = list(self.stop)
        payload["timeout"] = self.request_timeout
        return payload


@dataclass
class SessionState:
    """会话运行状态，只由 AssistantSession 修改。"""

    is_busy: bool = False
    last_error: Optional[str] = None
