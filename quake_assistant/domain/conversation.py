"""只追加的会话存储。

ConversationStore 持有有序的消息历史，这份历史同时也是发给模型的 transcript。
不变量：第 0 条永远是 role="system" 的固定人设提示词，
构造与 reset() 都会重新写入它，append() 拒绝任何第二条 system 消息。
"""

import threading
from typing import List, Tuple

from quake_assistant.domain.exceptions import ValidationError
from quake_assistant.domain.models import ROLES, ChatMessage


class ConversationStore:
    def __init__(self, system_prompt: str):
        if not system_prompt or not system_prompt.strip():
            raise ValidationError(code="EMPTY_SYSTEM_PROMPT", message="System prompt must not be empty")
        self._system_prompt = system_prompt
        self._lock = threading.Lock()
        self._messages: List[ChatMessage] = [self._system_message()]

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def _system_message(self) -> ChatMessage:
        return ChatMessage(role="system", content=self._system_prompt)

    def append(self, message: ChatMessage) -> None:
        """追加一条 user/assistant 消息。"""

        if message.role not in ROLES:
            raise ValidationError(
                code="INVALID_ROLE",
                message=f"Unsupported message role: {message.role!r}",
            )
        if message.role == "system":
            raise ValidationError(
                code="SYSTEM_MESSAGE_REJECTED",
                message="Only the canonical system message may appear, at index 0",
            )
        with self._lock:
            self._messages.append(message)

    def all(self) -> Tuple[ChatMessage, ...]:
        """按插入顺序返回消息快照（调用方拿到的是不可变副本）。"""

        with self._lock:
            return tuple(self._messages)

    def reset(self) -> None:
        """清空历史，只保留 system 提示词。"""

        with self._lock:
            self._messages = [self._system_message()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
