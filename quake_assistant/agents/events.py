"""会话级变更通知。

每个 AssistantSession 持有一个 SessionEvents 通道，观察者按事件类型注册回调，
回调收到变更后的值：

- "messages_changed": ChatMessage 元组（完整 transcript）
- "busy_changed": bool
- "error_changed": Optional[str]
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Literal

from quake_assistant.infrastructure.logging.logger import logger


EventKind = Literal["messages_changed", "busy_changed", "error_changed"]
EVENT_KINDS = ("messages_changed", "busy_changed", "error_changed")

Observer = Callable[[Any], None]


class SessionEvents:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._observers: Dict[str, List[Observer]] = {kind: [] for kind in EVENT_KINDS}

    def subscribe(self, kind: EventKind, callback: Observer) -> Callable[[], None]:
        """为 ``kind`` 注册 ``callback``，返回取消订阅函数。"""

        if kind not in self._observers:
            raise ValueError(f"Unknown event kind: {kind!r}")
        with self._lock:
            self._observers[kind].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._observers[kind]:
                    self._observers[kind].remove(callback)

        return unsubscribe

    def on_messages_changed(self, callback: Observer) -> Callable[[], None]:
        return self.subscribe("messages_changed", callback)

    def on_busy_changed(self, callback: Observer) -> Callable[[], None]:
        return self.subscribe("busy_changed", callback)

    def on_error_changed(self, callback: Observer) -> Callable[[], None]:
        return self.subscribe("error_changed", callback)

    def emit(self, kind: EventKind, value: Any) -> None:
        with self._lock:
            observers = list(self._observers[kind])
        for callback in observers:
            try:
                callback(value)
            except Exception as exc:
                # 观察者异常不影响会话状态机
                logger.error(
                    "Observer callback failed",
                    exc_info=True,
                    extra={"extra": {"event": kind, "error": str(exc)}},
                )
