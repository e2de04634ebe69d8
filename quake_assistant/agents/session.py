"""会话编排核心模块。

AssistantSession 把各组件串起来：

    追加用户消息 -> 置为忙碌 -> 构造请求 -> 传输（含重试）
    -> 成功：清洗并追加 assistant 消息；失败：记录 last_error 并追加兜底消息
    -> 取消忙碌 -> 发出变更通知

状态机为 Idle -> Busy -> Idle。网络交换在后台线程执行，
完成后的状态修改与通知通过 dispatch 投递到 UI 期望的上下文
（例如 tkinter 的 root.after(0, fn) 或 asyncio 的 loop.call_soon_threadsafe），
默认 dispatch 直接在当前线程执行。
"""

import logging
import threading
import time
from concurrent.futures import Future
from typing import Any, Callable, Dict, Optional, Sequence, Tuple
from uuid import uuid4

from quake_assistant.agents.events import SessionEvents
from quake_assistant.agents.request_builder import RequestBuilder
from quake_assistant.domain.conversation import ConversationStore
from quake_assistant.domain.exceptions import BusinessError, SessionBusyError
from quake_assistant.domain.models import ChatMessage, SessionState
from quake_assistant.infrastructure.logging.logger import logger
from quake_assistant.providers.base import ChatTransport
from quake_assistant.providers.registry import AssistantProfile
from quake_assistant.text.sanitizer import ResponseSanitizer


Dispatch = Callable[[Callable[[], None]], None]


def call_inline(fn: Callable[[], None]) -> None:
    fn()


class AssistantSession:
    def __init__(
        self,
        profile: AssistantProfile,
        transport: ChatTransport,
        store: Optional[ConversationStore] = None,
        builder: Optional[RequestBuilder] = None,
        sanitizer: Optional[ResponseSanitizer] = None,
        dispatch: Optional[Dispatch] = None,
    ):
        self._profile = profile
        self._transport = transport
        self._store = store or ConversationStore(profile.system_prompt)
        self._builder = builder or RequestBuilder(profile)
        self._sanitizer = sanitizer or ResponseSanitizer(profile.sanitizer)
        self._dispatch = dispatch or call_inline
        self._events = SessionEvents()
        self._state = SessionState()
        self._lock = threading.RLock()
        # reset() 递增代号，晚到的旧响应据此丢弃
        self._generation = 0
        self._cancel_event: Optional[threading.Event] = None

    # ---- 只读视图 ----

    @property
    def profile(self) -> AssistantProfile:
        return self._profile

    @property
    def events(self) -> SessionEvents:
        return self._events

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return self._store.all()

    @property
    def is_busy(self) -> bool:
        with self._lock:
            return self._state.is_busy

    @property
    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._state.last_error

    @property
    def state(self) -> SessionState:
        with self._lock:
            return SessionState(is_busy=self._state.is_busy, last_error=self._state.last_error)

    # ---- 对外操作 ----

    def submit(self, utterance: str) -> Optional["Future[Optional[ChatMessage]]"]:
        """提交一条用户消息，立即返回。

        空白文本是无操作，返回 None。上一轮尚未结束时抛出 SessionBusyError。
        返回的 Future 在 assistant/兜底消息写入会话后完成，
        若期间被 reset() 取消则以 None 完成。
        """

        text = (utterance or "").strip()
        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "profile": self._profile.name,
        }
        if not text:
            self._log(logging.INFO, "Ignored blank utterance", log_ctx)
            return None

        with self._lock:
            if self._state.is_busy:
                raise SessionBusyError(code="SESSION_BUSY", message="Önceki mesaj hâlâ yanıtlanıyor")
            history = self._store.all()
            self._store.append(ChatMessage(role="user", content=text))
            self._state.is_busy = True
            generation = self._generation
            cancel_event = threading.Event()
            self._cancel_event = cancel_event

        self._log(logging.INFO, "Stored user message", log_ctx, history_size=len(history))
        self._events.emit("messages_changed", self._store.all())
        self._events.emit("busy_changed", True)

        future: "Future[Optional[ChatMessage]]" = Future()
        worker = threading.Thread(
            target=self._run_request,
            args=(history, text, generation, cancel_event, future, log_ctx),
            name=f"assistant-{self._profile.name}",
            daemon=True,
        )
        worker.start()
        return future

    def reset(self) -> None:
        """清空会话，只保留 system 提示词；进行中的请求被取消，其结果会被丢弃。"""

        with self._lock:
            self._generation += 1
            if self._cancel_event is not None:
                self._cancel_event.set()
                self._cancel_event = None
            was_busy = self._state.is_busy
            self._state.is_busy = False
            self._store.reset()

        self._log(
            logging.INFO,
            "Conversation reset",
            {"profile": self._profile.name},
            cancelled_in_flight=was_busy,
        )
        self._events.emit("messages_changed", self._store.all())
        if was_busy:
            self._events.emit("busy_changed", False)

    # ---- 后台执行 ----

    def _run_request(
        self,
        history: Sequence[ChatMessage],
        utterance: str,
        generation: int,
        cancel_event: threading.Event,
        future: "Future[Optional[ChatMessage]]",
        log_ctx: Dict[str, Any],
    ) -> None:
        start_time = time.time()
        reply: Optional[str] = None
        error: Optional[BusinessError] = None
        try:
            payload = self._builder.build(history, utterance)
            self._log(
                logging.INFO,
                "Calling transport",
                log_ctx,
                transport=getattr(self._transport, "name", "unknown"),
                model=payload["model"],
                message_count=len(payload["messages"]),
            )
            raw = self._transport.send(
                payload,
                timeout=self._profile.options.request_timeout,
                cancel_event=cancel_event,
            )
            reply = self._sanitizer.sanitize(raw)
        except BusinessError as exc:
            error = exc
        except Exception as exc:
            self._log(logging.ERROR, "Unexpected failure during request", log_ctx, error=repr(exc))
            error = BusinessError(code="UNEXPECTED", message="Yanıt işleme hatası")

        elapsed = round(time.time() - start_time, 2)
        self._dispatch(lambda: self._complete(generation, reply, error, future, log_ctx, elapsed))

    def _complete(
        self,
        generation: int,
        reply: Optional[str],
        error: Optional[BusinessError],
        future: "Future[Optional[ChatMessage]]",
        log_ctx: Dict[str, Any],
        elapsed: float,
    ) -> None:
        with self._lock:
            if generation != self._generation:
                stale = True
            else:
                stale = False
                previous_error = self._state.last_error
                if error is None:
                    message = ChatMessage(role="assistant", content=reply or "")
                    self._state.last_error = None
                else:
                    message = ChatMessage(role="assistant", content=self._profile.fallback_message(error.message))
                    self._state.last_error = error.message
                self._store.append(message)
                self._state.is_busy = False
                self._cancel_event = None
                current_error = self._state.last_error

        if stale:
            self._log(logging.INFO, "Discarded late response after reset", log_ctx, elapsed_seconds=elapsed)
            future.set_result(None)
            return

        if error is None:
            self._log(logging.INFO, "Stored assistant message", log_ctx, elapsed_seconds=elapsed)
        else:
            self._log(
                logging.WARNING,
                "Stored fallback message",
                log_ctx,
                elapsed_seconds=elapsed,
                code=error.code,
                error=error.message,
            )

        if error is not None or current_error != previous_error:
            self._events.emit("error_changed", current_error)
        self._events.emit("busy_changed", False)
        self._events.emit("messages_changed", self._store.all())
        future.set_result(message)

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
