"""Ollama 本地推理服务适配器。

本模块负责：

1. 把 RequestBuilder 生成的载荷以 JSON POST 到 /api/chat。
2. 区分错误类型：超时/无网络属于瞬时错误，按 RetryPolicy 有限次重试；
   其他传输错误、{"error": ...} 载荷、结构异常的响应都不重试。
3. 成功时返回 message.content 原始文本，清洗交给 ResponseSanitizer。

请求格式：
    {"model": ..., "messages": [...], "stream": false, "options": {...}}
成功响应：
    {"message": {"content": "<raw text>"}}
"""

import threading
import time
from typing import Any, Callable, Dict, Optional

import httpx

from quake_assistant.domain.exceptions import (
    ApiError,
    ModelError,
    ParseError,
    RequestCancelledError,
    TransientTransportError,
)
from quake_assistant.infrastructure.logging.logger import logger
from quake_assistant.providers.retry import RetryPolicy


class OllamaClient:
    """Ollama 传输实现（含瞬时错误重试）。

    - name: 后端名称（供日志使用）。
    - send: 对外统一调用入口，返回模型原始文本。
    """

    name = "ollama"

    def __init__(
        self,
        settings,
        retry: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        # Settings 里包含 ollama_url、http_timeout 等配置
        self._settings = settings
        self._retry = retry or RetryPolicy()
        self._sleep = sleep

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    def send(
        self,
        payload: Dict[str, Any],
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """执行一次对话请求，对瞬时错误最多重试 max_retries 次。"""

        target = url or self._settings.ollama_url
        effective_timeout = timeout or self._settings.http_timeout
        attempt = 0
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise RequestCancelledError(code="CANCELLED", message="İstek iptal edildi")
            attempt += 1
            try:
                return self._post_once(payload, target, effective_timeout, attempt)
            except TransientTransportError as exc:
                if attempt > self._retry.max_retries:
                    logger.error(
                        "Transient failure, retries exhausted",
                        extra={"extra": {"attempt": attempt, "code": exc.code, "url": target}},
                    )
                    raise
                delay = self._retry.delay_for(attempt)
                logger.warning(
                    "Transient failure, retrying",
                    extra={
                        "extra": {
                            "attempt": attempt,
                            "max_retries": self._retry.max_retries,
                            "delay_seconds": round(delay, 3),
                            "code": exc.code,
                        }
                    },
                )
                self._wait(delay, cancel_event)

    def _wait(self, delay: float, cancel_event: Optional[threading.Event]) -> None:
        if delay <= 0:
            return
        if cancel_event is not None:
            # 被取消时提前返回，下一轮循环开头会抛出 RequestCancelledError
            cancel_event.wait(delay)
        else:
            self._sleep(delay)

    def _post_once(self, payload: Dict[str, Any], url: str, timeout: float, attempt: int) -> str:
        logger.info(
            "Calling inference server",
            extra={
                "extra": {
                    "url": url,
                    "model": payload.get("model"),
                    "message_count": len(payload.get("messages") or []),
                    "attempt": attempt,
                }
            },
        )
        try:
            with httpx.Client(timeout=timeout, trust_env=False) as client:
                resp = client.post(
                    url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException as e:
            raise TransientTransportError(code="TIMEOUT", message=f"Bağlantı hatası: {e}", attempt=attempt)
        except httpx.ConnectError as e:
            # 无法建立连接，视为没有网络
            raise TransientTransportError(code="NOT_CONNECTED", message=f"Bağlantı hatası: {e}", attempt=attempt)
        except httpx.RequestError as e:
            raise ApiError(code="NETWORK_ERROR", message=f"Bağlantı hatası: {e}")
        return self._parse_response(resp)

    def _parse_response(self, resp) -> str:
        """把响应 JSON 解析为原始文本。"""

        try:
            data = resp.json()
        except ValueError as e:
            logger.error("Response is not valid JSON", extra={"extra": {"status": resp.status_code}})
            if resp.status_code >= 400:
                # 代理等中间层返回的 HTML 错误页
                raise ApiError(
                    code="API_ERROR",
                    message=f"Bağlantı hatası: HTTP {resp.status_code}",
                    http_status=resp.status_code,
                )
            raise ParseError(code="INVALID_JSON", message="Yanıt işleme hatası", detail=str(e))
        if not isinstance(data, dict):
            raise ParseError(code="INVALID_RESPONSE", message="Geçersiz yanıt")

        error = data.get("error")
        if isinstance(error, str):
            logger.error("Model returned an error", extra={"extra": {"error": error}})
            raise ModelError(code="MODEL_ERROR", message=f"Yapay zeka hatası: {error}")

        if resp.status_code >= 400:
            raise ApiError(
                code="API_ERROR",
                message=f"Bağlantı hatası: HTTP {resp.status_code}",
                http_status=resp.status_code,
            )

        message = data.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise ParseError(code="INVALID_FORMAT", message="Geçersiz yanıt formatı")
        return content
