from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class RetryPolicy:
    """瞬时传输错误的有限重试策略。

    ``max_retries`` 是硬上限：最多尝试 ``max_retries + 1`` 次。
    第 ``n`` 次重试（从 1 开始）前等待 ``base * factor ** (n - 1)`` 秒，先封顶，
    开启 ``jitter`` 时再乘以 [0, 1) 内的均匀随机数。
    ``base_seconds=0`` 表示立即重试。
    """

    max_retries: int = 2
    base_seconds: float = 0.0
    factor: float = 2.0
    cap_seconds: Optional[float] = None
    jitter: bool = False

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_seconds < 0:
            raise ValueError("base_seconds must be >= 0")
        if self.factor <= 0:
            raise ValueError("factor must be > 0")
        if self.cap_seconds is not None and self.cap_seconds <= 0:
            raise ValueError("cap_seconds must be > 0 when provided")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, retry: int, rand: Callable[[], float] = random.random) -> float:
        if retry < 1:
            raise ValueError("retry must be >= 1")
        if self.base_seconds == 0:
            return 0.0
        delay = self.base_seconds * (self.factor ** (retry - 1))
        if self.cap_seconds is not None:
            delay = min(self.cap_seconds, delay)
        if self.jitter:
            delay *= rand()
        return float(delay)
