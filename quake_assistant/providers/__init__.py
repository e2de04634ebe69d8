"""推理服务集成层。

该包下的模块负责：
- 定义传输抽象接口 (base)。
- 维护助手配置 (registry) 与重试策略 (retry)。
- 提供具体后端实现 (ollama_client)。
"""

from dataclasses import replace
from typing import Literal, Optional

from quake_assistant.config.settings import settings
from quake_assistant.providers.base import ChatTransport
from quake_assistant.providers.ollama_client import OllamaClient
from quake_assistant.providers.registry import AssistantProfile, get_profile
from quake_assistant.providers.retry import RetryPolicy


def resolve_profile(name: Optional[str] = None) -> AssistantProfile:
    """根据名称取助手配置，默认取配置中的 default_profile，并应用模型名覆盖。"""

    profile = get_profile(name or getattr(settings, "default_profile", "llama"))
    override = getattr(settings, f"{profile.name}_model", None)
    if override:
        profile = replace(profile, model=override)
    max_retries = getattr(settings, "max_retries", None)
    if max_retries is not None:
        profile = replace(profile, max_retries=max_retries)
    return profile


def create_transport(profile: Optional[AssistantProfile] = None) -> ChatTransport:
    """创建传输实例，重试上限取自助手配置，退避参数取自 settings。"""

    profile = profile or resolve_profile()
    retry = RetryPolicy(
        max_retries=profile.max_retries,
        base_seconds=getattr(settings, "retry_backoff_base", 0.0),
        factor=getattr(settings, "retry_backoff_factor", 2.0),
        cap_seconds=getattr(settings, "retry_backoff_cap", None),
        jitter=getattr(settings, "retry_jitter", False),
    )
    return OllamaClient(settings, retry=retry)


DefaultProfileName = Literal["llama", "mistral"]
