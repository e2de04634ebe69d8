"""对外 API 服务模块。

提供简化的函数接口供上层应用（UI、脚本）调用。
"""

import threading
from typing import Any, Dict, Optional

from quake_assistant.agents.session import AssistantSession, Dispatch
from quake_assistant.infrastructure.logging.logger import logger
from quake_assistant.providers import create_transport, resolve_profile
from quake_assistant.providers.base import ChatTransport


_sessions: Dict[str, AssistantSession] = {}
_sessions_lock = threading.Lock()


def create_session(
    profile_name: Optional[str] = None,
    transport: Optional[ChatTransport] = None,
    dispatch: Optional[Dispatch] = None,
) -> AssistantSession:
    """按配置名创建一个新的 AssistantSession（不缓存）。"""

    profile = resolve_profile(profile_name)
    return AssistantSession(
        profile=profile,
        transport=transport or create_transport(profile),
        dispatch=dispatch,
    )


def get_default_session(profile_name: Optional[str] = None) -> AssistantSession:
    """获取指定配置的默认会话实例（每个配置一个单例）。"""

    profile = resolve_profile(profile_name)
    with _sessions_lock:
        session = _sessions.get(profile.name)
        if session is None:
            session = create_session(profile.name)
            _sessions[profile.name] = session
    return session


def ask(
    user_input: str,
    profile_name: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """同步地问一个问题并等待回复。

    Args:
        user_input: 用户输入内容
        profile_name: 助手配置名（可选，默认取 settings.default_profile）
        timeout: 最长等待秒数（可选）

    Returns:
        包含配置名、回复内容、最近错误与消息数量的字典；
        空白输入时 reply 为 None。
    """
    session = get_default_session(profile_name)
    try:
        future = session.submit(user_input)
        reply = future.result(timeout=timeout) if future is not None else None
    except Exception as e:
        logger.error(f"Ask failed: {e}", extra={"extra": {
            "profile": session.profile.name,
            "error": str(e),
        }})
        raise
    return {
        "profile": session.profile.name,
        "reply": reply.content if reply is not None else None,
        "error": session.last_error,
        "message_count": len(session.messages),
    }


def get_conversation_messages(profile_name: Optional[str] = None) -> list[Dict[str, Any]]:
    """获取默认会话的所有消息。"""
    session = get_default_session(profile_name)
    return [
        {
            "id": m.id,
            "role": m.role,
            "content": m.content,
            "created_at": m.created_at.isoformat(),
        }
        for m in session.messages
    ]


def reset_conversation(profile_name: Optional[str] = None) -> None:
    get_default_session(profile_name).reset()
