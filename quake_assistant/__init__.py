"""Quake Assistant 顶层包。

该包提供地震信息应用中聊天助手的客户端流水线：
会话历史管理、请求构造、带有限重试的本地推理服务传输、
模型输出清洗，以及把它们串起来的 AssistantSession。
"""

from quake_assistant.agents.session import AssistantSession
from quake_assistant.api.service import ask, create_session

__all__ = ["AssistantSession", "ask", "create_session"]
