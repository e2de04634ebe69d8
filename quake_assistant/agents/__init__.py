"""会话编排层：RequestBuilder、SessionEvents 与 AssistantSession。"""

from quake_assistant.agents.events import SessionEvents
from quake_assistant.agents.request_builder import RequestBuilder
from quake_assistant.agents.session import AssistantSession, call_inline

__all__ = ["AssistantSession", "RequestBuilder", "SessionEvents", "call_inline"]
