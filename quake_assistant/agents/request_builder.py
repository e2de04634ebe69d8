"""请求载荷构造。

RequestBuilder 是纯函数式的：相同的 (历史, 新问题, 配置) 永远得到相同的载荷，
且不会修改传入的历史。真正把用户消息写进 ConversationStore 的是 AssistantSession。
"""

import json
from typing import Any, Dict, List, Sequence

from quake_assistant.domain.exceptions import BuildError, EmptyInputError
from quake_assistant.domain.models import ChatMessage
from quake_assistant.providers.registry import AssistantProfile


class RequestBuilder:
    def __init__(self, profile: AssistantProfile):
        self._profile = profile

    def instruction_for(self, utterance: str) -> str:
        """把原始问题原样嵌入指令模板（只回答土耳其语、限定句数等约束）。"""

        return self._profile.instruction_template.format(utterance=utterance)

    def build(self, history: Sequence[ChatMessage], utterance: str) -> Dict[str, Any]:
        """构造 /api/chat 请求载荷。

        步骤：
        1. 在历史的副本后追加本轮用户问题。
        2. 按顺序渲染为 {role, content}。
        3. 把最后一条（用户）内容替换为包裹后的指令文本。
        4. 组装 model/messages/stream/options。
        """

        if not utterance or not utterance.strip():
            raise EmptyInputError(code="EMPTY_INPUT", message="Boş mesaj gönderilemez")
        if not history or history[0].role != "system":
            raise BuildError(code="MISSING_SYSTEM_MESSAGE", message="İstek oluşturma hatası")

        messages: List[Dict[str, str]] = [m.to_payload() for m in history]
        messages.append({"role": "user", "content": self.instruction_for(utterance)})
        payload = {
            "model": self._profile.model,
            "messages": messages,
            "stream": False,
            "options": self._profile.options.to_payload(),
        }
        try:
            json.dumps(payload, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise BuildError(code="UNSERIALIZABLE_PAYLOAD", message="İstek oluşturma hatası", detail=str(e))
        return payload
