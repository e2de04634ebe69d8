"""领域层模型与协议。

包含：
- models: ChatMessage / RequestOptions / SessionState 等基础数据结构。
- conversation: 只追加的会话存储 ConversationStore（保证首条为 system 消息）。
- exceptions: 业务异常类型定义。
"""
