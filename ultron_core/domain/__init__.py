"""领域层模型与协议。

包含：
- models: 统一的 ChatMessage 模型与类型别名。
- conversation: ConversationStore 协议。
- exceptions: 异常类型定义。
"""
