"""模型回复的清洗与解析。

- extract: 从模型回复中提取可执行内容（lua / json 代码块）。
- is_task_complete: 判断回复中是否包含任务完成标记。
- parse_command_batch: 把清洗后的文本转换为提交给 turtle 的命令批次。
"""

import json
import re
from typing import List

from ultron_core.domain.models import CommandBatch


FENCE = "```"
DEFAULT_COMPLETION_MARKER = "task complete"

# 只取第一个带 lua/json 标记的代码块；非贪婪匹配，遇到第一个 ``` 即结束
_FENCED_BLOCK = re.compile(r"```(?:lua|json)[ \t]*\r?\n(.*?)\r?\n?```", re.DOTALL | re.IGNORECASE)


def extract(raw_text: str) -> str:
    """提取回复中的可执行内容，永不抛出异常。

    找到代码块时只保留块内内容；否则去掉首尾的 ``` 标记与空白后原样返回。
    多个代码块时只使用第一个。
    """

    text = raw_text or ""
    match = _FENCED_BLOCK.search(text)
    if match:
        return match.group(1).strip()

    text = text.strip()
    while text.startswith(FENCE):
        text = text[len(FENCE):].strip()
    while text.endswith(FENCE):
        text = text[: -len(FENCE)].strip()
    return text


def is_task_complete(text: str, marker: str = DEFAULT_COMPLETION_MARKER) -> bool:
    """大小写不敏感的子串匹配。

    "incomplete task" 不会命中，但 "task completed" 会命中。
    """

    return marker.lower() in (text or "").lower()


def parse_command_batch(text: str) -> CommandBatch:
    """把文本解析为 JSON 字符串数组；不是合法数组时整体作为单条命令。"""

    try:
        data = json.loads(text)
    except ValueError:
        return [text]
    if isinstance(data, list) and all(isinstance(item, str) for item in data):
        commands: List[str] = data
        return commands
    return [text]
