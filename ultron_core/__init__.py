"""Ultron Core 顶层包。

该包实现 turtle 自动控制循环：轮询 turtle 状态、调用可替换的 LLM Backend、
从回复中提取可执行代码并提交回 turtle，直到模型给出任务完成标记。
"""

from ultron_core.agents.orchestrator import Orchestrator
from ultron_core.config.run_config import BackendConfig, LoopConfig, RunConfig, TurtleConfig

__all__ = ["Orchestrator", "BackendConfig", "LoopConfig", "RunConfig", "TurtleConfig"]
