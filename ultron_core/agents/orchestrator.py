"""控制循环核心模块。

Orchestrator 把各组件串成一个循环：
读取 turtle 状态 -> 调用 Backend -> 写入会话 -> 清洗回复 -> 判断是否完成
-> 提交命令 -> 保存会话 -> 重复，直到模型给出完成标记。

单次循环由 flows.graph 中的 LangGraph 图执行；这里负责启动时的会话恢复、
失败后的退避、完成后的清理以及停止信号。
"""

import queue
import threading
from typing import List, Optional

from ultron_core.config.run_config import LoopConfig
from ultron_core.domain.conversation import ConversationStore
from ultron_core.domain.exceptions import HistoryNotFoundError, PersistenceError
from ultron_core.domain.models import ChatMessage
from ultron_core.flows.graph import build_cycle_graph
from ultron_core.flows.state import CycleContext, CycleOutcome
from ultron_core.infrastructure.logging.logger import logger
from ultron_core.infrastructure.turtle.gateway import TurtleGateway
from ultron_core.providers.base import ChatBackend


class Orchestrator:
    def __init__(
        self,
        store: ConversationStore,
        backend: ChatBackend,
        gateway: TurtleGateway,
        config: LoopConfig,
        stop_event: Optional[threading.Event] = None,
    ):
        self._store = store
        self._backend = backend
        self._gateway = gateway
        self._config = config
        self._stop = stop_event or threading.Event()
        self._pending_input: "queue.SimpleQueue[str]" = queue.SimpleQueue()
        self._graph = build_cycle_graph(
            CycleContext(
                store=store,
                backend=backend,
                gateway=gateway,
                history_file=config.history_file,
                completion_marker=config.completion_marker,
                take_human_input=self._take_human_input,
            )
        )
        self.cycles = 0

    @property
    def store(self) -> ConversationStore:
        return self._store

    # ---- 外部控制 ----

    def submit_human_input(self, text: str) -> None:
        """线程安全：交互式前端提交的指令会并入下一条 user 消息。"""

        text = text.strip()
        if text:
            self._pending_input.put(text)

    def stop(self) -> None:
        """请求停止；正在进行的退避等待会被立即打断。"""

        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    # ---- 生命周期 ----

    def initialize(self) -> None:
        """恢复已保存的会话，否则用系统提示词（和初始任务）重新开始。"""

        path = self._config.history_file
        try:
            restored = self._store.restore(path)
        except HistoryNotFoundError:
            logger.info("loop.history.not_found", extra={"extra": {"path": str(path)}})
        except PersistenceError as exc:
            logger.warning(
                "loop.history.unreadable",
                extra={"extra": {"path": str(path), "code": exc.code, "error": exc.message}},
            )
        else:
            if restored:
                logger.info("loop.history.resumed", extra={"extra": {"messages": len(restored)}})
                return

        self._seed()

    def _seed(self) -> None:
        self._store.append(ChatMessage(role="system", content=self._config.system_prompt))
        if self._config.initial_task:
            self._store.append(ChatMessage(role="user", content=self._config.initial_task))
            logger.info("loop.initial_task", extra={"extra": {"task": self._config.initial_task}})
        logger.info("loop.history.seeded")

    def run_cycle(self) -> CycleOutcome:
        """执行一次完整循环，返回 continue / retry / done。"""

        self.cycles += 1
        result = self._graph.invoke({"outcome": "continue"})
        outcome: CycleOutcome = result.get("outcome", "continue")
        logger.debug("loop.cycle", extra={"extra": {"cycle": self.cycles, "outcome": outcome}})
        return outcome

    def run(self) -> bool:
        """运行直到任务完成（返回 True）或收到停止信号（返回 False）。"""

        self.initialize()
        logger.info("loop.start", extra={"extra": {"backend": self._backend.name, "turtle": self._gateway.endpoint}})
        while not self._stop.is_set():
            outcome = self.run_cycle()
            if outcome == "done":
                self._finish()
                return True
            if outcome == "retry":
                self._wait(self._config.backoff_seconds)
            else:
                # 给 turtle 留出执行命令的时间
                self._wait(self._config.settle_seconds)
        logger.info("loop.stopped", extra={"extra": {"cycles": self.cycles}})
        return False

    def _finish(self) -> None:
        try:
            self._store.clear(self._config.history_file)
        except PersistenceError as exc:
            logger.error(
                "loop.history.clear_failed",
                extra={"extra": {"code": exc.code, "error": exc.message}},
            )
        logger.info("loop.done", extra={"extra": {"cycles": self.cycles}})

    def _wait(self, seconds: float) -> None:
        self._stop.wait(seconds)

    def _take_human_input(self) -> str:
        items: List[str] = []
        while True:
            try:
                items.append(self._pending_input.get_nowait())
            except queue.Empty:
                break
        return "\n".join(items)
