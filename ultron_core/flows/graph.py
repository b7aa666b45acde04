"""LangGraph construction and node implementations for one control cycle.

fetch_state -> infer -> sanitize -> check_completion -> submit -> persist

Any node that fails sets outcome="retry" and routes straight to END; the
orchestrator then backs off and starts a new cycle from fetch_state.
"""

from __future__ import annotations

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from ultron_core.agents.sanitizer import extract, is_task_complete, parse_command_batch
from ultron_core.domain.exceptions import BackendError, NetworkError, PersistenceError, RemoteError, UltronError, ValidationError
from ultron_core.domain.models import ChatMessage
from ultron_core.flows.state import CycleContext, CycleState
from ultron_core.infrastructure.logging.logger import logger


def _fail(state: CycleState, stage: str, exc: UltronError) -> CycleState:
    state["outcome"] = "retry"
    state["failed_stage"] = stage
    state["error"] = exc.message
    logger.error(
        f"cycle.{stage}.failed",
        extra={"extra": {"stage": stage, "code": exc.code, "error": exc.message, **exc.extra}},
    )
    return state


def fetch_state_node(state: CycleState, ctx: CycleContext) -> CycleState:
    try:
        turtle_state = ctx.gateway.fetch_state()
    except NetworkError as exc:
        return _fail(state, "fetch_state", exc)
    state["turtle_state"] = turtle_state
    logger.info("cycle.fetch_state.ok", extra={"extra": {"turtle_state": turtle_state}})
    return state


def infer_node(state: CycleState, ctx: CycleContext) -> CycleState:
    human_input = ctx.take_human_input()
    user_msg = ChatMessage(
        role="user",
        content=f"Turtle State: {state.get('turtle_state') or ''}\nUser Command: {human_input}",
    )
    # 调用失败时不写入会话，下一轮用新状态重新组织 user 消息
    try:
        reply = ctx.backend.complete(ctx.store.snapshot() + [user_msg])
    except BackendError as exc:
        return _fail(state, "infer", exc)
    ctx.store.append(user_msg)
    state["reply"] = reply.content
    logger.info("cycle.infer.ok", extra={"extra": {"backend": ctx.backend.name, "reply": reply.content}})
    return state


def sanitize_node(state: CycleState, ctx: CycleContext) -> CycleState:
    payload = extract(state.get("reply") or "")
    ctx.store.append(ChatMessage(role="assistant", content=payload))
    state["payload"] = payload
    logger.debug("cycle.sanitize.ok", extra={"extra": {"payload": payload}})
    return state


def check_completion_node(state: CycleState, ctx: CycleContext) -> CycleState:
    if is_task_complete(state.get("payload") or "", ctx.completion_marker):
        state["outcome"] = "done"
        logger.info("cycle.task_complete")
    return state


def submit_node(state: CycleState, ctx: CycleContext) -> CycleState:
    commands = parse_command_batch(state.get("payload") or "")
    state["commands"] = commands
    try:
        ctx.gateway.submit(commands)
    except ValidationError as exc:
        logger.warning("cycle.submit.invalid_batch", extra={"extra": {"commands": commands}})
        return _fail(state, "submit", exc)
    except (NetworkError, RemoteError) as exc:
        return _fail(state, "submit", exc)
    logger.info("cycle.submit.ok", extra={"extra": {"commands": len(commands)}})
    return state


def persist_node(state: CycleState, ctx: CycleContext) -> CycleState:
    try:
        ctx.store.persist(ctx.history_file)
    except PersistenceError as exc:
        # 历史无法保存时继续运行，只是失去断点恢复能力
        logger.error(
            "cycle.persist.failed",
            extra={"extra": {"code": exc.code, "error": exc.message, **exc.extra}},
        )
        return state
    logger.debug("cycle.persist.ok", extra={"extra": {"path": str(ctx.history_file)}})
    return state


def _route_on_failure(state: CycleState) -> str:
    return "retry" if state.get("outcome") == "retry" else "next"


def _route_on_completion(state: CycleState) -> str:
    return "done" if state.get("outcome") == "done" else "next"


def build_cycle_graph(ctx: CycleContext) -> CompiledStateGraph:
    graph = StateGraph(CycleState)
    graph.add_node("fetch_state", lambda s: fetch_state_node(s, ctx))
    graph.add_node("infer", lambda s: infer_node(s, ctx))
    graph.add_node("sanitize", lambda s: sanitize_node(s, ctx))
    graph.add_node("check_completion", lambda s: check_completion_node(s, ctx))
    graph.add_node("submit", lambda s: submit_node(s, ctx))
    graph.add_node("persist", lambda s: persist_node(s, ctx))
    graph.set_entry_point("fetch_state")
    graph.add_conditional_edges("fetch_state", _route_on_failure, {"retry": END, "next": "infer"})
    graph.add_conditional_edges("infer", _route_on_failure, {"retry": END, "next": "sanitize"})
    graph.add_edge("sanitize", "check_completion")
    graph.add_conditional_edges("check_completion", _route_on_completion, {"done": END, "next": "submit"})
    graph.add_conditional_edges("submit", _route_on_failure, {"retry": END, "next": "persist"})
    graph.add_edge("persist", END)
    return graph.compile()
