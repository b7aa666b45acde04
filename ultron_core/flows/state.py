"""State definition for one control cycle."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Literal, Optional, TypedDict

from ultron_core.domain.conversation import ConversationStore
from ultron_core.infrastructure.turtle.gateway import TurtleGateway
from ultron_core.providers.base import ChatBackend


CycleOutcome = Literal["continue", "retry", "done"]


class CycleState(TypedDict, total=False):
    """State shared across the nodes of a single cycle."""

    turtle_state: Optional[str]
    reply: Optional[str]
    payload: Optional[str]
    commands: List[str]
    outcome: CycleOutcome
    failed_stage: Optional[str]
    error: Optional[str]


@dataclass
class CycleContext:
    """Collaborators the cycle nodes work with."""

    store: ConversationStore
    backend: ChatBackend
    gateway: TurtleGateway
    history_file: Path
    completion_marker: str
    take_human_input: Callable[[], str]
